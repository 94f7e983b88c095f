"""
In-memory store for one-time email verification codes.

One live code is kept per (purpose, email). Reads check expiry themselves, so
the periodic sweep only bounds memory; correctness never depends on it.

All mutating operations are plain synchronous methods. Request handlers run on
a single event loop and cannot be interleaved inside one of these calls, which
is what keeps the one-pending-code-per-email guarantee without locks. A
multi-threaded host would need per-key locking around ``issue``/``verify``.
"""
import enum
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from facepet.services.maintenance import PeriodicCleanup
from facepet.utils.clock import utcnow

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION = "email_verification"
ACCOUNT_VERIFICATION = "account_verification"
PASSWORD_CHANGE = "password_change"

CODE_NOT_FOUND_MESSAGE = "No verification code found for this email or it has expired"
CODE_MISMATCH_MESSAGE = "Invalid verification code"

class VerificationError(Exception):
    """Base class for failed code checks."""
    message = "Verification failed"

    def __init__(self, email: str):
        super().__init__(self.message)
        self.email = email

class CodeNotFound(VerificationError):
    message = CODE_NOT_FOUND_MESSAGE

class CodeMismatch(VerificationError):
    message = CODE_MISMATCH_MESSAGE

class VerificationOutcome(str, enum.Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"

@dataclass
class VerificationRecord:
    email: str
    code: str
    expires_at: datetime
    purpose: str = EMAIL_VERIFICATION
    payload: Optional[str] = None
    failed_attempts: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

@dataclass
class VerificationResult:
    outcome: VerificationOutcome
    email: str
    record: Optional[VerificationRecord] = None

    @property
    def success(self) -> bool:
        return self.outcome == VerificationOutcome.VERIFIED

    @property
    def error(self) -> Optional[str]:
        if self.outcome == VerificationOutcome.NOT_FOUND:
            return CODE_NOT_FOUND_MESSAGE
        if self.outcome == VerificationOutcome.MISMATCH:
            return CODE_MISMATCH_MESSAGE
        return None

    def raise_for_outcome(self) -> VerificationRecord:
        """Return the consumed record, or raise the matching VerificationError."""
        if self.outcome == VerificationOutcome.NOT_FOUND:
            raise CodeNotFound(self.email)
        if self.outcome == VerificationOutcome.MISMATCH:
            raise CodeMismatch(self.email)
        return self.record

def generate_code() -> str:
    """Six-digit numeric code from the OS CSPRNG."""
    return f"{secrets.randbelow(900000) + 100000}"

class VerificationStore(PeriodicCleanup):
    job_id = "verification_store_cleanup"

    def __init__(
        self,
        default_ttl_minutes: int = 10,
        cleanup_interval_minutes: int = 60,
        clock: Callable[[], datetime] = utcnow,
        code_factory: Callable[[], str] = generate_code,
    ):
        super().__init__(cleanup_interval_minutes)
        self.default_ttl_minutes = default_ttl_minutes
        self.clock = clock
        self.code_factory = code_factory
        self._records: Dict[Tuple[str, str], VerificationRecord] = {}

    @staticmethod
    def _key(email: str, purpose: str) -> Tuple[str, str]:
        return (purpose, email.strip().lower())

    def __len__(self) -> int:
        return len(self._records)

    def issue(
        self,
        email: str,
        ttl_minutes: Optional[int] = None,
        purpose: str = EMAIL_VERIFICATION,
        payload: Optional[str] = None,
    ) -> str:
        """Create a fresh code for ``email``, replacing any pending one."""
        ttl = self.default_ttl_minutes if ttl_minutes is None else ttl_minutes
        code = self.code_factory()
        record = VerificationRecord(
            email=email.strip().lower(),
            code=code,
            expires_at=self.clock() + timedelta(minutes=ttl),
            purpose=purpose,
            payload=payload,
        )
        self._records[self._key(email, purpose)] = record
        logger.info(f"Issued {purpose} code for {record.email}, valid for {ttl} minutes")
        return code

    def get(self, email: str, purpose: str = EMAIL_VERIFICATION) -> Optional[VerificationRecord]:
        """Live record for ``email`` or None. Expired records are dropped on the way."""
        key = self._key(email, purpose)
        record = self._records.get(key)
        if record is None:
            return None
        if record.is_expired(self.clock()):
            self._records.pop(key, None)
            return None
        return record

    def verify(
        self,
        email: str,
        code: str,
        purpose: str = EMAIL_VERIFICATION,
        max_attempts: Optional[int] = None,
    ) -> VerificationResult:
        """Check ``code`` against the pending record.

        A match consumes the record. A mismatch leaves it in place until it
        expires so the user can retry, unless ``max_attempts`` wrong codes
        have now been tried, in which case the record is dropped.
        """
        normalized = email.strip().lower()
        record = self.get(email, purpose)
        if record is None:
            return VerificationResult(VerificationOutcome.NOT_FOUND, normalized)
        if not hmac.compare_digest(record.code.encode(), (code or "").strip().encode()):
            record.failed_attempts += 1
            if max_attempts is not None and record.failed_attempts >= max_attempts:
                self._records.pop(self._key(email, purpose), None)
                logger.warning(f"Dropped {purpose} code for {normalized} after {record.failed_attempts} failed attempts")
            return VerificationResult(VerificationOutcome.MISMATCH, normalized)
        self._records.pop(self._key(email, purpose), None)
        return VerificationResult(VerificationOutcome.VERIFIED, normalized, record)

    def delete(self, email: str, purpose: str = EMAIL_VERIFICATION) -> bool:
        return self._records.pop(self._key(email, purpose), None) is not None

    def cleanup(self) -> int:
        now = self.clock()
        removed = 0
        for key, record in list(self._records.items()):
            if record.is_expired(now):
                # Only drop the record we looked at; a reissue may have replaced it
                if self._records.get(key) is record:
                    del self._records[key]
                    removed += 1
        return removed
