"""
Fixed-window request limiters.

Each key may make ``max_requests`` requests per window. The window starts at
the first request and is not sliding, so a burst straddling a window boundary
can briefly reach twice the ceiling.

``EmailRateLimiter`` keys on the recipient address and guards outbound mail.
``GeocodeRateLimiter`` keys on the client IP and guards the paid geocoding API.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from facepet.services.maintenance import PeriodicCleanup
from facepet.utils.clock import utcnow

logger = logging.getLogger(__name__)

class RateLimited(Exception):
    def __init__(self, key: str, reset_at: datetime, message: Optional[str] = None):
        super().__init__(message or f"Too many requests. Try again after {reset_at.isoformat()}")
        self.key = key
        self.reset_at = reset_at

@dataclass
class RateLimitRecord:
    key: str
    count: int
    reset_at: datetime

@dataclass
class RateLimitResult:
    allowed: bool
    reset_at: Optional[datetime] = None

    def raise_for_limit(self, key: str, message: Optional[str] = None):
        if not self.allowed:
            raise RateLimited(key, self.reset_at, message)

class FixedWindowRateLimiter(PeriodicCleanup):
    job_id = "rate_limit_cleanup"
    key_label = "key"

    def __init__(
        self,
        max_requests: int,
        window_minutes: int,
        cleanup_interval_minutes: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(cleanup_interval_minutes)
        self.max_requests = max_requests
        self.window = timedelta(minutes=window_minutes)
        self.clock = clock
        self._records: Dict[str, RateLimitRecord] = {}

    @staticmethod
    def _normalize(key: str) -> str:
        return key.strip().lower()

    def check(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and say whether it may proceed."""
        now = self.clock()
        key = self._normalize(key)
        record = self._records.get(key)

        if record is None or now > record.reset_at:
            self._records[key] = RateLimitRecord(key=key, count=1, reset_at=now + self.window)
            return RateLimitResult(allowed=True)

        if record.count >= self.max_requests:
            logger.warning(f"Rate limit reached for {key} until {record.reset_at.isoformat()}")
            return RateLimitResult(allowed=False, reset_at=record.reset_at)

        record.count += 1
        return RateLimitResult(allowed=True)

    def reset(self, key: str):
        self._records.pop(self._normalize(key), None)

    def cleanup(self) -> int:
        now = self.clock()
        removed = 0
        for key, record in list(self._records.items()):
            if now > record.reset_at and self._records.get(key) is record:
                del self._records[key]
                removed += 1
        return removed

    def status(self) -> dict:
        return {
            "total_entries": len(self._records),
            "entries": [
                {
                    self.key_label: key,
                    "count": record.count,
                    "reset_time": record.reset_at.isoformat(),
                }
                for key, record in list(self._records.items())
            ],
        }

class EmailRateLimiter(FixedWindowRateLimiter):
    job_id = "email_rate_limit_cleanup"
    key_label = "email"

    def __init__(
        self,
        max_requests: int = 5,
        window_minutes: int = 15,
        cleanup_interval_minutes: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(max_requests, window_minutes, cleanup_interval_minutes, clock)

class GeocodeRateLimiter(FixedWindowRateLimiter):
    job_id = "geocode_rate_limit_cleanup"
    key_label = "client"

    def __init__(
        self,
        max_requests: int = 10,
        window_minutes: int = 15,
        cleanup_interval_minutes: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(max_requests, window_minutes, cleanup_interval_minutes, clock)
