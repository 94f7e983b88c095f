from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import EmailStr
import logging

from facepet.schemas import VerifyOtpRequest, VerifyOtpResponse
from facepet.services.rate_limiter import EmailRateLimiter
from facepet.services.verification_store import VerificationStore
from facepet.utils.email import EmailService, get_email_service
from facepet.utils.stores import get_email_rate_limiter, get_verification_store

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_FIELDS_MESSAGE = "Email and verification code are required"

def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})

@router.post("/send-verification")
async def send_verification(
    email: EmailStr = Query(...),
    store: VerificationStore = Depends(get_verification_store),
    limiter: EmailRateLimiter = Depends(get_email_rate_limiter),
    mailer: EmailService = Depends(get_email_service),
):
    """Issue a one-time code for ``email`` and send it."""
    limiter.check(email).raise_for_limit(email)

    code = store.issue(email)
    sent = await mailer.send_verification_email(
        to_email=email,
        verification_code=code,
        ttl_minutes=store.default_ttl_minutes,
    )
    if not sent:
        # Drop the undelivered code unless a newer request already replaced it
        pending = store.get(email)
        if pending is not None and pending.code == code:
            store.delete(email)
        logger.error(f"Verification code for {email} could not be delivered")
        return error_response(500, "Failed to send verification code")

    return {"success": True, "message": "Verification code sent"}

@router.post("/verify-otp", response_model=VerifyOtpResponse, response_model_exclude_none=True)
async def verify_otp(
    request: VerifyOtpRequest,
    store: VerificationStore = Depends(get_verification_store),
):
    """Check a one-time code. A correct code can only be used once."""
    if not request.email or not request.code:
        return error_response(400, MISSING_FIELDS_MESSAGE)

    result = store.verify(request.email, request.code)
    if not result.success:
        return error_response(400, result.error)
    return VerifyOtpResponse(success=True, verified=True, message="Email verified successfully")
