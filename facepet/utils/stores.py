from fastapi import Request

from facepet.core.config import settings
from facepet.services.rate_limiter import EmailRateLimiter, GeocodeRateLimiter
from facepet.services.verification_store import VerificationStore

def build_verification_store() -> VerificationStore:
    return VerificationStore(
        default_ttl_minutes=settings.VERIFICATION_CODE_TTL_MINUTES,
        cleanup_interval_minutes=settings.STORE_CLEANUP_INTERVAL_MINUTES,
    )

def build_email_rate_limiter() -> EmailRateLimiter:
    return EmailRateLimiter(
        max_requests=settings.EMAIL_RATE_LIMIT_MAX,
        window_minutes=settings.EMAIL_RATE_LIMIT_WINDOW_MINUTES,
        cleanup_interval_minutes=settings.STORE_CLEANUP_INTERVAL_MINUTES,
    )

def build_geocode_rate_limiter() -> GeocodeRateLimiter:
    return GeocodeRateLimiter(
        max_requests=settings.GEOCODE_RATE_LIMIT_MAX,
        window_minutes=settings.GEOCODE_RATE_LIMIT_WINDOW_MINUTES,
        cleanup_interval_minutes=settings.STORE_CLEANUP_INTERVAL_MINUTES,
    )

def get_verification_store(request: Request) -> VerificationStore:
    return request.app.state.verification_store

def get_email_rate_limiter(request: Request) -> EmailRateLimiter:
    return request.app.state.email_rate_limiter

def get_geocode_rate_limiter(request: Request) -> GeocodeRateLimiter:
    return request.app.state.geocode_rate_limiter
