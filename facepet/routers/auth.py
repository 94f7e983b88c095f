from fastapi import APIRouter, Depends, HTTPException
from fastapi_users import FastAPIUsers
from fastapi_users.authentication import BearerTransport, JWTStrategy, AuthenticationBackend
from httpx_oauth.clients.google import GoogleOAuth2
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import timedelta
import logging
import uuid
import httpx
import secrets

from facepet.core.config import settings
from facepet.core.database import get_db
from facepet.utils.auth import get_user_manager
from facepet.utils.clock import utcnow
from facepet.utils.email import EmailService, get_email_service
from facepet.utils.stores import get_email_rate_limiter, get_verification_store
from facepet.models import User
from facepet.services.rate_limiter import EmailRateLimiter
from facepet.services.verification_store import (
    ACCOUNT_VERIFICATION,
    PASSWORD_CHANGE,
    VerificationError,
    VerificationStore,
)
from fastapi_users import exceptions as fau_exceptions
from facepet.schemas.auth import (
    EmailRequest,
    PasswordChangeConfirm,
    PasswordChangeRequest,
    ResetPasswordRequest,
    UserCreate,
    UserRead,
    UserUpdate,
    VerifyCodeRequest,
)

logger = logging.getLogger(__name__)

GENERIC_RESEND_MESSAGE = "If an account exists with this email, a verification email has been sent."
GENERIC_RESET_MESSAGE = "If an account exists with this email, a password reset link has been sent."
PASSWORD_CHANGE_TTL_MINUTES = 10
MIN_PASSWORD_LENGTH = 8

bearer_transport = BearerTransport(tokenUrl="auth/jwt/login")

def get_jwt_strategy():
    return JWTStrategy(secret=settings.JWT_SECRET_KEY, lifetime_seconds=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60)

auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, uuid.UUID](
    get_user_manager,
    [auth_backend],
)

current_active_user = fastapi_users.current_user(active=True, verified=True)

def require_admin(current_user: User = Depends(current_active_user)):
    """Dependency to require admin or super admin role"""
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return current_user

def require_super_admin(current_user: User = Depends(current_active_user)):
    """Dependency to require super admin role"""
    if not current_user.is_super_admin:
        raise HTTPException(status_code=403, detail="Super admin privileges required")
    return current_user

google_client = GoogleOAuth2(
    client_id=settings.GOOGLE_CLIENT_ID,
    client_secret=settings.GOOGLE_CLIENT_SECRET,
    scopes=["openid", "email", "profile"]
)

router = APIRouter()

router.include_router(
    fastapi_users.get_auth_router(auth_backend), prefix="/jwt", tags=["auth"]
)
router.include_router(
    fastapi_users.get_register_router(user_schema=UserRead, user_create_schema=UserCreate), tags=["auth"]
)
router.include_router(
    fastapi_users.get_users_router(user_schema=UserRead, user_update_schema=UserUpdate), prefix="/users", tags=["users"]
)

router.include_router(
    fastapi_users.get_oauth_router(
        google_client,
        auth_backend,
        state_secret=settings.JWT_SECRET_KEY,
        associate_by_email=True,
        is_verified_by_default=True,
        redirect_url=settings.GOOGLE_REDIRECT_CALLBACK,
    ),
    prefix="/google",
    tags=["auth"],
)

async def issue_access_token(user: User) -> dict:
    token = await get_jwt_strategy().write_token(user)
    return {"access_token": token, "token_type": "bearer"}

@router.get("/google/verify")
async def google_callback(code: str, state: str, user_manager=Depends(get_user_manager)):
    token_data = await google_client.get_access_token(code, settings.GOOGLE_REDIRECT_CALLBACK)

    async with httpx.AsyncClient() as client:
        resp = await client.get(
            "https://www.googleapis.com/oauth2/v2/userinfo",
            headers={"Authorization": f"Bearer {token_data['access_token']}"},
            timeout=30
        )
        profile = resp.json()

    try:
        user = await user_manager.oauth_callback(
            oauth_name="google",
            access_token=token_data["access_token"],
            account_id=profile["id"],
            account_email=profile["email"],
            associate_by_email=True,
            is_verified_by_default=True,
        )
    except fau_exceptions.UserAlreadyExists:
        raise HTTPException(status_code=409, detail="User already exists for this email; account not linked.")
    if not user.full_name and profile.get("name"):
        await user_manager.update(
            user_update=UserUpdate(full_name=profile.get("name")),
            user=user,
            safe=False
        )

    return await issue_access_token(user)

@router.post("/verify-code")
async def verify_email_with_code(
    request: VerifyCodeRequest,
    store: VerificationStore = Depends(get_verification_store),
    user_manager=Depends(get_user_manager)
):
    """Verify the account email using the code sent at sign-up and log the user in."""
    try:
        store.verify(
            request.email,
            request.code,
            purpose=ACCOUNT_VERIFICATION,
            max_attempts=settings.MAX_CODE_ATTEMPTS,
        ).raise_for_outcome()
    except VerificationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        user = await user_manager.get_by_email(request.email)
    except fau_exceptions.UserNotExists:
        raise HTTPException(status_code=404, detail="User not found.")

    # A token is only handed out for the transition to verified
    if user.is_verified:
        raise HTTPException(status_code=400, detail="Email is already verified.")

    try:
        user = await user_manager.user_db.update(user, {"is_verified": True, "email_verified_at": utcnow()})
        await user_manager.on_after_verify(user)

        token = await issue_access_token(user)
        return {"message": "Email verified successfully.", **token}
    except Exception as e:
        logger.error(f"Error verifying email: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to verify email.")

@router.post("/resend-verification")
async def resend_verification_email(
    request: EmailRequest,
    store: VerificationStore = Depends(get_verification_store),
    limiter: EmailRateLimiter = Depends(get_email_rate_limiter),
    mailer: EmailService = Depends(get_email_service),
    user_manager=Depends(get_user_manager)
):
    """Resend a verification code. Never reveals whether the account exists."""
    try:
        user = await user_manager.get_by_email(request.email)
    except fau_exceptions.UserNotExists:
        return {"message": GENERIC_RESEND_MESSAGE}

    if user.is_verified:
        return {"message": "Email is already verified."}

    limiter.check(user.email).raise_for_limit(user.email)

    code = store.issue(user.email, purpose=ACCOUNT_VERIFICATION)
    await mailer.send_verification_email(
        to_email=user.email,
        verification_code=code,
        first_name=user.first_name,
        ttl_minutes=store.default_ttl_minutes,
    )
    return {"message": GENERIC_RESEND_MESSAGE}

@router.post("/forgot-password")
async def forgot_password(
    request: EmailRequest,
    db: AsyncSession = Depends(get_db),
    limiter: EmailRateLimiter = Depends(get_email_rate_limiter),
    mailer: EmailService = Depends(get_email_service),
):
    """Request a password reset email."""
    try:
        user_stmt = select(User).where(func.lower(User.email) == request.email.lower())
        result = await db.execute(user_stmt)
        user = result.unique().scalar_one_or_none()

        # Always return the same message (don't reveal if user exists)
        if not user:
            return {"message": GENERIC_RESET_MESSAGE}

        # Only email/password accounts can reset (not OAuth-only)
        if (not user.hashed_password) or user.oauth_accounts:
            return {"message": GENERIC_RESET_MESSAGE}

        if not limiter.check(user.email).allowed:
            return {"message": GENERIC_RESET_MESSAGE}

        reset_token = secrets.token_urlsafe(32)
        user.reset_password_token = reset_token
        user.reset_password_token_expires = utcnow() + timedelta(hours=settings.PASSWORD_RESET_TOKEN_EXPIRE_HOURS)
        await db.commit()

        await mailer.send_password_reset_email(
            to_email=user.email,
            reset_token=reset_token,
            first_name=user.first_name,
        )
        return {"message": GENERIC_RESET_MESSAGE}
    except Exception as e:
        logger.error(f"Error in forgot password: {str(e)}")
        return {"message": GENERIC_RESET_MESSAGE}

@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    user_manager=Depends(get_user_manager)
):
    """Reset password using the token from email."""
    try:
        user_stmt = select(User).where(
            User.reset_password_token == request.token,
            User.reset_password_token_expires > utcnow()
        )
        result = await db.execute(user_stmt)
        user = result.unique().scalar_one_or_none()

        if not user:
            raise HTTPException(status_code=400, detail="Invalid or expired reset token.")

        if (not user.hashed_password) or user.oauth_accounts:
            raise HTTPException(status_code=400, detail="Password reset is only available for email sign-up accounts.")

        user.hashed_password = user_manager.password_helper.hash(request.new_password)
        user.reset_password_token = None
        user.reset_password_token_expires = None
        await db.commit()

        return {"message": "Password reset successfully."}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error resetting password: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to reset password.")

@router.post("/password/change-request")
async def request_password_change(
    request: PasswordChangeRequest,
    user: User = Depends(current_active_user),
    store: VerificationStore = Depends(get_verification_store),
    limiter: EmailRateLimiter = Depends(get_email_rate_limiter),
    mailer: EmailService = Depends(get_email_service),
    user_manager=Depends(get_user_manager)
):
    """Start a password change; the new password takes effect once the emailed code is confirmed."""
    verified, _ = user_manager.password_helper.verify_and_update(request.current_password, user.hashed_password)
    if not verified:
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    if len(request.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"New password must be at least {MIN_PASSWORD_LENGTH} characters long")

    limiter.check(user.email).raise_for_limit(user.email)

    code = store.issue(
        user.email,
        ttl_minutes=PASSWORD_CHANGE_TTL_MINUTES,
        purpose=PASSWORD_CHANGE,
        payload=user_manager.password_helper.hash(request.new_password),
    )
    sent = await mailer.send_verification_email(
        to_email=user.email,
        verification_code=code,
        first_name=user.first_name,
        ttl_minutes=PASSWORD_CHANGE_TTL_MINUTES,
    )
    if not sent:
        store.delete(user.email, purpose=PASSWORD_CHANGE)
        raise HTTPException(status_code=500, detail="Failed to send verification email")

    return {"success": True}

@router.post("/password/change-confirm")
async def confirm_password_change(
    request: PasswordChangeConfirm,
    user: User = Depends(current_active_user),
    store: VerificationStore = Depends(get_verification_store),
    mailer: EmailService = Depends(get_email_service),
    user_manager=Depends(get_user_manager)
):
    """Apply a pending password change after checking its code."""
    try:
        record = store.verify(
            user.email,
            request.code,
            purpose=PASSWORD_CHANGE,
            max_attempts=settings.MAX_CODE_ATTEMPTS,
        ).raise_for_outcome()
    except VerificationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        await user_manager.user_db.update(user, {"hashed_password": record.payload})
    except Exception as e:
        logger.error(f"Error applying password change for {user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to change password")

    await mailer.send_password_change_notification(user.email, first_name=user.first_name)
    return {"success": True}
