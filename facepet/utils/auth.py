from fastapi import Depends, Request
from fastapi_users import BaseUserManager, UUIDIDMixin
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from typing import Optional
import logging
import uuid
from facepet.core.config import settings
from facepet.core.database import get_db
from facepet.models import User, OAuthAccount
from facepet.utils.clock import utcnow
from facepet.utils.email import email_service
from facepet.services.verification_store import ACCOUNT_VERIFICATION

logger = logging.getLogger(__name__)

class UserDatabase(SQLAlchemyUserDatabase[User, OAuthAccount]):
    async def get_by_oauth_account(self, oauth: str, account_id: str) -> Optional[User]:
        stmt = (
            select(User)
            .join(OAuthAccount)
            .where(
                OAuthAccount.oauth_name == oauth,
                OAuthAccount.account_id == account_id,
            )
            .options(selectinload(User.oauth_accounts))  # load accounts non-joined
        )
        result = await self.session.execute(stmt)
        return result.unique().scalar_one_or_none()

class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = settings.JWT_SECRET_KEY
    verification_token_secret = settings.JWT_SECRET_KEY

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info(f"User {user.id} has registered.")
        if request is None or user.is_verified:
            return
        # Registration doubles as the first verification code request
        store = request.app.state.verification_store
        limiter = request.app.state.email_rate_limiter
        if not limiter.check(user.email).allowed:
            logger.warning(f"Skipping verification email for {user.email}: rate limited")
            return
        code = store.issue(user.email, purpose=ACCOUNT_VERIFICATION)
        await email_service.send_verification_email(
            to_email=user.email,
            verification_code=code,
            first_name=user.first_name,
            ttl_minutes=store.default_ttl_minutes,
        )

    async def on_after_verify(self, user: User, request: Optional[Request] = None):
        logger.info(f"User {user.id} has been verified")
        await email_service.send_welcome_email(user.email, first_name=user.first_name)

    async def on_after_login(self, user: User, request: Optional[Request] = None, response=None):
        await self.user_db.update(user, {"last_activity_date": utcnow()})

async def get_user_db(session: AsyncSession = Depends(get_db)):
    yield UserDatabase(session, User, OAuthAccount)

async def get_user_manager(user_db=Depends(get_user_db)):
    yield UserManager(user_db)
