from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from facepet.core.database import get_db
from facepet.models import User, UserRole, Pet, Advertisement, AdStatus, Business, Coupon, ContactSubmission
from facepet.routers.auth import require_admin, require_super_admin
from facepet.schemas import UserRead
from facepet.services.rate_limiter import EmailRateLimiter
from facepet.utils.stores import get_email_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter()


class RoleUpdateRequest(BaseModel):
    role: UserRole


class StatusUpdateRequest(BaseModel):
    is_active: bool


async def _count(db: AsyncSession, model, *criteria) -> int:
    stmt = select(func.count()).select_from(model)
    if criteria:
        stmt = stmt.where(*criteria)
    result = await db.execute(stmt)
    return result.scalar_one()

async def _get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.get("/stats")
async def get_stats(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    try:
        return {
            "users": await _count(db, User),
            "pets": await _count(db, Pet),
            "ads": {
                "total": await _count(db, Advertisement),
                "active": await _count(db, Advertisement, Advertisement.status == AdStatus.ACTIVE),
            },
            "businesses": await _count(db, Business),
            "coupons": await _count(db, Coupon),
            "contact_submissions": {
                "total": await _count(db, ContactSubmission),
                "pending": await _count(db, ContactSubmission, ContactSubmission.status == "pending"),
            },
        }
    except Exception as e:
        logger.error(f"Failed to collect admin stats: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to get stats")

@router.get("/users")
async def list_users(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    total = await _count(db, User)
    result = await db.execute(select(User).order_by(User.created_at.desc()).limit(limit).offset(offset))
    users = result.unique().scalars().all()
    return {
        "total": total,
        "users": [UserRead.model_validate(user) for user in users],
    }

@router.patch("/users/{user_id}/role", response_model=UserRead)
async def update_user_role(
    user_id: uuid.UUID,
    request: RoleUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin)
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot change your own role")
    user = await _get_user(db, user_id)
    user.role = request.role
    await db.commit()
    await db.refresh(user)
    logger.info(f"User {user_id} role set to {request.role.value} by {admin.id}")
    return user

@router.patch("/users/{user_id}/status", response_model=UserRead)
async def update_user_status(
    user_id: uuid.UUID,
    request: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    """Activate or deactivate an account. Only super admins may touch other admins."""
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot change your own status")
    user = await _get_user(db, user_id)
    if user.is_admin and not admin.is_super_admin:
        raise HTTPException(status_code=403, detail="Super admin privileges required")
    user.is_active = request.is_active
    await db.commit()
    await db.refresh(user)
    return user

@router.delete("/users/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin)
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = await _get_user(db, user_id)
    try:
        await db.delete(user)
        await db.commit()
        return {"success": True, "message": "User deleted successfully"}
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete user")

@router.get("/rate-limit")
async def get_rate_limit_status(
    limiter: EmailRateLimiter = Depends(get_email_rate_limiter),
    admin: User = Depends(require_admin)
):
    """Snapshot of the email rate limiter, for debugging."""
    return limiter.status()
