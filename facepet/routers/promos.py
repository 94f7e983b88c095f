from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging
import uuid

from facepet.core.database import get_db
from facepet.models import Business, Coupon, User
from facepet.routers.auth import require_admin
from facepet.schemas import (
    BusinessCreate,
    BusinessUpdate,
    BusinessRead,
    CouponCreate,
    CouponUpdate,
    CouponRead,
)
from facepet.utils.clock import as_utc, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()
business_router = APIRouter()
coupon_router = APIRouter()

@router.get("/active", response_model=List[CouponRead])
async def list_active_coupons(db: AsyncSession = Depends(get_db)):
    """Coupons that are enabled and currently inside their validity window."""
    now = utcnow()
    result = await db.execute(
        select(Coupon)
        .where(Coupon.is_active.is_(True), Coupon.valid_from <= now, Coupon.valid_to >= now)
        .order_by(Coupon.valid_to)
    )
    return result.scalars().all()

# Businesses

@business_router.get("/", response_model=List[BusinessRead])
async def list_businesses(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    result = await db.execute(select(Business).order_by(Business.name))
    return result.scalars().all()

@business_router.get("/{business_id}", response_model=BusinessRead)
async def get_business(business_id: uuid.UUID, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    business = await db.get(Business, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business

@business_router.post("/", response_model=BusinessRead, status_code=201)
async def create_business(data: BusinessCreate, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    try:
        business = Business(**data.model_dump(), created_by=admin.id)
        db.add(business)
        await db.commit()
        await db.refresh(business)
        return business
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create business: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create business")

@business_router.put("/{business_id}", response_model=BusinessRead)
async def update_business(
    business_id: uuid.UUID,
    data: BusinessUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    business = await db.get(Business, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    try:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(business, field, value)
        await db.commit()
        await db.refresh(business)
        return business
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update business {business_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update business")

@business_router.delete("/{business_id}")
async def delete_business(business_id: uuid.UUID, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    business = await db.get(Business, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    await db.delete(business)
    await db.commit()
    return {"success": True, "message": "Business deleted successfully"}

# Coupons

@coupon_router.get("/", response_model=List[CouponRead])
async def list_coupons(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    result = await db.execute(select(Coupon).order_by(Coupon.created_at.desc()))
    return result.scalars().all()

@coupon_router.get("/{coupon_id}", response_model=CouponRead)
async def get_coupon(coupon_id: uuid.UUID, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    coupon = await db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon

@coupon_router.post("/", response_model=CouponRead, status_code=201)
async def create_coupon(data: CouponCreate, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    try:
        coupon = Coupon(**data.model_dump(), created_by=admin.id)
        db.add(coupon)
        await db.commit()
        await db.refresh(coupon)
        return coupon
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create coupon: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create coupon")

@coupon_router.put("/{coupon_id}", response_model=CouponRead)
async def update_coupon(
    coupon_id: uuid.UUID,
    data: CouponUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    coupon = await db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")

    updates = data.model_dump(exclude_unset=True)
    valid_from = as_utc(updates.get("valid_from", coupon.valid_from))
    valid_to = as_utc(updates.get("valid_to", coupon.valid_to))
    if valid_from and valid_to and valid_to < valid_from:
        raise HTTPException(status_code=400, detail="valid_to must not be before valid_from")

    try:
        for field, value in updates.items():
            setattr(coupon, field, value)
        await db.commit()
        await db.refresh(coupon)
        return coupon
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update coupon {coupon_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update coupon")

@coupon_router.delete("/{coupon_id}")
async def delete_coupon(coupon_id: uuid.UUID, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    coupon = await db.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    await db.delete(coupon)
    await db.commit()
    return {"success": True, "message": "Coupon deleted successfully"}
