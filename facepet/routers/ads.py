from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging
import uuid

from facepet.core.database import get_db
from facepet.models import Advertisement, User
from facepet.routers.auth import require_admin
from facepet.schemas import AdCreate, AdUpdate, AdRead, PublicAd
from facepet.services.ads import get_random_active_ad
from facepet.utils.clock import as_utc

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()

@router.get("/random")
async def random_ad(db: AsyncSession = Depends(get_db)):
    ad = await get_random_active_ad(db)
    return {"ad": PublicAd.model_validate(ad) if ad else None}

async def _get_ad(db: AsyncSession, ad_id: uuid.UUID) -> Advertisement:
    ad = await db.get(Advertisement, ad_id)
    if not ad:
        raise HTTPException(status_code=404, detail="Advertisement not found")
    return ad

@admin_router.get("/", response_model=List[AdRead])
async def list_ads(db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    result = await db.execute(select(Advertisement).order_by(Advertisement.created_at.desc()))
    return result.scalars().all()

@admin_router.get("/{ad_id}", response_model=AdRead)
async def get_ad(ad_id: uuid.UUID, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    return await _get_ad(db, ad_id)

@admin_router.post("/", response_model=AdRead, status_code=201)
async def create_ad(data: AdCreate, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    try:
        ad = Advertisement(**data.model_dump(), created_by=admin.id)
        db.add(ad)
        await db.commit()
        await db.refresh(ad)
        return ad
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create advertisement: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create advertisement")

@admin_router.put("/{ad_id}", response_model=AdRead)
async def update_ad(
    ad_id: uuid.UUID,
    data: AdUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    ad = await _get_ad(db, ad_id)
    updates = data.model_dump(exclude_unset=True)
    start_date = as_utc(updates.get("start_date", ad.start_date))
    end_date = as_utc(updates.get("end_date", ad.end_date))
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    try:
        for field, value in updates.items():
            setattr(ad, field, value)
        await db.commit()
        await db.refresh(ad)
        return ad
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update advertisement {ad_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update advertisement")

@admin_router.delete("/{ad_id}")
async def delete_ad(ad_id: uuid.UUID, db: AsyncSession = Depends(get_db), admin: User = Depends(require_admin)):
    ad = await _get_ad(db, ad_id)
    await db.delete(ad)
    await db.commit()
    return {"success": True, "message": "Advertisement deleted successfully"}
