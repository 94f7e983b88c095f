from typing import Optional
from sqlalchemy import select, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from facepet.models import Advertisement, AdStatus
from facepet.utils.clock import utcnow

async def get_random_active_ad(db: AsyncSession) -> Optional[Advertisement]:
    """Pick one active ad whose schedule window (if any) includes now."""
    now = utcnow()
    stmt = (
        select(Advertisement)
        .where(
            and_(
                Advertisement.status == AdStatus.ACTIVE,
                or_(Advertisement.start_date.is_(None), Advertisement.start_date <= now),
                or_(Advertisement.end_date.is_(None), Advertisement.end_date >= now),
            )
        )
        .order_by(func.random())
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()
