from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging
import uuid

from facepet.core.database import get_db
from facepet.models import ContactSubmission, User
from facepet.routers.auth import require_admin
from facepet.schemas import ContactCreate, ContactStatusUpdate, ContactRead

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()

@router.post("/", status_code=201)
async def submit_contact_form(data: ContactCreate, db: AsyncSession = Depends(get_db)):
    try:
        submission = ContactSubmission(**data.model_dump())
        db.add(submission)
        await db.commit()
        await db.refresh(submission)
        return {"success": True, "message": "Contact form submitted successfully", "id": str(submission.id)}
    except Exception as e:
        await db.rollback()
        logger.error(f"Contact form submission failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")

@admin_router.get("/", response_model=List[ContactRead])
async def list_contact_submissions(
    status: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    query = select(ContactSubmission)
    if status:
        query = query.where(ContactSubmission.status == status)
    result = await db.execute(query.order_by(ContactSubmission.created_at.desc()).limit(limit).offset(offset))
    return result.scalars().all()

@admin_router.patch("/{submission_id}", response_model=ContactRead)
async def update_contact_submission(
    submission_id: uuid.UUID,
    request: ContactStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)
):
    submission = await db.get(ContactSubmission, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Contact submission not found")
    submission.status = request.status
    await db.commit()
    await db.refresh(submission)
    return submission
