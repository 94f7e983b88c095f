from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging
import uuid

from facepet.core.database import get_db
from facepet.models import Pet, Owner, Vet, Breed, Gender, PetIdPool, User
from facepet.routers.auth import current_active_user
from facepet.schemas import PetCreate, PetUpdate, PetSummary, LookupRead, PublicAd
from facepet.services.ads import get_random_active_ad
from facepet.services.pet_profile import get_pet_profile

logger = logging.getLogger(__name__)

router = APIRouter()

def _owner_values(data: PetCreate) -> dict:
    return {
        "full_name": data.owner_full_name,
        "phone_number": data.owner_phone_number,
        "email": data.owner_email_address,
        "home_address": data.owner_home_address,
        "is_phone_private": data.is_owner_phone_private,
        "is_email_private": data.is_owner_email_private,
        "is_address_private": data.is_owner_address_private,
    }

def _vet_values(data: PetCreate) -> dict:
    return {
        "name": data.vet_name,
        "phone_number": data.vet_phone_number,
        "email": data.vet_email_address,
        "address": data.vet_address,
        "is_name_private": data.is_vet_name_private,
        "is_phone_private": data.is_vet_phone_private,
        "is_email_private": data.is_vet_email_private,
        "is_address_private": data.is_vet_address_private,
    }

def _pet_values(data: PetCreate) -> dict:
    return {
        "name": data.pet_name,
        "image_url": data.image_url,
        "breed_id": data.breed_id,
        "gender_id": data.gender_id,
        "birth_date": data.birth_date,
        "notes": data.notes or "",
    }

async def _get_owned_pet(db: AsyncSession, pet_id: uuid.UUID, user: User) -> Pet:
    result = await db.execute(select(Pet).where(Pet.id == pet_id, Pet.user_id == user.id))
    pet = result.scalar_one_or_none()
    if not pet:
        # Same answer for "missing" and "someone else's"
        raise HTTPException(status_code=404, detail="Pet not found")
    return pet

@router.get("/breeds", response_model=List[LookupRead])
async def get_breeds(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Breed).order_by(Breed.id))
    return result.scalars().all()

@router.get("/genders", response_model=List[LookupRead])
async def get_genders(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Gender).order_by(Gender.id))
    return result.scalars().all()

@router.get("/", response_model=List[PetSummary])
async def get_my_pets(locale: str = "en", db: AsyncSession = Depends(get_db), user: User = Depends(current_active_user)):
    """Pets of the current user, with the breed label in the requested locale."""
    try:
        breed_label = Breed.he if locale == "he" else Breed.en
        stmt = (
            select(Pet.id, Pet.name, Pet.image_url, breed_label)
            .outerjoin(Breed, Pet.breed_id == Breed.id)
            .where(Pet.user_id == user.id)
            .order_by(Pet.created_at.desc())
        )
        result = await db.execute(stmt)
        return [
            PetSummary(id=str(pet_id), name=name, image=image_url, breed=breed or "")
            for pet_id, name, image_url, breed in result.all()
        ]
    except Exception as e:
        logger.error(f"Failed to list pets for {user.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to get pets")

@router.get("/{pet_id}/availability")
async def check_pet_id_availability(pet_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Whether a tag id exists in the pool and has not been registered yet."""
    pool_entry = await db.get(PetIdPool, pet_id)
    if not pool_entry or pool_entry.is_used:
        return {"success": False, "error": "Pet ID is either already used or does not exist."}
    return {"success": True}

@router.get("/{pet_id}")
async def get_public_pet(pet_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Public pet profile shown when a tag is scanned, plus one ad to display."""
    try:
        profile = await get_pet_profile(db, pet_id)
    except Exception as e:
        logger.error(f"Failed to load pet {pet_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to get pet")
    if profile is None:
        raise HTTPException(status_code=404, detail="Pet not found")

    try:
        ad = await get_random_active_ad(db)
    except Exception as e:
        # The profile is still useful without an ad
        logger.warning(f"Failed to load ad for pet page: {str(e)}")
        ad = None

    return {"pet": profile, "ad": PublicAd.model_validate(ad) if ad else None}

@router.post("/{pet_id}", status_code=201)
async def create_pet(
    pet_id: uuid.UUID,
    data: PetCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(current_active_user)
):
    """Register a pet under an unused tag id."""
    pool_entry = await db.get(PetIdPool, pet_id)
    if not pool_entry or pool_entry.is_used:
        raise HTTPException(status_code=400, detail="Pet ID is either already used or does not exist.")

    try:
        owner = Owner(**_owner_values(data))
        db.add(owner)
        vet = None
        if data.vet_name:
            vet = Vet(**_vet_values(data))
            db.add(vet)
        await db.flush()

        pet = Pet(id=pet_id, user_id=user.id, owner_id=owner.id, vet_id=vet.id if vet else None, **_pet_values(data))
        db.add(pet)
        pool_entry.is_used = True
        await db.commit()
        return {"success": True, "pet": {"id": str(pet_id)}}
    except Exception as e:
        await db.rollback()
        logger.error(f"Pet creation failed for {pet_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Pet creation failed")

@router.put("/{pet_id}")
async def update_pet(
    pet_id: uuid.UUID,
    data: PetUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(current_active_user)
):
    pet = await _get_owned_pet(db, pet_id, user)
    try:
        for field, value in _pet_values(data).items():
            setattr(pet, field, value)

        owner = await db.get(Owner, pet.owner_id)
        for field, value in _owner_values(data).items():
            setattr(owner, field, value)

        vet = await db.get(Vet, pet.vet_id) if pet.vet_id else None
        if vet:
            for field, value in _vet_values(data).items():
                if field == "name" and not value:
                    continue
                setattr(vet, field, value)
        elif data.vet_name:
            vet = Vet(**_vet_values(data))
            db.add(vet)
            await db.flush()
            pet.vet_id = vet.id

        await db.commit()
        return {"success": True, "message": "Pet updated successfully"}
    except Exception as e:
        await db.rollback()
        logger.error(f"Pet update failed for {pet_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Pet update error")

@router.delete("/{pet_id}")
async def delete_pet(
    pet_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(current_active_user)
):
    """Delete a pet with its owner and vet cards, releasing the tag id."""
    pet = await _get_owned_pet(db, pet_id, user)
    try:
        owner = await db.get(Owner, pet.owner_id)
        vet = await db.get(Vet, pet.vet_id) if pet.vet_id else None
        await db.delete(pet)
        await db.flush()
        if owner:
            await db.delete(owner)
        if vet:
            await db.delete(vet)
        pool_entry = await db.get(PetIdPool, pet_id)
        if pool_entry:
            pool_entry.is_used = False
        await db.commit()
        return {"success": True, "message": "Pet deleted successfully"}
    except Exception as e:
        await db.rollback()
        logger.error(f"Pet deletion failed for {pet_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete pet")
