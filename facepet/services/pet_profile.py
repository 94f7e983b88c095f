"""
Public pet profile assembly.

The pet's name and image are always shown. Every owner and vet contact field
has its own privacy flag and is dropped individually when the flag is set.
The owner's name has no flag and is always shown; the vet's name can be hidden.
"""
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from facepet.models import Pet, Owner, Vet, Breed, Gender

# (output field, model attribute, privacy flag)
OWNER_FIELDS = (
    ("phone_number", "phone_number", "is_phone_private"),
    ("email", "email", "is_email_private"),
    ("home_address", "home_address", "is_address_private"),
)

VET_FIELDS = (
    ("name", "name", "is_name_private"),
    ("phone_number", "phone_number", "is_phone_private"),
    ("email", "email", "is_email_private"),
    ("address", "address", "is_address_private"),
)

def _visible_fields(record, fields) -> dict:
    visible = {}
    for output_name, attribute, flag in fields:
        if getattr(record, flag, False):
            continue
        visible[output_name] = getattr(record, attribute, None)
    return visible

def compose_owner(owner) -> Optional[dict]:
    if owner is None:
        return None
    # full_name is emitted before and independently of any flag
    data = {"full_name": owner.full_name}
    data.update(_visible_fields(owner, OWNER_FIELDS))
    return data

def compose_vet(vet) -> Optional[dict]:
    if vet is None:
        return None
    return _visible_fields(vet, VET_FIELDS)

def _lookup(entry) -> Optional[dict]:
    if entry is None:
        return None
    return {"id": entry.id, "en": entry.en, "he": entry.he}

def compose_pet_profile(pet, owner=None, vet=None, gender=None, breed=None) -> dict:
    """Merge a pet with its owner and vet, applying each privacy flag."""
    birth_date = getattr(pet, "birth_date", None)
    return {
        "id": str(pet.id),
        "name": pet.name,
        "image_url": pet.image_url,
        "birth_date": birth_date.isoformat() if birth_date else None,
        "notes": getattr(pet, "notes", None),
        "gender": _lookup(gender),
        "breed": _lookup(breed),
        "owner": compose_owner(owner),
        "vet": compose_vet(vet),
    }

async def get_pet_profile(db: AsyncSession, pet_id: uuid.UUID) -> Optional[dict]:
    """Load a pet with its related records and return the public profile, or None."""
    pet = await db.get(Pet, pet_id)
    if pet is None:
        return None

    gender = await db.get(Gender, pet.gender_id)
    breed = await db.get(Breed, pet.breed_id)
    owner = await db.get(Owner, pet.owner_id) if pet.owner_id else None
    vet = await db.get(Vet, pet.vet_id) if pet.vet_id else None

    return compose_pet_profile(pet, owner=owner, vet=vet, gender=gender, breed=breed)
