from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date

class PetBase(BaseModel):
    pet_name: str = Field(..., min_length=1, max_length=255)
    image_url: str = ""
    breed_id: int
    gender_id: int
    birth_date: Optional[date] = None
    notes: Optional[str] = None

    owner_full_name: str = Field(..., min_length=1, max_length=255)
    owner_phone_number: str = Field(..., max_length=50)
    owner_email_address: EmailStr
    owner_home_address: str
    is_owner_phone_private: bool = False
    is_owner_email_private: bool = False
    is_owner_address_private: bool = False

    vet_name: Optional[str] = Field(None, max_length=255)
    vet_phone_number: Optional[str] = Field(None, max_length=50)
    vet_email_address: Optional[EmailStr] = None
    vet_address: Optional[str] = None
    is_vet_name_private: bool = False
    is_vet_phone_private: bool = False
    is_vet_email_private: bool = False
    is_vet_address_private: bool = False

class PetCreate(PetBase):
    pass

class PetUpdate(PetBase):
    pass

class PetSummary(BaseModel):
    id: str
    name: str
    breed: str
    image: str

class LookupRead(BaseModel):
    id: int
    en: str
    he: str

    class Config:
        from_attributes = True
