from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from facepet.schemas.base import reject_explicit_nulls
from facepet.utils.clock import as_utc

class BusinessBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    image_url: str = ""
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_address: Optional[str] = None
    tags: List[str] = []
    rating: Optional[float] = Field(None, ge=0, le=5)

class BusinessCreate(BusinessBase):
    pass

class BusinessUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_address: Optional[str] = None
    tags: Optional[List[str]] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    is_active: Optional[bool] = None

    @model_validator(mode='after')
    def validate_required(self):
        reject_explicit_nulls(self, ("name", "description", "image_url", "tags", "is_active"))
        return self

class BusinessRead(BusinessBase):
    id: UUID
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CouponBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    price: float = Field(0, ge=0)
    points: int = Field(0, ge=0)
    image_url: str = ""
    valid_from: datetime
    valid_to: datetime
    business_ids: List[str] = []

    @field_validator('valid_from', 'valid_to')
    @classmethod
    def normalize_dates(cls, v):
        return as_utc(v)

    @model_validator(mode='after')
    def validate_validity(self):
        if self.valid_to < self.valid_from:
            raise ValueError("valid_to must not be before valid_from")
        return self

class CouponCreate(CouponBase):
    pass

class CouponUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    points: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    business_ids: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator('valid_from', 'valid_to')
    @classmethod
    def normalize_dates(cls, v):
        return as_utc(v)

    @model_validator(mode='after')
    def validate_required(self):
        reject_explicit_nulls(
            self,
            ("name", "description", "price", "points", "image_url", "valid_from", "valid_to", "business_ids", "is_active"),
        )
        return self

class CouponRead(CouponBase):
    id: UUID
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
