from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from uuid import UUID
from facepet.models.advertisement import AdType, AdStatus
from facepet.schemas.base import reject_explicit_nulls
from facepet.utils.clock import as_utc

class AdBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: AdType
    content: str = Field(..., description="URL of the image or video")
    duration: int = Field(5, ge=1, description="Display time in seconds")
    status: AdStatus = AdStatus.INACTIVE
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_dates(cls, v):
        return as_utc(v)

    @model_validator(mode='after')
    def validate_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class AdCreate(AdBase):
    pass

class AdUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[AdType] = None
    content: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1)
    status: Optional[AdStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_dates(cls, v):
        return as_utc(v)

    @model_validator(mode='after')
    def validate_required(self):
        reject_explicit_nulls(self, ("title", "type", "content", "duration", "status"))
        return self

class AdRead(AdBase):
    id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class PublicAd(BaseModel):
    id: UUID
    type: AdType
    content: str
    duration: int

    class Config:
        from_attributes = True
