from fastapi_users import schemas
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
import uuid
from datetime import datetime
from facepet.models.user import UserRole

class UserRead(schemas.BaseUser[uuid.UUID]):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.USER
    email_verified_at: Optional[datetime] = None
    last_activity_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

class UserCreate(schemas.BaseUserCreate):
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=15)

class UserUpdate(schemas.BaseUserUpdate):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=15)

class VerifyCodeRequest(BaseModel):
    email: EmailStr
    code: str

class EmailRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8)

class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str

class PasswordChangeConfirm(BaseModel):
    code: str
