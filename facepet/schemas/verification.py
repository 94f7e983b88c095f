from pydantic import BaseModel
from typing import Optional

class VerifyOtpRequest(BaseModel):
    # Presence is checked by the route so a missing field gets the same 400 as a bad code
    email: Optional[str] = None
    code: Optional[str] = None

class VerifyOtpResponse(BaseModel):
    success: bool
    verified: bool = False
    message: Optional[str] = None
    error: Optional[str] = None
