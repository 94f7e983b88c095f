"""Request and response schemas."""

from .base import ResponseBase
from .auth import UserRead, UserCreate, UserUpdate
from .pet import PetCreate, PetUpdate, PetSummary, LookupRead
from .ad import AdCreate, AdUpdate, AdRead, PublicAd
from .promo import BusinessCreate, BusinessUpdate, BusinessRead, CouponCreate, CouponUpdate, CouponRead
from .contact import ContactCreate, ContactStatusUpdate, ContactRead
from .verification import VerifyOtpRequest, VerifyOtpResponse
from .geocoding import GeocodeRequest
