"""Database models."""

from .user import User, OAuthAccount, UserRole
from .pet import Pet, Owner, Vet, Breed, Gender, PetIdPool
from .advertisement import Advertisement, AdType, AdStatus
from .promo import Business, Coupon
from .contact import ContactSubmission
