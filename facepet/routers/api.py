from fastapi import APIRouter
from facepet.core.config import settings
from facepet.routers import (
    auth,
    health,
    verification,
    pets,
    ads,
    promos,
    admin,
    contact,
    places,
    geocoding,
    imagekit,
)

api_router = APIRouter(prefix=settings.API_V1_STR)

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(health.router, tags=["health"])
api_router.include_router(verification.router, tags=["verification"])
api_router.include_router(pets.router, prefix="/pets", tags=["pets"])
api_router.include_router(ads.router, prefix="/ads", tags=["ads"])
api_router.include_router(promos.router, prefix="/coupons", tags=["coupons"])
api_router.include_router(contact.router, prefix="/contact", tags=["contact"])
api_router.include_router(places.router, prefix="/places", tags=["places"])
api_router.include_router(geocoding.router, prefix="/geocoding", tags=["geocoding"])
api_router.include_router(imagekit.router, prefix="/imagekit", tags=["imagekit"])

api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(ads.admin_router, prefix="/admin/ads", tags=["admin"])
api_router.include_router(promos.business_router, prefix="/admin/businesses", tags=["admin"])
api_router.include_router(promos.coupon_router, prefix="/admin/coupons", tags=["admin"])
api_router.include_router(contact.admin_router, prefix="/admin/contact-submissions", tags=["admin"])
