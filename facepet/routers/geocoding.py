from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import logging

from facepet.schemas import GeocodeRequest
from facepet.services.coordinates import InvalidCoordinates, is_within_israel, location_of, sanitize_coordinates
from facepet.services.places import PlacesClient, PlacesError, get_places_client
from facepet.services.rate_limiter import GeocodeRateLimiter
from facepet.utils.stores import get_geocode_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter()

GEOCODE_CACHE_CONTROL = "private, max-age=86400"
GEOCODE_RATE_LIMIT_MESSAGE = "Too many geocoding requests. Please try again later."

def client_identifier(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"

def geocode_error(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message, **extra})

@router.post("/geocode")
async def geocode(
    data: GeocodeRequest,
    request: Request,
    limiter: GeocodeRateLimiter = Depends(get_geocode_rate_limiter),
    places: PlacesClient = Depends(get_places_client),
):
    """Resolve an address or place id to coordinates once, server side."""
    client_id = client_identifier(request)
    limiter.check(client_id).raise_for_limit(client_id, GEOCODE_RATE_LIMIT_MESSAGE)

    if not places.api_key:
        logger.error("GOOGLE_API_KEY not configured")
        return geocode_error(503, "Geocoding service unavailable", "Geocoding is not configured")

    try:
        result = await places.geocode(address=data.address, place_id=data.place_id)
    except PlacesError as e:
        logger.error(f"Geocoding failed for {client_id}: {str(e)}")
        return geocode_error(500, "Internal server error", "An unexpected error occurred during geocoding")

    location = location_of(result)
    if not location:
        source = "place ID" if data.place_id else "address"
        return geocode_error(400, "Geocoding failed", f"Could not geocode the provided {source}")

    try:
        coordinates = sanitize_coordinates(location.get("lat"), location.get("lng"))
    except InvalidCoordinates as e:
        return geocode_error(400, "Invalid coordinates", str(e))

    within_israel = is_within_israel(coordinates)
    if data.validate_israel_bounds and not within_israel:
        return geocode_error(
            400,
            "Location validation failed",
            "The provided address is outside Israel",
            coordinates=coordinates,
            formattedAddress=result.get("formatted_address"),
        )

    logger.info(f"Geocoded address for {client_id}: {coordinates}")
    return JSONResponse(
        content={
            "address": data.address,
            "coordinates": coordinates,
            "formattedAddress": result.get("formatted_address"),
            "placeId": result.get("place_id"),
            "withinIsrael": within_israel,
        },
        headers={"Cache-Control": GEOCODE_CACHE_CONTROL, "X-Content-Type-Options": "nosniff"},
    )
