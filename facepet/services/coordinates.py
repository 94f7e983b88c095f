"""Coordinate validation for geocoded locations."""
from typing import Optional

ISRAEL_BOUNDS = {
    "min_lat": 29.5,
    "max_lat": 33.3,
    "min_lng": 34.2,
    "max_lng": 35.9,
}
COORDINATE_PRECISION = 8


class InvalidCoordinates(ValueError):
    pass


def is_valid_coordinate(lat, lng) -> bool:
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def is_within_israel(coordinates: dict) -> bool:
    return (
        ISRAEL_BOUNDS["min_lat"] <= coordinates["lat"] <= ISRAEL_BOUNDS["max_lat"]
        and ISRAEL_BOUNDS["min_lng"] <= coordinates["lng"] <= ISRAEL_BOUNDS["max_lng"]
    )


def sanitize_coordinates(lat, lng) -> dict:
    """Round a raw lat/lng pair, rejecting anything off the globe."""
    if not is_valid_coordinate(lat, lng):
        raise InvalidCoordinates(f"Invalid coordinates: lat={lat}, lng={lng}")
    return {
        "lat": round(float(lat), COORDINATE_PRECISION),
        "lng": round(float(lng), COORDINATE_PRECISION),
    }


def location_of(result: Optional[dict]) -> Optional[dict]:
    if not result:
        return None
    return result.get("geometry", {}).get("location")
