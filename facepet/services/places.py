from typing import Optional
import logging
import httpx

from facepet.core.config import settings

logger = logging.getLogger(__name__)

PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


class PlacesError(Exception):
    """Raised when the Places API is unreachable or answers with an error status."""


class PlacesClient:
    """Thin async wrapper over the Google Places web service."""

    def __init__(self, api_key: Optional[str] = None, base_url: str = PLACES_BASE_URL, timeout: float = 10):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_API_KEY
        self.base_url = base_url
        self.timeout = timeout

    async def _get(self, path: str, params: dict) -> dict:
        return await self._request(f"{self.base_url}/{path}/json", params)

    async def _request(self, url: str, params: dict) -> dict:
        if not self.api_key:
            raise PlacesError("GOOGLE_API_KEY is not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, params={**params, "key": self.api_key})
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise PlacesError(f"Places request failed: {str(e)}") from e

        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise PlacesError(f"Places API returned {status}: {data.get('error_message', '')}")
        return data

    async def autocomplete(self, text: str, language: str = "en") -> list:
        data = await self._get("autocomplete", {"input": text, "language": language})
        return data.get("predictions", [])

    async def details(self, place_id: str, language: str = "en") -> dict:
        data = await self._get(
            "details",
            {"place_id": place_id, "language": language, "fields": "formatted_address,geometry"},
        )
        return data.get("result", {})

    async def formatted_address(self, place_id: str, language: str = "en") -> str:
        # Fall back to the id itself so callers always have something to show
        result = await self.details(place_id, language)
        return result.get("formatted_address") or place_id

    async def coordinates(self, place_id: str) -> Optional[dict]:
        result = await self.details(place_id)
        location = result.get("geometry", {}).get("location")
        if not location:
            return None
        return {"lat": location["lat"], "lng": location["lng"]}

    async def geocode(self, address: Optional[str] = None, place_id: Optional[str] = None) -> Optional[dict]:
        """First geocoding match for a place id, or for an address biased to Israel."""
        if place_id:
            params = {"place_id": place_id}
        else:
            params = {"address": address, "region": "il"}
        data = await self._request(GEOCODE_URL, params)
        results = data.get("results", [])
        return results[0] if results else None


def get_places_client() -> PlacesClient:
    return PlacesClient()
