from fastapi import APIRouter, HTTPException, Depends, Query
import logging

from facepet.services.places import PlacesClient, PlacesError, get_places_client

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/autocomplete")
async def autocomplete(
    input: str = Query(""),
    language: str = "en",
    places: PlacesClient = Depends(get_places_client)
):
    if not input:
        raise HTTPException(status_code=400, detail="Input parameter is required")
    try:
        predictions = await places.autocomplete(input, language)
    except PlacesError as e:
        logger.error(f"Autocomplete failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch autocomplete results")
    return {"predictions": predictions}

@router.get("/details")
async def place_details(
    place_id: str = Query(""),
    language: str = "en",
    type: str = "address",  # address, coordinates
    places: PlacesClient = Depends(get_places_client)
):
    if not place_id:
        raise HTTPException(status_code=400, detail="place_id parameter is required")
    try:
        if type == "coordinates":
            return {"coordinates": await places.coordinates(place_id)}
        return {"formatted_address": await places.formatted_address(place_id, language)}
    except PlacesError as e:
        logger.error(f"Place details failed for {place_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch place details")
