from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class GeocodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str = Field(min_length=1, max_length=500)
    place_id: Optional[str] = Field(default=None, alias="placeId")
    validate_israel_bounds: bool = Field(default=False, alias="validateIsraelBounds")
