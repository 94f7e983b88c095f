from typing import Iterable, Optional
from pydantic import BaseModel

class ResponseBase(BaseModel):
    """Base response schema."""
    success: bool
    message: Optional[str] = None

def reject_explicit_nulls(model: BaseModel, fields: Iterable[str]) -> None:
    """Partial updates may omit a required column but not send it as null."""
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{name} cannot be null")
