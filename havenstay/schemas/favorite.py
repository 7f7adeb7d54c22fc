from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional

from havenstay.schemas.property import PropertyResponse


class FavoriteResponse(BaseModel):
    id: int
    traveler_id: int
    property_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FavoriteEnvelope(BaseModel):
    message: str
    favorite: FavoriteResponse


class FavoriteListResponse(BaseModel):
    # The favorited properties themselves, so presence is checked by property id
    favorites: List[PropertyResponse]
