from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from typing import Annotated, List, Optional
from datetime import datetime, time


def _join_amenities(value):
    # Stored as comma separated text; accept a list from JSON clients too
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item).strip() for item in value if str(item).strip())
    return value


AmenityText = Annotated[Optional[str], BeforeValidator(_join_amenities)]


class PropertyBase(BaseModel):
    property_name: str = Field(..., min_length=1, max_length=200)
    property_type: str = Field(default="Apartment", max_length=50)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    street_address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    price_per_night: float = Field(..., gt=0)
    bedrooms: int = Field(default=1, ge=0)
    bathrooms: float = Field(default=1, ge=0)
    max_guests: int = Field(default=2, ge=1)
    amenities: AmenityText = None
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None


class PropertyCreate(PropertyBase):
    photos: Optional[List[str]] = None


class PropertyUpdate(BaseModel):
    property_name: Optional[str] = Field(None, min_length=1, max_length=200)
    property_type: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    street_address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    price_per_night: Optional[float] = Field(None, gt=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    max_guests: Optional[int] = Field(None, ge=1)
    amenities: AmenityText = None
    photos: Optional[List[str]] = None
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None


class PropertyResponse(PropertyBase):
    id: int
    owner_id: int
    photos: Optional[str] = None  # JSON encoded list, parsed by the client
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PropertyDetail(PropertyResponse):
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None

    @classmethod
    def from_property(cls, prop) -> "PropertyDetail":
        detail = cls.model_validate(prop)
        if prop.owner is not None:
            detail.owner_name = prop.owner.name
            detail.owner_email = prop.owner.email
        return detail


class PropertyListResponse(BaseModel):
    properties: List[PropertyResponse]


class PropertyDetailResponse(BaseModel):
    property: PropertyDetail
    blockedDates: List[str]


class PropertyEnvelope(BaseModel):
    message: str
    property: PropertyResponse


class PropertyImagesResponse(BaseModel):
    images: List[str]
