from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from havenstay.models.booking import BookingStatus


class BookingCreate(BaseModel):
    property_id: int
    start_date: date
    end_date: date
    number_of_guests: int = Field(default=1, ge=1)


class BookingResponse(BaseModel):
    id: int
    property_id: int
    traveler_id: int
    start_date: date
    end_date: date
    number_of_guests: int
    total_price: float
    status: BookingStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Denormalized for list views
    property_name: Optional[str] = None
    property_location: Optional[str] = None
    property_photos: Optional[str] = None
    traveler_name: Optional[str] = None
    traveler_email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    @classmethod
    def from_booking(cls, booking) -> "BookingResponse":
        out = cls.model_validate(booking)
        if booking.property is not None:
            out.property_name = booking.property.property_name
            out.property_location = booking.property.location
            out.property_photos = booking.property.photos
        if booking.traveler is not None:
            out.traveler_name = booking.traveler.name
            out.traveler_email = booking.traveler.email
        return out


class BookingEnvelope(BaseModel):
    message: Optional[str] = None
    booking: BookingResponse


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]


class DashboardStats(BaseModel):
    total_properties: int
    total_bookings: int
    pending_bookings: int
    accepted_bookings: int
    cancelled_bookings: int
    total_revenue: float


class DashboardResponse(BaseModel):
    stats: DashboardStats
    pending_requests: List[BookingResponse]
    recent_bookings: List[BookingResponse]
