from fastapi import APIRouter, Request
from starlette import status

from havenstay.dependencies import db_dependency, CurrentUser, TravelerUser
from havenstay.schemas.booking import (
    BookingCreate,
    BookingEnvelope,
    BookingListResponse,
    BookingResponse,
)
from havenstay.services.audit_log_service import AuditLogService
from havenstay.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_booking(
    db: db_dependency,
    booking: BookingCreate,
    current_user: TravelerUser,
    request: Request,
):
    result = await BookingService().create_booking(db, booking, current_user["id"])
    AuditLogService().log_request(
        db,
        request,
        action="booking.create",
        resource_type="booking",
        resource_id=result.id,
        user=current_user,
        status_code=status.HTTP_201_CREATED,
    )
    return {
        "message": "Booking request sent successfully",
        "booking": BookingResponse.from_booking(result),
    }


@router.get("", response_model=BookingListResponse)
async def list_bookings(db: db_dependency, current_user: CurrentUser):
    """A traveler's own bookings, or the bookings on an owner's properties."""
    bookings = await BookingService().list_bookings(db, current_user)
    return {"bookings": [BookingResponse.from_booking(b) for b in bookings]}


@router.get("/{booking_id}", response_model=BookingEnvelope)
async def get_booking(db: db_dependency, booking_id: int, current_user: CurrentUser):
    booking = await BookingService().get_booking_for_party(db, booking_id, current_user)
    return {"booking": BookingResponse.from_booking(booking)}


@router.put("/{booking_id}/accept", response_model=BookingEnvelope)
async def accept_booking(
    db: db_dependency, booking_id: int, current_user: CurrentUser, request: Request
):
    booking = await BookingService().accept_booking(db, booking_id, current_user)
    AuditLogService().log_request(
        db,
        request,
        action="booking.accept",
        resource_type="booking",
        resource_id=booking_id,
        user=current_user,
        changes={"status": {"old": "pending", "new": "accepted"}},
        status_code=status.HTTP_200_OK,
    )
    return {
        "message": "Booking accepted",
        "booking": BookingResponse.from_booking(booking),
    }


@router.put("/{booking_id}/cancel", response_model=BookingEnvelope)
async def cancel_booking(
    db: db_dependency, booking_id: int, current_user: CurrentUser, request: Request
):
    booking = await BookingService().cancel_booking(db, booking_id, current_user)
    AuditLogService().log_request(
        db,
        request,
        action="booking.cancel",
        resource_type="booking",
        resource_id=booking_id,
        user=current_user,
        status_code=status.HTTP_200_OK,
    )
    return {
        "message": "Booking cancelled",
        "booking": BookingResponse.from_booking(booking),
    }
