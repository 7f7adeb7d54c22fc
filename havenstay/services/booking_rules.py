"""Stay arithmetic and booking validation rules.

Pure functions with no database or HTTP access, shared by the booking
service and the client library so a quote shown to a traveler is computed
exactly the way the server prices the booking.
"""
import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Protocol, Union

SECONDS_PER_DAY = 86_400

DateLike = Union[date, datetime]


class StayRange(Protocol):
    start_date: date
    end_date: date


class BookingValidationError(ValueError):
    """A requested stay broke one of the booking rules.

    ``rule`` names the failed check so callers can tell them apart:
    ``guest_limit``, ``date_order``, ``availability`` or
    ``invalid_transition``.
    """

    def __init__(self, rule: str, message: str, status_code: int = 400):
        super().__init__(message)
        self.rule = rule
        self.message = message
        self.status_code = status_code


BOOKING_TRANSITIONS = {
    "pending": {"accepted", "cancelled"},
    "accepted": {"cancelled"},
    "cancelled": set(),
}


def check_transition(current: str, target: str) -> None:
    if target not in BOOKING_TRANSITIONS.get(current, set()):
        raise BookingValidationError(
            "invalid_transition",
            f"Cannot change a {current} booking to {target}",
            status_code=409,
        )


def calculate_nights(start: DateLike, end: DateLike) -> int:
    # Absolute difference, partial days round up (DST shifted datetimes)
    delta = abs(_as_datetime(end) - _as_datetime(start))
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def calculate_total_price(price_per_night: float, start: DateLike, end: DateLike) -> float:
    return round(calculate_nights(start, end) * float(price_per_night), 2)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open overlap: a checkout day may be the next check-in day."""
    return start_a < end_b and end_a > start_b


def validate_stay(
    *,
    max_guests: int,
    start_date: date,
    end_date: date,
    number_of_guests: int,
    existing: Iterable[StayRange] = (),
) -> int:
    """Run the booking checks in order and return the number of nights.

    ``existing`` holds the property's non-cancelled bookings.
    """
    if number_of_guests > max_guests:
        raise BookingValidationError(
            "guest_limit",
            f"This property allows at most {max_guests} guests",
        )
    if end_date <= start_date:
        raise BookingValidationError(
            "date_order", "Check-out date must be after check-in date"
        )
    for booking in existing:
        if ranges_overlap(booking.start_date, booking.end_date, start_date, end_date):
            raise BookingValidationError(
                "availability",
                "Property is not available for the selected dates",
                status_code=409,
            )
    return calculate_nights(start_date, end_date)


def blocked_dates(
    bookings: Iterable[StayRange], today: Optional[date] = None
) -> list[str]:
    """ISO dates of every booked night still to come, sorted and unique."""
    today = today or date.today()
    nights = set()
    for booking in bookings:
        if booking.end_date <= today:
            continue
        day = max(booking.start_date, today)
        while day < booking.end_date:
            nights.add(day)
            day += timedelta(days=1)
    return [d.isoformat() for d in sorted(nights)]


def parse_date(value) -> Optional[date]:
    """Lenient ISO date parsing; anything unparseable becomes None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)
