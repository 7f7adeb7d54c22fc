from pydantic import BaseModel

from havenstay.services.booking_rules import (
    DateLike,
    calculate_nights,
    calculate_total_price,
)


class StayQuote(BaseModel):
    nights: int
    price_per_night: float
    total: float


def quote_stay(price_per_night: float, start: DateLike, end: DateLike) -> StayQuote:
    """Price a stay before booking it, using the server's own arithmetic."""
    return StayQuote(
        nights=calculate_nights(start, end),
        price_per_night=float(price_per_night),
        total=calculate_total_price(price_per_night, start, end),
    )
