from datetime import date, datetime
from types import SimpleNamespace

import pytest

from havenstay.services.booking_rules import (
    BookingValidationError,
    blocked_dates,
    calculate_nights,
    calculate_total_price,
    check_transition,
    parse_date,
    ranges_overlap,
    validate_stay,
)


def _stay(start, end):
    return SimpleNamespace(start_date=start, end_date=end)


def test_two_night_stay_price():
    assert calculate_nights(date(2024, 1, 1), date(2024, 1, 3)) == 2
    assert calculate_total_price(120.0, date(2024, 1, 1), date(2024, 1, 3)) == 240.0


def test_nights_round_partial_days_up():
    start = datetime(2024, 3, 30, 0, 0)
    end = datetime(2024, 3, 31, 1, 0)
    assert calculate_nights(start, end) == 2


def test_nights_use_absolute_difference():
    assert calculate_nights(date(2024, 1, 3), date(2024, 1, 1)) == 2


def test_total_price_rounds_to_cents():
    assert calculate_total_price(33.333, date(2024, 1, 1), date(2024, 1, 4)) == 100.0


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((date(2024, 1, 1), date(2024, 1, 5)), (date(2024, 1, 4), date(2024, 1, 8)), True),
        ((date(2024, 1, 1), date(2024, 1, 5)), (date(2024, 1, 5), date(2024, 1, 8)), False),
        ((date(2024, 1, 5), date(2024, 1, 8)), (date(2024, 1, 1), date(2024, 1, 5)), False),
        ((date(2024, 1, 1), date(2024, 1, 10)), (date(2024, 1, 3), date(2024, 1, 4)), True),
    ],
)
def test_ranges_overlap_is_half_open(a, b, expected):
    assert ranges_overlap(*a, *b) is expected


def test_validate_stay_returns_nights():
    nights = validate_stay(
        max_guests=4,
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 4),
        number_of_guests=2,
    )
    assert nights == 3


def test_validate_stay_guest_limit_checked_first():
    with pytest.raises(BookingValidationError) as exc:
        validate_stay(
            max_guests=2,
            start_date=date(2024, 6, 4),
            end_date=date(2024, 6, 1),
            number_of_guests=3,
        )
    assert exc.value.rule == "guest_limit"
    assert exc.value.status_code == 400


@pytest.mark.parametrize("end", [date(2024, 6, 1), date(2024, 5, 30)])
def test_validate_stay_rejects_end_not_after_start(end):
    with pytest.raises(BookingValidationError) as exc:
        validate_stay(
            max_guests=2,
            start_date=date(2024, 6, 1),
            end_date=end,
            number_of_guests=1,
        )
    assert exc.value.rule == "date_order"


def test_validate_stay_rejects_overlap_with_existing():
    with pytest.raises(BookingValidationError) as exc:
        validate_stay(
            max_guests=2,
            start_date=date(2024, 6, 3),
            end_date=date(2024, 6, 6),
            number_of_guests=1,
            existing=[_stay(date(2024, 6, 1), date(2024, 6, 4))],
        )
    assert exc.value.rule == "availability"
    assert exc.value.status_code == 409


def test_validate_stay_allows_back_to_back():
    nights = validate_stay(
        max_guests=2,
        start_date=date(2024, 6, 4),
        end_date=date(2024, 6, 6),
        number_of_guests=1,
        existing=[_stay(date(2024, 6, 1), date(2024, 6, 4))],
    )
    assert nights == 2


def test_transitions():
    check_transition("pending", "accepted")
    check_transition("pending", "cancelled")
    check_transition("accepted", "cancelled")
    for current, target in [
        ("cancelled", "accepted"),
        ("cancelled", "cancelled"),
        ("accepted", "accepted"),
        ("accepted", "pending"),
    ]:
        with pytest.raises(BookingValidationError) as exc:
            check_transition(current, target)
        assert exc.value.rule == "invalid_transition"
        assert exc.value.status_code == 409


def test_blocked_dates_lists_future_nights_only():
    today = date(2024, 6, 10)
    bookings = [
        _stay(date(2024, 6, 1), date(2024, 6, 5)),  # past
        _stay(date(2024, 6, 9), date(2024, 6, 12)),  # in progress
        _stay(date(2024, 6, 11), date(2024, 6, 13)),  # overlaps the one above
    ]
    assert blocked_dates(bookings, today=today) == [
        "2024-06-10",
        "2024-06-11",
        "2024-06-12",
    ]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-02-29", date(2024, 2, 29)),
        ("2024-02-29T10:00:00Z", date(2024, 2, 29)),
        (datetime(2024, 1, 2, 5), date(2024, 1, 2)),
        ("", None),
        ("tomorrow", None),
        (None, None),
        (42, None),
    ],
)
def test_parse_date_is_lenient(value, expected):
    assert parse_date(value) == expected
