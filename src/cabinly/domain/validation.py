"""Boundary checks for stay dates and party size.

The availability engine assumes check_in < check_out and a known cabin.
These checks run before any booking write so malformed requests are
rejected without touching the store.
"""

from __future__ import annotations

from datetime import date, timedelta

from cabinly.domain.cabins import Cabin

MAX_STAY_NIGHTS = 30
MAX_BOOKING_AHEAD_DAYS = 730


class ReservationValidationError(ValueError):
    """Raised when a reservation request violates a booking rule."""

    def __init__(self, reason_code: str, message: str) -> None:
        self.reason_code = reason_code
        super().__init__(message)


def validate_date_order(check_in: date, check_out: date) -> None:
    if check_out <= check_in:
        raise ReservationValidationError(
            "invalid_dates", "check_out must be at least one day after check_in"
        )


def validate_stay_dates(
    check_in: date,
    check_out: date,
    *,
    today: date,
    allow_past: bool = False,
) -> None:
    """Validate a requested stay.

    Rules:
    - check_out is at least one day after check_in
    - check_in is not before today (unless allow_past, used when editing
      a stay that already started)
    - check_in is at most two years ahead
    - the stay is at most MAX_STAY_NIGHTS nights

    Raises:
        ReservationValidationError: with reason_code naming the broken rule.
    """
    validate_date_order(check_in, check_out)

    if not allow_past and check_in < today:
        raise ReservationValidationError(
            "check_in_in_past", f"check_in cannot be before today ({today.isoformat()})"
        )

    if check_in > today + timedelta(days=MAX_BOOKING_AHEAD_DAYS):
        raise ReservationValidationError(
            "too_far_ahead", "reservations cannot be made more than two years ahead"
        )

    if (check_out - check_in).days > MAX_STAY_NIGHTS:
        raise ReservationValidationError(
            "stay_too_long", f"maximum stay is {MAX_STAY_NIGHTS} nights"
        )


def validate_capacity(cabin: Cabin, adults: int, children: int, babies: int = 0) -> None:
    """Babies do not count towards the cabin's capacity."""
    if adults < 1:
        raise ReservationValidationError("no_adults", "at least one adult is required")
    if children < 0 or babies < 0:
        raise ReservationValidationError("invalid_guests", "guest counts cannot be negative")

    guests = adults + children
    if guests > cabin.max_capacity:
        raise ReservationValidationError(
            "over_capacity",
            f"{cabin.info.short_name} holds at most {cabin.max_capacity} guests "
            f"(adults + children), got {guests}",
        )
