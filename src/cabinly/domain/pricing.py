"""Stay pricing in whole Chilean pesos."""

from __future__ import annotations

from datetime import date

from cabinly.domain.reservations import Season

ADULT_NIGHT_PRICE = {Season.HIGH: 30000, Season.LOW: 25000}
CHILD_NIGHT_PRICE = 15000


def calculate_total_price(
    check_in: date,
    check_out: date,
    adults: int,
    children: int,
    season: Season,
    custom_price: int | None = None,
) -> int:
    """Total for the stay. Babies stay free; a positive custom price wins."""
    if custom_price is not None and custom_price > 0:
        return custom_price

    nights = (check_out - check_in).days
    if nights <= 0:
        return 0

    per_night = adults * ADULT_NIGHT_PRICE[season] + children * CHILD_NIGHT_PRICE
    return per_night * nights
