"""Dashboard availability endpoints.

Provides:
- GET /cabins: cabin table (labels, external codes, capacities)
- GET /availability: every cabin's availability for a range
- GET /availability/turnovers: same-day departure/arrival pairs
- GET /availability/{cabin}/next: next free date for a cabin
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from cabinly.api.auth import CurrentUser
from cabinly.api.errors import store_errors
from cabinly.api.rbac import VIEW_RESERVATIONS, require_permission
from cabinly.domain.availability import check_all_cabins, find_turnovers, next_available_date
from cabinly.domain.cabins import Cabin
from cabinly.infra.db import txn
from cabinly.infra.repositories.reservations_repository import fetch_active_reservations
from cabinly.infra.settings import get_availability_horizon_days

router = APIRouter(tags=["availability"])

_view = require_permission(VIEW_RESERVATIONS)


@router.get("/cabins")
def list_cabins(user: CurrentUser = Depends(_view)) -> dict:
    return {
        "cabins": [
            {
                "cabin": cabin.value,
                "label": cabin.label,
                "short_name": cabin.info.short_name,
                "external_code": cabin.external_code,
                "max_capacity": cabin.max_capacity,
            }
            for cabin in Cabin
        ]
    }


@router.get("/availability")
def get_availability(
    check_in: date = Query(..., description="Check-in date (YYYY-MM-DD)"),
    check_out: date = Query(..., description="Check-out date (YYYY-MM-DD, departure day)"),
    exclude_id: str | None = Query(None, description="Reservation being edited"),
    user: CurrentUser = Depends(_view),
) -> dict:
    """Availability of every cabin, in display order, for the reservation form."""
    if check_out <= check_in:
        raise HTTPException(status_code=422, detail="check_out must be greater than check_in")

    with store_errors("check_all_cabins"):
        with txn() as cur:
            snapshot = fetch_active_reservations(cur)

    results = check_all_cabins(snapshot, check_in, check_out, exclude_id)
    return {
        "check_in": check_in.isoformat(),
        "check_out": check_out.isoformat(),
        "cabins": [result.to_dict() for result in results],
    }


@router.get("/availability/turnovers")
def get_turnovers(
    on_date: date = Query(..., alias="date", description="Day to inspect (YYYY-MM-DD)"),
    user: CurrentUser = Depends(_view),
) -> dict:
    """Cabins with a departure and an arrival on the same day.

    Operational warning for housekeeping, not a booking conflict.
    """
    with store_errors("find_turnovers"):
        with txn() as cur:
            snapshot = fetch_active_reservations(cur)

    return {
        "date": on_date.isoformat(),
        "turnovers": [
            {
                "cabin": t.cabin.value,
                "label": t.cabin.label,
                "departing_reservation_id": t.departing_reservation_id,
                "arriving_reservation_id": t.arriving_reservation_id,
            }
            for t in find_turnovers(snapshot, on_date)
        ],
    }


@router.get("/availability/{cabin}/next")
def get_next_available(
    cabin: Cabin = Path(..., description="Cabin id"),
    from_date: date = Query(..., description="First candidate date (YYYY-MM-DD)"),
    nights: int = Query(1, ge=1, le=30, description="Length of the stay to fit"),
    user: CurrentUser = Depends(_view),
) -> dict:
    """First date at or after from_date where the cabin fits the stay.

    next_available_date is null when nothing is free within the configured
    horizon.
    """
    horizon_days = get_availability_horizon_days()

    with store_errors("next_available_date"):
        with txn() as cur:
            snapshot = fetch_active_reservations(cur, cabin)

    next_date = next_available_date(
        snapshot, cabin, from_date, horizon_days=horizon_days, stay_nights=nights
    )
    return {
        "cabin": cabin.value,
        "from_date": from_date.isoformat(),
        "nights": nights,
        "horizon_days": horizon_days,
        "next_available_date": next_date.isoformat() if next_date else None,
    }
