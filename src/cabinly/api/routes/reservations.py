"""Reservations endpoints for the dashboard.

Writes go through cabinly.domain.booking inside a single transaction, so
the availability check and the write see the same locked snapshot.

Status codes:
- 409: requested range unavailable (body carries next_available_date)
- 422: booking rule violated (dates, capacity)
- 503: reservation store failure, safe to retry
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, ConfigDict, Field

from cabinly.api.auth import CurrentUser
from cabinly.api.errors import store_errors
from cabinly.api.rbac import (
    CANCEL_RESERVATIONS,
    CREATE_RESERVATIONS,
    EDIT_RESERVATIONS,
    VIEW_RESERVATIONS,
    require_permission,
)
from cabinly.domain import booking
from cabinly.domain.booking import BookingConflict, BookingResult, ReservationNotFoundError
from cabinly.domain.cabins import Cabin
from cabinly.domain.reservations import (
    ReservationChanges,
    ReservationDraft,
    ReservationStatus,
    Season,
)
from cabinly.domain.validation import ReservationValidationError
from cabinly.infra.db import txn
from cabinly.infra.repositories import reservations_repository as repo
from cabinly.infra.settings import get_availability_horizon_days
from cabinly.observability.logging import get_logger
from cabinly.observability.redaction import safe_log_context

router = APIRouter(prefix="/reservations", tags=["reservations"])

logger = get_logger(__name__)


class CreateReservationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cabin: Cabin
    check_in: date
    check_out: date
    guest_name: str = Field(..., min_length=1, max_length=200)
    adults: int = Field(..., ge=0)
    children: int = Field(0, ge=0)
    babies: int = Field(0, ge=0)
    season: Season = Season.LOW
    status: ReservationStatus = ReservationStatus.PENDING
    notes: str | None = Field(None, max_length=2000)
    custom_price: int | None = Field(None, ge=0)


class UpdateReservationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cabin: Cabin | None = None
    check_in: date | None = None
    check_out: date | None = None
    status: ReservationStatus | None = None
    guest_name: str | None = Field(None, min_length=1, max_length=200)
    adults: int | None = Field(None, ge=0)
    children: int | None = Field(None, ge=0)
    babies: int | None = Field(None, ge=0)
    season: Season | None = None
    notes: str | None = Field(None, max_length=2000)
    custom_price: int | None = Field(None, ge=0)


def _booking_response(outcome: BookingResult | BookingConflict) -> dict:
    if isinstance(outcome, BookingConflict):
        raise HTTPException(status_code=409, detail=outcome.to_dict())
    return {
        "reservation": outcome.reservation.to_dict(),
        "warnings": outcome.warnings,
    }


def _validation_error(exc: ReservationValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"reason_code": exc.reason_code, "message": str(exc)},
    )


@router.get("")
def list_reservations(
    cabin: Cabin | None = Query(None),
    status: ReservationStatus | None = Query(None),
    from_date: date | None = Query(None, description="Stays checking out after this date"),
    to_date: date | None = Query(None, description="Stays checking in before this date"),
    user: CurrentUser = Depends(require_permission(VIEW_RESERVATIONS)),
) -> dict:
    with store_errors("list_reservations"):
        with txn() as cur:
            reservations = repo.list_reservations(
                cur, cabin=cabin, status=status, from_date=from_date, to_date=to_date
            )
    return {"reservations": [r.to_dict() for r in reservations]}


@router.get("/{reservation_id}")
def get_reservation(
    reservation_id: UUID = Path(..., description="Reservation UUID"),
    user: CurrentUser = Depends(require_permission(VIEW_RESERVATIONS)),
) -> dict:
    with store_errors("get_reservation"):
        with txn() as cur:
            reservation = repo.get_reservation(cur, str(reservation_id))
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation.to_dict()


@router.post("", status_code=201)
def create_reservation(
    body: CreateReservationRequest,
    user: CurrentUser = Depends(require_permission(CREATE_RESERVATIONS)),
) -> dict:
    """Create a reservation after re-checking the cabin's availability."""
    draft = ReservationDraft(**body.model_dump())

    try:
        with store_errors("create_reservation"):
            with txn() as cur:
                outcome = booking.create_reservation(
                    cur, draft, horizon_days=get_availability_horizon_days()
                )
    except ReservationValidationError as exc:
        raise _validation_error(exc)

    if isinstance(outcome, BookingResult):
        logger.info(
            "reservation created via dashboard",
            extra={
                "extra_fields": safe_log_context(
                    user_id=user.id, reservation_id=outcome.reservation.id
                )
            },
        )
    return _booking_response(outcome)


@router.patch("/{reservation_id}")
def update_reservation(
    body: UpdateReservationRequest,
    reservation_id: UUID = Path(..., description="Reservation UUID"),
    user: CurrentUser = Depends(require_permission(EDIT_RESERVATIONS)),
) -> dict:
    """Edit a reservation. Moving dates or cabin re-checks availability.

    Sending notes: null clears the note.
    """
    changes = ReservationChanges(**body.model_dump(exclude_unset=True))
    if changes.status is ReservationStatus.CANCELLED:
        raise HTTPException(
            status_code=422,
            detail="Use POST /reservations/{id}/actions/cancel to cancel",
        )

    try:
        with store_errors("update_reservation"):
            with txn() as cur:
                outcome = booking.update_reservation(
                    cur,
                    str(reservation_id),
                    changes,
                    horizon_days=get_availability_horizon_days(),
                )
    except ReservationNotFoundError:
        raise HTTPException(status_code=404, detail="Reservation not found")
    except ReservationValidationError as exc:
        raise _validation_error(exc)

    return _booking_response(outcome)


@router.post("/{reservation_id}/actions/cancel")
def cancel_reservation(
    reservation_id: UUID = Path(..., description="Reservation UUID"),
    user: CurrentUser = Depends(require_permission(CANCEL_RESERVATIONS)),
) -> dict:
    """Cancel a reservation. Its dates become bookable immediately."""
    try:
        with store_errors("cancel_reservation"):
            with txn() as cur:
                reservation = booking.cancel_reservation(cur, str(reservation_id))
    except ReservationNotFoundError:
        raise HTTPException(status_code=404, detail="Reservation not found")

    logger.info(
        "reservation cancelled via dashboard",
        extra={
            "extra_fields": safe_log_context(user_id=user.id, reservation_id=str(reservation_id))
        },
    )
    return reservation.to_dict()
