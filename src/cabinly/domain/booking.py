"""Booking orchestration: availability re-check and write in one transaction.

Every write that creates or relocates a reservation follows the same steps
on the caller's cursor (see cabinly.infra.db.txn):

1. validate the request (no store access on failure)
2. lock the cabin row, serializing writers for that cabin
3. load the cabin's active-reservation snapshot
4. run the availability engine; on conflict return BookingConflict, no write
5. write inside a savepoint; the reservations exclusion constraint is the
   last line of defence and is reported as a conflict too

Conflicts are return values. Store failures (psycopg2.Error) propagate so
callers can tell "not available" from "could not check".
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from cabinly.domain.availability import (
    DEFAULT_HORIZON_DAYS,
    find_conflict,
    next_available_date,
    turnover_neighbours,
)
from cabinly.domain.cabins import Cabin
from cabinly.domain.pricing import calculate_total_price
from cabinly.domain.reservations import (
    Reservation,
    ReservationChanges,
    ReservationDraft,
    ReservationStatus,
)
from cabinly.domain.validation import (
    validate_capacity,
    validate_date_order,
    validate_stay_dates,
)
from cabinly.infra.db import savepoint
from cabinly.infra.repositories import reservations_repository as repo
from cabinly.infra.time import local_today
from cabinly.observability.logging import get_logger
from cabinly.observability.redaction import safe_log_context

logger = get_logger(__name__)

WARNING_SAME_DAY_TURNOVER = "same_day_turnover"

_PRICING_FIELDS = ("check_in", "check_out", "adults", "children", "season")


class ReservationNotFoundError(LookupError):
    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"Reservation {reservation_id} not found")


class CabinNotProvisionedError(RuntimeError):
    """The cabins table has no row for a cabin (migrations not applied)."""


@dataclass(frozen=True)
class BookingConflict:
    """The requested range overlaps an active reservation."""

    cabin: Cabin
    check_in: date
    check_out: date
    conflicting_reservation_id: str | None
    next_available_date: date | None

    def to_dict(self) -> dict:
        return {
            "reason_code": "cabin_unavailable",
            "cabin": self.cabin.value,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "conflicting_reservation_id": self.conflicting_reservation_id,
            "next_available_date": (
                self.next_available_date.isoformat() if self.next_available_date else None
            ),
        }


@dataclass(frozen=True)
class BookingResult:
    reservation: Reservation
    warnings: list[str] = field(default_factory=list)


def _check_range(
    cur: PgCursor,
    *,
    cabin: Cabin,
    check_in: date,
    check_out: date,
    exclude_id: str | None,
    horizon_days: int,
) -> tuple[BookingConflict | None, list[str]]:
    """Lock the cabin, load its snapshot and run the engine.

    Returns (conflict or None, warnings).
    """
    if not repo.lock_cabin(cur, cabin):
        raise CabinNotProvisionedError(f"cabin {cabin.value} missing from cabins table")

    snapshot = repo.fetch_active_reservations(cur, cabin)
    conflict = find_conflict(snapshot, cabin, check_in, check_out, exclude_id)

    if conflict is not None:
        next_date = next_available_date(
            snapshot,
            cabin,
            check_in,
            horizon_days=horizon_days,
            exclude_id=exclude_id,
        )
        logger.warning(
            "booking conflict detected",
            extra={
                "extra_fields": safe_log_context(
                    cabin=cabin,
                    requested_check_in=check_in,
                    requested_check_out=check_out,
                    conflicting_reservation_id=conflict.id,
                    existing_check_in=conflict.check_in,
                    existing_check_out=conflict.check_out,
                    next_available_date=next_date,
                    exclude_reservation_id=exclude_id,
                )
            },
        )
        return (
            BookingConflict(
                cabin=cabin,
                check_in=check_in,
                check_out=check_out,
                conflicting_reservation_id=conflict.id,
                next_available_date=next_date,
            ),
            [],
        )

    warnings = []
    if turnover_neighbours(snapshot, cabin, check_in, check_out, exclude_id):
        warnings.append(WARNING_SAME_DAY_TURNOVER)
    return None, warnings


def _constraint_conflict(cabin: Cabin, check_in: date, check_out: date) -> BookingConflict:
    logger.warning(
        "booking rejected by overlap constraint",
        extra={
            "extra_fields": safe_log_context(
                cabin=cabin,
                requested_check_in=check_in,
                requested_check_out=check_out,
            )
        },
    )
    return BookingConflict(
        cabin=cabin,
        check_in=check_in,
        check_out=check_out,
        conflicting_reservation_id=None,
        next_available_date=None,
    )


def create_reservation(
    cur: PgCursor,
    draft: ReservationDraft,
    *,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    today: date | None = None,
) -> BookingResult | BookingConflict:
    """Create a reservation if its cabin is free for the requested range.

    Args:
        cur: Cursor inside the caller's transaction.
        draft: Requested reservation.
        horizon_days: Scan horizon for next_available_date on conflict.
        today: Override for "today" (defaults to local_today()).

    Returns:
        BookingResult with the stored reservation, or BookingConflict.

    Raises:
        ReservationValidationError: Request breaks a booking rule.
        psycopg2.Error: Store failure.
    """
    validate_stay_dates(draft.check_in, draft.check_out, today=today or local_today())
    validate_capacity(draft.cabin, draft.adults, draft.children, draft.babies)

    if draft.status is ReservationStatus.CANCELLED:
        # Nothing to protect; a cancelled record never occupies dates.
        conflict, warnings = None, []
    else:
        conflict, warnings = _check_range(
            cur,
            cabin=draft.cabin,
            check_in=draft.check_in,
            check_out=draft.check_out,
            exclude_id=None,
            horizon_days=horizon_days,
        )
    if conflict is not None:
        return conflict

    total_price = calculate_total_price(
        draft.check_in,
        draft.check_out,
        draft.adults,
        draft.children,
        draft.season,
        draft.custom_price,
    )

    try:
        with savepoint(cur, "reservation_write"):
            reservation = repo.insert_reservation(cur, draft, total_price=total_price)
    except pg_errors.ExclusionViolation:
        return _constraint_conflict(draft.cabin, draft.check_in, draft.check_out)

    logger.info(
        "reservation created",
        extra={
            "extra_fields": safe_log_context(
                reservation_id=reservation.id,
                cabin=reservation.cabin,
                check_in=reservation.check_in,
                check_out=reservation.check_out,
                status=reservation.status,
                warnings=",".join(warnings),
            )
        },
    )
    return BookingResult(reservation=reservation, warnings=warnings)


def update_reservation(
    cur: PgCursor,
    reservation_id: str,
    changes: ReservationChanges,
    *,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    today: date | None = None,
) -> BookingResult | BookingConflict:
    """Apply a partial update, re-checking availability when dates move.

    The reservation row is locked for the rest of the transaction. The
    availability check excludes the reservation itself so it never
    conflicts with its own previous range. It runs when the cabin or dates
    change, or when a cancelled reservation is reactivated.

    Raises:
        ReservationNotFoundError: Unknown reservation_id.
        ReservationValidationError: Merged reservation breaks a booking rule.
        psycopg2.Error: Store failure.
    """
    current = repo.get_reservation(cur, reservation_id, for_update=True)
    if current is None:
        raise ReservationNotFoundError(reservation_id)

    provided = changes.provided()
    custom_price = provided.pop("custom_price", None)
    proposed = dataclasses.replace(current, **provided)

    moves = changes.moves_dates(current)
    reactivates = not current.status.is_active and proposed.status.is_active

    if moves:
        # Editing a stay that already started keeps its past check-in valid.
        validate_stay_dates(
            proposed.check_in,
            proposed.check_out,
            today=today or local_today(),
            allow_past=proposed.check_in == current.check_in,
        )
    else:
        validate_date_order(proposed.check_in, proposed.check_out)
    validate_capacity(proposed.cabin, proposed.adults, proposed.children, proposed.babies)

    warnings: list[str] = []
    if proposed.status.is_active and (moves or reactivates):
        conflict, warnings = _check_range(
            cur,
            cabin=proposed.cabin,
            check_in=proposed.check_in,
            check_out=proposed.check_out,
            exclude_id=reservation_id,
            horizon_days=horizon_days,
        )
        if conflict is not None:
            return conflict

    if custom_price is not None or any(name in provided for name in _PRICING_FIELDS):
        provided["total_price"] = calculate_total_price(
            proposed.check_in,
            proposed.check_out,
            proposed.adults,
            proposed.children,
            proposed.season,
            custom_price,
        )

    try:
        with savepoint(cur, "reservation_write"):
            updated = repo.update_reservation(cur, reservation_id, provided)
    except pg_errors.ExclusionViolation:
        return _constraint_conflict(proposed.cabin, proposed.check_in, proposed.check_out)

    if updated is None:
        raise ReservationNotFoundError(reservation_id)

    logger.info(
        "reservation updated",
        extra={
            "extra_fields": safe_log_context(
                reservation_id=reservation_id,
                cabin=updated.cabin,
                check_in=updated.check_in,
                check_out=updated.check_out,
                status=updated.status,
                rechecked=moves or reactivates,
                fields=",".join(sorted(provided)),
            )
        },
    )
    return BookingResult(reservation=updated, warnings=warnings)


def cancel_reservation(cur: PgCursor, reservation_id: str) -> Reservation:
    """Mark a reservation cancelled, freeing its dates. Idempotent."""
    current = repo.get_reservation(cur, reservation_id, for_update=True)
    if current is None:
        raise ReservationNotFoundError(reservation_id)

    if current.status is ReservationStatus.CANCELLED:
        return current

    updated = repo.update_reservation(
        cur, reservation_id, {"status": ReservationStatus.CANCELLED}
    )
    if updated is None:
        raise ReservationNotFoundError(reservation_id)

    logger.info(
        "reservation cancelled",
        extra={
            "extra_fields": safe_log_context(
                reservation_id=reservation_id,
                cabin=updated.cabin,
                check_in=updated.check_in,
                check_out=updated.check_out,
            )
        },
    )
    return updated
