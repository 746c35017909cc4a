"""Cabin availability decisions over a snapshot of reservations.

Overlap formula:  (new_check_in < existing_check_out) AND (new_check_out > existing_check_in)

Ranges are half-open [check_in, check_out): the departure day is not
occupied, so a check-out and a check-in on the same cabin and day (a
turnover) never conflict. Turnovers are reported separately as an
operational warning.

Only active statuses (confirmed, pending) occupy dates; cancelled
reservations are ignored everywhere in this module.

Nothing here performs I/O. Callers load the snapshot (see
cabinly.infra.repositories.reservations_repository) and pass it in.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator

from cabinly.domain.cabins import Cabin
from cabinly.domain.reservations import Reservation

DEFAULT_HORIZON_DAYS = 30


@dataclass(frozen=True)
class CabinAvailability:
    cabin: Cabin
    is_available: bool
    max_capacity: int

    def to_dict(self) -> dict:
        return {
            "cabin": self.cabin.value,
            "label": self.cabin.label,
            "is_available": self.is_available,
            "max_capacity": self.max_capacity,
        }


@dataclass(frozen=True)
class Turnover:
    """A departure and an arrival on the same cabin and day."""

    cabin: Cabin
    on_date: date
    departing_reservation_id: str
    arriving_reservation_id: str


def overlaps(a_in: date, a_out: date, b_in: date, b_out: date) -> bool:
    """True if [a_in, a_out) and [b_in, b_out) share at least one night."""
    return a_in < b_out and a_out > b_in


def _active_for_cabin(
    reservations: Iterable[Reservation],
    cabin: Cabin,
    exclude_id: str | None = None,
) -> Iterator[Reservation]:
    for reservation in reservations:
        if reservation.cabin != cabin:
            continue
        if not reservation.status.is_active:
            continue
        if exclude_id is not None and reservation.id == exclude_id:
            continue
        yield reservation


def find_conflict(
    reservations: Iterable[Reservation],
    cabin: Cabin,
    check_in: date,
    check_out: date,
    exclude_id: str | None = None,
) -> Reservation | None:
    """Return the earliest active reservation overlapping the range, if any.

    Args:
        reservations: Snapshot to check against (any cabins, any statuses).
        cabin: Cabin being requested.
        check_in: Requested check-in (inclusive).
        check_out: Requested check-out (exclusive / departure day).
        exclude_id: Reservation to ignore, used when editing that reservation.
    """
    conflicting = [
        r
        for r in _active_for_cabin(reservations, cabin, exclude_id)
        if overlaps(check_in, check_out, r.check_in, r.check_out)
    ]
    if not conflicting:
        return None
    return min(conflicting, key=lambda r: (r.check_in, r.id))


def is_available(
    reservations: Iterable[Reservation],
    cabin: Cabin,
    check_in: date,
    check_out: date,
    exclude_id: str | None = None,
) -> bool:
    """True if no active reservation of ``cabin`` overlaps [check_in, check_out)."""
    return find_conflict(reservations, cabin, check_in, check_out, exclude_id) is None


def check_all_cabins(
    reservations: Iterable[Reservation],
    check_in: date,
    check_out: date,
    exclude_id: str | None = None,
) -> list[CabinAvailability]:
    """Availability of every cabin for one range, in declared cabin order."""
    snapshot = list(reservations)
    return [
        CabinAvailability(
            cabin=cabin,
            is_available=is_available(snapshot, cabin, check_in, check_out, exclude_id),
            max_capacity=cabin.max_capacity,
        )
        for cabin in Cabin
    ]


def next_available_date(
    reservations: Iterable[Reservation],
    cabin: Cabin,
    from_date: date,
    *,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    stay_nights: int = 1,
    exclude_id: str | None = None,
) -> date | None:
    """First date at or after ``from_date`` where the cabin is free.

    Candidates are from_date .. from_date + horizon_days - 1. A candidate d
    qualifies when no active reservation overlaps [d, d + stay_nights); with
    the default of one night that means no reservation has
    check_in <= d < check_out.

    Returns None when the horizon is exhausted. None means "no answer
    within the horizon", not "clear beyond it".
    """
    if horizon_days <= 0:
        return None
    stay = timedelta(days=max(stay_nights, 1))

    # Only reservations ending after from_date can block a candidate.
    blocking = sorted(
        (
            r
            for r in _active_for_cabin(reservations, cabin, exclude_id)
            if r.check_out > from_date
        ),
        key=lambda r: r.check_in,
    )

    for offset in range(horizon_days):
        candidate = from_date + timedelta(days=offset)
        if not any(
            overlaps(candidate, candidate + stay, r.check_in, r.check_out)
            for r in blocking
        ):
            return candidate
    return None


def turnover_neighbours(
    reservations: Iterable[Reservation],
    cabin: Cabin,
    check_in: date,
    check_out: date,
    exclude_id: str | None = None,
) -> list[Reservation]:
    """Active reservations that touch the range end-to-end on the same cabin.

    These are not conflicts. Staff review them because the cabin has to be
    cleaned between a departure and an arrival on the same day.
    """
    return [
        r
        for r in _active_for_cabin(reservations, cabin, exclude_id)
        if r.check_out == check_in or r.check_in == check_out
    ]


def find_turnovers(reservations: Iterable[Reservation], on_date: date) -> list[Turnover]:
    """All same-day departure/arrival pairs on ``on_date``, in cabin order."""
    snapshot = list(reservations)
    turnovers: list[Turnover] = []
    for cabin in Cabin:
        active = list(_active_for_cabin(snapshot, cabin))
        departing = sorted((r for r in active if r.check_out == on_date), key=lambda r: r.id)
        arriving = sorted((r for r in active if r.check_in == on_date), key=lambda r: r.id)
        for dep in departing:
            for arr in arriving:
                turnovers.append(
                    Turnover(
                        cabin=cabin,
                        on_date=on_date,
                        departing_reservation_id=dep.id,
                        arriving_reservation_id=arr.id,
                    )
                )
    return turnovers
