"""Reservation records and write payloads."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any

from .cabins import Cabin


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Active reservations occupy their dates; cancelled ones do not."""
        return self is not ReservationStatus.CANCELLED


class Season(str, Enum):
    HIGH = "high"
    LOW = "low"


@dataclass(frozen=True)
class Reservation:
    """A booked date range for one cabin.

    check_out is the departure day and is not occupied: the stay covers the
    nights of [check_in, check_out).
    """

    id: str
    cabin: Cabin
    check_in: date
    check_out: date
    status: ReservationStatus = ReservationStatus.PENDING
    guest_name: str = ""
    adults: int = 1
    children: int = 0
    babies: int = 0
    season: Season = Season.LOW
    total_price: int = 0
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "cabin": self.cabin.value,
            "cabin_label": self.cabin.label,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "status": self.status.value,
            "guest_name": self.guest_name,
            "adults": self.adults,
            "children": self.children,
            "babies": self.babies,
            "season": self.season.value,
            "total_price": self.total_price,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class ReservationDraft:
    """Caller-supplied fields for a new reservation (no id yet)."""

    cabin: Cabin
    check_in: date
    check_out: date
    guest_name: str
    adults: int
    children: int = 0
    babies: int = 0
    season: Season = Season.LOW
    status: ReservationStatus = ReservationStatus.PENDING
    notes: str | None = None
    custom_price: int | None = None


# Default for fields where None is itself a value (notes=None clears the note).
UNCHANGED: Any = object()

_CLEARABLE = frozenset({"notes"})


@dataclass(frozen=True)
class ReservationChanges:
    """Partial update. None means "leave unchanged", except for notes,
    where None clears the note and UNCHANGED leaves it alone.
    """

    cabin: Cabin | None = None
    check_in: date | None = None
    check_out: date | None = None
    status: ReservationStatus | None = None
    guest_name: str | None = None
    adults: int | None = None
    children: int | None = None
    babies: int | None = None
    season: Season | None = None
    notes: Any = UNCHANGED
    custom_price: int | None = None

    def provided(self) -> dict[str, Any]:
        changed = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if value is UNCHANGED:
                continue
            if value is None and field.name not in _CLEARABLE:
                continue
            changed[field.name] = value
        return changed

    def moves_dates(self, current: Reservation) -> bool:
        """True when the change relocates the reservation's occupied range."""
        return (
            (self.cabin is not None and self.cabin != current.cabin)
            or (self.check_in is not None and self.check_in != current.check_in)
            or (self.check_out is not None and self.check_out != current.check_out)
        )
