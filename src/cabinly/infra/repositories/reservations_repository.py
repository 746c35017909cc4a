"""Reservations repository - persistence for reservation records.

Uses raw SQL with psycopg2 (no ORM). Every function takes a cursor so the
caller decides the transaction boundary.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from cabinly.domain.cabins import Cabin
from cabinly.domain.reservations import (
    Reservation,
    ReservationDraft,
    ReservationStatus,
    Season,
)
from cabinly.infra.db import fetchall, fetchone

_COLUMNS = """
    id, cabin_id, check_in, check_out, status, guest_name,
    adults, children, babies, season, total_price, notes,
    created_at, updated_at
"""

# Columns update_reservation may touch, mapped from Reservation field names.
_UPDATABLE = {
    "cabin": "cabin_id",
    "check_in": "check_in",
    "check_out": "check_out",
    "status": "status",
    "guest_name": "guest_name",
    "adults": "adults",
    "children": "children",
    "babies": "babies",
    "season": "season",
    "total_price": "total_price",
    "notes": "notes",
}

LIST_LIMIT = 200


def _row_to_reservation(row: tuple[Any, ...]) -> Reservation:
    return Reservation(
        id=str(row[0]),
        cabin=Cabin(row[1]),
        check_in=row[2],
        check_out=row[3],
        status=ReservationStatus(row[4]),
        guest_name=row[5],
        adults=row[6],
        children=row[7],
        babies=row[8],
        season=Season(row[9]),
        total_price=row[10],
        notes=row[11],
        created_at=row[12],
        updated_at=row[13],
    )


def _db_value(value: Any) -> Any:
    if isinstance(value, (Cabin, ReservationStatus, Season)):
        return value.value
    return value


def lock_cabin(cur: PgCursor, cabin: Cabin) -> bool:
    """Take the per-cabin write lock (row lock on cabins) for this transaction.

    Writers that create or move reservations on the same cabin queue here,
    so their availability check and write happen one at a time.

    Returns:
        False if the cabin row is missing (schema not seeded).
    """
    row = fetchone(cur, "SELECT id FROM cabins WHERE id = %s FOR UPDATE", (cabin.value,))
    return row is not None


def fetch_active_reservations(
    cur: PgCursor,
    cabin: Cabin | None = None,
) -> list[Reservation]:
    """Snapshot of non-cancelled reservations, optionally for one cabin."""
    conditions = ["status <> 'cancelled'"]
    params: list = []
    if cabin is not None:
        conditions.append("cabin_id = %s")
        params.append(cabin.value)

    rows = fetchall(
        cur,
        f"""
        SELECT {_COLUMNS}
        FROM reservations
        WHERE {" AND ".join(conditions)}
        ORDER BY check_in, id
        """,
        params,
    )
    return [_row_to_reservation(row) for row in rows]


def get_reservation(
    cur: PgCursor,
    reservation_id: str,
    *,
    for_update: bool = False,
) -> Reservation | None:
    suffix = " FOR UPDATE" if for_update else ""
    row = fetchone(
        cur,
        f"SELECT {_COLUMNS} FROM reservations WHERE id = %s{suffix}",
        (reservation_id,),
    )
    return _row_to_reservation(row) if row is not None else None


def list_reservations(
    cur: PgCursor,
    *,
    cabin: Cabin | None = None,
    status: ReservationStatus | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[Reservation]:
    """List reservations touching [from_date, to_date) with optional filters.

    Args:
        cabin: Only this cabin.
        status: Only this status.
        from_date: Keep stays that check out after this date.
        to_date: Keep stays that check in before this date.
    """
    conditions: list[str] = []
    params: list = []

    if cabin is not None:
        conditions.append("cabin_id = %s")
        params.append(cabin.value)
    if status is not None:
        conditions.append("status = %s")
        params.append(status.value)
    if from_date is not None:
        conditions.append("check_out > %s")
        params.append(from_date)
    if to_date is not None:
        conditions.append("check_in < %s")
        params.append(to_date)

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    rows = fetchall(
        cur,
        f"""
        SELECT {_COLUMNS}
        FROM reservations
        {where}
        ORDER BY check_in, id
        LIMIT {LIST_LIMIT}
        """,
        params,
    )
    return [_row_to_reservation(row) for row in rows]


def insert_reservation(
    cur: PgCursor,
    draft: ReservationDraft,
    *,
    total_price: int,
) -> Reservation:
    """Insert a reservation; the database assigns id and timestamps."""
    cur.execute(
        f"""
        INSERT INTO reservations (
            cabin_id, check_in, check_out, status, guest_name,
            adults, children, babies, season, total_price, notes
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
        """,
        (
            draft.cabin.value,
            draft.check_in,
            draft.check_out,
            draft.status.value,
            draft.guest_name,
            draft.adults,
            draft.children,
            draft.babies,
            draft.season.value,
            total_price,
            draft.notes,
        ),
    )
    return _row_to_reservation(cur.fetchone())


def update_reservation(
    cur: PgCursor,
    reservation_id: str,
    fields: dict[str, Any],
) -> Reservation | None:
    """Apply a partial update and return the stored row.

    Args:
        fields: Reservation field names (see _UPDATABLE) to new values.

    Returns:
        The updated reservation, or None if the id does not exist.

    Raises:
        ValueError: If a field is not updatable.
    """
    unknown = set(fields) - set(_UPDATABLE)
    if unknown:
        raise ValueError(f"Fields not updatable: {sorted(unknown)}")
    if not fields:
        return get_reservation(cur, reservation_id)

    assignments = [f"{_UPDATABLE[name]} = %s" for name in fields]
    params = [_db_value(value) for value in fields.values()]
    params.append(reservation_id)

    cur.execute(
        f"""
        UPDATE reservations
        SET {", ".join(assignments)}, updated_at = now()
        WHERE id = %s
        RETURNING {_COLUMNS}
        """,
        params,
    )
    row = cur.fetchone()
    return _row_to_reservation(row) if row is not None else None
