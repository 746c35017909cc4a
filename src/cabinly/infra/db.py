"""PostgreSQL access layer using psycopg2.

Provides:
- get_conn(): Get a database connection from DATABASE_URL
- txn(): Context manager for short, safe transactions
- savepoint(): Nested rollback point inside a transaction
- fetchone/fetchall: Query helpers
"""

import os
import re
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor

_SAVEPOINT_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


def _dsn_has_password(dsn: str) -> bool:
    if "://" in dsn:
        netloc = dsn.split("://", 1)[1].split("/", 1)[0]
        if "@" not in netloc:
            return False
        userinfo = netloc.rsplit("@", 1)[0]
        return ":" in userinfo and bool(userinfo.split(":", 1)[1])
    return re.search(r"(^|\s)password=\S", dsn) is not None


def get_conn() -> PgConnection:
    """Get a new database connection from DATABASE_URL.

    DATABASE_URL may be a URL or a libpq key=value DSN. When it carries no
    password, DB_PASSWORD (if set) is passed separately so secrets can be
    mounted apart from the connection string.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")

    db_password = os.environ.get("DB_PASSWORD")
    if db_password and not _dsn_has_password(dsn):
        return psycopg2.connect(dsn, password=db_password)
    return psycopg2.connect(dsn)


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Context manager for a short, safe transaction.

    If conn is None, creates a new connection that is closed on exit.
    Commits on successful exit, rolls back on exception.

    Example:
        with txn() as cur:
            reservations = fetch_active_reservations(cur, Cabin.SMALL)
    """
    owns_conn = conn is None
    if owns_conn:
        conn = get_conn()

    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owns_conn:
            conn.close()


@contextmanager
def savepoint(cur: PgCursor, name: str) -> Iterator[None]:
    """Run a block under SAVEPOINT ``name``.

    On exception the transaction is rolled back to the savepoint (so the
    outer transaction stays usable) and the exception is re-raised.
    """
    if not _SAVEPOINT_NAME.match(name):
        raise ValueError(f"Invalid savepoint name: {name!r}")

    cur.execute(f"SAVEPOINT {name}")
    try:
        yield
    except Exception:
        cur.execute(f"ROLLBACK TO SAVEPOINT {name}")
        raise
    cur.execute(f"RELEASE SAVEPOINT {name}")


def fetchone(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> tuple[Any, ...] | None:
    """Execute query and fetch one row (None if no results)."""
    cur.execute(query, params)
    return cur.fetchone()


def fetchall(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> list[tuple[Any, ...]]:
    """Execute query and fetch all rows."""
    cur.execute(query, params)
    return cur.fetchall()
