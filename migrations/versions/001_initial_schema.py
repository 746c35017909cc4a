"""Initial schema: cabins, users, reservations.

reservations carries the no_cabin_overlap exclusion constraint, the
database-level guard behind the booking orchestrator's locked re-check.

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-08-16
"""

from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

SQL_FILE = Path(__file__).resolve().parents[1] / "sql" / "001_initial.sql"


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reservations")
    op.execute("DROP TYPE IF EXISTS reservation_status")
    op.execute("DROP TABLE IF EXISTS users")
    op.execute("DROP TABLE IF EXISTS cabins")
