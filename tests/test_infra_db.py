"""Tests for database layer."""

import os
from unittest.mock import MagicMock, patch

import pytest


class TestGetConnPasswordFallback:
    """Tests for DB_PASSWORD fallback in get_conn(); no real DB needed."""

    def test_db_password_fallback_dsn_without_password(self):
        from cabinly.infra.db import get_conn

        env = {"DATABASE_URL": "dbname=db user=u host=h port=5432", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("cabinly.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with(
                "dbname=db user=u host=h port=5432",
                password="from-env",
            )

    def test_db_password_not_used_when_dsn_has_password(self):
        from cabinly.infra.db import get_conn

        env = {"DATABASE_URL": "dbname=db user=u password=from-dsn host=h", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("cabinly.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("dbname=db user=u password=from-dsn host=h")

    def test_db_password_fallback_url_without_password(self):
        from cabinly.infra.db import get_conn

        env = {"DATABASE_URL": "postgres://u@h/db", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("cabinly.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("postgres://u@h/db", password="from-env")

    def test_db_password_not_used_when_url_has_password(self):
        from cabinly.infra.db import get_conn

        env = {"DATABASE_URL": "postgres://u:p@h/db", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("cabinly.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("postgres://u:p@h/db")

    def test_missing_database_url(self):
        from cabinly.infra.db import get_conn

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(RuntimeError, match="DATABASE_URL"):
                get_conn()


class TestTxnWithMockConnection:
    def test_commits_and_keeps_caller_connection(self):
        from cabinly.infra.db import txn

        conn = MagicMock()
        with txn(conn) as cur:
            cur.execute("SELECT 1")

        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_not_called()

    def test_rolls_back_and_reraises(self):
        from cabinly.infra.db import txn

        conn = MagicMock()
        with pytest.raises(ValueError):
            with txn(conn):
                raise ValueError("boom")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_closes_own_connection(self):
        from cabinly.infra.db import txn

        conn = MagicMock()
        with patch("cabinly.infra.db.get_conn", return_value=conn):
            with txn():
                pass

        conn.close.assert_called_once()


class TestSavepoint:
    def test_releases_on_success(self):
        from cabinly.infra.db import savepoint

        cur = MagicMock()
        with savepoint(cur, "reservation_write"):
            cur.execute("INSERT ...")

        assert [c.args[0] for c in cur.execute.call_args_list] == [
            "SAVEPOINT reservation_write",
            "INSERT ...",
            "RELEASE SAVEPOINT reservation_write",
        ]

    def test_rolls_back_to_savepoint_and_reraises(self):
        from cabinly.infra.db import savepoint

        cur = MagicMock()
        with pytest.raises(KeyError):
            with savepoint(cur, "sp1"):
                raise KeyError("x")

        assert [c.args[0] for c in cur.execute.call_args_list] == [
            "SAVEPOINT sp1",
            "ROLLBACK TO SAVEPOINT sp1",
        ]

    def test_rejects_unsafe_name(self):
        from cabinly.infra.db import savepoint

        with pytest.raises(ValueError):
            with savepoint(MagicMock(), "sp; DROP TABLE reservations"):
                pass


class TestFetchHelpers:
    def test_fetchone_executes_and_returns_row(self):
        from cabinly.infra.db import fetchone

        cur = MagicMock()
        cur.fetchone.return_value = ("small",)

        assert fetchone(cur, "SELECT id FROM cabins WHERE id = %s", ("small",)) == ("small",)
        cur.execute.assert_called_once_with("SELECT id FROM cabins WHERE id = %s", ("small",))

    def test_fetchall_executes_and_returns_rows(self):
        from cabinly.infra.db import fetchall

        cur = MagicMock()
        cur.fetchall.return_value = [("small",), ("large",)]

        assert fetchall(cur, "SELECT id FROM cabins") == [("small",), ("large",)]
        cur.execute.assert_called_once_with("SELECT id FROM cabins", None)


# Skip integration tests if DATABASE_URL is not set
_skip_no_db = pytest.mark.skipif(
    not os.environ.get("DATABASE_URL"),
    reason="DATABASE_URL not set - skipping DB integration tests",
)


@_skip_no_db
class TestTxn:
    """Tests for txn() against a real database."""

    def test_commits_on_success(self):
        from cabinly.infra.db import get_conn, txn

        conn = get_conn()
        try:
            with conn.cursor() as cur:
                cur.execute("CREATE TEMP TABLE test_txn (id serial, val text)")
            conn.commit()

            with txn(conn) as cur:
                cur.execute("INSERT INTO test_txn (val) VALUES (%s)", ("test",))

            with conn.cursor() as cur:
                cur.execute("SELECT val FROM test_txn")
                assert cur.fetchone()[0] == "test"
        finally:
            conn.close()

    def test_rollback_on_exception(self):
        from cabinly.infra.db import get_conn, txn

        conn = get_conn()
        try:
            with conn.cursor() as cur:
                cur.execute("CREATE TEMP TABLE test_rollback (id serial, val text)")
            conn.commit()

            with pytest.raises(ValueError):
                with txn(conn) as cur:
                    cur.execute("INSERT INTO test_rollback (val) VALUES (%s)", ("bad",))
                    raise ValueError("rollback test")

            with conn.cursor() as cur:
                cur.execute("SELECT count(*) FROM test_rollback")
                assert cur.fetchone()[0] == 0
        finally:
            conn.close()

    def test_fetch_helpers(self):
        from cabinly.infra.db import fetchall, fetchone, txn

        with txn() as cur:
            assert fetchone(cur, "SELECT %s::int", (1,)) == (1,)
            assert fetchall(cur, "SELECT generate_series(1, 3)") == [(1,), (2,), (3,)]
