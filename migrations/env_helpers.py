"""DATABASE_URL normalisation for Alembic.

Kept apart from env.py so it can be tested without an alembic context.
The application (psycopg2) accepts both URLs and libpq key=value DSNs;
SQLAlchemy needs a URL, so DSNs are converted here.
"""

from __future__ import annotations

import os
import re
from urllib.parse import quote_plus, urlsplit, urlunsplit

_DSN_TOKEN = re.compile(r"(\w+)\s*=\s*('(?:[^'\\]|\\.)*'|\S+)")
_DRIVER_PREFIX = "postgresql+psycopg2://"


def parse_libpq_dsn(dsn: str) -> dict[str, str]:
    """Parse ``key=value`` pairs; single-quoted values may contain spaces."""
    tokens: dict[str, str] = {}
    for key, raw in _DSN_TOKEN.findall(dsn):
        if raw.startswith("'") and raw.endswith("'"):
            raw = re.sub(r"\\(.)", r"\1", raw[1:-1])
        tokens[key] = raw
    return tokens


def dsn_to_url(dsn: str, fallback_password: str = "") -> str:
    tokens = parse_libpq_dsn(dsn)
    user = quote_plus(tokens.get("user", ""))
    password = quote_plus(tokens.get("password") or fallback_password)
    dbname = quote_plus(tokens.get("dbname", ""))
    host = tokens.get("host", "localhost")
    port = tokens.get("port", "5432")

    credentials = f"{user}:{password}@" if password else (f"{user}@" if user else "")
    if host.startswith("/"):
        # unix socket directory
        return f"{_DRIVER_PREFIX}{credentials}/{dbname}?host={quote_plus(host)}"
    return f"{_DRIVER_PREFIX}{credentials}{host}:{port}/{dbname}"


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    fallback_password = os.environ.get("DB_PASSWORD", "")

    if "://" not in url:
        return dsn_to_url(url, fallback_password)

    scheme, netloc, path, query, fragment = urlsplit(url)
    if scheme in ("postgres", "postgresql"):
        scheme = "postgresql+psycopg2"

    if fallback_password and "@" in netloc:
        userinfo, hostport = netloc.rsplit("@", 1)
        if ":" not in userinfo:
            netloc = f"{userinfo}:{quote_plus(fallback_password)}@{hostport}"

    return urlunsplit((scheme, netloc, path, query, fragment))
