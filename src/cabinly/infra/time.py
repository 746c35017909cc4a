"""Clock helpers. Stay dates are calendar dates in the cabins' local zone."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from .settings import get_app_timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def local_today() -> date:
    """Today's calendar date in APP_TIMEZONE."""
    return utc_now().astimezone(ZoneInfo(get_app_timezone())).date()
