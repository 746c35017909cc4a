"""Runtime configuration read from the environment.

Values are read on every call so tests (and rolling config changes) can
patch os.environ without reloading modules.

Variables:
- EXTERNAL_API_KEY: shared secret for the external availability endpoint.
- AVAILABILITY_HORIZON_DAYS: how many days the next-free-date scan covers.
- APP_TIMEZONE: zone used to decide what "today" is for stay validation.
- OIDC_ISSUER, OIDC_AUDIENCE, OIDC_JWKS_URL, OIDC_AUTHORIZED_PARTIES:
  staff token verification (see cabinly.api.auth).
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from cabinly.observability.logging import get_logger
from cabinly.observability.redaction import safe_log_context

logger = get_logger(__name__)

DEFAULT_HORIZON_DAYS = 30
DEFAULT_TIMEZONE = "America/Santiago"


def get_external_api_key() -> str | None:
    """Expected value of the x-api-key header, or None when unconfigured."""
    value = os.environ.get("EXTERNAL_API_KEY", "").strip()
    return value or None


def get_availability_horizon_days() -> int:
    """Scan horizon for next_available_date.

    Invalid values fall back to DEFAULT_HORIZON_DAYS with a warning rather
    than failing requests.
    """
    raw = os.environ.get("AVAILABILITY_HORIZON_DAYS")
    if raw is None or not raw.strip():
        return DEFAULT_HORIZON_DAYS

    try:
        value = int(raw)
    except ValueError:
        value = 0

    if value <= 0:
        logger.warning(
            "invalid AVAILABILITY_HORIZON_DAYS, using default",
            extra={
                "extra_fields": safe_log_context(
                    configured=raw, default=DEFAULT_HORIZON_DAYS
                )
            },
        )
        return DEFAULT_HORIZON_DAYS

    return value


def get_app_timezone() -> str:
    return os.environ.get("APP_TIMEZONE") or DEFAULT_TIMEZONE


@dataclass(frozen=True)
class OidcSettings:
    issuer: str | None
    audience: str | None
    jwks_url: str | None
    authorized_parties: tuple[str, ...] = ()

    @property
    def configured(self) -> bool:
        return bool(self.issuer and self.audience and self.jwks_url)


def get_oidc_settings() -> OidcSettings:
    """OIDC settings; OIDC_AUTHORIZED_PARTIES is a comma-separated azp allowlist."""
    parties = os.environ.get("OIDC_AUTHORIZED_PARTIES", "")
    return OidcSettings(
        issuer=os.environ.get("OIDC_ISSUER") or None,
        audience=os.environ.get("OIDC_AUDIENCE") or None,
        jwks_url=os.environ.get("OIDC_JWKS_URL") or None,
        authorized_parties=tuple(p.strip() for p in parties.split(",") if p.strip()),
    )
