"""OIDC JWT authentication for dashboard staff.

Provides:
- verify_token(): Validates an RS256 JWT against the issuer's JWKS
- get_current_user(): FastAPI dependency resolving the staff user record
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any

import jwt
import requests
from fastapi import HTTPException, Request

from cabinly.api.errors import store_errors
from cabinly.infra.settings import OidcSettings, get_oidc_settings
from cabinly.observability.logging import get_logger
from cabinly.observability.redaction import safe_log_context

logger = get_logger(__name__)

_jwks_cache: dict[str, Any] | None = None
_jwks_cache_time: float = 0
_jwks_cache_lock = threading.Lock()
_JWKS_CACHE_TTL = 600  # 10 minutes


@dataclass
class CurrentUser:
    """Authenticated staff member."""

    id: str
    external_subject: str
    email: str | None
    name: str | None
    role: str


def _fetch_jwks(jwks_url: str) -> dict[str, Any]:
    resp = requests.get(jwks_url, timeout=10)
    resp.raise_for_status()
    return resp.json()


def _get_jwks(jwks_url: str, force_refresh: bool = False) -> dict[str, Any]:
    """Get JWKS, cached for _JWKS_CACHE_TTL seconds."""
    global _jwks_cache, _jwks_cache_time

    with _jwks_cache_lock:
        now = time.time()
        if not force_refresh and _jwks_cache is not None and (now - _jwks_cache_time) < _JWKS_CACHE_TTL:
            return _jwks_cache

        try:
            _jwks_cache = _fetch_jwks(jwks_url)
        except requests.RequestException as exc:
            logger.error(
                "JWKS fetch failed",
                extra={"extra_fields": safe_log_context(error=type(exc).__name__)},
            )
            raise HTTPException(status_code=503, detail="Auth temporarily unavailable")
        _jwks_cache_time = now
        return _jwks_cache


def _find_key(jwks: dict[str, Any], kid: str) -> dict[str, Any] | None:
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    return None


def _decode(token: str, jwk_data: dict[str, Any], settings: OidcSettings) -> dict[str, Any]:
    try:
        public_key = jwt.algorithms.RSAAlgorithm.from_jwk(jwk_data)
    except (jwt.exceptions.InvalidKeyError, ValueError, TypeError, KeyError):
        raise HTTPException(status_code=401, detail="Invalid token")

    return jwt.decode(
        token,
        public_key,
        algorithms=["RS256"],
        issuer=settings.issuer,
        audience=settings.audience,
        options={"require": ["exp", "iss", "aud", "sub"]},
    )


def verify_token(token: str) -> str:
    """Verify JWT and return its subject claim.

    An unknown kid or a bad signature triggers one JWKS refresh, which
    covers key rotation at the issuer.

    Raises:
        HTTPException: 401 if token is invalid, 503 if JWKS is unreachable.
    """
    settings = get_oidc_settings()
    if not settings.configured:
        raise HTTPException(status_code=401, detail="OIDC not configured")

    try:
        unverified_header = jwt.get_unverified_header(token)
    except jwt.exceptions.DecodeError:
        raise HTTPException(status_code=401, detail="Invalid token")

    kid = unverified_header.get("kid")
    if not kid:
        raise HTTPException(status_code=401, detail="Invalid token")

    key_data = _find_key(_get_jwks(settings.jwks_url), kid)
    if key_data is None:
        key_data = _find_key(_get_jwks(settings.jwks_url, force_refresh=True), kid)
    if key_data is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        payload = _decode(token, key_data, settings)
    except jwt.InvalidSignatureError:
        key_data = _find_key(_get_jwks(settings.jwks_url, force_refresh=True), kid)
        if key_data is None:
            raise HTTPException(status_code=401, detail="Invalid token")
        try:
            payload = _decode(token, key_data, settings)
        except jwt.InvalidTokenError:
            raise HTTPException(status_code=401, detail="Invalid token")
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if settings.authorized_parties and "azp" in payload:
        if payload["azp"] not in settings.authorized_parties:
            raise HTTPException(status_code=401, detail="Invalid token")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Invalid token")

    return sub


def _extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return parts[1]


def _get_user_from_db(external_subject: str) -> CurrentUser | None:
    """Lookup an active staff user by OIDC subject."""
    from cabinly.infra.db import fetchone, txn

    with txn() as cur:
        row = fetchone(
            cur,
            """
            SELECT id, external_subject, email, name, role
            FROM users
            WHERE external_subject = %s AND is_active = true
            """,
            (external_subject,),
        )
        if row is None:
            return None
        return CurrentUser(
            id=str(row[0]),
            external_subject=row[1],
            email=row[2],
            name=row[3],
            role=row[4],
        )


def get_current_user(request: Request) -> CurrentUser:
    """FastAPI dependency: the authenticated, active staff user.

    Raises:
        HTTPException: 401 if token invalid/missing, 403 if user unknown
            or deactivated, 503 if the user lookup cannot reach the store.
    """
    token = _extract_bearer_token(request)
    sub = verify_token(token)

    with store_errors("auth_user_lookup"):
        user = _get_user_from_db(sub)
    if user is None:
        raise HTTPException(status_code=403, detail="User not found")

    return user
