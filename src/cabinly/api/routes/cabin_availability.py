"""External availability endpoint for the partner integration.

GET /cabin-availability?cabinType=<code>&checkIn=YYYY-MM-DD&checkOut=YYYY-MM-DD

- Authenticated by the shared secret in the x-api-key header (EXTERNAL_API_KEY).
- Read-only. Each request loads a fresh snapshot; nothing is cached.
- cabinType uses the external short codes (pequeña, mediana1, mediana2, grande).
- Open to every origin; OPTIONS preflight gets an empty 204.
- nextAvailableDate is the first day on or after checkOut that no active
  reservation covers.

Error bodies are fixed strings. Internal details only go to the log.
"""

from __future__ import annotations

import hmac
import re
from datetime import date

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from cabinly.domain.availability import find_conflict, next_available_date
from cabinly.domain.cabins import Cabin, UnknownCabinError
from cabinly.infra.db import txn
from cabinly.infra.repositories.reservations_repository import fetch_active_reservations
from cabinly.infra.settings import get_availability_horizon_days, get_external_api_key
from cabinly.observability.logging import get_logger
from cabinly.observability.redaction import safe_log_context

router = APIRouter(tags=["external"])

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, x-api-key",
}

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


def _api_key_valid(provided: str | None) -> bool:
    """Constant-time comparison; fails closed when no key is configured."""
    expected = get_external_api_key()
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


def _parse_date(value: str) -> date | None:
    if not _ISO_DATE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


@router.api_route(
    "/cabin-availability",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
def cabin_availability(request: Request) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)

    if not _api_key_valid(request.headers.get(API_KEY_HEADER)):
        logger.warning(
            "external availability: unauthorized",
            extra={
                "extra_fields": safe_log_context(
                    method=request.method,
                    key_present=API_KEY_HEADER in request.headers,
                )
            },
        )
        return _error(401, "Unauthorized")

    if request.method != "GET":
        return _error(405, "Method not allowed")

    cabin_type = request.query_params.get("cabinType")
    check_in_raw = request.query_params.get("checkIn")
    check_out_raw = request.query_params.get("checkOut")

    if not cabin_type or not check_in_raw or not check_out_raw:
        return _error(400, "Missing required parameters: cabinType, checkIn, checkOut")

    try:
        cabin = Cabin.from_external_code(cabin_type)
    except UnknownCabinError:
        return _error(400, "Invalid cabinType")

    check_in = _parse_date(check_in_raw)
    check_out = _parse_date(check_out_raw)
    if check_in is None or check_out is None:
        return _error(400, "Invalid date format, expected YYYY-MM-DD")
    if check_out <= check_in:
        return _error(400, "checkOut must be after checkIn")

    try:
        with txn() as cur:
            snapshot = fetch_active_reservations(cur, cabin)

        conflict = find_conflict(snapshot, cabin, check_in, check_out)
        body: dict = {
            "available": conflict is None,
            "cabinType": cabin_type,
            "checkIn": check_in_raw,
            "checkOut": check_out_raw,
        }

        if conflict is not None:
            next_date = next_available_date(
                snapshot,
                cabin,
                check_out,
                horizon_days=get_availability_horizon_days(),
            )
            if next_date is not None:
                body["nextAvailableDate"] = next_date.isoformat()
    except Exception:
        logger.exception(
            "external availability: internal error",
            extra={"extra_fields": safe_log_context(cabin=cabin)},
        )
        return _error(500, "Internal server error")

    logger.info(
        "external availability checked",
        extra={
            "extra_fields": safe_log_context(
                cabin=cabin,
                check_in=check_in,
                check_out=check_out,
                available=body["available"],
                snapshot_size=len(snapshot),
            )
        },
    )
    return JSONResponse(content=body, headers=CORS_HEADERS)
