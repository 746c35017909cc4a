"""Translation of store failures into retryable HTTP errors."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import psycopg2
from fastapi import HTTPException

from cabinly.observability.logging import get_logger
from cabinly.observability.redaction import safe_log_context

logger = get_logger(__name__)

STORE_UNAVAILABLE_DETAIL = "Reservation store unavailable, please retry"


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Turn database failures into 503 so clients never read them as "unavailable".

    HTTPException and domain errors raised inside the block pass through.
    """
    try:
        yield
    except psycopg2.Error as exc:
        logger.exception(
            "reservation store failure",
            extra={
                "extra_fields": safe_log_context(
                    action=action,
                    error_type=type(exc).__name__,
                    pgcode=getattr(exc, "pgcode", None),
                )
            },
        )
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE_DETAIL) from exc
