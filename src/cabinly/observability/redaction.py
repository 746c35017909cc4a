"""Masking helpers for log context. Guest data must pass through these."""

import re
from datetime import date, datetime
from enum import Enum
from typing import Any

_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
# Chilean RUT, with or without thousands dots: 12.345.678-9 / 12345678-K
_RUT_PATTERN = re.compile(r"\b\d{1,2}\.?\d{3}\.?\d{3}-[\dkK]\b")
_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")

_REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    """Mask emails, RUTs and phone numbers inside a string."""
    result = _EMAIL_PATTERN.sub(_REDACTED, value)
    result = _RUT_PATTERN.sub(_REDACTED, result)
    result = _PHONE_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Render any value as a log-safe string."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # structure only, never values
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build an ``extra_fields`` dict with every value redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}
