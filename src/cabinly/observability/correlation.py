"""Request correlation IDs shared between middleware and log records."""

import uuid
from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str] = ContextVar("cabinly_correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Incoming IDs longer than this are replaced, they end up in every log line.
_MAX_INCOMING_LENGTH = 128


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def resolve_correlation_id(incoming: str | None) -> str:
    """Reuse the caller's correlation ID when it is usable, else mint one."""
    if incoming and len(incoming) <= _MAX_INCOMING_LENGTH and incoming.isprintable():
        return incoming
    return generate_correlation_id()


def get_correlation_id() -> str:
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)
