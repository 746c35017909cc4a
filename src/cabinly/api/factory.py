"""FastAPI application factory with role-based route mounting.

APP_ROLE=dashboard (default) serves the staff API and the external
availability endpoint. APP_ROLE=external serves only the external
availability endpoint, for deployments that expose it on its own.
"""

import os
from typing import Literal

from fastapi import FastAPI, Request, Response

from cabinly.observability.correlation import (
    CORRELATION_ID_HEADER,
    reset_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)

from .routers import public
from .routes import auth, availability, cabin_availability, reservations

AppRole = Literal["dashboard", "external"]

_ROLES = ("dashboard", "external")


def create_app(role: AppRole | None = None) -> FastAPI:
    """Create FastAPI app with routes based on APP_ROLE.

    Args:
        role: Explicit role override. If None, reads from APP_ROLE env var.
              Defaults to "dashboard" if env var is not set.

    Raises:
        ValueError: If the role is not recognised.
    """
    if role is None:
        role = os.environ.get("APP_ROLE", "dashboard")  # type: ignore[assignment]
    if role not in _ROLES:
        raise ValueError(f"Invalid APP_ROLE: {role}")

    app = FastAPI(
        title="Cabinly",
        docs_url=None,
        redoc_url=None,
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = resolve_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    app.include_router(public.router)
    app.include_router(cabin_availability.router)

    if role == "dashboard":
        app.include_router(auth.router)
        app.include_router(availability.router)
        app.include_router(reservations.router)

    return app
