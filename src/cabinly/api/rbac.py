"""Role-based permission flags for dashboard staff.

Roles map to a fixed set of permission flags:

    admin      view, create, edit, cancel
    sub_admin  view, create, edit
    reception  view
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException

from cabinly.api.auth import CurrentUser, get_current_user
from cabinly.observability.logging import get_logger
from cabinly.observability.redaction import safe_log_context

logger = get_logger(__name__)

VIEW_RESERVATIONS = "view_reservations"
CREATE_RESERVATIONS = "create_reservations"
EDIT_RESERVATIONS = "edit_reservations"
CANCEL_RESERVATIONS = "cancel_reservations"

ALL_PERMISSIONS = frozenset(
    {VIEW_RESERVATIONS, CREATE_RESERVATIONS, EDIT_RESERVATIONS, CANCEL_RESERVATIONS}
)

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "admin": ALL_PERMISSIONS,
    "sub_admin": frozenset({VIEW_RESERVATIONS, CREATE_RESERVATIONS, EDIT_RESERVATIONS}),
    "reception": frozenset({VIEW_RESERVATIONS}),
}


def has_permission(role: str, permission: str) -> bool:
    """Unknown roles have no permissions."""
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def require_permission(permission: str) -> Callable[..., CurrentUser]:
    """Create a dependency that requires a permission flag.

    Usage:
        @router.post("/reservations")
        def create(user: CurrentUser = Depends(require_permission(CREATE_RESERVATIONS))):
            ...
    """
    if permission not in ALL_PERMISSIONS:
        raise ValueError(f"Invalid permission: {permission}")

    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not has_permission(user.role, permission):
            logger.warning(
                "permission denied",
                extra={
                    "extra_fields": safe_log_context(
                        user_id=user.id, role=user.role, permission=permission
                    )
                },
            )
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return dependency
