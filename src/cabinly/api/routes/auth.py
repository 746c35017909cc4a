"""Auth routes - staff identity endpoint."""

from fastapi import APIRouter, Depends

from cabinly.api.auth import CurrentUser, get_current_user
from cabinly.api.rbac import ROLE_PERMISSIONS

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/whoami")
def whoami(user: CurrentUser = Depends(get_current_user)) -> dict:
    """Return the authenticated user with the permissions of their role."""
    return {
        "id": user.id,
        "external_subject": user.external_subject,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "permissions": sorted(ROLE_PERMISSIONS.get(user.role, ())),
    }
