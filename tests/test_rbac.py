"""Tests for role permission flags."""

from __future__ import annotations

import pytest

from cabinly.api.rbac import (
    ALL_PERMISSIONS,
    CREATE_RESERVATIONS,
    EDIT_RESERVATIONS,
    VIEW_RESERVATIONS,
    has_permission,
    require_permission,
)


@pytest.mark.parametrize(
    "role,allowed",
    [
        ("admin", ALL_PERMISSIONS),
        ("sub_admin", {VIEW_RESERVATIONS, CREATE_RESERVATIONS, EDIT_RESERVATIONS}),
        ("reception", {VIEW_RESERVATIONS}),
        ("guest", set()),
    ],
)
def test_role_permissions(role, allowed):
    for permission in ALL_PERMISSIONS:
        assert has_permission(role, permission) is (permission in allowed)


def test_require_permission_rejects_unknown_flag():
    with pytest.raises(ValueError, match="Invalid permission"):
        require_permission("delete_everything")


class TestEndpointGuards:
    """Permission checks at the HTTP layer, auth bypassed."""

    def test_reception_can_view(self, staff_client):
        assert staff_client("reception").get("/cabins").status_code == 200

    def test_unknown_role_is_forbidden(self, staff_client):
        response = staff_client("guest").get("/cabins")
        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions"

    @pytest.mark.parametrize("role,expected", [("admin", 422), ("sub_admin", 422), ("reception", 403)])
    def test_create_guard_runs_before_body_checks(self, staff_client, role, expected):
        # an empty body is invalid; only permitted roles get as far as validation
        response = staff_client(role).post("/reservations", json={})
        assert response.status_code == expected

    def test_whoami_lists_role_permissions(self, staff_client):
        response = staff_client("reception").get("/auth/whoami")
        assert response.status_code == 200
        assert response.json()["permissions"] == [VIEW_RESERVATIONS]

    def test_cancel_requires_admin(self, staff_client):
        response = staff_client("sub_admin").post(
            "/reservations/7a1f6c1e-5d5c-4b0e-9a57-0d3b1c1f2e3a/actions/cancel"
        )
        assert response.status_code == 403
