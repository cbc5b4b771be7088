"""Requests rejected before any service runs

Unauthenticated (401), forbidden (403) and invalid (400) requests must never
produce an audit record or touch tenant data.
"""

from datetime import timedelta

import pytest

from conftest import ZERO_UUID, audit_count, create_customer, make_token
from solardesk.auth.roles import UserRole

pytestmark = pytest.mark.security


ENDPOINTS = [
    ("get", "/api/customers"),
    ("get", f"/api/projects/{ZERO_UUID}"),
    ("post", "/api/quotes"),
    ("patch", f"/api/contracts/{ZERO_UUID}/status"),
    ("delete", f"/api/handovers/{ZERO_UUID}"),
    ("get", "/api/audit-logs"),
]


def _call(client, method, path, headers=None, json=None):
    if method in ("post", "patch"):
        return getattr(client, method)(path, headers=headers, json=json if json is not None else {})
    return getattr(client, method)(path, headers=headers)


class TestUnauthenticated:

    @pytest.mark.parametrize("method,path", ENDPOINTS)
    def test_missing_credential(self, client, org_a, method, path):
        response = _call(client, method, path)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert audit_count(org_a) == 0

    @pytest.mark.parametrize("authorization", [
        "Bearer not-a-jwt",
        "Bearer ",
        "Basic dXNlcjpwYXNz",
        "Bearer eyJhbGciOiJub25lIn0.eyJzdWIiOiJ4In0.",
    ])
    def test_malformed_credential(self, client, org_a, authorization):
        response = client.get("/api/customers", headers={"Authorization": authorization})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert audit_count(org_a) == 0

    def test_expired_credential(self, client, org_a):
        token = make_token(org_a, expires_delta=timedelta(minutes=-1))

        response = client.get("/api/customers", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert audit_count(org_a) == 0

    def test_invalid_body_without_credential_is_still_401(self, client, org_a):
        response = client.post("/api/customers", json={"name": ""})

        assert response.status_code == 401


class TestForbidden:

    @pytest.mark.parametrize("role,method,path", [
        (UserRole.VIEWER, "post", "/api/customers"),
        (UserRole.VIEWER, "patch", f"/api/customers/{ZERO_UUID}"),
        (UserRole.VIEWER, "patch", f"/api/quotes/{ZERO_UUID}/status"),
        (UserRole.VIEWER, "post", f"/api/quotes/{ZERO_UUID}/submit"),
        (UserRole.SALES, "post", f"/api/quotes/{ZERO_UUID}/approve"),
        (UserRole.SALES, "post", f"/api/quotes/{ZERO_UUID}/reject"),
        (UserRole.SALES, "delete", f"/api/customers/{ZERO_UUID}"),
        (UserRole.SALES, "delete", f"/api/contracts/{ZERO_UUID}"),
        (UserRole.MANAGER, "get", "/api/audit-logs"),
    ])
    def test_insufficient_role(self, client, org_a, auth_headers, role, method, path):
        response = _call(client, method, path, headers=auth_headers(org_a, role), json={"name": "X"})

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}
        assert audit_count(org_a) == 0

    def test_viewer_can_read(self, client, org_a, auth_headers):
        customer = create_customer(client, auth_headers(org_a, UserRole.SALES))

        response = client.get(f"/api/customers/{customer['id']}", headers=auth_headers(org_a, UserRole.VIEWER))

        assert response.status_code == 200


class TestInvalidInput:

    @pytest.mark.parametrize("path", [
        "/api/customers/123",
        "/api/projects/not-a-uuid",
        "/api/quotes/%27%20OR%201=1--",
        "/api/contracts/00000000-0000-0000-0000",
    ])
    def test_malformed_id(self, client, org_a, auth_headers, path):
        response = client.get(path, headers=auth_headers(org_a))

        assert response.status_code == 400
        assert response.json() == {"error": "invalid id"}
        assert audit_count(org_a) == 0

    def test_organization_id_cannot_be_injected(self, client, org_a, org_b, auth_headers):
        response = client.post(
            "/api/customers",
            json={"name": "Anna", "organization_id": str(org_b.id)},
            headers=auth_headers(org_a),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "invalid payload"}
        assert audit_count(org_a) == 0
        assert audit_count(org_b) == 0

    def test_organization_id_cannot_be_changed(self, client, org_a, org_b, auth_headers):
        headers = auth_headers(org_a)
        customer = create_customer(client, headers)

        response = client.patch(
            f"/api/customers/{customer['id']}", json={"organization_id": str(org_b.id)}, headers=headers
        )

        assert response.status_code == 400
        assert audit_count(org_a, "customer.update") == 0

    @pytest.mark.parametrize("q", [
        "' OR '1'='1",
        "%' OR 1=1 --",
        "\\",
        "_",
    ])
    def test_search_input_is_treated_as_text(self, client, org_a, auth_headers, q):
        headers = auth_headers(org_a)
        create_customer(client, headers, name="Anna")

        response = client.get("/api/customers", params={"q": q}, headers=headers)

        assert response.status_code == 200
        assert response.json()["count"] == 0
