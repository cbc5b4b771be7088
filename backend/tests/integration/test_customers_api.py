"""Integration tests for the customer API and its audit trail

Tests cover:
- CRUD responses and envelopes
- Exactly one audit record per Ok / NotFound outcome
- No audit record for invalid input or conflicts
- Pagination metadata and changed_fields
- Soft vs hard delete
"""

from uuid import uuid4

import pytest

from conftest import ZERO_UUID, audit_count, audit_logs, create_customer, create_project
from solardesk.auth.roles import UserRole

pytestmark = pytest.mark.integration


class TestCreateCustomer:

    def test_create_returns_201_and_one_audit_record(self, client, org_a, auth_headers):
        response = client.post(
            "/api/customers",
            json={"name": "  Anna Schmidt ", "email": "anna@example.com", "phone": "+49 30 123456"},
            headers=auth_headers(org_a, UserRole.SALES),
        )

        assert response.status_code == 201
        customer = response.json()["value"]
        assert customer["name"] == "Anna Schmidt"
        assert customer["organization_id"] == str(org_a.id)

        [entry] = audit_logs(org_a, "customer.create")
        assert entry.metadata_json == {"customer_id": customer["id"]}
        assert str(entry.entity_id) == customer["id"]
        assert entry.actor_id == f"user-sales-{org_a.slug}"

    @pytest.mark.parametrize("payload", [
        {},
        {"name": ""},
        {"name": "   "},
        {"name": "Anna", "email": "not-an-email"},
        {"name": "Anna", "organization_id": ZERO_UUID},
        {"name": "x" * 201},
    ])
    def test_invalid_payload_is_400_without_audit(self, client, org_a, auth_headers, payload):
        response = client.post("/api/customers", json=payload, headers=auth_headers(org_a))

        assert response.status_code == 400
        assert response.json() == {"error": "invalid payload"}
        assert audit_count(org_a) == 0

    def test_malformed_json_is_400(self, client, org_a, auth_headers):
        headers = {**auth_headers(org_a), "Content-Type": "application/json"}
        response = client.post("/api/customers", content="{not json", headers=headers)

        assert response.status_code == 400
        assert response.json() == {"error": "invalid payload"}

    def test_duplicate_email_is_409_without_audit(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        create_customer(client, headers, email="dup@example.com")
        before = audit_count(org_a)

        response = client.post("/api/customers", json={"name": "Other", "email": "dup@example.com"}, headers=headers)

        assert response.status_code == 409
        assert response.json() == {"error": "Customer with this email already exists"}
        assert audit_count(org_a) == before

    def test_same_email_in_other_org_is_allowed(self, client, org_a, org_b, auth_headers):
        create_customer(client, auth_headers(org_a), email="shared@example.com")
        create_customer(client, auth_headers(org_b), email="shared@example.com")


class TestGetCustomer:

    def test_get_returns_value_and_audits(self, client, org_a, auth_headers):
        customer = create_customer(client, auth_headers(org_a))

        response = client.get(f"/api/customers/{customer['id']}", headers=auth_headers(org_a, UserRole.VIEWER))

        assert response.status_code == 200
        assert response.json()["value"]["id"] == customer["id"]
        assert response.json()["value"]["name"] == customer["name"]
        [entry] = audit_logs(org_a, "customer.get")
        assert entry.metadata_json == {"customer_id": customer["id"]}

    def test_unknown_id_is_404_and_audited_as_not_found(self, client, org_a, auth_headers):
        missing = str(uuid4())

        response = client.get(f"/api/customers/{missing}", headers=auth_headers(org_a))

        assert response.status_code == 404
        assert response.json() == {"error": "Customer not found"}
        [entry] = audit_logs(org_a, "customer.get.not_found")
        assert entry.metadata_json == {"customer_id": missing}
        assert audit_count(org_a, "customer.get") == 0

    def test_malformed_id_is_400_without_audit(self, client, org_a, auth_headers):
        response = client.get("/api/customers/not-a-uuid", headers=auth_headers(org_a))

        assert response.status_code == 400
        assert response.json() == {"error": "invalid id"}
        assert audit_count(org_a) == 0


class TestListCustomers:

    def test_pages_are_disjoint_and_each_call_is_audited(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        created = [create_customer(client, headers, name=f"Customer {i}") for i in range(3)]

        first = client.get("/api/customers?limit=1&offset=0", headers=headers)
        second = client.get("/api/customers?limit=1&offset=1", headers=headers)

        assert first.status_code == second.status_code == 200
        assert first.json()["count"] == second.json()["count"] == 3
        [a] = first.json()["value"]
        [b] = second.json()["value"]
        assert a["id"] != b["id"]
        # newest first
        assert a["id"] == created[-1]["id"]

        entries = audit_logs(org_a, "customer.list")
        assert [e.metadata_json for e in entries] == [
            {"limit": 1, "offset": 0, "result_count": 1, "total_count": 3, "q": None},
            {"limit": 1, "offset": 1, "result_count": 1, "total_count": 3, "q": None},
        ]
        assert all(e.entity_id is None for e in entries)

    def test_all_pages_cover_every_row_once(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        ids = {create_customer(client, headers)["id"] for _ in range(5)}

        seen = []
        for offset in (0, 2, 4):
            response = client.get(f"/api/customers?limit=2&offset={offset}", headers=headers)
            seen.extend(c["id"] for c in response.json()["value"])

        assert sorted(seen) == sorted(ids)

    def test_search_matches_name_email_and_phone(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        create_customer(client, headers, name="Sonnenschein KG")
        create_customer(client, headers, name="Other", email="info@sonnenschein.example")
        create_customer(client, headers, name="Unrelated")

        response = client.get("/api/customers?q=%20sonnenschein%20", headers=headers)

        assert response.json()["count"] == 2
        [entry] = audit_logs(org_a, "customer.list")
        assert entry.metadata_json["q"] == "sonnenschein"

    def test_search_wildcards_are_literal(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        create_customer(client, headers, name="Anna")

        response = client.get("/api/customers?q=%25", headers=headers)

        assert response.json()["count"] == 0

    @pytest.mark.parametrize("query", [
        "limit=0",
        "limit=101",
        "limit=-1",
        "offset=-1",
        "limit=abc",
        "offset=1.5",
        "limit=1_0",
        "limit=%2B5",
        "limit=%205",
        "limit=5%20",
        "limit=1.0",
        "limit=",
        "offset=%D9%A3",
        "q=" + "x" * 101,
    ])
    def test_invalid_query_is_400_without_audit(self, client, org_a, auth_headers, query):
        response = client.get(f"/api/customers?{query}", headers=auth_headers(org_a))

        assert response.status_code == 400
        assert response.json() == {"error": "invalid query"}
        assert audit_count(org_a) == 0

    def test_default_pagination(self, client, org_a, auth_headers):
        client.get("/api/customers", headers=auth_headers(org_a))

        [entry] = audit_logs(org_a, "customer.list")
        assert entry.metadata_json["limit"] == 20
        assert entry.metadata_json["offset"] == 0


class TestUpdateCustomer:

    def test_changed_fields_lists_only_real_changes(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        customer = create_customer(client, headers, name="Anna", phone="+49 30 1")

        response = client.patch(
            f"/api/customers/{customer['id']}",
            json={"name": "Anna", "phone": "+49 30 2", "notes": "Prefers email"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["value"]["phone"] == "+49 30 2"
        [entry] = audit_logs(org_a, "customer.update")
        assert entry.metadata_json == {"customer_id": customer["id"], "changed_fields": ["notes", "phone"]}

    def test_unchanged_submission_has_empty_changed_fields(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        customer = create_customer(client, headers, name="Anna")

        client.patch(f"/api/customers/{customer['id']}", json={"name": "Anna"}, headers=headers)

        [entry] = audit_logs(org_a, "customer.update")
        assert entry.metadata_json["changed_fields"] == []

    def test_empty_update_is_400(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        customer = create_customer(client, headers)
        before = audit_count(org_a)

        response = client.patch(f"/api/customers/{customer['id']}", json={}, headers=headers)

        assert response.status_code == 400
        assert audit_count(org_a) == before

    def test_update_unknown_id_is_audited_not_found(self, client, org_a, auth_headers):
        response = client.patch(f"/api/customers/{ZERO_UUID}", json={"name": "X"}, headers=auth_headers(org_a))

        assert response.status_code == 404
        assert audit_count(org_a, "customer.update.not_found") == 1
        assert audit_count(org_a, "customer.update") == 0

    def test_update_to_duplicate_email_is_409(self, client, org_a, auth_headers):
        headers = auth_headers(org_a)
        create_customer(client, headers, email="taken@example.com")
        customer = create_customer(client, headers, email="free@example.com")

        response = client.patch(
            f"/api/customers/{customer['id']}", json={"email": "taken@example.com"}, headers=headers
        )

        assert response.status_code == 409
        assert audit_count(org_a, "customer.update") == 0


class TestDeleteCustomer:

    def test_customer_without_projects_is_hard_deleted(self, client, org_a, auth_headers):
        headers = auth_headers(org_a, UserRole.MANAGER)
        customer = create_customer(client, headers)

        response = client.delete(f"/api/customers/{customer['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"value": {"id": customer["id"]}}
        [entry] = audit_logs(org_a, "customer.delete")
        assert entry.metadata_json == {
            "customer_id": customer["id"],
            "mode": "hard",
            "project_count": 0,
            "quote_count": 0,
        }

    def test_customer_with_projects_is_soft_deleted_and_hidden(self, client, org_a, auth_headers):
        headers = auth_headers(org_a, UserRole.MANAGER)
        customer = create_customer(client, headers)
        create_project(client, headers, customer_id=customer["id"])

        response = client.delete(f"/api/customers/{customer['id']}", headers=headers)

        assert response.status_code == 200
        [entry] = audit_logs(org_a, "customer.delete")
        assert entry.metadata_json["mode"] == "soft"
        assert entry.metadata_json["project_count"] == 1

        assert client.get(f"/api/customers/{customer['id']}", headers=headers).status_code == 404
        assert client.get("/api/customers", headers=headers).json()["count"] == 0

    def test_deleting_twice_is_audited_not_found(self, client, org_a, auth_headers):
        headers = auth_headers(org_a, UserRole.MANAGER)
        customer = create_customer(client, headers)
        client.delete(f"/api/customers/{customer['id']}", headers=headers)

        response = client.delete(f"/api/customers/{customer['id']}", headers=headers)

        assert response.status_code == 404
        [entry] = audit_logs(org_a, "customer.delete.not_found")
        assert entry.metadata_json == {"customer_id": customer["id"]}

    def test_sales_cannot_delete(self, client, org_a, auth_headers):
        customer = create_customer(client, auth_headers(org_a))
        before = audit_count(org_a)

        response = client.delete(f"/api/customers/{customer['id']}", headers=auth_headers(org_a, UserRole.SALES))

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}
        assert audit_count(org_a) == before
