"""Pytest fixtures for SolarDesk.

Provides reusable test fixtures for:
- An in-memory SQLite database, recreated for every test
- Two organizations (org_a, org_b) for cross-tenant tests
- Access tokens and Authorization headers per role
- A TestClient whose audit retry queue records instead of calling Celery
- Helpers to seed tenant rows and to count audit records

Usage:
    def test_get_customer(client, org_a, auth_headers):
        response = client.get("/api/customers", headers=auth_headers(org_a))
        assert response.status_code == 200
"""

import os
import sqlite3
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, List, Optional
from uuid import UUID, uuid4

# Set environment variables BEFORE any solardesk import (settings are cached)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from solardesk.audit.recorder import AuditRecorder
from solardesk.auth.jwt import create_access_token
from solardesk.auth.roles import UserRole
from solardesk.database import enable_sqlite_savepoints, get_db as database_get_db
from solardesk.dependencies import get_audit_recorder
from solardesk.main import app
from solardesk.models import AuditLog, Base, Organization
from solardesk.tenancy.context import TenantContext, attach

# One shared connection so every session sees the same in-memory database
test_engine = enable_sqlite_savepoints(
    create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=test_engine,
)

ZERO_UUID = "00000000-0000-0000-0000-000000000000"


class RecordingRetryQueue:
    """Stands in for the Celery retry queue; keeps what it was given."""

    def __init__(self):
        self.records: List[dict] = []

    def __call__(self, record: dict) -> None:
        self.records.append(record)


@pytest.fixture(scope="function", autouse=True)
def database() -> Generator[None, None, None]:
    """Create all tables before the test and drop them after."""
    Base.metadata.create_all(bind=test_engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def retry_queue() -> RecordingRetryQueue:
    return RecordingRetryQueue()


@pytest.fixture
def client(retry_queue: RecordingRetryQueue) -> Generator[TestClient, None, None]:
    """TestClient bound to the test database and the recording retry queue."""

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.rollback()
            db.close()

    app.dependency_overrides[database_get_db] = override_get_db
    app.dependency_overrides[get_audit_recorder] = lambda: AuditRecorder(retry_queue=retry_queue)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _create_org(name: str, slug: str) -> Organization:
    session = TestingSessionLocal()
    try:
        org = Organization(name=name, slug=slug)
        session.add(org)
        session.commit()
        return org
    finally:
        session.close()


@pytest.fixture
def org_a() -> Organization:
    return _create_org("Sunrise Solar GmbH", "sunrise-solar")


@pytest.fixture
def org_b() -> Organization:
    return _create_org("Nordlicht Energie AG", "nordlicht-energie")


def make_token(org: Organization, role: UserRole = UserRole.ADMIN, user_id: Optional[str] = None, **kwargs) -> str:
    return create_access_token(
        user_id=user_id or f"user-{role.value.lower()}-{org.slug}",
        org_id=org.id,
        role=role.value,
        email=f"{role.value.lower()}@{org.slug}.example",
        **kwargs,
    )


@pytest.fixture
def auth_headers():
    """Build Authorization headers for an organization and role.

    Example:
        headers = auth_headers(org_a, UserRole.VIEWER)
    """

    def build(org: Organization, role: UserRole = UserRole.ADMIN, **kwargs) -> dict:
        return {"Authorization": f"Bearer {make_token(org, role, **kwargs)}"}

    return build


@contextmanager
def tenant_db(org: Organization, role: UserRole = UserRole.ADMIN) -> Generator[Session, None, None]:
    """Session bound to ``org``; commits on success."""
    ctx = TenantContext(organization_id=org.id, actor_id="test-seed", role=role)
    session = attach(TestingSessionLocal(), ctx)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def failing_statement(prefix: str, message: str = "disk I/O error") -> Generator[List[str], None, None]:
    """Make every statement starting with ``prefix`` fail in the driver.

    The error goes through SQLAlchemy's normal DBAPI error handling and
    surfaces as ``sqlalchemy.exc.OperationalError``. Yields the statements
    that were refused.

    Example:
        with failing_statement("INSERT INTO audit_logs"):
            client.post("/api/customers", json={"name": "Anna"}, headers=headers)
    """
    refused: List[str] = []

    def refuse(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith(prefix.upper()):
            refused.append(statement)
            raise sqlite3.OperationalError(message)

    event.listen(test_engine, "before_cursor_execute", refuse)
    try:
        yield refused
    finally:
        event.remove(test_engine, "before_cursor_execute", refuse)


def audit_logs(org: Organization, action: Optional[str] = None) -> List[AuditLog]:
    """Audit records of ``org``, optionally for one action, oldest first."""
    with tenant_db(org) as session:
        stmt = select(AuditLog).where(AuditLog.organization_id == org.id)
        if action is not None:
            stmt = stmt.where(AuditLog.action == action)
        return list(session.execute(stmt.order_by(AuditLog.created_at)).scalars().all())


def audit_count(org: Organization, action: Optional[str] = None, action_prefix: Optional[str] = None) -> int:
    with tenant_db(org) as session:
        stmt = select(func.count()).select_from(AuditLog).where(AuditLog.organization_id == org.id)
        if action is not None:
            stmt = stmt.where(AuditLog.action == action)
        if action_prefix is not None:
            stmt = stmt.where(AuditLog.action.startswith(action_prefix))
        return session.execute(stmt).scalar_one()


def audit_referencing(org: Organization, entity_id) -> int:
    """Number of audit records of ``org`` whose entity is ``entity_id``."""
    with tenant_db(org) as session:
        stmt = select(func.count()).select_from(AuditLog).where(
            AuditLog.organization_id == org.id,
            AuditLog.entity_id == UUID(str(entity_id)),
        )
        return session.execute(stmt).scalar_one()


# ============================================================================
# API seeding helpers (each call also writes its own audit record)
# ============================================================================

def create_customer(client: TestClient, headers: dict, **overrides) -> dict:
    payload = {"name": "Anna Schmidt", "email": f"anna.{uuid4().hex[:8]}@example.com"}
    payload.update(overrides)
    response = client.post("/api/customers", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["value"]


def create_project(client: TestClient, headers: dict, customer_id: str = None, **overrides) -> dict:
    if customer_id is None:
        customer_id = create_customer(client, headers)["id"]
    payload = {"customer_id": customer_id, "name": "Rooftop PV 9.8 kWp"}
    payload.update(overrides)
    response = client.post("/api/projects", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["value"]


def create_quote(client: TestClient, headers: dict, project_id: str = None, **overrides) -> dict:
    if project_id is None:
        project_id = create_project(client, headers)["id"]
    payload = {
        "project_id": project_id,
        "title": "PV system with storage",
        "payload": {"modules": 24, "inverter": "SE8K"},
        "total_price": "18450.00",
    }
    payload.update(overrides)
    response = client.post("/api/quotes", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["value"]


def set_status(client: TestClient, headers: dict, resource: str, resource_id: str, status: str, **extra) -> dict:
    response = client.patch(
        f"/api/{resource}/{resource_id}/status",
        json={"status": status, **extra},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["value"]


def quote_action(client: TestClient, headers: dict, quote_id: str, action: str, json: dict = None) -> dict:
    """POST to a quote workflow endpoint (submit, approve, reject, revise)."""
    response = client.post(f"/api/quotes/{quote_id}/{action}", json=json, headers=headers)
    assert response.status_code in (200, 201), response.text
    return response.json()["value"]


def approved_quote(client: TestClient, headers: dict, approver_headers: Optional[dict] = None, **overrides) -> dict:
    """Create, submit and approve a quote. ``approver_headers`` default to ``headers``."""
    quote = create_quote(client, headers, **overrides)
    quote_action(client, headers, quote["id"], "submit")
    return quote_action(client, approver_headers or headers, quote["id"], "approve")


def accepted_quote(client: TestClient, headers: dict, approver_headers: Optional[dict] = None) -> dict:
    quote = approved_quote(client, headers, approver_headers)
    set_status(client, headers, "quotes", quote["id"], "sent")
    return set_status(client, headers, "quotes", quote["id"], "accepted")


def create_contract(client: TestClient, headers: dict, approver_headers: Optional[dict] = None, **overrides) -> dict:
    quote = accepted_quote(client, headers, approver_headers)
    payload = {"project_id": quote["project_id"], "quote_id": quote["id"], "warranty_terms": "10 years on modules"}
    payload.update(overrides)
    response = client.post("/api/contracts", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["value"]


def contract_in_handover(client: TestClient, headers: dict) -> dict:
    contract = create_contract(client, headers)
    for status in ("SIGNED", "INSTALLING", "HANDOVER"):
        contract = set_status(client, headers, "contracts", contract["id"], status)
    return contract


def create_handover(client: TestClient, headers: dict, contract_id: str = None, **overrides) -> dict:
    if contract_id is None:
        contract_id = contract_in_handover(client, headers)["id"]
    payload = {
        "contract_id": contract_id,
        "handover_type": "INSTALLATION",
        "checklist": [{"name": "Inverter commissioned", "status": True}, {"name": "Grid registration", "status": False}],
    }
    payload.update(overrides)
    response = client.post("/api/handovers", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["value"]
