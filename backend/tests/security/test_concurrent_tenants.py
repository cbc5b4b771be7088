"""Tenant contexts of different organizations used at the same time

Two sessions bound to different organizations are open together, either
interleaved in one thread or driven from two threads, and must never see,
stamp or audit each other's rows.

These tests use their own file-backed SQLite database: the shared in-memory
test connection can only hold one transaction at a time.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from uuid import UUID

import pytest
from sqlalchemy import create_engine, event, select
from sqlalchemy.orm import sessionmaker

from solardesk.audit.recorder import AuditRecorder
from solardesk.auth.roles import UserRole
from solardesk.common.params import ListParams
from solardesk.customers.schemas import CustomerCreate
from solardesk.customers.service import CustomerService
from solardesk.database import enable_sqlite_savepoints
from solardesk.errors import NotFoundError
from solardesk.models import AuditLog, Base, Customer, Organization
from solardesk.tenancy.context import TenantContext, attach

pytestmark = pytest.mark.security

ROUNDS = 8


def _file_engine(path, immediate: bool = False):
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    if not immediate:
        return enable_sqlite_savepoints(engine)

    # Writers queue for the lock up front instead of failing on upgrade
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def _setup(engine):
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    session = factory()
    try:
        org_a = Organization(name="Sunrise Solar GmbH", slug="sunrise-solar")
        org_b = Organization(name="Nordlicht Energie AG", slug="nordlicht-energie")
        session.add_all([org_a, org_b])
        session.commit()
        return factory, org_a.id, org_b.id
    finally:
        session.close()


def _ctx(org_id: UUID, name: str) -> TenantContext:
    return TenantContext(organization_id=org_id, actor_id=f"user-{name}", role=UserRole.ADMIN)


def _audit_rows(engine):
    """All audit rows, read below the ORM so no tenant filter applies."""
    table = AuditLog.__table__
    with engine.connect() as conn:
        return conn.execute(select(table.c.organization_id, table.c.actor, table.c.entity_id)).all()


def _customer_rows(engine):
    table = Customer.__table__
    with engine.connect() as conn:
        return conn.execute(select(table.c.id, table.c.organization_id, table.c.name, table.c.notes)).all()


@pytest.fixture
def interleaved(tmp_path):
    engine = _file_engine(tmp_path / "interleaved.db")
    try:
        yield (engine, *_setup(engine))
    finally:
        engine.dispose()


@pytest.fixture
def threaded(tmp_path):
    engine = _file_engine(tmp_path / "threaded.db", immediate=True)
    try:
        yield (engine, *_setup(engine))
    finally:
        engine.dispose()


class TestInterleavedSessions:

    def test_pending_rows_are_stamped_by_their_own_session(self, interleaved):
        engine, factory, org_a_id, org_b_id = interleaved
        session_a = attach(factory(), _ctx(org_a_id, "a"))
        session_b = attach(factory(), _ctx(org_b_id, "b"))
        try:
            mine = Customer(name="Added by A")
            theirs = Customer(name="Added by B")
            session_a.add(mine)
            session_b.add(theirs)

            session_a.commit()
            session_b.commit()

            assert mine.organization_id == org_a_id
            assert theirs.organization_id == org_b_id
            assert session_a.execute(select(Customer)).scalars().all() == [mine]
            session_a.commit()
            assert session_b.execute(select(Customer)).scalars().all() == [theirs]
            session_b.commit()
        finally:
            session_a.close()
            session_b.close()

    def test_service_calls_alternate_without_leaking(self, interleaved):
        engine, factory, org_a_id, org_b_id = interleaved
        session_a, session_b = factory(), factory()
        service_a = CustomerService(session_a, _ctx(org_a_id, "a"), AuditRecorder())
        service_b = CustomerService(session_b, _ctx(org_b_id, "b"), AuditRecorder())
        try:
            anna = service_a.create(CustomerCreate(name="Anna Schmidt", email="anna@example.com"))
            # Same email in the other organization is a different customer
            bernd = service_b.create(CustomerCreate(name="Bernd Maier", email="anna@example.com"))

            rows_a, total_a = service_a.list(ListParams())
            rows_b, total_b = service_b.list(ListParams())
            assert [r.id for r in rows_a] == [anna.id] and total_a == 1
            assert [r.id for r in rows_b] == [bernd.id] and total_b == 1

            service_a.update(anna.id, {"notes": "Roof survey booked"})
            with pytest.raises(NotFoundError):
                service_b.update(anna.id, {"notes": "Overwritten by B"})
            with pytest.raises(NotFoundError):
                service_a.get(bernd.id)
            assert service_b.get(bernd.id).notes is None
            assert service_a.get(anna.id).notes == "Roof survey booked"
        finally:
            session_a.close()
            session_b.close()

        customers = {row.id: row for row in _customer_rows(engine)}
        assert customers[anna.id].organization_id == org_a_id
        assert customers[anna.id].notes == "Roof survey booked"
        assert customers[bernd.id].organization_id == org_b_id
        assert customers[bernd.id].notes is None

        for org_id, actor, entity_id in _audit_rows(engine):
            assert actor == ("user-a" if org_id == org_a_id else "user-b")
            if org_id == org_a_id:
                assert entity_id in (anna.id, None)
            else:
                assert entity_id in (bernd.id, None)


class TestConcurrentThreads:

    def test_two_organizations_in_parallel(self, threaded):
        engine, factory, org_a_id, org_b_id = threaded
        start = threading.Barrier(2)

        def work(org_id: UUID, name: str):
            ctx = _ctx(org_id, name)
            seen = set()
            created = []
            start.wait(timeout=10)
            for i in range(ROUNDS):
                session = factory()
                try:
                    service = CustomerService(session, ctx, AuditRecorder())
                    customer = service.create(CustomerCreate(name=f"{name} customer {i}"))
                    created.append(customer.id)
                    rows, _ = service.list(ListParams(limit=100))
                    seen.update(row.organization_id for row in rows)
                    service.update(customer.id, {"notes": f"handled by {name}"})
                    seen.add(service.get(customer.id).organization_id)
                finally:
                    session.close()
            return seen, created

        with ThreadPoolExecutor(max_workers=2) as pool:
            future_a = pool.submit(work, org_a_id, "a")
            future_b = pool.submit(work, org_b_id, "b")
            seen_a, created_a = future_a.result(timeout=120)
            seen_b, created_b = future_b.result(timeout=120)

        assert seen_a == {org_a_id}
        assert seen_b == {org_b_id}

        customers = _customer_rows(engine)
        assert len(customers) == 2 * ROUNDS
        for row in customers:
            expected = "a" if row.organization_id == org_a_id else "b"
            assert row.id in (created_a if expected == "a" else created_b)
            assert row.name.startswith(f"{expected} customer")
            assert row.notes == f"handled by {expected}"

        audit = _audit_rows(engine)
        # create, list, update and get per round
        assert sum(1 for org_id, _, _ in audit if org_id == org_a_id) == 4 * ROUNDS
        assert sum(1 for org_id, _, _ in audit if org_id == org_b_id) == 4 * ROUNDS
        for org_id, actor, entity_id in audit:
            owner = "a" if org_id == org_a_id else "b"
            assert actor == f"user-{owner}"
            assert entity_id is None or entity_id in (created_a if owner == "a" else created_b)
