"""Database engine, session factory and tenant-bound sessions.

Every session created here carries the row isolation listeners from
``solardesk.tenancy.isolation``. A session only sees tenant rows once a
TenantContext is attached to it.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import get_settings
from .tenancy import isolation  # noqa: F401  (registers the Session listeners)
from .tenancy.context import TenantContext, attach

settings = get_settings()
DATABASE_URL = settings.DATABASE_URL


def enable_sqlite_savepoints(sqlite_engine: Engine) -> Engine:
    """Let SQLAlchemy, not pysqlite, issue BEGIN so SAVEPOINTs nest correctly.

    The audit recorder writes inside a SAVEPOINT; pysqlite's implicit
    transaction handling would otherwise commit on RELEASE.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return sqlite_engine


# Pool settings only apply to PostgreSQL (not SQLite)
_engine_kwargs = {
    "pool_pre_ping": True,
    "echo": False,
}

if not DATABASE_URL.startswith("sqlite"):
    _engine_kwargs["pool_size"] = 5
    _engine_kwargs["max_overflow"] = 10
    _engine_kwargs["connect_args"] = {
        "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
    }

engine = create_engine(DATABASE_URL, **_engine_kwargs)
if DATABASE_URL.startswith("sqlite"):
    enable_sqlite_savepoints(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Rolls back whatever is still pending when the request ends, so a request
    that raised (or a client that went away before commit) leaves neither a
    business change nor an audit record behind.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@contextmanager
def tenant_session(ctx: TenantContext) -> Generator[Session, None, None]:
    """Context manager for a session bound to one organization.

    Used by Celery tasks and scripts that work outside a request.

    Usage:
        with tenant_session(ctx) as session:
            session.add(AuditLog(...))

    Automatically commits on success, rolls back on exception.

    Example:
        @celery_app.task
        def persist(record: dict):
            ctx = TenantContext(UUID(record["organization_id"]), "system", UserRole.ADMIN)
            with tenant_session(ctx) as session:
                ...
    """
    session = attach(SessionLocal(), ctx)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
