"""SolarDesk Backend - Main FastAPI Application

Multi-tenant back office for solar installation businesses: customers,
projects, quotes, contracts and handovers, with an audit trail per
organization.

This module creates and configures the FastAPI application, including:
- All API routers under /api
- Middleware (request ID correlation, CORS)
- Exception handlers mapping every error to {"error": <message>}
- Health and observability endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .audit.router import router as audit_router
from .config import get_settings
from .contracts.router import router as contracts_router
from .customers.router import router as customers_router
from .errors import AppError
from .handovers.router import router as handovers_router
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .projects.router import router as projects_router
from .quotes.router import router as quotes_router
from .tenancy.isolation import TenantIsolationError

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"

# First element of a validation error location -> public message
_VALIDATION_MESSAGES = {
    "path": "invalid id",
    "query": "invalid query",
    "body": "invalid payload",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("SolarDesk API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    yield

    logger.info("SolarDesk API shutting down...")


app = FastAPI(
    title="SolarDesk API",
    description="Multi-tenant back office for solar installers",
    version=__version__,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def error_response(status_code: int, message: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Classified service and auth errors carry their own public message."""
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return error_response(exc.status_code, exc.message, headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map validation errors to 400 by where the bad input was.

    Path parameters are resource ids, query parameters are list filters and
    pagination, and everything else is the request body.
    """
    errors = exc.errors()
    location = errors[0]["loc"][0] if errors and errors[0].get("loc") else "body"
    message = _VALIDATION_MESSAGES.get(location, "invalid payload")
    logger.info(
        f"Validation error on {request.method} {request.url.path}: {message}",
        extra={"method": request.method, "path": request.url.path},
    )
    return error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes (404) and wrong methods (405) use the same error body."""
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(TenantIsolationError)
async def tenant_isolation_handler(request: Request, exc: TenantIsolationError) -> JSONResponse:
    """The violation was logged and counted by the enforcer; the client learns nothing."""
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catches all unhandled exceptions. Details are logged, never returned."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (health, metrics, ready)
app.include_router(observability_router)

# Tenant resources
app.include_router(customers_router, prefix="/api")
app.include_router(projects_router, prefix="/api")
app.include_router(quotes_router, prefix="/api")
app.include_router(contracts_router, prefix="/api")
app.include_router(handovers_router, prefix="/api")

# Audit trail
app.include_router(audit_router, prefix="/api")


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "SolarDesk API",
        "version": __version__,
        "status": "running",
    }


def create_app() -> FastAPI:
    """Return the configured application (used by tests and ASGI servers)."""
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("solardesk.main:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())
