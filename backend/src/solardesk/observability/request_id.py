"""Request ID management for request correlation.

The request id lives in a ContextVar, so each request (thread or task) sees
only its own value.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID.

    Returns:
        str: UUID v4 request ID
    """
    return str(uuid.uuid4())


def current_request_id() -> Optional[str]:
    """Request ID of the current context, or None outside a request."""
    return request_id_var.get()


def get_request_id() -> str:
    """Get current request ID for log lines.

    Returns:
        str: Current request ID or "no-request-id" if not set
    """
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: Optional[str]):
    """Set request ID in current context and return the reset token."""
    return request_id_var.set(request_id)


def reset_request_id(token) -> None:
    request_id_var.reset(token)
