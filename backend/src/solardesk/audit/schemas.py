"""Pydantic schemas for the audit log read API.

Audit records are read-only: there is no create, update or delete endpoint.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import Field

from ..common.schemas import ResourceSchema


class AuditLogResponse(ResourceSchema):
    """One audit record as returned by ``GET /api/audit-logs``."""
    id: UUID = Field(..., description="Audit record unique identifier")
    organization_id: UUID = Field(..., description="Organization the record belongs to")
    actor_id: str = Field(..., description="Subject of the credential that performed the operation")
    action: str = Field(..., description="Dot-namespaced action, e.g. quote.get or quote.get.not_found")
    entity_type: str = Field(..., description="Resource kind, e.g. quote")
    entity_id: Optional[UUID] = Field(None, description="Target id; null for list actions")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias="metadata_json",
        description="Action-specific details",
    )
    request_id: Optional[str] = Field(None, description="X-Request-ID of the originating request")
    created_at: datetime = Field(..., description="Time the record was built")
