"""Audit action registry.

Every audit action has exactly one metadata model. The recorder validates
the metadata against it before anything is written, so a call site that
passes an unknown key, a missing id or a wrongly typed value fails loudly
instead of storing inconsistent JSON.

Action names are dot-namespaced: ``<resource>.<operation>`` for successful
outcomes and ``<resource>.<operation>.not_found`` when the target (or a
referenced parent) does not exist inside the caller's organization.
"""

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Type
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

NOT_FOUND_SUFFIX = ".not_found"


class AuditMetadata(BaseModel):
    """Base for per-action metadata. Unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ListMetadata(AuditMetadata):
    """What a caller saw from a list call.

    ``result_count`` is the number of rows on the returned page,
    ``total_count`` the number of matching rows in the organization.
    """
    limit: int = Field(ge=1, le=100)
    offset: int = Field(ge=0)
    result_count: int = Field(ge=0)
    total_count: int = Field(ge=0)
    q: Optional[str] = None


class StatusListMetadata(ListMetadata):
    status: Optional[str] = None


class StatusChangeMetadata(AuditMetadata):
    from_status: str = Field(alias="from")
    to: str
    reason: Optional[str] = None


class ChangedFieldsMetadata(AuditMetadata):
    changed_fields: List[str]


# ============================================================================
# Customer
# ============================================================================

class CustomerRef(AuditMetadata):
    customer_id: UUID


class CustomerCreated(CustomerRef):
    pass


class CustomerUpdated(CustomerRef, ChangedFieldsMetadata):
    pass


class CustomerDeleted(CustomerRef):
    mode: Literal["soft", "hard"]
    project_count: int = Field(ge=0)
    quote_count: int = Field(ge=0)


# ============================================================================
# Project
# ============================================================================

class ProjectRef(AuditMetadata):
    project_id: UUID


class ProjectCreated(ProjectRef):
    customer_id: UUID


class ProjectCreateNotFound(AuditMetadata):
    customer_id: UUID


class ProjectUpdated(ProjectRef, ChangedFieldsMetadata):
    pass


class ProjectStatusChanged(ProjectRef, StatusChangeMetadata):
    pass


class ProjectStatusNotFound(ProjectRef):
    to: str


class ProjectDeleted(ProjectRef):
    customer_id: UUID
    mode: Literal["hard"]
    deleted_quote_count: int = Field(ge=0)


# ============================================================================
# Quote
# ============================================================================

class QuoteRef(AuditMetadata):
    quote_id: UUID


class QuoteCreated(QuoteRef):
    project_id: UUID
    customer_id: UUID


class QuoteCreateNotFound(AuditMetadata):
    project_id: UUID


class QuoteStatusChanged(QuoteRef, StatusChangeMetadata):
    pass


class QuoteStatusNotFound(QuoteRef):
    to: str


class QuotePayloadUpdated(QuoteRef, ChangedFieldsMetadata):
    pass


class QuoteDeleted(QuoteRef):
    project_id: UUID
    status: str
    mode: Literal["hard"]


class QuoteApprovalStep(QuoteRef):
    """Submit and approve: always one fixed move, no reason."""
    from_status: str = Field(alias="from")
    to: str


class QuoteApprovalRejected(QuoteApprovalStep):
    reason: str = Field(min_length=1)


class QuoteRevised(QuoteRef):
    new_quote_id: UUID
    version: int = Field(ge=2)


# ============================================================================
# Contract
# ============================================================================

class ContractRef(AuditMetadata):
    contract_id: UUID


class ContractCreated(ContractRef):
    project_id: UUID
    quote_id: UUID
    contract_number: str


class ContractCreateNotFound(AuditMetadata):
    project_id: UUID
    quote_id: UUID
    missing: Literal["project", "quote"]


class ContractUpdated(ContractRef, ChangedFieldsMetadata):
    pass


class ContractStatusChanged(ContractRef, StatusChangeMetadata):
    pass


class ContractStatusNotFound(ContractRef):
    to: str


class ContractDeleted(ContractRef):
    project_id: UUID
    quote_id: UUID
    contract_number: str
    status: str
    mode: Literal["hard"]
    deleted_handover_count: int = Field(ge=0)


# ============================================================================
# Handover
# ============================================================================

class HandoverRef(AuditMetadata):
    handover_id: UUID


class HandoverCreated(HandoverRef):
    contract_id: UUID
    project_id: UUID
    handover_type: str


class HandoverCreateNotFound(AuditMetadata):
    contract_id: UUID


class HandoverUpdated(HandoverRef, ChangedFieldsMetadata):
    pass


class HandoverStatusChanged(HandoverRef, StatusChangeMetadata):
    contract_id: UUID
    contract_status_to: Optional[str] = None


class HandoverStatusNotFound(HandoverRef):
    to: str


class HandoverDeleted(HandoverRef):
    contract_id: UUID
    status: str
    mode: Literal["hard"]


# ============================================================================
# Registry
# ============================================================================

@dataclass(frozen=True)
class AuditAction:
    """One registered action: its name, entity type and metadata model."""
    name: str
    entity_type: str
    metadata_model: Type[AuditMetadata]

    @property
    def is_not_found(self) -> bool:
        return self.name.endswith(NOT_FOUND_SUFFIX)

    @property
    def family(self) -> str:
        """Action name without the not_found suffix (e.g. ``quote.get``)."""
        if self.is_not_found:
            return self.name[: -len(NOT_FOUND_SUFFIX)]
        return self.name

    @property
    def entity_key(self) -> str:
        return f"{self.entity_type}_id"


class UnknownAuditActionError(ValueError):
    pass


_REGISTRY: Dict[str, AuditAction] = {}


def _register(entity_type: str, operation: str, ok: Type[AuditMetadata], not_found: Type[AuditMetadata] = None):
    name = f"{entity_type}.{operation}"
    _REGISTRY[name] = AuditAction(name, entity_type, ok)
    if not_found is not None:
        _REGISTRY[name + NOT_FOUND_SUFFIX] = AuditAction(name + NOT_FOUND_SUFFIX, entity_type, not_found)


_register("customer", "get", CustomerRef, CustomerRef)
_register("customer", "list", ListMetadata)
_register("customer", "create", CustomerCreated)
_register("customer", "update", CustomerUpdated, CustomerRef)
_register("customer", "delete", CustomerDeleted, CustomerRef)

_register("project", "get", ProjectRef, ProjectRef)
_register("project", "list", StatusListMetadata)
_register("project", "create", ProjectCreated, ProjectCreateNotFound)
_register("project", "update", ProjectUpdated, ProjectRef)
_register("project", "status.update", ProjectStatusChanged, ProjectStatusNotFound)
_register("project", "delete", ProjectDeleted, ProjectRef)

_register("quote", "get", QuoteRef, QuoteRef)
_register("quote", "list", StatusListMetadata)
_register("quote", "create", QuoteCreated, QuoteCreateNotFound)
_register("quote", "status.update", QuoteStatusChanged, QuoteStatusNotFound)
_register("quote", "payload.update", QuotePayloadUpdated, QuoteRef)
_register("quote", "delete", QuoteDeleted, QuoteRef)
_register("quote", "submit", QuoteApprovalStep, QuoteRef)
_register("quote", "approve", QuoteApprovalStep, QuoteRef)
_register("quote", "reject", QuoteApprovalRejected, QuoteRef)
_register("quote", "revise", QuoteRevised, QuoteRef)

_register("contract", "get", ContractRef, ContractRef)
_register("contract", "list", StatusListMetadata)
_register("contract", "create", ContractCreated, ContractCreateNotFound)
_register("contract", "update", ContractUpdated, ContractRef)
_register("contract", "status.update", ContractStatusChanged, ContractStatusNotFound)
_register("contract", "delete", ContractDeleted, ContractRef)

_register("handover", "get", HandoverRef, HandoverRef)
_register("handover", "list", StatusListMetadata)
_register("handover", "create", HandoverCreated, HandoverCreateNotFound)
_register("handover", "update", HandoverUpdated, HandoverRef)
_register("handover", "status.update", HandoverStatusChanged, HandoverStatusNotFound)
_register("handover", "delete", HandoverDeleted, HandoverRef)


def get_action(name: str) -> AuditAction:
    """Look up a registered action.

    Raises:
        UnknownAuditActionError: If the action is not registered
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        raise UnknownAuditActionError(f"Unknown audit action: {name}")


def registered_actions() -> List[str]:
    return sorted(_REGISTRY)


def validate_metadata(name: str, metadata: dict) -> dict:
    """Validate ``metadata`` for action ``name`` and return its JSON form.

    Raises:
        UnknownAuditActionError: Unregistered action
        pydantic.ValidationError: Metadata does not match the action's model
    """
    action = get_action(name)
    model = action.metadata_model.model_validate(metadata)
    return model.model_dump(mode="json", by_alias=True)
