"""Quote service: tenant-scoped quotes, approval, revisions and draft edits."""

import copy
from typing import Any, Dict, Optional
from uuid import UUID

from ..common.service import TenantResourceService, apply_changes
from ..models.base import utcnow
from ..models.project import Project
from ..models.quote import Quote
from .schemas import QuoteCreate
from .status import FROZEN_STATUSES, REVISABLE_STATUSES, STATUS_UPDATE_TRANSITIONS, QuoteStatus

SUPERSEDED = "Superseded quotes cannot be changed"


class QuoteService(TenantResourceService):
    resource = "quote"
    label = "Quote"
    model = Quote
    search_columns = (Quote.title,)
    status_enum = QuoteStatus
    transitions = STATUS_UPDATE_TRANSITIONS

    def create(self, data: QuoteCreate) -> Quote:
        """Create a draft quote for a project of the caller's organization.

        Raises:
            NotFoundError: Project missing or owned by another org
        """
        project = self._find_related(Project, data.project_id)
        if project is None:
            self._not_found("create", {"project_id": data.project_id}, label="Project")

        quote = Quote(
            project_id=project.id,
            customer_id=project.customer_id,
            title=data.title,
            status=QuoteStatus.DRAFT.value,
            payload=data.payload,
            total_price=data.total_price,
        )
        self.db.add(quote)
        self.db.flush()
        return self._succeed(
            "create",
            {"quote_id": quote.id, "project_id": project.id, "customer_id": project.customer_id},
            quote,
        )

    def _find_changeable(self, resource_id: UUID, operation: str) -> Quote:
        quote = self._find(resource_id)
        if quote is None:
            self._not_found(operation, {"quote_id": resource_id})
        if quote.superseded:
            self._conflict(operation, SUPERSEDED)
        return quote

    def update_payload(self, resource_id: UUID, changes: dict) -> Quote:
        """Edit the body of a draft quote.

        Raises:
            NotFoundError: Quote not found in the caller's organization
            ConflictError: Quote is no longer a draft, or was revised
        """
        quote = self._find_changeable(resource_id, "payload.update")
        if quote.status != QuoteStatus.DRAFT.value:
            self._conflict("payload.update", "Only draft quotes can be edited")

        changed = apply_changes(quote, changes)
        self.db.flush()
        return self._succeed("payload.update", {"quote_id": quote.id, "changed_fields": changed}, quote)

    def _on_status_change(self, row, current, new_status, reason: Optional[str]) -> Dict[str, Any]:
        if row.superseded:
            self._conflict("status.update", SUPERSEDED)
        if new_status == QuoteStatus.DRAFT:
            row.approved_by = None
            row.approved_at = None
        return {}

    # ========================================================================
    # Approval workflow
    # ========================================================================

    def _approval_step(self, quote: Quote, operation: str, new_status: QuoteStatus, **extra) -> Quote:
        metadata = {"quote_id": quote.id, "from": quote.status, "to": new_status.value}
        metadata.update(extra)
        quote.status = new_status.value
        return self._succeed(operation, metadata, quote)

    def submit(self, resource_id: UUID) -> Quote:
        """Hand a draft to a manager for approval.

        Raises:
            NotFoundError: Quote not found in the caller's organization
            ConflictError: Quote is not a draft, or was revised
        """
        quote = self._find_changeable(resource_id, "submit")
        if quote.status != QuoteStatus.DRAFT.value:
            self._conflict("submit", "Only draft quotes can be submitted for approval")
        return self._approval_step(quote, "submit", QuoteStatus.PENDING_APPROVAL)

    def approve(self, resource_id: UUID) -> Quote:
        """Approve a submitted quote; it is frozen from now on."""
        quote = self._find_changeable(resource_id, "approve")
        if quote.status != QuoteStatus.PENDING_APPROVAL.value:
            self._conflict("approve", "Only quotes pending approval can be approved")
        quote.approved_by = self.ctx.actor_id
        quote.approved_at = utcnow()
        return self._approval_step(quote, "approve", QuoteStatus.APPROVED)

    def reject(self, resource_id: UUID, reason: str) -> Quote:
        """Send a submitted quote back to draft with the manager's reason."""
        quote = self._find_changeable(resource_id, "reject")
        if quote.status != QuoteStatus.PENDING_APPROVAL.value:
            self._conflict("reject", "Only quotes pending approval can be rejected")
        return self._approval_step(quote, "reject", QuoteStatus.DRAFT, reason=reason)

    def revise(self, resource_id: UUID) -> Quote:
        """Create the next version of a draft or rejected quote.

        The new quote starts as a draft with the same project, title, payload
        and price. The old quote is marked superseded.

        Raises:
            NotFoundError: Quote not found in the caller's organization
            ConflictError: Quote is frozen, or has already been revised
        """
        quote = self._find(resource_id)
        if quote is None:
            self._not_found("revise", {"quote_id": resource_id})
        if quote.superseded:
            self._conflict("revise", "Quote has already been revised")
        if QuoteStatus(quote.status) not in REVISABLE_STATUSES:
            self._conflict("revise", "Only draft or rejected quotes can be revised")

        revision = Quote(
            project_id=quote.project_id,
            customer_id=quote.customer_id,
            title=quote.title,
            status=QuoteStatus.DRAFT.value,
            payload=copy.deepcopy(quote.payload),
            total_price=quote.total_price,
            version=quote.version + 1,
            parent_quote_id=quote.id,
        )
        quote.superseded = True
        self.db.add(revision)
        self._flush("revise", "Quote has already been revised")
        return self._succeed(
            "revise",
            {"quote_id": quote.id, "new_quote_id": revision.id, "version": revision.version},
            revision,
        )

    def delete(self, resource_id: UUID) -> UUID:
        """Delete a quote.

        Raises:
            NotFoundError: Quote not found in the caller's organization
            ConflictError: Approved, sent and accepted quotes are kept
        """
        quote = self._find(resource_id)
        if quote is None:
            self._not_found("delete", {"quote_id": resource_id})
        if QuoteStatus(quote.status) in FROZEN_STATUSES:
            self._conflict("delete", f"{quote.status.capitalize()} quotes cannot be deleted")

        quote_id = quote.id
        metadata = {
            "quote_id": quote_id,
            "project_id": quote.project_id,
            "status": quote.status,
            "mode": "hard",
        }
        self.db.delete(quote)
        return self._succeed("delete", metadata, quote_id)
