"""Contract service: contracts created from accepted quotes."""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select

from ..common.service import TenantResourceService
from ..models.base import utcnow
from ..models.contract import Contract
from ..models.handover import Handover
from ..models.project import Project
from ..models.quote import Quote
from ..quotes.status import QuoteStatus
from .schemas import ContractCreate
from .status import ALLOWED_TRANSITIONS, DELETABLE_STATUSES, ContractStatus

CONTRACT_NUMBER_PREFIX = "CT"


def format_contract_number(year: int, sequence: int) -> str:
    """
    Example:
        >>> format_contract_number(2026, 7)
        'CT-2026-0007'
    """
    return f"{CONTRACT_NUMBER_PREFIX}-{year}-{sequence:04d}"


class ContractService(TenantResourceService):
    resource = "contract"
    label = "Contract"
    model = Contract
    search_columns = (Contract.contract_number, Contract.warranty_terms)
    status_enum = ContractStatus
    transitions = ALLOWED_TRANSITIONS

    def _next_contract_number(self) -> str:
        """Next free number of the current year within the organization."""
        year = utcnow().year
        prefix = f"{CONTRACT_NUMBER_PREFIX}-{year}-"
        numbers = self.db.execute(
            select(Contract.contract_number).where(
                Contract.organization_id == self.ctx.organization_id,
                Contract.contract_number.like(f"{prefix}%"),
            )
        ).scalars().all()

        highest = 0
        for number in numbers:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return format_contract_number(year, highest + 1)

    def create(self, data: ContractCreate) -> Contract:
        """Create a DRAFT contract for an accepted quote of a project.

        Raises:
            NotFoundError: Project, or the quote within that project, not found
            ConflictError: Quote not accepted, or it already has an open contract
        """
        refs = {"project_id": data.project_id, "quote_id": data.quote_id}

        project = self._find_related(Project, data.project_id)
        if project is None:
            self._not_found("create", {**refs, "missing": "project"}, label="Project")

        quote = self._find_related(Quote, data.quote_id, Quote.project_id == project.id)
        if quote is None:
            self._not_found("create", {**refs, "missing": "quote"}, label="Quote")

        if quote.status != QuoteStatus.ACCEPTED.value:
            self._conflict("create", "Quote must be accepted before a contract can be created")

        if self._count_related(
            Contract,
            Contract.quote_id == quote.id,
            Contract.status != ContractStatus.CANCELLED.value,
        ):
            self._conflict("create", "Quote already has an open contract")

        contract = Contract(
            project_id=project.id,
            quote_id=quote.id,
            contract_number=self._next_contract_number(),
            status=ContractStatus.DRAFT.value,
            payment_terms=[term.model_dump() for term in data.payment_terms],
            warranty_terms=data.warranty_terms,
            construction_days=data.construction_days,
        )
        self.db.add(contract)
        self._flush("create", "Contract number already taken, please retry")
        return self._succeed(
            "create",
            {
                "contract_id": contract.id,
                "project_id": project.id,
                "quote_id": quote.id,
                "contract_number": contract.contract_number,
            },
            contract,
        )

    def _check_updatable(self, row) -> None:
        if row.status != ContractStatus.DRAFT.value:
            self._conflict("update", "Only draft contracts can be edited")

    def _on_status_change(self, row, current, new_status, reason: Optional[str]) -> Dict[str, Any]:
        if new_status == ContractStatus.SIGNED:
            row.signed_at = utcnow()
            row.signed_by = self.ctx.actor_id
        elif new_status == ContractStatus.CANCELLED:
            row.cancel_reason = reason
        return {}

    def delete(self, resource_id: UUID) -> UUID:
        """Delete a DRAFT or CANCELLED contract and its handovers.

        Raises:
            NotFoundError: Contract not found in the caller's organization
            ConflictError: Contract is signed or in progress
        """
        contract = self._find(resource_id)
        if contract is None:
            self._not_found("delete", {"contract_id": resource_id})
        if ContractStatus(contract.status) not in DELETABLE_STATUSES:
            self._conflict("delete", "Only draft or cancelled contracts can be deleted")

        handovers = self.db.execute(
            self._scoped(Handover).where(Handover.contract_id == contract.id)
        ).scalars().all()
        deleted_handover_count = self._delete_rows(handovers)
        self.db.flush()

        metadata = {
            "contract_id": contract.id,
            "project_id": contract.project_id,
            "quote_id": contract.quote_id,
            "contract_number": contract.contract_number,
            "status": contract.status,
            "mode": "hard",
            "deleted_handover_count": deleted_handover_count,
        }
        self.db.delete(contract)
        return self._succeed("delete", metadata, metadata["contract_id"])
