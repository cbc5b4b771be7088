"""Handover service: handover protocols for contracts in the HANDOVER phase."""

from typing import Any, Dict, Optional
from uuid import UUID

from ..common.service import TenantResourceService
from ..common.status import StateTransitionError, validate_transition
from ..contracts.status import ALLOWED_TRANSITIONS as CONTRACT_TRANSITIONS
from ..contracts.status import ContractStatus
from ..models.base import utcnow
from ..models.contract import Contract
from ..models.handover import Handover
from .schemas import HandoverCreate
from .status import ALLOWED_TRANSITIONS, DELETABLE_STATUSES, HandoverStatus


class HandoverService(TenantResourceService):
    resource = "handover"
    label = "Handover"
    model = Handover
    search_columns = (Handover.notes,)
    status_enum = HandoverStatus
    transitions = ALLOWED_TRANSITIONS

    def create(self, data: HandoverCreate) -> Handover:
        """Create a DRAFT handover for a contract awaiting handover.

        Raises:
            NotFoundError: Contract not found in the caller's organization
            ConflictError: Contract is not in HANDOVER status
        """
        contract = self._find_related(Contract, data.contract_id)
        if contract is None:
            self._not_found("create", {"contract_id": data.contract_id}, label="Contract")
        if contract.status != ContractStatus.HANDOVER.value:
            self._conflict("create", "Contract must be in HANDOVER status to create a handover")

        handover = Handover(
            contract_id=contract.id,
            project_id=contract.project_id,
            handover_type=data.handover_type.value,
            handover_date=data.handover_date,
            checklist=[item.model_dump() for item in data.checklist],
            notes=data.notes,
            status=HandoverStatus.DRAFT.value,
        )
        self.db.add(handover)
        self.db.flush()
        return self._succeed(
            "create",
            {
                "handover_id": handover.id,
                "contract_id": contract.id,
                "project_id": contract.project_id,
                "handover_type": handover.handover_type,
            },
            handover,
        )

    def _check_updatable(self, row) -> None:
        if row.status != HandoverStatus.DRAFT.value:
            self._conflict("update", "Only draft handovers can be edited")

    def _on_status_change(self, row, current, new_status, reason: Optional[str]) -> Dict[str, Any]:
        extra: Dict[str, Any] = {"contract_id": row.contract_id}
        now = utcnow()

        if new_status == HandoverStatus.SIGNED:
            row.signed_at = now
            row.signed_by = self.ctx.actor_id
        elif new_status == HandoverStatus.COMPLETED:
            contract = self._find_related(Contract, row.contract_id)
            try:
                validate_transition(
                    CONTRACT_TRANSITIONS, ContractStatus(contract.status), ContractStatus.COMPLETED
                )
            except StateTransitionError as e:
                self._conflict("status.update", f"Contract cannot be completed: {e}")
            contract.status = ContractStatus.COMPLETED.value
            row.completed_at = now
            extra["contract_status_to"] = ContractStatus.COMPLETED.value
        return extra

    def delete(self, resource_id: UUID) -> UUID:
        """Delete a DRAFT or CANCELLED handover.

        Raises:
            NotFoundError: Handover not found in the caller's organization
            ConflictError: Handover is signed or completed
        """
        handover = self._find(resource_id)
        if handover is None:
            self._not_found("delete", {"handover_id": resource_id})
        if HandoverStatus(handover.status) not in DELETABLE_STATUSES:
            self._conflict("delete", "Only draft or cancelled handovers can be deleted")

        metadata = {
            "handover_id": handover.id,
            "contract_id": handover.contract_id,
            "status": handover.status,
            "mode": "hard",
        }
        self.db.delete(handover)
        return self._succeed("delete", metadata, metadata["handover_id"])
