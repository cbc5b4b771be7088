"""Project service: tenant-scoped projects with a status lifecycle."""

from typing import Any, Dict, Optional
from uuid import UUID

from ..common.service import TenantResourceService
from ..models.contract import Contract
from ..models.customer import Customer
from ..models.project import Project
from ..models.quote import Quote
from .schemas import ProjectCreate
from .status import ALLOWED_TRANSITIONS, ProjectStatus

class ProjectService(TenantResourceService):
    resource = "project"
    label = "Project"
    model = Project
    search_columns = (Project.name, Project.address)
    status_enum = ProjectStatus
    transitions = ALLOWED_TRANSITIONS

    def create(self, data: ProjectCreate) -> Project:
        """Create a project for a customer of the caller's organization.

        Raises:
            NotFoundError: Customer missing, deleted or owned by another org
        """
        customer = self._find_related(Customer, data.customer_id, Customer.deleted_at.is_(None))
        if customer is None:
            self._not_found("create", {"customer_id": data.customer_id}, label="Customer")

        project = Project(
            customer_id=customer.id,
            name=data.name,
            address=data.address,
            notes=data.notes,
            status=ProjectStatus.NEW.value,
        )
        self.db.add(project)
        self.db.flush()
        return self._succeed("create", {"project_id": project.id, "customer_id": customer.id}, project)

    def _on_status_change(self, row, current, new_status, reason: Optional[str]) -> Dict[str, Any]:
        if new_status == ProjectStatus.CANCELLED:
            row.cancel_reason = reason
        return {}

    def delete(self, resource_id: UUID) -> UUID:
        """Delete a project together with its quotes.

        Raises:
            NotFoundError: Project not found in the caller's organization
            ConflictError: The project already has contracts
        """
        project = self._find(resource_id)
        if project is None:
            self._not_found("delete", {"project_id": resource_id})

        if self._count_related(Contract, Contract.project_id == project.id):
            self._conflict("delete", "Project has contracts and cannot be deleted")

        quotes = self.db.execute(
            self._scoped(Quote).where(Quote.project_id == project.id)
        ).scalars().all()
        deleted_quote_count = self._delete_rows(quotes)
        self.db.flush()

        project_id, customer_id = project.id, project.customer_id
        self.db.delete(project)
        return self._succeed(
            "delete",
            {
                "project_id": project_id,
                "customer_id": customer_id,
                "mode": "hard",
                "deleted_quote_count": deleted_quote_count,
            },
            project_id,
        )
