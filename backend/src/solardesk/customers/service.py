"""Customer service: tenant-scoped customer CRUD with audit trail."""

from datetime import datetime, timezone
from uuid import UUID

from ..common.service import TenantResourceService
from ..models.customer import Customer
from ..models.project import Project
from ..models.quote import Quote
from .schemas import CustomerCreate

DUPLICATE_EMAIL = "Customer with this email already exists"


class CustomerService(TenantResourceService):
    """Customers of the caller's organization.

    Soft-deleted customers are excluded from every query, so they behave
    exactly like customers that never existed.
    """
    resource = "customer"
    label = "Customer"
    model = Customer
    search_columns = (Customer.name, Customer.email, Customer.phone)

    def _base_query(self):
        return super()._base_query().where(Customer.deleted_at.is_(None))

    def create(self, data: CustomerCreate) -> Customer:
        customer = Customer(**data.model_dump())
        self.db.add(customer)
        self._flush("create", DUPLICATE_EMAIL)
        return self._succeed("create", {"customer_id": customer.id}, customer)

    def update(self, resource_id: UUID, changes: dict, conflict_message: str = DUPLICATE_EMAIL) -> Customer:
        return super().update(resource_id, changes, conflict_message)

    def delete(self, resource_id: UUID) -> UUID:
        """Delete a customer.

        Customers referenced by projects or quotes are soft-deleted so their
        history stays intact; all others are removed.
        """
        customer = self._find(resource_id)
        if customer is None:
            self._not_found("delete", {"customer_id": resource_id})

        project_count = self._count_related(Project, Project.customer_id == customer.id)
        quote_count = self._count_related(Quote, Quote.customer_id == customer.id)

        if project_count or quote_count:
            mode = "soft"
            customer.deleted_at = datetime.now(timezone.utc)
        else:
            mode = "hard"
            self.db.delete(customer)

        customer_id = customer.id
        return self._succeed(
            "delete",
            {
                "customer_id": customer_id,
                "mode": mode,
                "project_count": project_count,
                "quote_count": quote_count,
            },
            customer_id,
        )
