"""SQLAlchemy Models for SolarDesk"""

from .base import Base, PortableJSONB, TenantScoped
from .org import Organization
from .audit_log import AuditLog
from .customer import Customer
from .project import Project
from .quote import Quote
from .contract import Contract
from .handover import Handover

__all__ = [
    "Base",
    "PortableJSONB",
    "TenantScoped",
    "Organization",
    "AuditLog",
    "Customer",
    "Project",
    "Quote",
    "Contract",
    "Handover",
]
