"""Contract status state machine.

State Flow:
    DRAFT → SIGNED → INSTALLING → HANDOVER → COMPLETED
    any non-terminal state → CANCELLED

Terminal States: COMPLETED, CANCELLED

Contracts can only be edited or deleted while DRAFT (CANCELLED contracts can
also be deleted).
"""

from enum import Enum


class ContractStatus(str, Enum):
    """Contract status enumeration."""
    DRAFT = "DRAFT"
    SIGNED = "SIGNED"
    INSTALLING = "INSTALLING"
    HANDOVER = "HANDOVER"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ALLOWED_TRANSITIONS = {
    ContractStatus.DRAFT: [ContractStatus.SIGNED, ContractStatus.CANCELLED],
    ContractStatus.SIGNED: [ContractStatus.INSTALLING, ContractStatus.CANCELLED],
    ContractStatus.INSTALLING: [ContractStatus.HANDOVER, ContractStatus.CANCELLED],
    ContractStatus.HANDOVER: [ContractStatus.COMPLETED, ContractStatus.CANCELLED],
    ContractStatus.COMPLETED: [],  # Terminal state
    ContractStatus.CANCELLED: [],  # Terminal state
}

DELETABLE_STATUSES = {ContractStatus.DRAFT, ContractStatus.CANCELLED}
