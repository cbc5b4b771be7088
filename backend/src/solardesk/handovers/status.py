"""Handover status state machine.

State Flow:
    DRAFT → SIGNED → COMPLETED
    DRAFT | SIGNED → CANCELLED

Terminal States: COMPLETED, CANCELLED

Completing a handover also completes its contract.
"""

from enum import Enum


class HandoverType(str, Enum):
    INSTALLATION = "INSTALLATION"
    COMMISSIONING = "COMMISSIONING"
    FINAL = "FINAL"


class HandoverStatus(str, Enum):
    """Handover status enumeration."""
    DRAFT = "DRAFT"
    SIGNED = "SIGNED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ALLOWED_TRANSITIONS = {
    HandoverStatus.DRAFT: [HandoverStatus.SIGNED, HandoverStatus.CANCELLED],
    HandoverStatus.SIGNED: [HandoverStatus.COMPLETED, HandoverStatus.CANCELLED],
    HandoverStatus.COMPLETED: [],  # Terminal state
    HandoverStatus.CANCELLED: [],  # Terminal state
}

DELETABLE_STATUSES = {HandoverStatus.DRAFT, HandoverStatus.CANCELLED}
