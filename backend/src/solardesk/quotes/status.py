"""Quote status state machine.

State Flow:
    draft → pending_approval → approved → sent → accepted | rejected
    pending_approval → draft (rejected by a manager)
    approved | sent → draft (withdrawn for revision)
    rejected → draft (reopened)

Terminal States: accepted

The approval moves (submit, approve, reject) have their own endpoints and
roles; ``PATCH /status`` only performs the others. Payload edits are only
allowed while a quote is a draft; approved, sent and accepted quotes are
frozen.
"""

from enum import Enum


class QuoteStatus(str, Enum):
    """Quote status enumeration."""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


ALLOWED_TRANSITIONS = {
    QuoteStatus.DRAFT: [QuoteStatus.PENDING_APPROVAL],
    QuoteStatus.PENDING_APPROVAL: [QuoteStatus.APPROVED, QuoteStatus.DRAFT],
    QuoteStatus.APPROVED: [QuoteStatus.SENT, QuoteStatus.DRAFT],
    QuoteStatus.SENT: [QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.DRAFT],
    QuoteStatus.REJECTED: [QuoteStatus.DRAFT],
    QuoteStatus.ACCEPTED: [],  # Terminal state
}

APPROVAL_TRANSITIONS = {
    (QuoteStatus.DRAFT, QuoteStatus.PENDING_APPROVAL),
    (QuoteStatus.PENDING_APPROVAL, QuoteStatus.APPROVED),
    (QuoteStatus.PENDING_APPROVAL, QuoteStatus.DRAFT),
}

# What PATCH /status may do
STATUS_UPDATE_TRANSITIONS = {
    current: [new for new in targets if (current, new) not in APPROVAL_TRANSITIONS]
    for current, targets in ALLOWED_TRANSITIONS.items()
}

FROZEN_STATUSES = (QuoteStatus.APPROVED, QuoteStatus.SENT, QuoteStatus.ACCEPTED)

REVISABLE_STATUSES = (QuoteStatus.DRAFT, QuoteStatus.REJECTED)
