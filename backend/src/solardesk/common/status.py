"""Shared state machine helpers.

Each resource declares its status enum and an ``ALLOWED_TRANSITIONS`` map
(status -> allowed target statuses, empty list for terminal states) and
validates changes through these helpers.
"""

from enum import Enum
from typing import Dict, List


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def validate_transition(
    transitions: Dict[Enum, List[Enum]],
    current_status: Enum,
    new_status: Enum,
) -> None:
    """Validate that a state transition is allowed.

    Args:
        transitions: Allowed transitions of the resource
        current_status: Current status
        new_status: Target status to transition to

    Raises:
        StateTransitionError: If transition is not allowed
    """
    allowed = transitions.get(current_status, [])
    if new_status not in allowed:
        raise StateTransitionError(
            f"Invalid status transition: {current_status.value} -> {new_status.value}"
        )


def can_transition(transitions: Dict[Enum, List[Enum]], current_status: Enum, new_status: Enum) -> bool:
    return new_status in transitions.get(current_status, [])


def is_terminal(transitions: Dict[Enum, List[Enum]], status: Enum) -> bool:
    return not transitions.get(status)
