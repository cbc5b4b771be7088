"""Project status state machine.

State Flow:
    NEW → QUOTED → CONTRACTED → INSTALLED → COMPLETED
    NEW | QUOTED | CONTRACTED → CANCELLED

Terminal States: COMPLETED, CANCELLED
"""

from enum import Enum

class ProjectStatus(str, Enum):
    """Project status enumeration."""
    NEW = "NEW"
    QUOTED = "QUOTED"
    CONTRACTED = "CONTRACTED"
    INSTALLED = "INSTALLED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ALLOWED_TRANSITIONS = {
    ProjectStatus.NEW: [ProjectStatus.QUOTED, ProjectStatus.CANCELLED],
    ProjectStatus.QUOTED: [ProjectStatus.CONTRACTED, ProjectStatus.CANCELLED],
    ProjectStatus.CONTRACTED: [ProjectStatus.INSTALLED, ProjectStatus.CANCELLED],
    ProjectStatus.INSTALLED: [ProjectStatus.COMPLETED],
    ProjectStatus.COMPLETED: [],  # Terminal state
    ProjectStatus.CANCELLED: [],  # Terminal state
}
