"""Project aggregate and membership rules."""

from projectdesk.core.projects.membership import MembershipManager
from projectdesk.core.projects.types import (
    MemberSpec,
    Project,
    ProjectChanges,
    ProjectMember,
    ProjectPriority,
    ProjectStatus,
)

__all__ = [
    "MemberSpec",
    "MembershipManager",
    "Project",
    "ProjectChanges",
    "ProjectMember",
    "ProjectPriority",
    "ProjectStatus",
]
