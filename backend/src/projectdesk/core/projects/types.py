"""Project aggregate types."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from projectdesk.core.rbac.types import ProjectRole


class ProjectStatus(str, Enum):
    """Project progress states."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class ProjectPriority(str, Enum):
    """Project priority levels."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass
class ProjectMember:
    """A user's membership entry in a project."""

    user_id: UUID
    role: ProjectRole
    added_at: datetime


@dataclass
class Project:
    """Project aggregate root.

    The members list is only ever changed through
    :class:`~projectdesk.core.projects.membership.MembershipManager`, which
    keeps exactly one Owner entry equal to ``created_by``.

    Attributes:
        version: Optimistic concurrency token, bumped on every save.
    """

    id: UUID
    name: str
    description: str
    created_by: UUID
    start_date: date
    due_date: date
    status: ProjectStatus
    priority: ProjectPriority
    members: list[ProjectMember]
    created_at: datetime
    updated_at: datetime
    version: int = 1

    def member(self, user_id: UUID) -> ProjectMember | None:
        """Return the members entry for a user, if any."""
        for entry in self.members:
            if entry.user_id == user_id:
                return entry
        return None

    @property
    def member_ids(self) -> list[UUID]:
        """User IDs of every member, Owner included."""
        return [entry.user_id for entry in self.members]


@dataclass
class ProjectChanges:
    """Editable project fields; None means leave unchanged."""

    name: str | None = None
    description: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    members: list["MemberSpec"] | None = None


@dataclass(frozen=True)
class MemberSpec:
    """Canonical ``{user, role}`` input entry for members and assignees."""

    user_id: UUID
    role: ProjectRole | None = None
