"""Task aggregate types."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from projectdesk.core.rbac.types import ProjectRole


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    SUBJECT_FOR_APPROVAL = "Subject for Approval"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        """Whether the task is frozen except for comments."""
        return self in (TaskStatus.APPROVED, TaskStatus.REJECTED)


# States an assignee or manager may move a task between directly.
WORKING_STATUSES = frozenset({TaskStatus.TODO, TaskStatus.IN_PROGRESS})


class TaskPriority(str, Enum):
    """Task priority levels."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


@dataclass(frozen=True)
class Attachment:
    """A stored file reference."""

    filename: str
    url: str
    uploaded_at: datetime


@dataclass
class Assignment:
    """An assignee and the project role they held when assigned."""

    user_id: UUID
    role: ProjectRole


@dataclass(frozen=True)
class Submission:
    """Work handed in by an assignee for review."""

    user_id: UUID
    notes: str
    attachments: tuple[Attachment, ...]
    created_at: datetime


@dataclass(frozen=True)
class Comment:
    """A discussion message on a task."""

    user_id: UUID
    message: str
    created_at: datetime


@dataclass
class Task:
    """Task aggregate root, scoped to one project by reference.

    ``submissions`` and ``comments`` are append-only. ``approved_by`` is set
    exactly when the status is Approved.
    """

    id: UUID
    project_id: UUID
    title: str
    description: str
    priority: TaskPriority
    status: TaskStatus
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    assigned_to: list[Assignment] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    submissions: list[Submission] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    approved_by: UUID | None = None
    start_date: date | None = None
    due_date: date | None = None
    completed_at: datetime | None = None
    version: int = 1

    def is_assigned(self, user_id: UUID | None) -> bool:
        """Whether the user is one of the assignees."""
        return any(a.user_id == user_id for a in self.assigned_to)


@dataclass
class TaskDraft:
    """Input for creating a task."""

    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    assignees: list[UUID] = field(default_factory=list)
    start_date: date | None = None
    due_date: date | None = None


@dataclass
class TaskChanges:
    """Editable task fields; None means leave unchanged."""

    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    start_date: date | None = None
    due_date: date | None = None
    assignees: list[UUID] | None = None
    status: TaskStatus | None = None

    def touches_fields(self) -> bool:
        """Whether any non-status field is being changed."""
        return any(
            value is not None
            for value in (
                self.title,
                self.description,
                self.priority,
                self.start_date,
                self.due_date,
                self.assignees,
            )
        )
