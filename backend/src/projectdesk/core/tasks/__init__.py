"""Task lifecycle domain."""

from projectdesk.core.tasks.lifecycle import TaskLifecycle
from projectdesk.core.tasks.types import (
    WORKING_STATUSES,
    Assignment,
    Attachment,
    Comment,
    Submission,
    Task,
    TaskChanges,
    TaskDraft,
    TaskPriority,
    TaskStatus,
)

__all__ = [
    "WORKING_STATUSES",
    "Assignment",
    "Attachment",
    "Comment",
    "Submission",
    "Task",
    "TaskChanges",
    "TaskDraft",
    "TaskLifecycle",
    "TaskPriority",
    "TaskStatus",
]
