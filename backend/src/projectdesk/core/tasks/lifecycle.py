"""Task lifecycle engine.

Transitions::

    create                         -> To Do
    To Do <-> In Progress          (assignee or Owner/Admin)
    non-terminal --submit-->       Subject for Approval   (assignee, >= 1 attachment)
    Subject for Approval --approve--> Approved            (Owner/Admin)
    Subject for Approval --reject-->  Rejected            (Owner/Admin)

Approved and Rejected tasks accept comments only. Every method checks
authorization and state before mutating, so a rejected call leaves the task
untouched.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from uuid import UUID, uuid4

import structlog

from projectdesk.core.errors import ForbiddenError, InvalidArgumentError, InvalidStateError
from projectdesk.core.projects.types import Project
from projectdesk.core.rbac import (
    CONTRIBUTOR_ROLES,
    MANAGER_ROLES,
    ProjectRole,
    require_member,
    require_role,
    resolve_role,
)
from projectdesk.core.tasks.types import (
    WORKING_STATUSES,
    Assignment,
    Attachment,
    Comment,
    Submission,
    Task,
    TaskChanges,
    TaskDraft,
    TaskStatus,
)

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TaskLifecycle:
    """Authorizes and applies task state transitions."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        """Initialize the engine.

        Args:
            clock: Source of timestamps for submissions, comments and edits.
        """
        self._clock = clock

    def create(self, project: Project, actor_id: UUID | None, draft: TaskDraft) -> Task:
        """Create a task in the To Do state.

        Members may create tasks but may only assign them to themselves.

        Raises:
            ForbiddenError: If the actor is a Viewer or non-member, or a Member assigns others.
            InvalidArgumentError: If the title is blank or an assignee cannot work on tasks.
        """
        role = require_role(project, actor_id, CONTRIBUTOR_ROLES, "create tasks")
        title = _require_title(draft.title)
        if role not in MANAGER_ROLES and any(user_id != actor_id for user_id in draft.assignees):
            raise ForbiddenError("Only Owner/Admin can assign tasks to other members")
        assignments = self._assignments(project, draft.assignees)

        now = self._clock()
        assert actor_id is not None
        task = Task(
            id=uuid4(),
            project_id=project.id,
            title=title,
            description=draft.description or "",
            priority=draft.priority,
            status=TaskStatus.TODO,
            created_by=actor_id,
            created_at=now,
            updated_at=now,
            assigned_to=assignments,
            start_date=draft.start_date,
            due_date=draft.due_date,
        )
        logger.info(
            "task_created",
            task_id=str(task.id),
            project_id=str(project.id),
            assignees=[str(a.user_id) for a in assignments],
        )
        return task

    def authorize_view(self, project: Project, actor_id: UUID | None) -> ProjectRole:
        """Any project member may read tasks."""
        return require_member(project, actor_id)

    def update(self, project: Project, task: Task, actor_id: UUID | None, changes: TaskChanges) -> Task:
        """Edit task fields and/or move it between To Do and In Progress.

        Raises:
            ForbiddenError: If the actor is neither an assignee nor Owner/Admin,
                or a non-manager tries to reassign.
            InvalidStateError: If the task is Approved/Rejected, or a status change
                is requested outside To Do/In Progress.
            InvalidArgumentError: For a blank title, a status other than To Do/In
                Progress, or an invalid assignee.
        """
        role = require_member(project, actor_id)
        is_manager = role in MANAGER_ROLES
        if not is_manager and not task.is_assigned(actor_id):
            raise ForbiddenError("Only assignees or Owner/Admin can update this task")
        if task.status.is_terminal:
            raise InvalidStateError(f"Task is {task.status.value.lower()} and can no longer be edited")
        if changes.assignees is not None and not is_manager:
            raise ForbiddenError("Only Owner/Admin can reassign tasks")
        if changes.status is not None:
            self._check_status_change(task, changes.status)

        title = _require_title(changes.title) if changes.title is not None else None
        assignments = (
            self._assignments(project, changes.assignees) if changes.assignees is not None else None
        )

        if title is not None:
            task.title = title
        if changes.description is not None:
            task.description = changes.description
        if changes.priority is not None:
            task.priority = changes.priority
        if changes.start_date is not None:
            task.start_date = changes.start_date
        if changes.due_date is not None:
            task.due_date = changes.due_date
        if assignments is not None:
            task.assigned_to = assignments
        if changes.status is not None and changes.status != task.status:
            logger.info(
                "task_status_changed",
                task_id=str(task.id),
                from_status=task.status.value,
                to_status=changes.status.value,
            )
            task.status = changes.status
        task.updated_at = self._clock()
        return task

    def set_status(self, project: Project, task: Task, actor_id: UUID | None, status: TaskStatus) -> Task:
        """Move a task between To Do and In Progress."""
        return self.update(project, task, actor_id, TaskChanges(status=status))

    def submit(
        self,
        project: Project,
        task: Task,
        actor_id: UUID | None,
        notes: str,
        attachments: Sequence[Attachment],
    ) -> Task:
        """Hand in work for review.

        Raises:
            ForbiddenError: If the actor is not assigned to the task.
            InvalidStateError: If the task is Approved/Rejected.
            InvalidArgumentError: If no attachment is supplied.
        """
        self.check_submit(project, task, actor_id, len(attachments))

        now = self._clock()
        assert actor_id is not None
        task.submissions.append(
            Submission(user_id=actor_id, notes=notes or "", attachments=tuple(attachments), created_at=now)
        )
        task.status = TaskStatus.SUBJECT_FOR_APPROVAL
        task.completed_at = now
        task.updated_at = now
        logger.info(
            "task_submitted",
            task_id=str(task.id),
            user_id=str(actor_id),
            attachment_count=len(attachments),
        )
        return task

    def check_submit(self, project: Project, task: Task, actor_id: UUID | None, attachment_count: int) -> None:
        """Validate a submission before any file is stored."""
        require_member(project, actor_id)
        if not task.is_assigned(actor_id):
            raise ForbiddenError("Only assigned members can submit this task")
        if task.status.is_terminal:
            raise InvalidStateError(f"Task is {task.status.value.lower()} and cannot be resubmitted")
        if attachment_count < 1:
            raise InvalidArgumentError("At least one attachment is required to submit a task")

    def approve(self, project: Project, task: Task, actor_id: UUID | None) -> Task:
        """Approve a submitted task.

        Raises:
            ForbiddenError: If the actor is not Owner/Admin.
            InvalidStateError: If the task is not Subject for Approval.
        """
        require_role(project, actor_id, MANAGER_ROLES, "approve tasks")
        self._require_review(task, "approved")

        task.status = TaskStatus.APPROVED
        task.approved_by = actor_id
        task.updated_at = self._clock()
        logger.info("task_approved", task_id=str(task.id), approved_by=str(actor_id))
        return task

    def reject(self, project: Project, task: Task, actor_id: UUID | None) -> Task:
        """Reject a submitted task.

        Raises:
            ForbiddenError: If the actor is not Owner/Admin.
            InvalidStateError: If the task is not Subject for Approval.
        """
        require_role(project, actor_id, MANAGER_ROLES, "reject tasks")
        self._require_review(task, "rejected")

        task.status = TaskStatus.REJECTED
        task.approved_by = None
        task.updated_at = self._clock()
        logger.info("task_rejected", task_id=str(task.id), rejected_by=str(actor_id))
        return task

    def add_comment(self, project: Project, task: Task, actor_id: UUID | None, message: str) -> Comment:
        """Append a comment; allowed in every state for any member."""
        require_member(project, actor_id)
        text = (message or "").strip()
        if not text:
            raise InvalidArgumentError("Comment message is required")

        assert actor_id is not None
        comment = Comment(user_id=actor_id, message=text, created_at=self._clock())
        task.comments.append(comment)
        return comment

    def authorize_delete(self, project: Project, task: Task, actor_id: UUID | None) -> None:
        """Only the project Owner may delete tasks."""
        require_role(project, actor_id, {ProjectRole.OWNER}, "delete tasks")

    def _check_status_change(self, task: Task, status: TaskStatus) -> None:
        if status not in WORKING_STATUSES:
            raise InvalidArgumentError(
                "Status can only be set to To Do or In Progress; use submit/approve/reject"
            )
        if task.status not in WORKING_STATUSES:
            raise InvalidStateError(f"Cannot change status of a task that is {task.status.value}")

    def _require_review(self, task: Task, outcome: str) -> None:
        if task.status == TaskStatus.SUBJECT_FOR_APPROVAL:
            return
        if task.status == TaskStatus.APPROVED:
            raise InvalidStateError("Task is already approved")
        raise InvalidStateError(
            f"Only tasks that are Subject for Approval can be {outcome} (current: {task.status.value})"
        )

    def _assignments(self, project: Project, user_ids: Sequence[UUID]) -> list[Assignment]:
        assignments = []
        for user_id in user_ids:
            role = resolve_role(project, user_id)
            if role not in CONTRIBUTOR_ROLES:
                raise InvalidArgumentError(f"User {user_id} cannot be assigned: not a contributing member")
            assert role is not None
            assignments.append(Assignment(user_id=user_id, role=role))
        return assignments


def _require_title(title: str | None) -> str:
    text = (title or "").strip()
    if not text:
        raise InvalidArgumentError("Task title is required")
    return text
