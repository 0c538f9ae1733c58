"""Task routes: CRUD, submission, review and comments."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, File, Form, Response, UploadFile, status
from pydantic import BaseModel, Field

from projectdesk.core.errors import InvalidArgumentError
from projectdesk.core.normalize import normalize_assignees
from projectdesk.core.rbac import ProjectRole
from projectdesk.core.tasks import Attachment, Comment, Task, TaskChanges, TaskDraft, TaskPriority, TaskStatus
from projectdesk.entrypoints.api.deps import CallerDep, TaskServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


class TaskCreate(BaseModel):
    """Task creation request.

    ``assigned_to`` entries may be a user id or an object with ``user``,
    ``user_id`` or ``userId``.
    """

    title: str = ""
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: list[Any] = Field(default_factory=list)
    start_date: date | None = None
    due_date: date | None = None


class TaskUpdate(BaseModel):
    """Task update request; omitted fields are left unchanged."""

    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    assigned_to: list[Any] | None = None
    start_date: date | None = None
    due_date: date | None = None
    status: TaskStatus | None = None


class CommentCreate(BaseModel):
    """Comment request."""

    message: str


class AttachmentResponse(BaseModel):
    """Stored file reference."""

    filename: str
    url: str
    uploaded_at: datetime

    @classmethod
    def from_attachment(cls, attachment: Attachment) -> AttachmentResponse:
        """Build from a domain attachment."""
        return cls(filename=attachment.filename, url=attachment.url, uploaded_at=attachment.uploaded_at)


class AssignmentResponse(BaseModel):
    """Assignee and the project role they were assigned with."""

    user_id: UUID
    role: ProjectRole


class SubmissionResponse(BaseModel):
    """A submission."""

    user_id: UUID
    notes: str
    attachments: list[AttachmentResponse]
    created_at: datetime


class CommentResponse(BaseModel):
    """A comment."""

    user_id: UUID
    message: str
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> CommentResponse:
        """Build from a domain comment."""
        return cls(user_id=comment.user_id, message=comment.message, created_at=comment.created_at)


class TaskResponse(BaseModel):
    """Task response."""

    id: UUID
    project_id: UUID
    title: str
    description: str
    priority: TaskPriority
    status: TaskStatus
    created_by: UUID
    assigned_to: list[AssignmentResponse]
    attachments: list[AttachmentResponse]
    submissions: list[SubmissionResponse]
    comments: list[CommentResponse]
    approved_by: UUID | None
    start_date: date | None
    due_date: date | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime
    version: int

    @classmethod
    def from_task(cls, task: Task) -> TaskResponse:
        """Build from a domain task."""
        return cls(
            id=task.id,
            project_id=task.project_id,
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            created_by=task.created_by,
            assigned_to=[AssignmentResponse(user_id=a.user_id, role=a.role) for a in task.assigned_to],
            attachments=[AttachmentResponse.from_attachment(a) for a in task.attachments],
            submissions=[
                SubmissionResponse(
                    user_id=s.user_id,
                    notes=s.notes,
                    attachments=[AttachmentResponse.from_attachment(a) for a in s.attachments],
                    created_at=s.created_at,
                )
                for s in task.submissions
            ],
            comments=[CommentResponse.from_comment(c) for c in task.comments],
            approved_by=task.approved_by,
            start_date=task.start_date,
            due_date=task.due_date,
            completed_at=task.completed_at,
            created_at=task.created_at,
            updated_at=task.updated_at,
            version=task.version,
        )


class TaskListResponse(BaseModel):
    """Response for listing tasks."""

    tasks: list[TaskResponse]
    total: int


@router.post(
    "/projects/{project_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    project_id: UUID,
    body: TaskCreate,
    caller: CallerDep,
    service: TaskServiceDep,
) -> TaskResponse:
    """Create a task in a project."""
    draft = TaskDraft(
        title=body.title,
        description=body.description,
        priority=body.priority,
        assignees=normalize_assignees(body.assigned_to),
        start_date=body.start_date,
        due_date=body.due_date,
    )
    task = await service.create_task(caller.user_id, project_id, draft)
    logger.info(f"task_created: task_id={task.id}, project_id={project_id}")
    return TaskResponse.from_task(task)


@router.get("/projects/{project_id}/tasks", response_model=TaskListResponse)
async def list_tasks(project_id: UUID, caller: CallerDep, service: TaskServiceDep) -> TaskListResponse:
    """List a project's tasks."""
    tasks = await service.list_tasks_for_project(caller.user_id, project_id)
    return TaskListResponse(tasks=[TaskResponse.from_task(t) for t in tasks], total=len(tasks))


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(task_id: UUID, caller: CallerDep, service: TaskServiceDep) -> TaskResponse:
    """Get one task."""
    return TaskResponse.from_task(await service.get_task(caller.user_id, task_id))


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    caller: CallerDep,
    service: TaskServiceDep,
) -> TaskResponse:
    """Edit a task or move it between To Do and In Progress."""
    changes = TaskChanges(
        title=body.title,
        description=body.description,
        priority=body.priority,
        start_date=body.start_date,
        due_date=body.due_date,
        assignees=normalize_assignees(body.assigned_to) if body.assigned_to is not None else None,
        status=body.status,
    )
    task = await service.update_task(caller.user_id, task_id, changes)
    return TaskResponse.from_task(task)


@router.post("/tasks/{task_id}/attachments", response_model=TaskResponse)
async def add_reference_files(
    task_id: UUID,
    caller: CallerDep,
    service: TaskServiceDep,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> TaskResponse:
    """Attach reference files to a task that is still being worked on."""
    payload = [(upload.filename or "file", await upload.read()) for upload in files or []]
    if not payload:
        raise InvalidArgumentError("At least one file is required")
    task = await service.update_task(caller.user_id, task_id, TaskChanges(), payload)
    logger.info(f"task_files_added: task_id={task_id}, files={len(payload)}")
    return TaskResponse.from_task(task)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: UUID, caller: CallerDep, service: TaskServiceDep) -> Response:
    """Delete a task (project Owner only)."""
    await service.delete_task(caller.user_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/tasks/{task_id}/submit", response_model=TaskResponse)
async def submit_task(
    task_id: UUID,
    caller: CallerDep,
    service: TaskServiceDep,
    notes: Annotated[str, Form()] = "",
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> TaskResponse:
    """Submit work with at least one attached file."""
    payload = [(upload.filename or "file", await upload.read()) for upload in files or []]
    task = await service.submit_task(caller.user_id, task_id, notes, payload)
    logger.info(f"task_submitted: task_id={task_id}, files={len(payload)}")
    return TaskResponse.from_task(task)


@router.post("/tasks/{task_id}/approve", response_model=TaskResponse)
async def approve_task(task_id: UUID, caller: CallerDep, service: TaskServiceDep) -> TaskResponse:
    """Approve a submitted task (Owner/Admin)."""
    return TaskResponse.from_task(await service.approve_task(caller.user_id, task_id))


@router.post("/tasks/{task_id}/reject", response_model=TaskResponse)
async def reject_task(task_id: UUID, caller: CallerDep, service: TaskServiceDep) -> TaskResponse:
    """Reject a submitted task (Owner/Admin)."""
    return TaskResponse.from_task(await service.reject_task(caller.user_id, task_id))


@router.post(
    "/tasks/{task_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    task_id: UUID,
    body: CommentCreate,
    caller: CallerDep,
    service: TaskServiceDep,
) -> CommentResponse:
    """Comment on a task."""
    comment = await service.add_task_comment(caller.user_id, task_id, body.message)
    return CommentResponse.from_comment(comment)
