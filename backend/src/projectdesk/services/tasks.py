"""Task operations within a project."""

from collections.abc import Sequence
from uuid import UUID

import structlog

from projectdesk.core.errors import NotFoundError
from projectdesk.core.interfaces import AttachmentStore, ProjectRepository, TaskRepository
from projectdesk.core.projects import Project
from projectdesk.core.tasks import Comment, Task, TaskChanges, TaskDraft, TaskLifecycle

logger = structlog.get_logger()


class TaskService:
    """Loads the owning project and the task, runs one lifecycle step, saves."""

    def __init__(
        self,
        projects: ProjectRepository,
        tasks: TaskRepository,
        attachments: AttachmentStore,
        lifecycle: TaskLifecycle | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            projects: Project persistence, for role resolution.
            tasks: Task persistence.
            attachments: Store for submission and reference files.
            lifecycle: Transition engine; a default one is created if omitted.
        """
        self._projects = projects
        self._tasks = tasks
        self._attachments = attachments
        self._lifecycle = lifecycle or TaskLifecycle()

    async def create_task(
        self,
        actor_id: UUID,
        project_id: UUID,
        draft: TaskDraft,
        files: Sequence[tuple[str, bytes]] = (),
    ) -> Task:
        """Create a task in a project, optionally with reference files."""
        project = await self._load_project(project_id)
        task = self._lifecycle.create(project, actor_id, draft)
        await self._attach(task, files)
        return await self._tasks.add(task)

    async def list_tasks_for_project(self, actor_id: UUID, project_id: UUID) -> list[Task]:
        """List a project's tasks; any member may read them."""
        project = await self._load_project(project_id)
        self._lifecycle.authorize_view(project, actor_id)
        return await self._tasks.list_for_project(project_id)

    async def get_task(self, actor_id: UUID, task_id: UUID) -> Task:
        """Get one task."""
        project, task = await self._load(task_id)
        self._lifecycle.authorize_view(project, actor_id)
        return task

    async def update_task(
        self,
        actor_id: UUID,
        task_id: UUID,
        changes: TaskChanges,
        files: Sequence[tuple[str, bytes]] = (),
    ) -> Task:
        """Edit fields, reassign, move between To Do and In Progress, or add reference files.

        Files are only written once the edit has been authorized.
        """
        project, task = await self._load(task_id)
        self._lifecycle.update(project, task, actor_id, changes)
        await self._attach(task, files)
        return await self._tasks.save(task)

    async def delete_task(self, actor_id: UUID, task_id: UUID) -> None:
        """Delete a task (Owner only)."""
        project, task = await self._load(task_id)
        self._lifecycle.authorize_delete(project, task, actor_id)
        await self._tasks.delete(task_id)
        logger.info("task_deleted", task_id=str(task_id), project_id=str(project.id))

    async def submit_task(
        self,
        actor_id: UUID,
        task_id: UUID,
        notes: str,
        files: Sequence[tuple[str, bytes]],
    ) -> Task:
        """Store the uploaded files and submit the task for approval.

        The submission is validated before any file is written.
        """
        project, task = await self._load(task_id)
        self._lifecycle.check_submit(project, task, actor_id, len(files))

        stored = [await self._attachments.store(filename, content) for filename, content in files]
        self._lifecycle.submit(project, task, actor_id, notes, stored)
        return await self._tasks.save(task)

    async def approve_task(self, actor_id: UUID, task_id: UUID) -> Task:
        """Approve a submitted task."""
        project, task = await self._load(task_id)
        self._lifecycle.approve(project, task, actor_id)
        return await self._tasks.save(task)

    async def reject_task(self, actor_id: UUID, task_id: UUID) -> Task:
        """Reject a submitted task."""
        project, task = await self._load(task_id)
        self._lifecycle.reject(project, task, actor_id)
        return await self._tasks.save(task)

    async def add_task_comment(self, actor_id: UUID, task_id: UUID, message: str) -> Comment:
        """Comment on a task in any state."""
        project, task = await self._load(task_id)
        comment = self._lifecycle.add_comment(project, task, actor_id, message)
        await self._tasks.save(task)
        return comment

    async def _attach(self, task: Task, files: Sequence[tuple[str, bytes]]) -> None:
        if not files:
            return
        stored = [await self._attachments.store(filename, content) for filename, content in files]
        task.attachments = [*task.attachments, *stored]
        logger.info("task_files_attached", task_id=str(task.id), count=len(stored))

    async def _load(self, task_id: UUID) -> tuple[Project, Task]:
        task = await self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        project = await self._load_project(task.project_id)
        return project, task

    async def _load_project(self, project_id: UUID) -> Project:
        project = await self._projects.get(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project
