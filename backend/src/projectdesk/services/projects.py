"""Project and membership operations."""

from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import structlog

from projectdesk.core.errors import InvalidArgumentError, NotFoundError
from projectdesk.core.identity.types import UserSummary
from projectdesk.core.interfaces import (
    InviteRepository,
    ProjectRepository,
    TaskRepository,
    UserRepository,
)
from projectdesk.core.projects import (
    MemberSpec,
    MembershipManager,
    Project,
    ProjectChanges,
    ProjectPriority,
    ProjectStatus,
)
from projectdesk.core.rbac import MANAGER_ROLES, ProjectRole, require_member, require_role

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ProjectService:
    """Loads a project, applies one guarded mutation, and saves it.

    Saves are version-checked, so two concurrent edits of the same project
    cannot both succeed; the loser gets a ``StaleAggregateError``.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        invites: InviteRepository,
        tasks: TaskRepository,
        users: UserRepository,
        membership: MembershipManager | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize with repositories.

        Args:
            projects: Project persistence.
            invites: Invite persistence, used for the delete cascade.
            tasks: Task persistence, used for the delete cascade.
            users: Identity store, used to validate member references.
            membership: Membership manager; a default one is created if omitted.
            clock: Source of timestamps.
        """
        self._projects = projects
        self._invites = invites
        self._tasks = tasks
        self._users = users
        self._membership = membership or MembershipManager(clock)
        self._clock = clock

    async def create_project(
        self,
        actor_id: UUID,
        name: str,
        due_date: date | None,
        description: str = "",
        start_date: date | None = None,
        status: ProjectStatus | None = None,
        priority: ProjectPriority | None = None,
        members: Iterable[MemberSpec] = (),
    ) -> Project:
        """Create a project owned by the actor.

        Raises:
            InvalidArgumentError: If the name or due date is missing.
            NotFoundError: If an initial member does not exist.
        """
        name = (name or "").strip()
        if not name or due_date is None:
            raise InvalidArgumentError("Project name and due date are required")
        now = self._clock()

        specs = list(members)
        await self._require_users([s.user_id for s in specs])

        project = Project(
            id=uuid4(),
            name=name,
            description=description or "",
            created_by=actor_id,
            start_date=start_date or now.date(),
            due_date=due_date,
            status=status or ProjectStatus.NOT_STARTED,
            priority=priority or ProjectPriority.MEDIUM,
            members=self._membership.seed(actor_id, specs),
            created_at=now,
            updated_at=now,
        )
        saved = await self._projects.add(project)
        logger.info("project_created", project_id=str(saved.id), owner_id=str(actor_id))
        return saved

    async def get_project(self, actor_id: UUID, project_id: UUID) -> Project:
        """Get a project the actor belongs to."""
        project = await self._load(project_id)
        require_member(project, actor_id)
        return project

    async def list_projects_for_user(self, user_id: UUID) -> list[Project]:
        """List every project the user created or belongs to."""
        return await self._projects.list_for_member(user_id)

    async def update_project(self, actor_id: UUID, project_id: UUID, changes: ProjectChanges) -> Project:
        """Edit project fields (Owner/Admin); replacing members is Owner-only.

        Raises:
            ForbiddenError: If the actor lacks the role.
            InvalidArgumentError: For a blank name.
        """
        project = await self._load(project_id)
        require_role(project, actor_id, MANAGER_ROLES, "update this project")

        name = project.name
        if changes.name is not None:
            name = changes.name.strip()
            if not name:
                raise InvalidArgumentError("Project name cannot be empty")

        if changes.members is not None:
            await self._require_users([s.user_id for s in changes.members])
            self._membership.bulk_replace_members(project, actor_id, changes.members)

        project.name = name
        if changes.description is not None:
            project.description = changes.description
        if changes.start_date is not None:
            project.start_date = changes.start_date
        if changes.due_date is not None:
            project.due_date = changes.due_date
        if changes.status is not None:
            project.status = changes.status
        if changes.priority is not None:
            project.priority = changes.priority

        saved = await self._save(project)
        logger.info("project_updated", project_id=str(project_id), actor_id=str(actor_id))
        return saved

    async def delete_project(self, actor_id: UUID, project_id: UUID) -> None:
        """Delete a project with its invites and tasks (Owner only)."""
        project = await self._load(project_id)
        require_role(project, actor_id, {ProjectRole.OWNER}, "delete this project")

        tasks_removed = await self._tasks.delete_for_project(project_id)
        invites_removed = await self._invites.delete_for_project(project_id)
        await self._projects.delete(project_id)
        logger.info(
            "project_deleted",
            project_id=str(project_id),
            tasks_removed=tasks_removed,
            invites_removed=invites_removed,
        )

    async def add_member(
        self,
        actor_id: UUID,
        project_id: UUID,
        target_user_id: UUID,
        role: ProjectRole = ProjectRole.MEMBER,
    ) -> Project:
        """Add an existing user to the project directly."""
        project = await self._load(project_id)
        self._membership.add_member(project, actor_id, target_user_id, role)
        await self._require_users([target_user_id])
        return await self._save(project)

    async def remove_member(self, actor_id: UUID, project_id: UUID, target_user_id: UUID) -> Project:
        """Remove a member from the project."""
        project = await self._load(project_id)
        self._membership.remove_member(project, actor_id, target_user_id)
        return await self._save(project)

    async def change_member_role(
        self,
        actor_id: UUID,
        project_id: UUID,
        target_user_id: UUID,
        new_role: ProjectRole,
    ) -> Project:
        """Change a member's role."""
        project = await self._load(project_id)
        self._membership.change_member_role(project, actor_id, target_user_id, new_role)
        return await self._save(project)

    async def member_directory(self, projects: Iterable[Project]) -> dict[UUID, UserSummary]:
        """Resolve every creator and member of the given projects to a summary."""
        user_ids: set[UUID] = set()
        for project in projects:
            user_ids.add(project.created_by)
            user_ids.update(project.member_ids)
        users = await self._users.get_many(list(user_ids))
        return {user_id: UserSummary.from_user(user) for user_id, user in users.items()}

    async def _load(self, project_id: UUID) -> Project:
        project = await self._projects.get(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def _save(self, project: Project) -> Project:
        project.updated_at = self._clock()
        return await self._projects.save(project)

    async def _require_users(self, user_ids: list[UUID]) -> None:
        if not user_ids:
            return
        found = await self._users.get_many(user_ids)
        missing = [str(user_id) for user_id in user_ids if user_id not in found]
        if missing:
            raise NotFoundError(f"User not found: {', '.join(missing)}")

