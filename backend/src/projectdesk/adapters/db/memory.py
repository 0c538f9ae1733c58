"""In-memory repositories for tests and local development.

These behave like the PostgreSQL repositories: every read returns a private
copy, ``save`` enforces the version check, and uniqueness rules raise the
same errors. Nothing is persisted across processes.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from projectdesk.core.errors import ConflictError, NotFoundError, StaleAggregateError
from projectdesk.core.identity.types import GlobalRole, User
from projectdesk.core.invites.types import Invite, InviteStatus
from projectdesk.core.projects.types import Project
from projectdesk.core.tasks.types import Task


class InMemoryStore:
    """Shared state behind the in-memory repositories."""

    def __init__(self) -> None:
        """Initialize empty tables."""
        self.users: dict[UUID, User] = {}
        self.projects: dict[UUID, Project] = {}
        self.invites: dict[UUID, Invite] = {}
        self.tasks: dict[UUID, Task] = {}


class InMemoryUserRepository:
    """Identity store kept in a dict."""

    def __init__(self, store: InMemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        user = self._store.users.get(user_id)
        return copy.deepcopy(user) if user else None

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        wanted = email.strip().lower()
        for user in self._store.users.values():
            if user.email == wanted:
                return copy.deepcopy(user)
        return None

    async def get_by_username(self, username: str) -> User | None:
        """Get user by username."""
        wanted = username.strip()
        for user in self._store.users.values():
            if user.username == wanted:
                return copy.deepcopy(user)
        return None

    async def get_many(self, user_ids: list[UUID]) -> dict[UUID, User]:
        """Get several users keyed by ID."""
        return {
            user_id: copy.deepcopy(self._store.users[user_id])
            for user_id in set(user_ids)
            if user_id in self._store.users
        }

    async def create(
        self,
        email: str,
        username: str,
        full_name: str,
        password_hash: str | None = None,
        role: GlobalRole | None = None,
    ) -> User:
        """Create a new user."""
        email = email.strip().lower()
        username = username.strip()
        for existing in self._store.users.values():
            if existing.email == email or existing.username == username:
                raise ConflictError("A user with this email or username already exists")

        user = User(
            id=uuid4(),
            email=email,
            username=username,
            full_name=full_name,
            password_hash=password_hash,
            is_email_verified=False,
            role=role or GlobalRole.USER,
            created_at=datetime.now(UTC),
        )
        self._store.users[user.id] = user
        return copy.deepcopy(user)

    async def search(self, query: str, exclude: list[UUID], limit: int) -> list[User]:
        """Case-insensitive substring search over full name, username and email."""
        needle = query.lower()
        matches = [
            user
            for user in self._store.users.values()
            if user.id not in exclude
            and (
                needle in user.full_name.lower()
                or needle in user.username.lower()
                or needle in user.email.lower()
            )
        ]
        matches.sort(key=lambda u: u.full_name)
        return [copy.deepcopy(user) for user in matches[:limit]]

    async def list_all(self) -> list[User]:
        """List every user, oldest first."""
        users = sorted(self._store.users.values(), key=lambda u: u.created_at)
        return [copy.deepcopy(user) for user in users]

    async def update(self, user: User) -> User:
        """Persist a changed user record."""
        if user.id not in self._store.users:
            raise NotFoundError("User not found")
        for existing in self._store.users.values():
            if existing.id != user.id and (existing.email == user.email or existing.username == user.username):
                raise ConflictError("A user with this email or username already exists")
        self._store.users[user.id] = copy.deepcopy(user)
        return copy.deepcopy(user)

    async def delete(self, user_id: UUID) -> bool:
        """Delete a user that nothing references."""
        if user_id not in self._store.users:
            return False
        if self._is_referenced(user_id):
            raise ConflictError("User is still referenced by projects, invites or tasks")
        del self._store.users[user_id]
        return True

    def _is_referenced(self, user_id: UUID) -> bool:
        store = self._store
        if any(p.created_by == user_id or user_id in p.member_ids for p in store.projects.values()):
            return True
        if any(user_id in (i.sender_id, i.recipient_id) for i in store.invites.values()):
            return True
        return any(
            user_id in (t.created_by, t.approved_by)
            or t.is_assigned(user_id)
            or any(s.user_id == user_id for s in t.submissions)
            or any(c.user_id == user_id for c in t.comments)
            for t in store.tasks.values()
        )


class InMemoryProjectRepository:
    """Project aggregates kept in a dict with version checks."""

    def __init__(self, store: InMemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    async def add(self, project: Project) -> Project:
        """Insert a new project."""
        if project.id in self._store.projects:
            raise ConflictError(f"Project {project.id} already exists")
        stored = replace(copy.deepcopy(project), version=1)
        self._store.projects[project.id] = stored
        return copy.deepcopy(stored)

    async def get(self, project_id: UUID) -> Project | None:
        """Load a project."""
        project = self._store.projects.get(project_id)
        return copy.deepcopy(project) if project else None

    async def list_for_member(self, user_id: UUID) -> list[Project]:
        """List projects the user created or belongs to, newest first."""
        projects = [
            p
            for p in self._store.projects.values()
            if p.created_by == user_id or user_id in p.member_ids
        ]
        projects.sort(key=lambda p: p.created_at, reverse=True)
        return [copy.deepcopy(p) for p in projects]

    async def save(self, project: Project) -> Project:
        """Persist a loaded project if nobody else wrote it in between."""
        current = self._store.projects.get(project.id)
        if current is None or current.version != project.version:
            raise StaleAggregateError("Project", project.id)
        stored = replace(copy.deepcopy(project), version=project.version + 1)
        self._store.projects[project.id] = stored
        return copy.deepcopy(stored)

    async def delete(self, project_id: UUID) -> bool:
        """Delete a project."""
        return self._store.projects.pop(project_id, None) is not None


class InMemoryInviteRepository:
    """Invites kept in a dict."""

    def __init__(self, store: InMemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    async def add(self, invite: Invite) -> Invite:
        """Insert a new invite."""
        if invite.status == InviteStatus.PENDING and await self.find_pending(
            invite.project_id, invite.recipient_id
        ):
            raise ConflictError("User already has a pending invite to this project")
        self._store.invites[invite.id] = copy.deepcopy(invite)
        return copy.deepcopy(invite)

    async def get(self, invite_id: UUID) -> Invite | None:
        """Load an invite."""
        invite = self._store.invites.get(invite_id)
        return copy.deepcopy(invite) if invite else None

    async def find_pending(self, project_id: UUID, recipient_id: UUID) -> Invite | None:
        """Find the Pending invite for a project and recipient."""
        for invite in self._store.invites.values():
            if (
                invite.project_id == project_id
                and invite.recipient_id == recipient_id
                and invite.status == InviteStatus.PENDING
            ):
                return copy.deepcopy(invite)
        return None

    async def list_for_recipient(self, recipient_id: UUID) -> list[Invite]:
        """List invites addressed to a user, newest first."""
        invites = [i for i in self._store.invites.values() if i.recipient_id == recipient_id]
        invites.sort(key=lambda i: i.created_at, reverse=True)
        return [copy.deepcopy(i) for i in invites]

    async def save(self, invite: Invite) -> Invite:
        """Record the response to a Pending invite."""
        current = self._store.invites.get(invite.id)
        if current is None or current.status != InviteStatus.PENDING:
            raise StaleAggregateError("Invite", invite.id)
        self._store.invites[invite.id] = copy.deepcopy(invite)
        return copy.deepcopy(invite)

    async def reopen(self, invite: Invite) -> Invite:
        """Put an Accepted invite back to Pending."""
        current = self._store.invites.get(invite.id)
        if current is None or current.status != InviteStatus.ACCEPTED:
            raise StaleAggregateError("Invite", invite.id)
        if await self.find_pending(current.project_id, current.recipient_id):
            raise ConflictError("User already has a pending invite to this project")
        reopened = replace(current, status=InviteStatus.PENDING, responded_at=None)
        self._store.invites[invite.id] = reopened
        return copy.deepcopy(reopened)

    async def delete_for_project(self, project_id: UUID) -> int:
        """Delete every invite of a project."""
        doomed = [i.id for i in self._store.invites.values() if i.project_id == project_id]
        for invite_id in doomed:
            del self._store.invites[invite_id]
        return len(doomed)


class InMemoryTaskRepository:
    """Task aggregates kept in a dict with version checks."""

    def __init__(self, store: InMemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    async def add(self, task: Task) -> Task:
        """Insert a new task."""
        stored = replace(copy.deepcopy(task), version=1)
        self._store.tasks[task.id] = stored
        return copy.deepcopy(stored)

    async def get(self, task_id: UUID) -> Task | None:
        """Load a task."""
        task = self._store.tasks.get(task_id)
        return copy.deepcopy(task) if task else None

    async def list_for_project(self, project_id: UUID) -> list[Task]:
        """List a project's tasks, newest first."""
        tasks = [t for t in self._store.tasks.values() if t.project_id == project_id]
        tasks.sort(key=lambda t: t.created_at, reverse=True)
        return [copy.deepcopy(t) for t in tasks]

    async def save(self, task: Task) -> Task:
        """Persist a loaded task if nobody else wrote it in between."""
        current = self._store.tasks.get(task.id)
        if current is None or current.version != task.version:
            raise StaleAggregateError("Task", task.id)
        stored = replace(copy.deepcopy(task), version=task.version + 1)
        self._store.tasks[task.id] = stored
        return copy.deepcopy(stored)

    async def delete(self, task_id: UUID) -> bool:
        """Delete a task."""
        return self._store.tasks.pop(task_id, None) is not None

    async def delete_for_project(self, project_id: UUID) -> int:
        """Delete every task of a project."""
        doomed = [t.id for t in self._store.tasks.values() if t.project_id == project_id]
        for task_id in doomed:
            del self._store.tasks[task_id]
        return len(doomed)
