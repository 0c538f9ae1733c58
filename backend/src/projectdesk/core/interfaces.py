"""Protocol definitions for all external dependencies.

The core and the services only depend on these protocols. Adapters in
``projectdesk.adapters`` provide PostgreSQL, in-memory, SMTP and filesystem
implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable
from uuid import UUID

if TYPE_CHECKING:
    from projectdesk.core.identity.types import Caller, GlobalRole, User
    from projectdesk.core.invites.types import Invite
    from projectdesk.core.projects.types import Project
    from projectdesk.core.tasks.types import Attachment, Task


@runtime_checkable
class UserRepository(Protocol):
    """Identity store."""

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        ...

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address (case-insensitive)."""
        ...

    async def get_by_username(self, username: str) -> User | None:
        """Get user by username."""
        ...

    async def get_many(self, user_ids: list[UUID]) -> dict[UUID, User]:
        """Get several users keyed by ID; unknown IDs are omitted."""
        ...

    async def create(
        self,
        email: str,
        username: str,
        full_name: str,
        password_hash: str | None = None,
        role: GlobalRole | None = None,
    ) -> User:
        """Create a new user.

        Raises:
            ConflictError: If the email or username is taken.
        """
        ...

    async def search(self, query: str, exclude: list[UUID], limit: int) -> list[User]:
        """Case-insensitive substring search over full name, username and email."""
        ...

    async def list_all(self) -> list[User]:
        """List every user, oldest first."""
        ...

    async def update(self, user: User) -> User:
        """Persist a changed user record.

        Raises:
            NotFoundError: If the user no longer exists.
            ConflictError: If the new email or username is taken.
        """
        ...

    async def delete(self, user_id: UUID) -> bool:
        """Delete a user that nothing references.

        Raises:
            ConflictError: If projects, invites or tasks still reference the user.
        """
        ...


@runtime_checkable
class ProjectRepository(Protocol):
    """Persistence of Project aggregates."""

    async def add(self, project: Project) -> Project:
        """Insert a new project."""
        ...

    async def get(self, project_id: UUID) -> Project | None:
        """Load a project."""
        ...

    async def list_for_member(self, user_id: UUID) -> list[Project]:
        """List projects the user created or is a member of, newest first."""
        ...

    async def save(self, project: Project) -> Project:
        """Persist a loaded project, checking and bumping its version.

        Raises:
            StaleAggregateError: If the stored version differs from ``project.version``.
        """
        ...

    async def delete(self, project_id: UUID) -> bool:
        """Delete a project."""
        ...


@runtime_checkable
class InviteRepository(Protocol):
    """Persistence of invites."""

    async def add(self, invite: Invite) -> Invite:
        """Insert a new invite.

        Raises:
            ConflictError: If a Pending invite exists for the same project and recipient.
        """
        ...

    async def get(self, invite_id: UUID) -> Invite | None:
        """Load an invite."""
        ...

    async def find_pending(self, project_id: UUID, recipient_id: UUID) -> Invite | None:
        """Find the Pending invite for a project and recipient."""
        ...

    async def list_for_recipient(self, recipient_id: UUID) -> list[Invite]:
        """List invites addressed to a user, newest first."""
        ...

    async def save(self, invite: Invite) -> Invite:
        """Persist a status change; only Pending invites may be updated.

        Raises:
            StaleAggregateError: If the stored invite is no longer Pending.
        """
        ...

    async def reopen(self, invite: Invite) -> Invite:
        """Return an Accepted invite to Pending after its admission failed.

        Raises:
            StaleAggregateError: If the stored invite is not Accepted.
            ConflictError: If another Pending invite now exists for the same pair.
        """
        ...

    async def delete_for_project(self, project_id: UUID) -> int:
        """Delete every invite of a project and return how many were removed."""
        ...


@runtime_checkable
class TaskRepository(Protocol):
    """Persistence of Task aggregates."""

    async def add(self, task: Task) -> Task:
        """Insert a new task."""
        ...

    async def get(self, task_id: UUID) -> Task | None:
        """Load a task."""
        ...

    async def list_for_project(self, project_id: UUID) -> list[Task]:
        """List a project's tasks, newest first."""
        ...

    async def save(self, task: Task) -> Task:
        """Persist a loaded task, checking and bumping its version.

        Raises:
            StaleAggregateError: If the stored version differs from ``task.version``.
        """
        ...

    async def delete(self, task_id: UUID) -> bool:
        """Delete a task."""
        ...

    async def delete_for_project(self, project_id: UUID) -> int:
        """Delete every task of a project and return how many were removed."""
        ...


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Outbound message channel used for invite notifications."""

    def send(self, to_emails: list[str], subject: str, body_html: str, body_text: str | None = None) -> bool:
        """Send a message; returns False on delivery failure."""
        ...


@runtime_checkable
class AttachmentStore(Protocol):
    """Storage for submission and reference files."""

    async def store(self, filename: str, content: bytes) -> Attachment:
        """Store a file and return a stable retrievable reference."""
        ...


@runtime_checkable
class Authenticator(Protocol):
    """Turns an inbound credential into a caller identity."""

    def authenticate(self, token: str | None) -> Caller:
        """Return the caller for a token.

        Raises:
            UnauthenticatedError: If the token is missing or invalid.
        """
        ...
