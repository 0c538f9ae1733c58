"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime
from pathlib import Path
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
from projectdesk.adapters.db import (
    InMemoryInviteRepository,
    InMemoryProjectRepository,
    InMemoryStore,
    InMemoryTaskRepository,
    InMemoryUserRepository,
)
from projectdesk.adapters.storage import LocalAttachmentStore
from projectdesk.core.auth import JWTAuthenticator
from projectdesk.core.identity import GlobalRole, User
from projectdesk.core.projects import (
    Project,
    ProjectMember,
    ProjectPriority,
    ProjectStatus,
)
from projectdesk.core.rbac import ProjectRole
from projectdesk.services import InviteService, ProjectService, TaskService, UserService

FIXED_NOW = datetime(2025, 1, 15, 9, 30, tzinfo=UTC)
TEST_SECRET = "test-secret-key-for-unit-tests-only"


@pytest.fixture
def anyio_backend() -> str:
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock returning a fixed instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def make_project() -> Callable[..., Project]:
    """Factory for in-memory Project aggregates.

    ``members`` maps user IDs to roles; the owner entry is always added first.
    """

    def _make(
        owner_id: UUID | None = None,
        members: dict[UUID, ProjectRole] | None = None,
        name: str = "Launch",
    ) -> Project:
        owner_id = owner_id or uuid4()
        entries = [ProjectMember(user_id=owner_id, role=ProjectRole.OWNER, added_at=FIXED_NOW)]
        for user_id, role in (members or {}).items():
            entries.append(ProjectMember(user_id=user_id, role=role, added_at=FIXED_NOW))
        return Project(
            id=uuid4(),
            name=name,
            description="",
            created_by=owner_id,
            start_date=date(2025, 1, 1),
            due_date=date(2025, 3, 1),
            status=ProjectStatus.NOT_STARTED,
            priority=ProjectPriority.MEDIUM,
            members=entries,
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )

    return _make


# In-memory storage


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def users_repo(store: InMemoryStore) -> InMemoryUserRepository:
    """In-memory user repository."""
    return InMemoryUserRepository(store)


@pytest.fixture
def projects_repo(store: InMemoryStore) -> InMemoryProjectRepository:
    """In-memory project repository."""
    return InMemoryProjectRepository(store)


@pytest.fixture
def invites_repo(store: InMemoryStore) -> InMemoryInviteRepository:
    """In-memory invite repository."""
    return InMemoryInviteRepository(store)


@pytest.fixture
def tasks_repo(store: InMemoryStore) -> InMemoryTaskRepository:
    """In-memory task repository."""
    return InMemoryTaskRepository(store)


# Users


@pytest.fixture
async def alice(users_repo: InMemoryUserRepository) -> User:
    """Registered user Alice."""
    return await users_repo.create("alice@example.com", "alice", "Alice Anders")


@pytest.fixture
async def bob(users_repo: InMemoryUserRepository) -> User:
    """Registered user Bob."""
    return await users_repo.create("bob@example.com", "bob", "Bob Brown")


@pytest.fixture
async def carol(users_repo: InMemoryUserRepository) -> User:
    """Registered user Carol."""
    return await users_repo.create("carol@example.com", "carol", "Carol Chen")


@pytest.fixture
async def dave(users_repo: InMemoryUserRepository) -> User:
    """Registered user Dave."""
    return await users_repo.create("dave@example.com", "dave", "Dave Diaz")


@pytest.fixture
async def admin(users_repo: InMemoryUserRepository) -> User:
    """Site administrator Rita."""
    return await users_repo.create("rita@example.com", "rita", "Rita Root", role=GlobalRole.ADMIN)


# Collaborators


@pytest.fixture
def notifier() -> MagicMock:
    """Notification dispatcher that reports success."""
    mock = MagicMock()
    mock.send.return_value = True
    return mock


@pytest.fixture
def attachment_store(tmp_path: Path) -> LocalAttachmentStore:
    """Attachment store writing into a temp directory."""
    return LocalAttachmentStore(tmp_path / "uploads", "http://files.test/uploads")


@pytest.fixture
def authenticator() -> JWTAuthenticator:
    """JWT authenticator with a test secret."""
    return JWTAuthenticator(TEST_SECRET)


# Services


@pytest.fixture
def project_service(
    projects_repo: InMemoryProjectRepository,
    invites_repo: InMemoryInviteRepository,
    tasks_repo: InMemoryTaskRepository,
    users_repo: InMemoryUserRepository,
) -> ProjectService:
    """Project service over in-memory repositories."""
    return ProjectService(projects_repo, invites_repo, tasks_repo, users_repo)


@pytest.fixture
def invite_service(
    projects_repo: InMemoryProjectRepository,
    invites_repo: InMemoryInviteRepository,
    users_repo: InMemoryUserRepository,
    notifier: MagicMock,
) -> InviteService:
    """Invite service over in-memory repositories."""
    return InviteService(
        projects_repo,
        invites_repo,
        users_repo,
        notifier,
        frontend_url="http://app.test",
    )


@pytest.fixture
def task_service(
    projects_repo: InMemoryProjectRepository,
    tasks_repo: InMemoryTaskRepository,
    attachment_store: LocalAttachmentStore,
) -> TaskService:
    """Task service over in-memory repositories."""
    return TaskService(projects_repo, tasks_repo, attachment_store)


@pytest.fixture
def user_service(
    users_repo: InMemoryUserRepository,
    projects_repo: InMemoryProjectRepository,
    authenticator: JWTAuthenticator,
) -> UserService:
    """User service over in-memory repositories."""
    return UserService(users_repo, projects_repo, authenticator)
