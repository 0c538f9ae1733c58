"""Fixtures for API route tests."""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from projectdesk.adapters.db import (
    InMemoryInviteRepository,
    InMemoryProjectRepository,
    InMemoryTaskRepository,
    InMemoryUserRepository,
)
from projectdesk.adapters.storage import LocalAttachmentStore
from projectdesk.core.auth import JWTAuthenticator
from projectdesk.core.errors import ProjectDeskError
from projectdesk.core.identity import User
from projectdesk.entrypoints.api.app import handle_projectdesk_error
from projectdesk.entrypoints.api.routes import api_router


@pytest.fixture
def api_app(
    users_repo: InMemoryUserRepository,
    projects_repo: InMemoryProjectRepository,
    invites_repo: InMemoryInviteRepository,
    tasks_repo: InMemoryTaskRepository,
    authenticator: JWTAuthenticator,
    notifier: MagicMock,
    attachment_store: LocalAttachmentStore,
) -> FastAPI:
    """App with every router mounted over in-memory state."""
    app = FastAPI()
    app.add_exception_handler(ProjectDeskError, handle_projectdesk_error)  # type: ignore[arg-type]
    app.include_router(api_router, prefix="/api/v1")

    app.state.users = users_repo
    app.state.projects = projects_repo
    app.state.invites = invites_repo
    app.state.tasks = tasks_repo
    app.state.authenticator = authenticator
    app.state.notifier = notifier
    app.state.attachments = attachment_store
    app.state.frontend_url = "http://app.test"
    return app


@pytest.fixture
def client(api_app: FastAPI) -> TestClient:
    """Test client for the API app."""
    return TestClient(api_app)


@pytest.fixture
def auth(authenticator: JWTAuthenticator) -> Callable[[User], dict[str, str]]:
    """Build bearer headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {authenticator.create_access_token(user.id, user.role)}"}

    return _headers
