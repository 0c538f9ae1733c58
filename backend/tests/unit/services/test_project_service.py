"""Tests for ProjectService."""

from datetime import date
from uuid import uuid4

import pytest
from projectdesk.adapters.db import InMemoryStore
from projectdesk.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidOperationError,
    NotFoundError,
)
from projectdesk.core.identity import User
from projectdesk.core.invites import new_invite
from projectdesk.core.projects import MemberSpec, Project, ProjectChanges, ProjectStatus
from projectdesk.core.rbac import ProjectRole
from projectdesk.core.tasks import TaskDraft
from projectdesk.services import ProjectService, TaskService

DUE = date(2025, 6, 30)


@pytest.fixture
async def launch(project_service: ProjectService, alice: User, bob: User) -> Project:
    """Alice's project with Bob as Admin."""
    return await project_service.create_project(
        alice.id, "Launch", DUE, members=[MemberSpec(bob.id, ProjectRole.ADMIN)]
    )


class TestCreateProject:
    """Tests for create_project."""

    async def test_creator_is_owner(self, launch: Project, alice: User, bob: User) -> None:
        """The creator is seeded as the first, only Owner."""
        assert launch.created_by == alice.id
        assert [(m.user_id, m.role) for m in launch.members] == [
            (alice.id, ProjectRole.OWNER),
            (bob.id, ProjectRole.ADMIN),
        ]
        assert launch.status == ProjectStatus.NOT_STARTED
        assert launch.version == 1

    async def test_requires_due_date(self, project_service: ProjectService, alice: User) -> None:
        """A missing due date is an invalid argument."""
        with pytest.raises(InvalidArgumentError):
            await project_service.create_project(alice.id, "Launch", None)

    async def test_requires_name(self, project_service: ProjectService, alice: User) -> None:
        """A blank name is an invalid argument."""
        with pytest.raises(InvalidArgumentError):
            await project_service.create_project(alice.id, "  ", DUE)

    async def test_unknown_member(self, project_service: ProjectService, alice: User) -> None:
        """Initial members must exist."""
        with pytest.raises(NotFoundError):
            await project_service.create_project(alice.id, "Launch", DUE, members=[MemberSpec(uuid4())])


class TestReadProjects:
    """Tests for get_project and list_projects_for_user."""

    async def test_non_member_cannot_read(
        self, project_service: ProjectService, launch: Project, carol: User
    ) -> None:
        """Only members see a project."""
        with pytest.raises(ForbiddenError):
            await project_service.get_project(carol.id, launch.id)

    async def test_listed_for_members(
        self, project_service: ProjectService, launch: Project, bob: User, carol: User
    ) -> None:
        """Members see the project in their list; others do not."""
        assert [p.id for p in await project_service.list_projects_for_user(bob.id)] == [launch.id]
        assert await project_service.list_projects_for_user(carol.id) == []

    async def test_member_directory(
        self, project_service: ProjectService, launch: Project, alice: User, bob: User
    ) -> None:
        """Member IDs resolve to public summaries."""
        directory = await project_service.member_directory([launch])

        assert directory[alice.id].username == "alice"
        assert directory[bob.id].full_name == "Bob Brown"


class TestUpdateProject:
    """Tests for update_project."""

    async def test_admin_updates_fields(
        self, project_service: ProjectService, launch: Project, bob: User
    ) -> None:
        """Admins can edit project fields."""
        updated = await project_service.update_project(
            bob.id, launch.id, ProjectChanges(name="Launch v2", status=ProjectStatus.IN_PROGRESS)
        )

        assert updated.name == "Launch v2"
        assert updated.status == ProjectStatus.IN_PROGRESS
        assert updated.version == 2

    async def test_admin_cannot_replace_members(
        self,
        project_service: ProjectService,
        launch: Project,
        bob: User,
        carol: User,
    ) -> None:
        """Bulk member replacement is Owner-only and leaves the project unchanged."""
        with pytest.raises(ForbiddenError):
            await project_service.update_project(
                bob.id, launch.id, ProjectChanges(name="Renamed", members=[MemberSpec(carol.id)])
            )

        stored = await project_service.get_project(bob.id, launch.id)
        assert stored.name == "Launch"
        assert stored.version == 1

    async def test_owner_replaces_members(
        self, project_service: ProjectService, launch: Project, alice: User, carol: User
    ) -> None:
        """The Owner entry survives a bulk replacement."""
        updated = await project_service.update_project(
            alice.id, launch.id, ProjectChanges(members=[MemberSpec(carol.id, ProjectRole.VIEWER)])
        )

        assert [(m.user_id, m.role) for m in updated.members] == [
            (alice.id, ProjectRole.OWNER),
            (carol.id, ProjectRole.VIEWER),
        ]


class TestMembership:
    """Tests for add_member, remove_member and change_member_role."""

    async def test_add_and_remove(
        self, project_service: ProjectService, launch: Project, bob: User, carol: User
    ) -> None:
        """An Admin can add and then remove a member."""
        added = await project_service.add_member(bob.id, launch.id, carol.id, ProjectRole.MEMBER)
        assert added.member(carol.id) is not None

        removed = await project_service.remove_member(bob.id, launch.id, carol.id)
        assert removed.member(carol.id) is None

    async def test_add_unknown_user(
        self, project_service: ProjectService, launch: Project, alice: User
    ) -> None:
        """Adding a user that does not exist is NotFound."""
        with pytest.raises(NotFoundError):
            await project_service.add_member(alice.id, launch.id, uuid4())

    async def test_add_existing_conflict(
        self, project_service: ProjectService, launch: Project, alice: User, bob: User
    ) -> None:
        """Adding someone twice conflicts."""
        with pytest.raises(ConflictError):
            await project_service.add_member(alice.id, launch.id, bob.id)

    async def test_admin_cannot_remove_owner(
        self, project_service: ProjectService, launch: Project, alice: User, bob: User
    ) -> None:
        """The Owner entry is permanent."""
        with pytest.raises(InvalidOperationError):
            await project_service.remove_member(bob.id, launch.id, alice.id)

    async def test_admin_promotion_rules(
        self,
        project_service: ProjectService,
        launch: Project,
        alice: User,
        bob: User,
        carol: User,
    ) -> None:
        """Admins cannot mint Admins; the Owner can."""
        await project_service.add_member(alice.id, launch.id, carol.id, ProjectRole.MEMBER)

        with pytest.raises(ForbiddenError):
            await project_service.change_member_role(bob.id, launch.id, carol.id, ProjectRole.ADMIN)

        updated = await project_service.change_member_role(alice.id, launch.id, carol.id, ProjectRole.ADMIN)
        assert updated.member(carol.id).role == ProjectRole.ADMIN  # type: ignore[union-attr]


class TestDeleteProject:
    """Tests for delete_project."""

    async def test_admin_cannot_delete(
        self, project_service: ProjectService, launch: Project, bob: User
    ) -> None:
        """Only the Owner deletes."""
        with pytest.raises(ForbiddenError):
            await project_service.delete_project(bob.id, launch.id)

    async def test_cascades(
        self,
        project_service: ProjectService,
        task_service: TaskService,
        store: InMemoryStore,
        launch: Project,
        alice: User,
        carol: User,
    ) -> None:
        """Deleting a project removes its tasks and invites."""
        await task_service.create_task(alice.id, launch.id, TaskDraft(title="Plan"))
        invite = new_invite(launch.id, alice.id, carol.id)
        store.invites[invite.id] = invite

        await project_service.delete_project(alice.id, launch.id)

        assert store.projects == {}
        assert store.tasks == {}
        assert store.invites == {}
