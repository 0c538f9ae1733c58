"""Tests for project role resolution."""

from collections.abc import Callable
from uuid import uuid4

import pytest
from projectdesk.core.errors import ForbiddenError, UnauthenticatedError
from projectdesk.core.projects import Project, ProjectMember
from projectdesk.core.rbac import (
    CONTRIBUTOR_ROLES,
    MANAGER_ROLES,
    ProjectRole,
    require_member,
    require_role,
    resolve_role,
)


class TestResolveRole:
    """Tests for resolve_role."""

    def test_creator_is_owner(self, make_project: Callable[..., Project]) -> None:
        """The creator resolves to Owner."""
        owner = uuid4()
        project = make_project(owner_id=owner)
        assert resolve_role(project, owner) == ProjectRole.OWNER

    def test_member_role_returned(self, make_project: Callable[..., Project]) -> None:
        """A member resolves to their stored role."""
        admin, viewer = uuid4(), uuid4()
        project = make_project(members={admin: ProjectRole.ADMIN, viewer: ProjectRole.VIEWER})

        assert resolve_role(project, admin) == ProjectRole.ADMIN
        assert resolve_role(project, viewer) == ProjectRole.VIEWER

    def test_non_member_is_none(self, make_project: Callable[..., Project]) -> None:
        """A stranger has no role."""
        assert resolve_role(make_project(), uuid4()) is None

    def test_anonymous_is_none(self, make_project: Callable[..., Project]) -> None:
        """No user means no role."""
        assert resolve_role(make_project(), None) is None

    def test_creator_wins_over_members_entry(self, make_project: Callable[..., Project]) -> None:
        """created_by takes precedence over a conflicting members entry."""
        owner = uuid4()
        project = make_project(owner_id=owner)
        project.members[0] = ProjectMember(
            user_id=owner, role=ProjectRole.VIEWER, added_at=project.created_at
        )

        assert resolve_role(project, owner) == ProjectRole.OWNER


class TestRequireRole:
    """Tests for require_role and require_member."""

    def test_returns_role_when_allowed(self, make_project: Callable[..., Project]) -> None:
        """Allowed roles pass through."""
        admin = uuid4()
        project = make_project(members={admin: ProjectRole.ADMIN})

        assert require_role(project, admin, MANAGER_ROLES) == ProjectRole.ADMIN

    def test_wrong_role_forbidden(self, make_project: Callable[..., Project]) -> None:
        """A Member cannot do manager actions."""
        member = uuid4()
        project = make_project(members={member: ProjectRole.MEMBER})

        with pytest.raises(ForbiddenError, match="Only Owner/Admin can approve tasks"):
            require_role(project, member, MANAGER_ROLES, "approve tasks")

    def test_non_member_forbidden(self, make_project: Callable[..., Project]) -> None:
        """Strangers are forbidden."""
        with pytest.raises(ForbiddenError):
            require_role(make_project(), uuid4(), CONTRIBUTOR_ROLES)

    def test_anonymous_unauthenticated(self, make_project: Callable[..., Project]) -> None:
        """A missing caller is unauthenticated, not forbidden."""
        with pytest.raises(UnauthenticatedError):
            require_role(make_project(), None, CONTRIBUTOR_ROLES)

    def test_require_member_accepts_viewer(self, make_project: Callable[..., Project]) -> None:
        """Any role counts as membership."""
        viewer = uuid4()
        project = make_project(members={viewer: ProjectRole.VIEWER})

        assert require_member(project, viewer) == ProjectRole.VIEWER

    def test_role_change_applies_on_next_check(self, make_project: Callable[..., Project]) -> None:
        """Roles are read from the aggregate, so a demotion takes effect immediately."""
        admin = uuid4()
        project = make_project(members={admin: ProjectRole.ADMIN})
        require_role(project, admin, MANAGER_ROLES)

        project.member(admin).role = ProjectRole.VIEWER  # type: ignore[union-attr]

        with pytest.raises(ForbiddenError):
            require_role(project, admin, MANAGER_ROLES)
