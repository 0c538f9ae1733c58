"""Project role resolution.

Roles are always computed from the freshly loaded Project aggregate, never
from a cached claim, so a demoted or removed user loses access on the very
next request.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING
from uuid import UUID

from projectdesk.core.errors import ForbiddenError, UnauthenticatedError
from projectdesk.core.rbac.types import ProjectRole

if TYPE_CHECKING:
    from projectdesk.core.projects.types import Project


def resolve_role(project: Project, user_id: UUID | None) -> ProjectRole | None:
    """Compute a user's effective role in a project.

    ``created_by`` wins over whatever the members list says for the same user.

    Args:
        project: Freshly loaded project aggregate.
        user_id: Caller's user ID, or None for an anonymous caller.

    Returns:
        The effective role, or None if the user is not a member.
    """
    if user_id is None:
        return None
    if user_id == project.created_by:
        return ProjectRole.OWNER
    for member in project.members:
        if member.user_id == user_id:
            return member.role
    return None


def require_role(
    project: Project,
    user_id: UUID | None,
    allowed: Iterable[ProjectRole],
    action: str = "perform this action",
) -> ProjectRole:
    """Resolve the caller's role and check it against the allowed set.

    Raises:
        UnauthenticatedError: If there is no caller identity.
        ForbiddenError: If the caller is not a member or has the wrong role.
    """
    if user_id is None:
        raise UnauthenticatedError("Authentication required")

    role = resolve_role(project, user_id)
    if role is None:
        raise ForbiddenError("You are not a member of this project")

    allowed_roles = frozenset(allowed)
    if role not in allowed_roles:
        names = "/".join(r.value for r in ProjectRole if r in allowed_roles)
        raise ForbiddenError(f"Only {names} can {action}")
    return role


def require_member(project: Project, user_id: UUID | None) -> ProjectRole:
    """Require any project role."""
    return require_role(project, user_id, ProjectRole, "access this project")
