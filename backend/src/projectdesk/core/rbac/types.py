"""RBAC domain types."""

from enum import Enum


class ProjectRole(str, Enum):
    """Project-scoped roles."""

    OWNER = "Owner"
    ADMIN = "Admin"
    MEMBER = "Member"
    VIEWER = "Viewer"


# Roles that may manage membership, approve tasks and edit the project.
MANAGER_ROLES = frozenset({ProjectRole.OWNER, ProjectRole.ADMIN})

# Roles that may work on tasks.
CONTRIBUTOR_ROLES = frozenset({ProjectRole.OWNER, ProjectRole.ADMIN, ProjectRole.MEMBER})

# Roles that can be granted through invites or membership edits.
GRANTABLE_ROLES = frozenset({ProjectRole.ADMIN, ProjectRole.MEMBER, ProjectRole.VIEWER})
