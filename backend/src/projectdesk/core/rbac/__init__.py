"""RBAC core domain."""

from projectdesk.core.rbac.resolver import require_member, require_role, resolve_role
from projectdesk.core.rbac.types import (
    CONTRIBUTOR_ROLES,
    GRANTABLE_ROLES,
    MANAGER_ROLES,
    ProjectRole,
)

__all__ = [
    "CONTRIBUTOR_ROLES",
    "GRANTABLE_ROLES",
    "MANAGER_ROLES",
    "ProjectRole",
    "require_member",
    "require_role",
    "resolve_role",
]
