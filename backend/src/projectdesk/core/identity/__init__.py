"""Identity domain."""

from projectdesk.core.identity.access import require_admin
from projectdesk.core.identity.types import Caller, GlobalRole, ProfileChanges, User, UserSummary

__all__ = [
    "Caller",
    "GlobalRole",
    "ProfileChanges",
    "User",
    "UserSummary",
    "require_admin",
]
