"""Site-wide access checks based on the caller's global role."""

from projectdesk.core.errors import ForbiddenError
from projectdesk.core.identity.types import Caller, GlobalRole, User


def require_admin(caller: Caller, current: User | None = None) -> None:
    """Require a global Admin.

    The token claim is checked first; when the caller's stored record is
    supplied it must still hold the Admin role, so a demotion takes effect
    before the old token expires.

    Raises:
        ForbiddenError: If the caller is not an Admin.
    """
    if caller.role != GlobalRole.ADMIN:
        raise ForbiddenError("Admins only")
    if current is not None and (current.id != caller.user_id or current.role != GlobalRole.ADMIN):
        raise ForbiddenError("Admins only")
