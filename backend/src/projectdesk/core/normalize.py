"""Boundary adapter for member and assignee inputs.

Clients send members/assignees as a bare id, ``{"user": id}``,
``{"user_id": id}`` or ``{"userId": id}``, with an optional ``role``. Everything
past this module only sees :class:`MemberSpec`.
"""

from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID

from projectdesk.core.errors import InvalidArgumentError
from projectdesk.core.projects.types import MemberSpec
from projectdesk.core.rbac.types import ProjectRole

_USER_KEYS = ("user", "user_id", "userId")


def _coerce_uuid(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    if isinstance(value, Mapping):
        # {"user": {"id": ...}} as produced by a populated response echoed back
        value = value.get("id", value.get("_id"))
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            pass
    raise InvalidArgumentError(f"Invalid user reference: {value!r}")


def _coerce_role(value: Any) -> ProjectRole | None:
    if value is None or value == "":
        return None
    if isinstance(value, ProjectRole):
        return value
    for role in ProjectRole:
        if str(value).lower() == role.value.lower():
            return role
    raise InvalidArgumentError(f"Invalid role: {value!r}")


def normalize_entry(raw: Any) -> MemberSpec:
    """Convert one raw member/assignee entry to a MemberSpec.

    Raises:
        InvalidArgumentError: If the entry has no usable user reference.
    """
    if isinstance(raw, MemberSpec):
        return raw
    if isinstance(raw, Mapping):
        for key in _USER_KEYS:
            if raw.get(key) is not None:
                return MemberSpec(user_id=_coerce_uuid(raw[key]), role=_coerce_role(raw.get("role")))
        raise InvalidArgumentError("Member entry is missing a user reference")
    return MemberSpec(user_id=_coerce_uuid(raw))


def normalize_members(raw: Iterable[Any] | None) -> list[MemberSpec]:
    """Normalize a members list, keeping the last entry per user."""
    if raw is None:
        return []
    if isinstance(raw, (str, bytes, Mapping)):
        raise InvalidArgumentError("Members must be a list")

    by_user: dict[UUID, MemberSpec] = {}
    for entry in raw:
        spec = normalize_entry(entry)
        by_user.pop(spec.user_id, None)
        by_user[spec.user_id] = spec
    return list(by_user.values())


def normalize_assignees(raw: Iterable[Any] | None) -> list[UUID]:
    """Normalize an assignee list to unique user IDs."""
    return [spec.user_id for spec in normalize_members(raw)]
