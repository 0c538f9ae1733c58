"""Tests for member and assignee input normalization."""

from uuid import uuid4

import pytest
from projectdesk.core.errors import InvalidArgumentError
from projectdesk.core.normalize import normalize_assignees, normalize_entry, normalize_members
from projectdesk.core.projects import MemberSpec
from projectdesk.core.rbac import ProjectRole


class TestNormalizeEntry:
    """Tests for single entries."""

    def test_uuid(self) -> None:
        """A UUID is taken as is."""
        user_id = uuid4()
        assert normalize_entry(user_id) == MemberSpec(user_id)

    def test_uuid_string(self) -> None:
        """A UUID string is parsed."""
        user_id = uuid4()
        assert normalize_entry(str(user_id)) == MemberSpec(user_id)

    @pytest.mark.parametrize("key", ["user", "user_id", "userId"])
    def test_mapping_keys(self, key: str) -> None:
        """All three key spellings are accepted, with a role."""
        user_id = uuid4()
        assert normalize_entry({key: str(user_id), "role": "admin"}) == MemberSpec(user_id, ProjectRole.ADMIN)

    def test_nested_user_object(self) -> None:
        """A populated user object echoed back is accepted."""
        user_id = uuid4()
        spec = normalize_entry({"user": {"id": str(user_id), "username": "bob"}, "role": "Viewer"})
        assert spec == MemberSpec(user_id, ProjectRole.VIEWER)

    @pytest.mark.parametrize("raw", ["not-a-uuid", 42, None, {"name": "bob"}, {"user": "nope"}])
    def test_rejects_garbage(self, raw: object) -> None:
        """Unusable shapes are invalid arguments."""
        with pytest.raises(InvalidArgumentError):
            normalize_entry(raw)

    def test_rejects_unknown_role(self) -> None:
        """Unknown role names are invalid arguments."""
        with pytest.raises(InvalidArgumentError):
            normalize_entry({"user": str(uuid4()), "role": "superuser"})


class TestNormalizeMembers:
    """Tests for lists."""

    def test_none_is_empty(self) -> None:
        """No list means no members."""
        assert normalize_members(None) == []

    def test_last_entry_wins(self) -> None:
        """Duplicate users collapse to the last entry."""
        bob = uuid4()
        specs = normalize_members([{"user": str(bob), "role": "Member"}, {"userId": str(bob), "role": "Viewer"}])
        assert specs == [MemberSpec(bob, ProjectRole.VIEWER)]

    def test_rejects_non_list(self) -> None:
        """A single string or object is not a list."""
        with pytest.raises(InvalidArgumentError):
            normalize_members(str(uuid4()))
        with pytest.raises(InvalidArgumentError):
            normalize_members({"user": str(uuid4())})

    def test_assignees_mixed_shapes(self) -> None:
        """Assignees come back as plain unique IDs."""
        a, b = uuid4(), uuid4()
        assert normalize_assignees([str(a), {"user_id": str(b)}, a]) == [b, a]
