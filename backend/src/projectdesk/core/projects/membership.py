"""Membership manager: the only code path that mutates ``Project.members``.

Every operation validates completely before it touches the aggregate, so a
rejected call leaves the project exactly as it was loaded. After any
successful call the project has exactly one Owner entry, it belongs to
``created_by``, and no user appears twice.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from uuid import UUID

import structlog

from projectdesk.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidOperationError,
    NotFoundError,
)
from projectdesk.core.projects.types import MemberSpec, Project, ProjectMember
from projectdesk.core.rbac import MANAGER_ROLES, ProjectRole, require_role

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MembershipManager:
    """Guarded mutations of a project's members list."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        """Initialize the manager.

        Args:
            clock: Source of ``added_at`` timestamps.
        """
        self._clock = clock

    def seed(self, owner_id: UUID, initial: Iterable[MemberSpec] = ()) -> list[ProjectMember]:
        """Build the members list for a new project.

        The Owner entry always comes first. The creator and repeated users in
        ``initial`` are skipped; entries without a role become Members.

        Raises:
            InvalidArgumentError: If an initial entry asks for the Owner role.
        """
        now = self._clock()
        members = [ProjectMember(user_id=owner_id, role=ProjectRole.OWNER, added_at=now)]
        for spec in initial:
            if spec.user_id == owner_id or any(m.user_id == spec.user_id for m in members):
                continue
            role = spec.role or ProjectRole.MEMBER
            if role == ProjectRole.OWNER:
                raise InvalidArgumentError("Owner role cannot be assigned to another member")
            members.append(ProjectMember(user_id=spec.user_id, role=role, added_at=now))
        return members

    def add_member(
        self,
        project: Project,
        actor_id: UUID | None,
        target_user_id: UUID,
        role: ProjectRole = ProjectRole.MEMBER,
    ) -> ProjectMember:
        """Add a user to the project.

        Raises:
            ForbiddenError: If the actor is not Owner/Admin, or an Admin grants Admin.
            InvalidArgumentError: If ``role`` is Owner.
            ConflictError: If the target is already a member.
        """
        actor_role = require_role(project, actor_id, MANAGER_ROLES, "add members")
        if role == ProjectRole.OWNER:
            raise InvalidArgumentError("Owner role cannot be assigned to another member")
        if role == ProjectRole.ADMIN and actor_role != ProjectRole.OWNER:
            raise ForbiddenError("Only the Owner can grant the Admin role")
        if target_user_id == project.created_by or project.member(target_user_id):
            raise ConflictError("User is already a member")

        entry = ProjectMember(user_id=target_user_id, role=role, added_at=self._clock())
        project.members.append(entry)
        logger.info(
            "member_added",
            project_id=str(project.id),
            user_id=str(target_user_id),
            role=role.value,
            actor_id=str(actor_id),
        )
        return entry

    def admit_from_invite(self, project: Project, user_id: UUID, role: ProjectRole) -> bool:
        """Add an invite recipient, tolerating an existing membership.

        The sender's authority was checked when the invite was sent, so no
        actor check happens here.

        Returns:
            True if a new entry was appended, False if the user was already a member.
        """
        if role == ProjectRole.OWNER:
            raise InvalidArgumentError("Owner role cannot be assigned to another member")
        if user_id == project.created_by or project.member(user_id):
            logger.info("invite_accept_already_member", project_id=str(project.id), user_id=str(user_id))
            return False

        project.members.append(ProjectMember(user_id=user_id, role=role, added_at=self._clock()))
        logger.info(
            "member_added_from_invite",
            project_id=str(project.id),
            user_id=str(user_id),
            role=role.value,
        )
        return True

    def remove_member(self, project: Project, actor_id: UUID | None, target_user_id: UUID) -> ProjectMember:
        """Remove a user from the project.

        Raises:
            ForbiddenError: If the actor is not Owner/Admin.
            InvalidOperationError: If the target is the Owner.
            NotFoundError: If the target is not a member.
        """
        require_role(project, actor_id, MANAGER_ROLES, "remove members")
        entry = self._target(project, target_user_id, "remove")

        project.members.remove(entry)
        logger.info(
            "member_removed",
            project_id=str(project.id),
            user_id=str(target_user_id),
            actor_id=str(actor_id),
        )
        return entry

    def change_member_role(
        self,
        project: Project,
        actor_id: UUID | None,
        target_user_id: UUID,
        new_role: ProjectRole,
    ) -> ProjectMember:
        """Change a member's role.

        Admins can demote and re-role members but only the Owner can promote
        anyone to Admin.

        Raises:
            ForbiddenError: If the actor is not Owner/Admin, or an Admin grants Admin.
            InvalidOperationError: If the target is the Owner or ``new_role`` is Owner.
            NotFoundError: If the target is not a member.
        """
        actor_role = require_role(project, actor_id, MANAGER_ROLES, "change member roles")
        if new_role == ProjectRole.OWNER:
            raise InvalidOperationError("Ownership cannot be transferred")
        entry = self._target(project, target_user_id, "change the role of")
        if new_role == ProjectRole.ADMIN and actor_role != ProjectRole.OWNER:
            raise ForbiddenError("Only the Owner can grant the Admin role")

        previous = entry.role
        entry.role = new_role
        logger.info(
            "member_role_changed",
            project_id=str(project.id),
            user_id=str(target_user_id),
            from_role=previous.value,
            to_role=new_role.value,
            actor_id=str(actor_id),
        )
        return entry

    def bulk_replace_members(
        self,
        project: Project,
        actor_id: UUID | None,
        specs: Iterable[MemberSpec],
    ) -> list[ProjectMember]:
        """Replace the whole members list (Owner only).

        Entries naming the Owner, or asking for the Owner role, are dropped and
        the Owner entry is re-injected first. Users already in the project keep
        their ``added_at``.

        Raises:
            ForbiddenError: If the actor is not the Owner.
        """
        require_role(project, actor_id, {ProjectRole.OWNER}, "replace the members list")

        now = self._clock()
        owner = project.member(project.created_by)
        members = [
            ProjectMember(
                user_id=project.created_by,
                role=ProjectRole.OWNER,
                added_at=owner.added_at if owner else now,
            )
        ]
        for spec in specs:
            role = spec.role or ProjectRole.MEMBER
            if spec.user_id == project.created_by or role == ProjectRole.OWNER:
                continue
            existing = next((m for m in members if m.user_id == spec.user_id), None)
            if existing:
                existing.role = role
                continue
            previous = project.member(spec.user_id)
            members.append(
                ProjectMember(
                    user_id=spec.user_id,
                    role=role,
                    added_at=previous.added_at if previous else now,
                )
            )

        project.members = members
        logger.info(
            "members_replaced",
            project_id=str(project.id),
            member_count=len(members),
            actor_id=str(actor_id),
        )
        return members

    def _target(self, project: Project, target_user_id: UUID, verb: str) -> ProjectMember:
        if target_user_id == project.created_by:
            raise InvalidOperationError(f"Cannot {verb} the Owner")
        entry = project.member(target_user_id)
        if entry is None:
            raise NotFoundError("Member not found in project")
        if entry.role == ProjectRole.OWNER:
            raise InvalidOperationError(f"Cannot {verb} the Owner")
        return entry
