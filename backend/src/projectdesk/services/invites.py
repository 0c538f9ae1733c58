"""Invite protocol service.

Sending an invite persists it first and then makes exactly one attempt to
email the recipient. Delivery failures are logged and never undo the invite.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

import structlog

from projectdesk.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    ProjectDeskError,
    StaleAggregateError,
)
from projectdesk.core.identity.types import User
from projectdesk.core.interfaces import (
    InviteRepository,
    NotificationDispatcher,
    ProjectRepository,
    UserRepository,
)
from projectdesk.core.invites import (
    Invite,
    InviteAction,
    InviteDetails,
    InviteSummary,
    new_invite,
    parse_action,
    respond,
)
from projectdesk.core.projects import MembershipManager, Project
from projectdesk.core.rbac import MANAGER_ROLES, ProjectRole, require_role

logger = structlog.get_logger()

# Attempts at the read-modify-write of the project when admitting an invitee.
ADMIT_ATTEMPTS = 2


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InviteService:
    """Send, list, preview and answer project invites."""

    def __init__(
        self,
        projects: ProjectRepository,
        invites: InviteRepository,
        users: UserRepository,
        notifier: NotificationDispatcher,
        frontend_url: str,
        membership: MembershipManager | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            projects: Project persistence.
            invites: Invite persistence.
            users: Identity store for recipient lookup.
            notifier: Dispatcher for the invite email.
            frontend_url: Base URL used to build the invite link.
            membership: Membership manager used on accept.
            clock: Source of timestamps.
        """
        self._projects = projects
        self._invites = invites
        self._users = users
        self._notifier = notifier
        self._frontend_url = frontend_url.rstrip("/")
        self._membership = membership or MembershipManager(clock)
        self._clock = clock

    def invite_link(self, invite_id: UUID) -> str:
        """Link the recipient follows to review the invite."""
        return f"{self._frontend_url}/project-management/invites/{invite_id}"

    async def send_invite(
        self,
        actor_id: UUID,
        project_id: UUID,
        recipient_email: str,
        role: ProjectRole = ProjectRole.VIEWER,
    ) -> Invite:
        """Invite a registered user to a project.

        Raises:
            ForbiddenError: If the actor is not Owner/Admin, or an Admin offers Admin.
            InvalidArgumentError: If the email is blank or the role cannot be offered.
            NotFoundError: If the project or recipient does not exist.
            ConflictError: If the recipient is already a member or already has a Pending invite.
        """
        if not (recipient_email or "").strip():
            raise InvalidArgumentError("Recipient email is required")

        project = await self._load_project(project_id)
        actor_role = require_role(project, actor_id, MANAGER_ROLES, "send invites")
        if role == ProjectRole.ADMIN and actor_role != ProjectRole.OWNER:
            raise ForbiddenError("Only the Owner can invite Admins")

        recipient = await self._users.get_by_email(recipient_email)
        if recipient is None:
            raise NotFoundError("Recipient not found")
        if recipient.id == project.created_by or project.member(recipient.id):
            raise ConflictError("User is already a member of this project")
        if await self._invites.find_pending(project_id, recipient.id):
            raise ConflictError("User already invited")

        invite = await self._invites.add(
            new_invite(project_id, actor_id, recipient.id, role, now=self._clock())
        )
        logger.info(
            "invite_created",
            invite_id=str(invite.id),
            project_id=str(project_id),
            recipient_id=str(recipient.id),
            role=role.value,
        )

        sender = await self._users.get_by_id(actor_id)
        await self._notify(invite, project, recipient, sender)
        return invite

    async def list_invites_for_user(self, user_id: UUID) -> list[InviteSummary]:
        """List invites addressed to the user, with project and sender names."""
        invites = await self._invites.list_for_recipient(user_id)
        senders = await self._users.get_many([i.sender_id for i in invites])

        summaries = []
        for invite in invites:
            project = await self._projects.get(invite.project_id)
            sender = senders.get(invite.sender_id)
            summaries.append(
                InviteSummary(
                    invite=invite,
                    project_name=project.name if project else "",
                    sender_name=sender.full_name if sender else "",
                    sender_email=sender.email if sender else "",
                )
            )
        return summaries

    async def get_invite_details(self, invite_id: UUID) -> InviteDetails:
        """Preview an invite without authentication.

        Only the project name, role, participant display names and status are
        exposed.
        """
        invite = await self._load_invite(invite_id)
        project = await self._projects.get(invite.project_id)
        people = await self._users.get_many([invite.sender_id, invite.recipient_id])
        sender = people.get(invite.sender_id)
        recipient = people.get(invite.recipient_id)
        return InviteDetails(
            id=invite.id,
            project_name=project.name if project else "",
            role=invite.role,
            sender_name=sender.full_name if sender else "",
            recipient_name=recipient.full_name if recipient else "",
            status=invite.status,
        )

    async def respond_to_invite(
        self,
        actor_id: UUID | None,
        invite_id: UUID,
        action: str | InviteAction,
    ) -> tuple[Invite, Project | None]:
        """Accept or decline an invite as its recipient.

        Accepting admits the recipient to the project with the offered role; if
        they are already a member nothing is added and no error is raised.

        The invite is claimed first under its Pending guard, so a concurrent
        answer wins before the project is touched. If admission then fails the
        invite is put back to Pending.

        Returns:
            The answered invite and, on accept, the current project.

        Raises:
            InvalidArgumentError: If the action is not accept/decline.
            NotFoundError: If the invite or its project does not exist.
            ForbiddenError: If the caller is not the recipient.
            InvalidStateError: If the invite was already answered.
            ConflictError: If a concurrent writer won the invite or the project.
        """
        parsed = parse_action(action)
        invite = await self._load_invite(invite_id)
        respond(invite, actor_id, parsed, now=self._clock())

        saved = await self._invites.save(invite)

        project = None
        if parsed == InviteAction.ACCEPT:
            try:
                project = await self._admit(saved)
            except ProjectDeskError:
                await self._reopen(saved)
                raise

        logger.info(
            "invite_answered",
            invite_id=str(invite_id),
            status=saved.status.value,
            recipient_id=str(actor_id),
        )
        return saved, project

    async def _admit(self, invite: Invite) -> Project:
        for attempt in range(1, ADMIT_ATTEMPTS + 1):
            project = await self._load_project(invite.project_id)
            if not self._membership.admit_from_invite(project, invite.recipient_id, invite.role):
                return project
            project.updated_at = self._clock()
            try:
                return await self._projects.save(project)
            except StaleAggregateError:
                if attempt == ADMIT_ATTEMPTS:
                    raise
                logger.warning("invite_admit_retry", invite_id=str(invite.id))
        raise AssertionError("unreachable")

    async def _reopen(self, invite: Invite) -> None:
        try:
            await self._invites.reopen(invite)
        except ConflictError as e:
            # The admission error is what the caller sees; this one is only recorded.
            logger.error("invite_reopen_failed", invite_id=str(invite.id), error=e.message)
            return
        logger.warning("invite_reopened", invite_id=str(invite.id))

    async def _notify(self, invite: Invite, project: Project, recipient: User, sender: User | None) -> None:
        sender_name = sender.full_name if sender else "Someone"
        link = self.invite_link(invite.id)
        subject = f'You\'re invited to join project "{project.name}"'
        body_html = f"""
        <h3>You've been invited to join "{project.name}"</h3>
        <p>{sender_name} has invited you to collaborate on this project as {invite.role.value}.</p>
        <p>
          <a href="{link}" style="padding: 10px 15px; background: #28a745; color: white; text-decoration: none;">
            Review Invite
          </a>
        </p>
        """
        body_text = (
            f'{sender_name} has invited you to join "{project.name}" as {invite.role.value}.\n'
            f"Review the invite at: {link}\n"
        )

        try:
            sent = await asyncio.to_thread(
                self._notifier.send, [recipient.email], subject, body_html, body_text
            )
        except Exception as e:
            logger.error("invite_email_failed", invite_id=str(invite.id), error=str(e))
            return
        if not sent:
            logger.error("invite_email_failed", invite_id=str(invite.id), error="delivery failed")

    async def _load_project(self, project_id: UUID) -> Project:
        project = await self._projects.get(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def _load_invite(self, invite_id: UUID) -> Invite:
        invite = await self._invites.get(invite_id)
        if invite is None:
            raise NotFoundError("Invite not found")
        return invite
