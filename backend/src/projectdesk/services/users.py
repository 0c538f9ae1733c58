"""User registration, login, profile and account administration."""

import re
from dataclasses import replace
from uuid import UUID

import structlog
from pydantic import EmailStr, TypeAdapter, ValidationError

from projectdesk.core.auth import JWTAuthenticator, hash_password, verify_password
from projectdesk.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidOperationError,
    NotFoundError,
    UnauthenticatedError,
)
from projectdesk.core.identity import Caller, GlobalRole, ProfileChanges, User, require_admin
from projectdesk.core.interfaces import ProjectRepository, UserRepository

logger = structlog.get_logger()

SEARCH_LIMIT = 10
MIN_PASSWORD_LENGTH = 8

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")


def _clean_email(email: str | None) -> str:
    try:
        return _email_adapter.validate_python((email or "").strip()).lower()
    except ValidationError:
        raise InvalidArgumentError("A valid email address is required") from None


def _clean_username(username: str | None) -> str:
    username = (username or "").strip()
    if not _USERNAME_RE.match(username):
        raise InvalidArgumentError("Username must be 3-50 characters of letters, digits, '.', '_' or '-'")
    return username


def _clean_full_name(full_name: str | None) -> str:
    full_name = (full_name or "").strip()
    if not full_name:
        raise InvalidArgumentError("Full name is required")
    return full_name


def _check_password(password: str | None) -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise InvalidArgumentError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password or ""


class UserService:
    """Identity operations backed by the user repository."""

    def __init__(
        self,
        users: UserRepository,
        projects: ProjectRepository,
        authenticator: JWTAuthenticator,
    ) -> None:
        """Initialize the service.

        Args:
            users: Identity store.
            projects: Project persistence, used to exclude existing members from search.
            authenticator: Token issuer used on login.
        """
        self._users = users
        self._projects = projects
        self._authenticator = authenticator

    async def register_user(self, email: str, username: str, full_name: str, password: str) -> User:
        """Create a user with a bcrypt-hashed password.

        Raises:
            InvalidArgumentError: For a malformed email/username, blank name or short password.
            ConflictError: If the email or username is taken.
        """
        email = _clean_email(email)
        username = _clean_username(username)
        full_name = _clean_full_name(full_name)
        password = _check_password(password)

        if await self._users.get_by_email(email):
            raise ConflictError("Email is already registered")
        if await self._users.get_by_username(username):
            raise ConflictError("Username is already taken")

        user = await self._users.create(
            email=email,
            username=username,
            full_name=full_name,
            password_hash=hash_password(password),
        )
        logger.info("user_registered", user_id=str(user.id))
        return user

    async def login(self, login: str, password: str) -> tuple[User, str]:
        """Check credentials and issue an access token.

        Args:
            login: Email address or username.
            password: Plain text password.

        Returns:
            The user and a signed access token.

        Raises:
            UnauthenticatedError: If the credentials do not match.
        """
        login = (login or "").strip()
        if "@" in login:
            user = await self._users.get_by_email(login)
        else:
            user = await self._users.get_by_username(login)

        if user is None or not verify_password(password, user.password_hash):
            logger.warning("login_failed", login=login)
            raise UnauthenticatedError("Invalid credentials")

        token = self._authenticator.create_access_token(user.id, user.role)
        logger.info("login_succeeded", user_id=str(user.id))
        return user, token

    async def get_user(self, user_id: UUID) -> User:
        """Get a user by ID."""
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: UUID, changes: ProfileChanges) -> User:
        """Change the caller's own name, username, email or password.

        A new email address is unverified until confirmed again.

        Raises:
            InvalidArgumentError: If a changed field is malformed.
            ConflictError: If the new email or username is taken.
        """
        user = await self.get_user(user_id)
        updated = await self._users.update(self._apply(user, changes))
        logger.info("profile_updated", user_id=str(user_id))
        return updated

    async def search_users(self, query: str, project_id: UUID | None = None) -> list[User]:
        """Find users by name, username or email.

        When ``project_id`` is given, the project's creator and members are
        left out so the result lists only people who can still be invited.
        """
        query = (query or "").strip()
        if not query:
            return []

        exclude: list[UUID] = []
        if project_id is not None:
            project = await self._projects.get(project_id)
            if project is None:
                raise NotFoundError("Project not found")
            exclude = [project.created_by, *project.member_ids]

        return await self._users.search(query, exclude, SEARCH_LIMIT)

    # Account administration, global Admins only

    async def list_users(self, caller: Caller) -> list[User]:
        """List every account."""
        await self._require_admin(caller)
        return await self._users.list_all()

    async def find_user(self, caller: Caller, user_id: UUID) -> User:
        """Get any account by ID."""
        await self._require_admin(caller)
        return await self.get_user(user_id)

    async def update_user(
        self,
        caller: Caller,
        user_id: UUID,
        changes: ProfileChanges,
        role: GlobalRole | None = None,
        is_email_verified: bool | None = None,
    ) -> User:
        """Edit any account, including its global role and verification flag.

        Raises:
            ForbiddenError: If the caller is not an Admin.
            InvalidOperationError: If an Admin tries to demote themselves.
            NotFoundError: If the user does not exist.
        """
        await self._require_admin(caller)
        if user_id == caller.user_id and role == GlobalRole.USER:
            raise InvalidOperationError("Admins cannot remove their own Admin role")

        user = self._apply(await self.get_user(user_id), changes)
        if role is not None:
            user.role = role
        if is_email_verified is not None:
            user.is_email_verified = is_email_verified

        updated = await self._users.update(user)
        logger.info(
            "user_updated_by_admin",
            user_id=str(user_id),
            admin_id=str(caller.user_id),
            role=updated.role.value,
        )
        return updated

    async def delete_user(self, caller: Caller, user_id: UUID) -> None:
        """Delete an account nothing references any more.

        Raises:
            ForbiddenError: If the caller is not an Admin.
            InvalidOperationError: If an Admin tries to delete themselves.
            NotFoundError: If the user does not exist.
            ConflictError: If projects, invites or tasks still reference the user.
        """
        await self._require_admin(caller)
        if user_id == caller.user_id:
            raise InvalidOperationError("Admins cannot delete their own account")
        if not await self._users.delete(user_id):
            raise NotFoundError("User not found")
        logger.info("user_deleted", user_id=str(user_id), admin_id=str(caller.user_id))

    async def _require_admin(self, caller: Caller) -> None:
        require_admin(caller)
        current = await self._users.get_by_id(caller.user_id)
        if current is None:
            raise ForbiddenError("Admins only")
        require_admin(caller, current)

    def _apply(self, user: User, changes: ProfileChanges) -> User:
        updated = replace(user)
        if changes.full_name is not None:
            updated.full_name = _clean_full_name(changes.full_name)
        if changes.username is not None:
            updated.username = _clean_username(changes.username)
        if changes.email is not None:
            email = _clean_email(changes.email)
            if email != user.email:
                updated.email = email
                updated.is_email_verified = False
        if changes.password is not None:
            updated.password_hash = hash_password(_check_password(changes.password))
        return updated
