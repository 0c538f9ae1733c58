"""User profile, lookup and account administration routes."""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel, Field

from projectdesk.core.identity import GlobalRole, ProfileChanges, User, UserSummary
from projectdesk.entrypoints.api.deps import CallerDep, UserServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


class UserSummaryResponse(BaseModel):
    """Public view of a user."""

    id: UUID
    username: str
    full_name: str
    email: str

    @classmethod
    def from_summary(cls, summary: UserSummary) -> UserSummaryResponse:
        """Build from a domain summary."""
        return cls(
            id=summary.id,
            username=summary.username,
            full_name=summary.full_name,
            email=summary.email,
        )

    @classmethod
    def from_user(cls, user: User) -> UserSummaryResponse:
        """Build from a full user record."""
        return cls.from_summary(UserSummary.from_user(user))


class UserResponse(BaseModel):
    """Response for the current user."""

    id: UUID
    username: str
    full_name: str
    email: str
    role: str
    is_email_verified: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        """Build from a domain user."""
        return cls(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            role=user.role.value,
            is_email_verified=user.is_email_verified,
            created_at=user.created_at,
        )


class ProfileUpdate(BaseModel):
    """Own profile update; omitted fields are left unchanged."""

    full_name: str | None = Field(None, max_length=200)
    username: str | None = Field(None, max_length=50)
    email: str | None = None
    password: str | None = None

    def to_changes(self) -> ProfileChanges:
        """Convert to the domain change set."""
        return ProfileChanges(
            full_name=self.full_name,
            username=self.username,
            email=self.email,
            password=self.password,
        )


class AdminUserUpdate(ProfileUpdate):
    """Account update by an Admin."""

    role: GlobalRole | None = None
    is_email_verified: bool | None = None


@router.get("/me", response_model=UserResponse)
async def get_me(caller: CallerDep, service: UserServiceDep) -> UserResponse:
    """Get the authenticated user."""
    return UserResponse.from_user(await service.get_user(caller.user_id))


@router.get("/search", response_model=list[UserSummaryResponse])
async def search_users(
    caller: CallerDep,
    service: UserServiceDep,
    q: str = Query("", description="Substring of full name, username or email"),
    project_id: UUID | None = Query(None, description="Leave out this project's members"),
) -> list[UserSummaryResponse]:
    """Search users to invite, at most 10 results."""
    users = await service.search_users(q, project_id=project_id)
    return [UserSummaryResponse.from_user(user) for user in users]


@router.patch("/me", response_model=UserResponse)
async def update_me(body: ProfileUpdate, caller: CallerDep, service: UserServiceDep) -> UserResponse:
    """Update the authenticated user's profile."""
    user = await service.update_profile(caller.user_id, body.to_changes())
    return UserResponse.from_user(user)


@router.get("", response_model=list[UserResponse])
async def list_users(caller: CallerDep, service: UserServiceDep) -> list[UserResponse]:
    """List all accounts (Admin only)."""
    return [UserResponse.from_user(user) for user in await service.list_users(caller)]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, caller: CallerDep, service: UserServiceDep) -> UserResponse:
    """Get any account (Admin only)."""
    return UserResponse.from_user(await service.find_user(caller, user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    body: AdminUserUpdate,
    caller: CallerDep,
    service: UserServiceDep,
) -> UserResponse:
    """Edit any account, including its global role (Admin only)."""
    user = await service.update_user(
        caller,
        user_id,
        body.to_changes(),
        role=body.role,
        is_email_verified=body.is_email_verified,
    )
    logger.info(f"user_updated: user_id={user_id}, by={caller.user_id}")
    return UserResponse.from_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: UUID, caller: CallerDep, service: UserServiceDep) -> Response:
    """Delete an account nothing references any more (Admin only)."""
    await service.delete_user(caller, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
