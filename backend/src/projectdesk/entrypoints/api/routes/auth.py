"""Auth API routes for registration and login."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel, EmailStr, Field

from projectdesk.entrypoints.api.deps import UserServiceDep
from projectdesk.entrypoints.api.routes.users import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    """Registration request body."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    """Login request body; ``login`` is an email or a username."""

    login: str
    password: str


class TokenResponse(BaseModel):
    """Token response."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, service: UserServiceDep) -> UserResponse:
    """Register a new user."""
    user = await service.register_user(
        email=body.email,
        username=body.username,
        full_name=body.full_name,
        password=body.password,
    )
    return UserResponse.from_user(user)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, service: UserServiceDep) -> TokenResponse:
    """Authenticate and return an access token."""
    user, token = await service.login(body.login, body.password)
    logger.info(f"user_logged_in: user_id={user.id}")
    return TokenResponse(access_token=token, user=UserResponse.from_user(user))
