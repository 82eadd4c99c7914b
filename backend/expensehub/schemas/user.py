# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from expensehub.models.enums import UserRole
from expensehub.schemas.common import PageMeta

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateUserPayload(BaseModel):
    """Request body for creating a user (admin only)."""

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    role: UserRole = UserRole.EMPLOYEE
    department: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)


class UpdateProfilePayload(BaseModel):
    """Fields a user may change on their own profile."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    department: str | None = Field(default=None, max_length=100)
    avatar: str | None = Field(default=None, max_length=500)


class UpdateUserPayload(BaseModel):
    """Fields an admin may change on any user."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    role: UserRole | None = None
    department: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    department: str | None
    phone: str | None
    avatar: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    """Paginated list of users."""

    items: list[UserResponse]
    pagination: PageMeta


class UserStatsResponse(BaseModel):
    total: int
    active: int
    inactive: int
    by_role: dict[str, int]
