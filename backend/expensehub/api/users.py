# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from expensehub.api.deps import AdminDep, AuthDep, PageDep, ReviewerDep
from expensehub.db import SessionDep
from expensehub.models.enums import UserRole
from expensehub.schemas.user import (
    CreateUserPayload,
    UpdateProfilePayload,
    UpdateUserPayload,
    UserListResponse,
    UserResponse,
    UserStatsResponse,
)
from expensehub.services import user as user_service

users_router = APIRouter(prefix="/users", tags=["users"])


@users_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: CreateUserPayload,
    session: SessionDep,
    auth: AdminDep,
) -> UserResponse:
    """Create a user (admin only)."""
    return await user_service.create_user(session, auth, payload)


@users_router.get("", response_model=UserListResponse)
async def list_users(
    session: SessionDep,
    auth: ReviewerDep,
    page: PageDep,
    role: UserRole | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
) -> UserListResponse:
    """List users (manager/admin)."""
    return await user_service.list_users(session, auth, page, role=role, is_active=is_active, search=search)


@users_router.get("/stats", response_model=UserStatsResponse)
async def user_stats(session: SessionDep, auth: AdminDep) -> UserStatsResponse:
    return await user_service.user_stats(session, auth)


@users_router.get("/me", response_model=UserResponse)
async def get_me(session: SessionDep, auth: AuthDep) -> UserResponse:
    return await user_service.get_user(session, auth, auth.user_id)


@users_router.put("/me", response_model=UserResponse)
async def update_profile(
    payload: UpdateProfilePayload,
    session: SessionDep,
    auth: AuthDep,
) -> UserResponse:
    """Update the caller's own profile."""
    return await user_service.update_profile(session, auth, payload)


@users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> UserResponse:
    return await user_service.get_user(session, auth, user_id)


@users_router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    payload: UpdateUserPayload,
    session: SessionDep,
    auth: AdminDep,
) -> UserResponse:
    """Update any user (admin only)."""
    return await user_service.update_user(session, auth, user_id, payload)


@users_router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> UserResponse:
    """Deactivate a user. Users are never hard-deleted."""
    return await user_service.deactivate_user(session, auth, user_id)
