# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from expensehub.exceptions import ConflictError, NotFoundError
from expensehub.models.base import now_utc
from expensehub.models.enums import AuditAction, AuditEntityType, UserRole
from expensehub.models.user import User
from expensehub.schemas.common import PageMeta
from expensehub.schemas.user import UserListResponse, UserResponse, UserStatsResponse
from expensehub.services.access import authorize, can_manage_users, can_view_users
from expensehub.services.audit import model_to_audit_dict, write_audit_log
from expensehub.services.query import fetch_page

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from expensehub.schemas.auth import AuthContext
    from expensehub.schemas.common import PageParams
    from expensehub.schemas.user import CreateUserPayload, UpdateProfilePayload, UpdateUserPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=UserRole(user.role),
        department=user.department,
        phone=user.phone,
        avatar=user.avatar,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


async def _get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    """Fetch a user by ID. Raises 404 if not found."""
    result = await session.execute(select(User).where(col(User.id) == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def _ensure_email_free(session: AsyncSession, email: str, exclude_id: uuid.UUID | None = None) -> None:
    stmt = select(User.id).where(func.lower(col(User.email)) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(col(User.id) != exclude_id)
    result = await session.execute(stmt)
    if result.first() is not None:
        raise ConflictError("A user with this email already exists")


async def _apply_changes(
    session: AsyncSession,
    auth: AuthContext,
    user: User,
    changes: dict[str, Any],
    action: AuditAction = AuditAction.UPDATE,
) -> UserResponse:
    before_dict = model_to_audit_dict(user)
    for field, value in changes.items():
        setattr(user, field, value)
    user.updated_at = now_utc()
    session.add(user)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=action,
        before_json=before_dict,
        after_json=model_to_audit_dict(user),
    )

    await session.commit()
    await session.refresh(user)
    return _build_user_response(user)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_user(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateUserPayload,
) -> UserResponse:
    """Create a user (admin only). Emails are unique, case-insensitively."""
    authorize(can_manage_users(auth), "Admin access required")
    await _ensure_email_free(session, payload.email)

    user = User(
        name=payload.name,
        email=payload.email.lower(),
        role=payload.role.value,
        department=payload.department,
        phone=payload.phone,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("A user with this email already exists") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(user),
    )

    await session.commit()
    await session.refresh(user)
    logger.info("User %s (%s) created by %s", user.id, user.role, auth.user_id)
    return _build_user_response(user)


async def list_users(
    session: AsyncSession,
    auth: AuthContext,
    page: PageParams,
    *,
    role: UserRole | None = None,
    is_active: bool | None = None,
    search: str | None = None,
) -> UserListResponse:
    """List users, optionally filtered by role, activity, and a name/email search."""
    authorize(can_view_users(auth), "Manager or admin access required")

    filters = []
    if role is not None:
        filters.append(col(User.role) == role.value)
    if is_active is not None:
        filters.append(col(User.is_active) == is_active)
    if search:
        term = search.lower().replace("/", "//").replace("%", "/%").replace("_", "/_")
        pattern = f"%{term}%"
        filters.append(
            or_(
                func.lower(col(User.name)).like(pattern, escape="/"),
                func.lower(col(User.email)).like(pattern, escape="/"),
            )
        )

    users, total = await fetch_page(session, User, filters, [col(User.name), col(User.id)], page)
    return UserListResponse(
        items=[_build_user_response(u) for u in users],
        pagination=PageMeta.build(page, len(users), total),
    )


async def get_user(session: AsyncSession, auth: AuthContext, user_id: uuid.UUID) -> UserResponse:
    """Get a single user. Anyone may read their own record; others need a reviewer role."""
    if auth.user_id != user_id:
        authorize(can_view_users(auth), "Manager or admin access required")
    return _build_user_response(await _get_user_or_404(session, user_id))


async def update_profile(
    session: AsyncSession,
    auth: AuthContext,
    payload: UpdateProfilePayload,
) -> UserResponse:
    """Update the actor's own profile fields."""
    user = await _get_user_or_404(session, auth.user_id)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    return await _apply_changes(session, auth, user, changes)


async def update_user(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    payload: UpdateUserPayload,
) -> UserResponse:
    """Update any user (admin only)."""
    authorize(can_manage_users(auth), "Admin access required")
    user = await _get_user_or_404(session, user_id)

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "email" in changes:
        await _ensure_email_free(session, changes["email"], exclude_id=user.id)
        changes["email"] = changes["email"].lower()
    if "role" in changes:
        changes["role"] = UserRole(changes["role"]).value

    response = await _apply_changes(session, auth, user, changes)
    logger.info("User %s updated by %s", user_id, auth.user_id)
    return response


async def deactivate_user(session: AsyncSession, auth: AuthContext, user_id: uuid.UUID) -> UserResponse:
    """Soft-delete a user by clearing `is_active` (admin only)."""
    authorize(can_manage_users(auth), "Admin access required")
    user = await _get_user_or_404(session, user_id)
    response = await _apply_changes(session, auth, user, {"is_active": False}, AuditAction.DEACTIVATE)
    logger.info("User %s deactivated by %s", user_id, auth.user_id)
    return response


async def user_stats(session: AsyncSession, auth: AuthContext) -> UserStatsResponse:
    """Headcount by activity and role (admin only)."""
    authorize(can_manage_users(auth), "Admin access required")

    result = await session.execute(select(col(User.is_active), func.count()).group_by(col(User.is_active)))
    by_activity = {bool(active): int(count) for active, count in result.all()}

    result = await session.execute(select(col(User.role), func.count()).group_by(col(User.role)))
    by_role = {str(role): int(count) for role, count in result.all()}

    active = by_activity.get(True, 0)
    inactive = by_activity.get(False, 0)
    return UserStatsResponse(total=active + inactive, active=active, inactive=inactive, by_role=by_role)
