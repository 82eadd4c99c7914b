# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Query

from expensehub.config import get_settings
from expensehub.models.enums import UserRole
from expensehub.schemas.auth import AuthContext
from expensehub.schemas.common import PageParams
from expensehub.services.access import authorize, can_manage_users, can_review


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: UserRole = Header(default=UserRole.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_reviewer(auth: AuthDep) -> AuthContext:
    """Require manager or admin role for the request."""
    authorize(can_review(auth), "Manager or admin access required")
    return auth


ReviewerDep = Annotated[AuthContext, Depends(require_reviewer)]


async def require_admin(auth: AuthDep) -> AuthContext:
    """Require admin role for the request."""
    authorize(can_manage_users(auth), "Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def get_page_params(
    page: int = Query(default=1, ge=1),
    size: int | None = Query(default=None, ge=1),
) -> PageParams:
    """1-indexed pagination, with the page size capped by settings."""
    settings = get_settings()
    return PageParams(page=page, size=min(size or settings.default_page_size, settings.max_page_size))


PageDep = Annotated[PageParams, Depends(get_page_params)]
