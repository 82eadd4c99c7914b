# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from expensehub.api.deps import AdminDep, PageDep
from expensehub.db import SessionDep
from expensehub.models.enums import AuditAction, AuditEntityType
from expensehub.schemas.report import AuditLogListResponse
from expensehub.services import report as report_service

reports_router = APIRouter(tags=["reports"])


@reports_router.get(
    "/audit-log",
    response_model=AuditLogListResponse,
)
async def query_audit_log(
    session: SessionDep,
    auth: AdminDep,
    page: PageDep,
    entity_type: AuditEntityType | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> AuditLogListResponse:
    """Query audit log entries with optional filters (admin only)."""
    return await report_service.query_audit_log(
        session,
        page,
        entity_type=entity_type,
        action=action,
        actor_id=actor_id,
        start_date=start_date,
        end_date=end_date,
    )
