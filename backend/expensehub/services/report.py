"""Reporting service: scoped aggregates for requests/invoices and audit log queries."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import extract, func, select
from sqlmodel import col

from expensehub.models.audit import AuditLog
from expensehub.models.invoice import Invoice
from expensehub.models.request import ExpenseRequest
from expensehub.schemas.common import PageMeta
from expensehub.schemas.report import (
    AuditLogEntryResponse,
    AuditLogListResponse,
    InvoiceStatsResponse,
    MonthlyBucket,
    RequestStatsResponse,
    StatsBucket,
)
from expensehub.services.access import owner_scope
from expensehub.services.query import build_filters, end_of_day, fetch_page, start_of_day
from expensehub.services.totals import to_money

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import ColumnElement

    from expensehub.schemas.auth import AuthContext
    from expensehub.schemas.common import PageParams

MONTHLY_BUCKETS = 12

_AUDIT_FILTERS = {
    "entity_type": lambda v: col(AuditLog.entity_type) == v,
    "action": lambda v: col(AuditLog.action) == v,
    "actor_id": lambda v: col(AuditLog.actor_id) == v,
    "start_date": lambda v: col(AuditLog.created_at) >= start_of_day(v),
    "end_date": lambda v: col(AuditLog.created_at) <= end_of_day(v),
}


def _money(value: Any) -> Decimal:
    # Drivers return Decimal, float or None for SUM() depending on backend.
    return to_money(Decimal(str(value or 0)))


async def stats_by_group(
    session: AsyncSession,
    group_column: Any,
    amount_column: Any,
    filters: Sequence[ColumnElement[bool]],
) -> dict[str, StatsBucket]:
    """Count and amount sum per distinct value of `group_column`."""
    result = await session.execute(
        select(group_column, func.count(), func.sum(amount_column)).where(*filters).group_by(group_column)
    )
    return {str(key): StatsBucket(count=count, total_amount=_money(total)) for key, count, total in result.all()}


async def stats_by_month(
    session: AsyncSession,
    created_column: Any,
    amount_column: Any,
    filters: Sequence[ColumnElement[bool]],
    limit: int = MONTHLY_BUCKETS,
) -> list[MonthlyBucket]:
    """Most recent `limit` (year, month) buckets, newest first."""
    year = extract("year", created_column)
    month = extract("month", created_column)
    result = await session.execute(
        select(year, month, func.count(), func.sum(amount_column))
        .where(*filters)
        .group_by(year, month)
        .order_by(year.desc(), month.desc())
        .limit(limit)
    )
    return [
        MonthlyBucket(year=int(y), month=int(m), count=count, total_amount=_money(total))
        for y, m, count, total in result.all()
    ]


async def _count(session: AsyncSession, model: Any, filters: Sequence[ColumnElement[bool]]) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*filters))
    return int(result.scalar_one())


async def request_stats(session: AsyncSession, auth: AuthContext) -> RequestStatsResponse:
    """Request aggregates. Employees only ever see their own requests counted."""
    owner_id = owner_scope(auth)
    filters = [] if owner_id is None else [col(ExpenseRequest.requested_by) == owner_id]

    return RequestStatsResponse(
        total=await _count(session, ExpenseRequest, filters),
        by_status=await stats_by_group(session, col(ExpenseRequest.status), col(ExpenseRequest.amount), filters),
        by_type=await stats_by_group(session, col(ExpenseRequest.type), col(ExpenseRequest.amount), filters),
        monthly=await stats_by_month(
            session, col(ExpenseRequest.created_at), col(ExpenseRequest.amount), filters
        ),
    )


async def invoice_stats(session: AsyncSession, auth: AuthContext) -> InvoiceStatsResponse:
    """Invoice aggregates. Vendors only ever see their own invoices counted."""
    owner_id = owner_scope(auth)
    filters = [] if owner_id is None else [col(Invoice.vendor_id) == owner_id]

    return InvoiceStatsResponse(
        total=await _count(session, Invoice, filters),
        by_status=await stats_by_group(session, col(Invoice.status), col(Invoice.total_amount), filters),
        monthly=await stats_by_month(session, col(Invoice.created_at), col(Invoice.total_amount), filters),
    )


async def query_audit_log(
    session: AsyncSession,
    page: PageParams,
    *,
    entity_type: str | None = None,
    action: str | None = None,
    actor_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters."""
    filters = build_filters(
        _AUDIT_FILTERS,
        {
            "entity_type": entity_type,
            "action": action,
            "actor_id": actor_id,
            "start_date": start_date,
            "end_date": end_date,
        },
    )
    entries, total = await fetch_page(
        session,
        AuditLog,
        filters,
        [col(AuditLog.created_at).desc(), col(AuditLog.id)],
        page,
    )

    return AuditLogListResponse(
        items=[
            AuditLogEntryResponse(
                id=e.id,
                actor_id=e.actor_id,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                action=e.action,
                before_json=e.before_json,
                after_json=e.after_json,
                created_at=e.created_at,
            )
            for e in entries
        ],
        pagination=PageMeta.build(page, len(entries), total),
    )
