# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from expensehub.schemas.common import PageMeta


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit log entry."""

    id: uuid.UUID
    actor_id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit log entries."""

    items: list[AuditLogEntryResponse]
    pagination: PageMeta


class StatsBucket(BaseModel):
    """Count and amount sum for one group."""

    count: int
    total_amount: Decimal


class MonthlyBucket(BaseModel):
    year: int
    month: int
    count: int
    total_amount: Decimal


class RequestStatsResponse(BaseModel):
    """Request aggregates, scoped to the caller."""

    total: int
    by_status: dict[str, StatsBucket]
    by_type: dict[str, StatsBucket]
    monthly: list[MonthlyBucket]


class InvoiceStatsResponse(BaseModel):
    """Invoice aggregates, scoped to the caller."""

    total: int
    by_status: dict[str, StatsBucket]
    monthly: list[MonthlyBucket]
