# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from expensehub.models.base import TimestampMixin, UUIDBase, now_utc
from expensehub.models.enums import RequestPriority, RequestStatus


class ExpenseRequest(UUIDBase, TimestampMixin, table=True):
    """An employee's request (expense, leave, equipment...) with approval workflow state."""

    __tablename__ = "expense_request"
    __table_args__ = (
        sa.Index("ix_request_owner_status", "requested_by", "status"),
        sa.Index("ix_request_status_created", "status", "created_at"),
    )

    title: str = Field(max_length=200)
    description: str = Field(max_length=2000)
    type: str = Field(max_length=20, index=True)
    amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    currency: str = Field(default="USD", max_length=3)
    status: str = Field(
        default=RequestStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    priority: str = Field(default=RequestPriority.MEDIUM, max_length=20)
    requested_by: uuid.UUID = Field(index=True)
    approved_by: uuid.UUID | None = None
    approval_date: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    rejection_reason: str | None = Field(default=None, max_length=1000)
    start_date: date | None = None
    end_date: date | None = None
    category: str | None = Field(default=None, max_length=100)
    receipt_number: str | None = Field(default=None, max_length=100)
    attachments: list[dict[str, Any]] = Field(default_factory=list, sa_type=sa.JSON)


class RequestComment(UUIDBase, table=True):
    """A comment appended to a request. Lives and dies with its request."""

    __tablename__ = "request_comment"

    request_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("expense_request.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    author_id: uuid.UUID
    text: str = Field(max_length=2000)
    created_at: datetime = Field(
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
