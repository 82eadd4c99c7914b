# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from expensehub.models.base import TimestampMixin, UUIDBase
from expensehub.models.enums import InvoiceStatus, PaymentMethod


class Invoice(UUIDBase, TimestampMixin, table=True):
    """A vendor invoice. Financial totals are derived from `items`, never client input."""

    __tablename__ = "invoice"
    __table_args__ = (
        sa.Index("ix_invoice_vendor_status", "vendor_id", "status"),
        sa.Index("ix_invoice_status_due", "status", "due_date"),
    )

    invoice_number: str = Field(max_length=20, unique=True, index=True)
    title: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    vendor_id: uuid.UUID = Field(index=True)
    vendor_details: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    client: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    items: list[dict[str, Any]] = Field(default_factory=list, sa_type=sa.JSON)
    subtotal: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    tax_rate: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    currency: str = Field(default="USD", max_length=3)
    status: str = Field(
        default=InvoiceStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    issue_date: date = Field(default_factory=date.today)
    due_date: date
    paid_date: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    payment_method: str = Field(default=PaymentMethod.BANK_TRANSFER, max_length=20)
    payment_reference: str | None = Field(default=None, max_length=100)
    approved_by: uuid.UUID | None = None
    approval_date: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    rejection_reason: str | None = Field(default=None, max_length=1000)
    notes: str | None = Field(default=None, max_length=2000)
    attachments: list[dict[str, Any]] = Field(default_factory=list, sa_type=sa.JSON)


class InvoiceCounter(SQLModel, table=True):
    """Per-year invoice number sequence. Incremented atomically, one row per calendar year."""

    __tablename__ = "invoice_counter"

    year: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    last_value: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
