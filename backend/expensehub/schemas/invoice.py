# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from expensehub.models.enums import InvoiceStatus, PaymentMethod
from expensehub.schemas.common import Attachment, PageMeta

# ---------------------------------------------------------------------------
# Nested blocks
# ---------------------------------------------------------------------------


class LineItemInput(BaseModel):
    """A line item as submitted by the vendor. The amount is always derived."""

    description: str = Field(min_length=1, max_length=500)
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0, max_digits=14, decimal_places=2)


class LineItem(LineItemInput):
    amount: Decimal


class VendorDetails(BaseModel):
    company_name: str | None = Field(default=None, max_length=200)
    address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    tax_id: str | None = Field(default=None, max_length=50)


class ClientDetails(BaseModel):
    company_name: str = Field(default="ExpenseHub Inc.", max_length=200)
    address: str | None = Field(default=None, max_length=500)
    email: str | None = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateInvoicePayload(BaseModel):
    """Request body for creating an invoice.

    Subtotal, tax amount and total are not accepted here; they are computed
    from `items`, `tax_rate` and `discount`.
    """

    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    vendor_details: VendorDetails | None = None
    client: ClientDetails = Field(default_factory=ClientDetails)
    items: list[LineItemInput] = Field(min_length=1)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, max_digits=5, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    issue_date: date | None = None
    due_date: date
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    notes: str | None = Field(default=None, max_length=2000)
    attachments: list[Attachment] = Field(default_factory=list)
    save_as_draft: bool = False


class UpdateInvoicePayload(BaseModel):
    """Partial update of a draft or pending invoice."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    vendor_details: VendorDetails | None = None
    client: ClientDetails | None = None
    items: list[LineItemInput] | None = Field(default=None, min_length=1)
    tax_rate: Decimal | None = Field(default=None, ge=0, le=100, max_digits=5, decimal_places=2)
    discount: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    due_date: date | None = None
    payment_method: PaymentMethod | None = None
    notes: str | None = Field(default=None, max_length=2000)


class PaymentPayload(BaseModel):
    """Request body for marking an approved invoice as paid."""

    payment_reference: str | None = Field(default=None, max_length=100)
    payment_method: PaymentMethod | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class InvoiceResponse(BaseModel):
    """Response schema for a single invoice."""

    id: uuid.UUID
    invoice_number: str
    title: str
    description: str | None
    vendor_id: uuid.UUID
    vendor_details: VendorDetails | None
    client: ClientDetails | None
    items: list[LineItem]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount: Decimal
    total_amount: Decimal
    currency: str
    status: InvoiceStatus
    issue_date: date
    due_date: date
    paid_date: datetime | None
    payment_method: PaymentMethod
    payment_reference: str | None
    approved_by: uuid.UUID | None
    approval_date: datetime | None
    rejection_reason: str | None
    notes: str | None
    attachments: list[Attachment]
    created_at: datetime
    updated_at: datetime


class InvoiceListResponse(BaseModel):
    """Paginated list of invoices."""

    items: list[InvoiceResponse]
    pagination: PageMeta
