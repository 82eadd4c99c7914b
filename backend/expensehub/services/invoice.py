# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from expensehub.exceptions import ConflictError, NotFoundError
from expensehub.models.base import now_utc
from expensehub.models.enums import (
    AuditAction,
    AuditEntityType,
    InvoiceStatus,
    PaymentMethod,
    RecordKind,
    WorkflowOperation,
)
from expensehub.models.invoice import Invoice
from expensehub.schemas.common import Attachment, PageMeta
from expensehub.schemas.invoice import (
    ClientDetails,
    InvoiceListResponse,
    InvoiceResponse,
    LineItem,
    VendorDetails,
)
from expensehub.services.access import (
    authorize,
    can_create,
    can_delete,
    can_read,
    can_review,
    can_transition,
    can_update,
)
from expensehub.services.audit import model_to_audit_dict, write_audit_log
from expensehub.services.numbering import next_invoice_number
from expensehub.services.query import FilterSpec, build_filters, end_of_day, fetch_page, start_of_day
from expensehub.services.totals import compute_totals, stored_items
from expensehub.services.workflow import INVOICE_WORKFLOW, commit_transition

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from expensehub.schemas.auth import AuthContext
    from expensehub.schemas.common import PageParams
    from expensehub.schemas.invoice import CreateInvoicePayload, PaymentPayload, UpdateInvoicePayload
    from expensehub.schemas.request import RejectPayload

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"

INVOICE_FILTERS: FilterSpec = {
    "status": lambda v: col(Invoice.status) == v,
    "vendor_id": lambda v: col(Invoice.vendor_id) == v,
    "start_date": lambda v: col(Invoice.created_at) >= start_of_day(v),
    "end_date": lambda v: col(Invoice.created_at) <= end_of_day(v),
}

_NEWEST_FIRST = (col(Invoice.created_at).desc(), col(Invoice.id).desc())
_EARLIEST_DUE_FIRST = (col(Invoice.due_date), col(Invoice.created_at), col(Invoice.id))

# Update fields that change the derived totals.
_PRICING_FIELDS = frozenset({"items", "tax_rate", "discount"})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_invoice_response(invoice: Invoice) -> InvoiceResponse:
    """Map an invoice model to its response schema."""
    return InvoiceResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        title=invoice.title,
        description=invoice.description,
        vendor_id=invoice.vendor_id,
        vendor_details=VendorDetails.model_validate(invoice.vendor_details) if invoice.vendor_details else None,
        client=ClientDetails.model_validate(invoice.client) if invoice.client else None,
        items=[LineItem.model_validate(item) for item in invoice.items or []],
        subtotal=invoice.subtotal,
        tax_rate=invoice.tax_rate,
        tax_amount=invoice.tax_amount,
        discount=invoice.discount,
        total_amount=invoice.total_amount,
        currency=invoice.currency,
        status=InvoiceStatus(invoice.status),
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        paid_date=invoice.paid_date,
        payment_method=PaymentMethod(invoice.payment_method),
        payment_reference=invoice.payment_reference,
        approved_by=invoice.approved_by,
        approval_date=invoice.approval_date,
        rejection_reason=invoice.rejection_reason,
        notes=invoice.notes,
        attachments=[Attachment.model_validate(a) for a in invoice.attachments or []],
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
    )


async def _get_invoice_or_404(session: AsyncSession, invoice_id: uuid.UUID) -> Invoice:
    """Fetch an invoice by ID. Raises 404 if not found."""
    result = await session.execute(select(Invoice).where(col(Invoice.id) == invoice_id))
    invoice = result.scalar_one_or_none()
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


async def _list(
    session: AsyncSession,
    criteria: Mapping[str, Any],
    page: PageParams,
    order_by: tuple[Any, ...] = _NEWEST_FIRST,
) -> InvoiceListResponse:
    filters = build_filters(INVOICE_FILTERS, criteria)
    invoices, total = await fetch_page(session, Invoice, filters, order_by, page)
    return InvoiceListResponse(
        items=[_build_invoice_response(i) for i in invoices],
        pagination=PageMeta.build(page, len(invoices), total),
    )


async def _transition(
    session: AsyncSession,
    auth: AuthContext,
    invoice: Invoice,
    operation: WorkflowOperation,
    audit_action: AuditAction,
    values: dict[str, Any] | None = None,
) -> InvoiceResponse:
    """Authorize, resolve the next state, write it conditionally, audit, commit."""
    authorize(can_transition(auth, operation, invoice.vendor_id), f"Not authorized to {operation} this invoice")

    expected_status = invoice.status
    new_status = INVOICE_WORKFLOW.next_state(expected_status, operation)
    before_dict = model_to_audit_dict(invoice)

    await commit_transition(
        session,
        invoice,
        expected_status,
        {"status": new_status, "updated_at": now_utc(), **(values or {})},
    )
    await session.refresh(invoice)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.INVOICE,
        entity_id=invoice.id,
        action=audit_action,
        before_json=before_dict,
        after_json=model_to_audit_dict(invoice),
    )

    await session.commit()
    logger.info(
        "Invoice %s (%s) %s -> %s by %s",
        invoice.invoice_number,
        invoice.id,
        expected_status,
        new_status,
        auth.user_id,
    )
    return _build_invoice_response(invoice)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_invoice(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateInvoicePayload,
) -> InvoiceResponse:
    """Create an invoice for the acting vendor.

    Totals are computed from the line items, and the next number for the
    current year is claimed in the same transaction. The invoice starts
    `pending`, or `draft` when `save_as_draft` is set.
    """
    authorize(can_create(auth, RecordKind.INVOICE), "Only vendors can create invoices")

    totals = compute_totals(payload.items, payload.tax_rate, payload.discount)
    issue_date = payload.issue_date or date.today()
    invoice_number = await next_invoice_number(session, date.today().year)

    invoice = Invoice(
        invoice_number=invoice_number,
        title=payload.title,
        description=payload.description,
        vendor_id=auth.user_id,
        vendor_details=payload.vendor_details.model_dump(mode="json") if payload.vendor_details else None,
        client=payload.client.model_dump(mode="json"),
        items=totals.items_json(),
        subtotal=totals.subtotal,
        tax_rate=payload.tax_rate,
        tax_amount=totals.tax_amount,
        discount=payload.discount,
        total_amount=totals.total_amount,
        currency=payload.currency.upper(),
        status=InvoiceStatus.DRAFT.value if payload.save_as_draft else INVOICE_WORKFLOW.initial_state,
        issue_date=issue_date,
        due_date=payload.due_date,
        payment_method=payload.payment_method.value,
        notes=payload.notes,
        attachments=[a.model_dump(mode="json") for a in payload.attachments],
    )
    session.add(invoice)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        logger.warning("Invoice number %s is already taken", invoice_number)
        raise ConflictError(f"Invoice number {invoice_number} is already in use; retry the request") from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.INVOICE,
        entity_id=invoice.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(invoice),
    )

    await session.commit()
    await session.refresh(invoice)
    logger.info("Invoice %s created by vendor %s", invoice.invoice_number, auth.user_id)
    return _build_invoice_response(invoice)


async def get_invoice(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
) -> InvoiceResponse:
    invoice = await _get_invoice_or_404(session, invoice_id)
    authorize(can_read(auth, invoice.vendor_id), "Not authorized to view this invoice")
    return _build_invoice_response(invoice)


async def list_my_invoices(
    session: AsyncSession,
    auth: AuthContext,
    page: PageParams,
    criteria: Mapping[str, Any] | None = None,
) -> InvoiceListResponse:
    """List the acting vendor's invoices, newest first."""
    return await _list(session, {**(criteria or {}), "vendor_id": auth.user_id}, page)


async def list_invoices(
    session: AsyncSession,
    auth: AuthContext,
    page: PageParams,
    criteria: Mapping[str, Any] | None = None,
) -> InvoiceListResponse:
    """List all invoices (reviewers only), newest first."""
    authorize(can_review(auth), "Manager or admin access required")
    return await _list(session, criteria or {}, page)


async def list_pending_invoices(
    session: AsyncSession,
    auth: AuthContext,
    page: PageParams,
) -> InvoiceListResponse:
    """Invoices awaiting review, earliest due date first."""
    authorize(can_review(auth), "Manager or admin access required")
    return await _list(session, {"status": InvoiceStatus.PENDING.value}, page, _EARLIEST_DUE_FIRST)


async def update_invoice(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
    payload: UpdateInvoicePayload,
) -> InvoiceResponse:
    """Apply a partial update to a draft or pending invoice (owner only).

    Totals are recomputed whenever items, tax rate or discount change.
    """
    invoice = await _get_invoice_or_404(session, invoice_id)
    authorize(can_update(auth, invoice.vendor_id), "Not authorized to update this invoice")
    INVOICE_WORKFLOW.next_state(invoice.status, WorkflowOperation.UPDATE)

    changes: dict[str, Any] = {
        k: v for k, v in payload.model_dump(mode="json", exclude_unset=True).items() if v is not None
    }
    # JSON mode turns Decimals and dates into strings; restore the typed values.
    for key in ("tax_rate", "discount", "due_date"):
        if key in changes:
            changes[key] = getattr(payload, key)

    if _PRICING_FIELDS & changes.keys():
        items = payload.items if payload.items is not None else stored_items(invoice.items)
        tax_rate = payload.tax_rate if payload.tax_rate is not None else invoice.tax_rate
        discount = payload.discount if payload.discount is not None else invoice.discount
        totals = compute_totals(items, tax_rate, discount)
        changes.update(
            items=totals.items_json(),
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
        )

    return await _transition(session, auth, invoice, WorkflowOperation.UPDATE, AuditAction.UPDATE, changes)


async def submit_invoice(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
) -> InvoiceResponse:
    """Move a draft invoice into review."""
    invoice = await _get_invoice_or_404(session, invoice_id)
    return await _transition(session, auth, invoice, WorkflowOperation.SUBMIT, AuditAction.SUBMIT)


async def approve_invoice(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
) -> InvoiceResponse:
    invoice = await _get_invoice_or_404(session, invoice_id)
    return await _transition(
        session,
        auth,
        invoice,
        WorkflowOperation.APPROVE,
        AuditAction.APPROVE,
        {"approved_by": auth.user_id, "approval_date": now_utc()},
    )


async def reject_invoice(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
    payload: RejectPayload | None = None,
) -> InvoiceResponse:
    invoice = await _get_invoice_or_404(session, invoice_id)
    reason = payload.rejection_reason if payload and payload.rejection_reason else DEFAULT_REJECTION_REASON
    return await _transition(
        session,
        auth,
        invoice,
        WorkflowOperation.REJECT,
        AuditAction.REJECT,
        {"approved_by": auth.user_id, "approval_date": now_utc(), "rejection_reason": reason},
    )


async def mark_invoice_paid(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
    payload: PaymentPayload | None = None,
) -> InvoiceResponse:
    """Record payment of an approved invoice."""
    invoice = await _get_invoice_or_404(session, invoice_id)
    values: dict[str, Any] = {"paid_date": now_utc()}
    if payload is not None and payload.payment_reference:
        values["payment_reference"] = payload.payment_reference
    if payload is not None and payload.payment_method is not None:
        values["payment_method"] = payload.payment_method.value
    return await _transition(session, auth, invoice, WorkflowOperation.MARK_PAID, AuditAction.PAY, values)


async def cancel_invoice(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
) -> InvoiceResponse:
    invoice = await _get_invoice_or_404(session, invoice_id)
    return await _transition(session, auth, invoice, WorkflowOperation.CANCEL, AuditAction.CANCEL)


async def delete_invoice(
    session: AsyncSession,
    auth: AuthContext,
    invoice_id: uuid.UUID,
) -> None:
    """Hard-delete an invoice (admin only). Its number is not reused."""
    authorize(can_delete(auth), "Admin access required")
    invoice = await _get_invoice_or_404(session, invoice_id)
    before_dict = model_to_audit_dict(invoice)

    await session.delete(invoice)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.INVOICE,
        entity_id=invoice_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )

    await session.commit()
    logger.info("Invoice %s deleted by %s", invoice_id, auth.user_id)
