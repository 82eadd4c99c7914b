# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from expensehub.api.deps import AdminDep, AuthDep, PageDep, ReviewerDep
from expensehub.db import SessionDep
from expensehub.models.enums import InvoiceStatus
from expensehub.schemas.invoice import (
    CreateInvoicePayload,
    InvoiceListResponse,
    InvoiceResponse,
    PaymentPayload,
    UpdateInvoicePayload,
)
from expensehub.schemas.report import InvoiceStatsResponse
from expensehub.schemas.request import RejectPayload
from expensehub.services import invoice as invoice_service
from expensehub.services import report as report_service

invoices_router = APIRouter(prefix="/invoices", tags=["invoices"])


@invoices_router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: CreateInvoicePayload,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    """Create an invoice (vendor only). Totals and number are assigned by the server."""
    return await invoice_service.create_invoice(session, auth, payload)


@invoices_router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    session: SessionDep,
    auth: ReviewerDep,
    page: PageDep,
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
    vendor_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> InvoiceListResponse:
    """List all invoices (manager/admin)."""
    criteria = {
        "status": status_filter,
        "vendor_id": vendor_id,
        "start_date": start_date,
        "end_date": end_date,
    }
    return await invoice_service.list_invoices(session, auth, page, criteria)


@invoices_router.get("/my", response_model=InvoiceListResponse)
async def list_my_invoices(
    session: SessionDep,
    auth: AuthDep,
    page: PageDep,
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
) -> InvoiceListResponse:
    """List the caller's own invoices."""
    return await invoice_service.list_my_invoices(session, auth, page, {"status": status_filter})


@invoices_router.get("/pending", response_model=InvoiceListResponse)
async def list_pending_invoices(
    session: SessionDep,
    auth: ReviewerDep,
    page: PageDep,
) -> InvoiceListResponse:
    """Invoices awaiting review, earliest due first (manager/admin)."""
    return await invoice_service.list_pending_invoices(session, auth, page)


@invoices_router.get("/stats", response_model=InvoiceStatsResponse)
async def invoice_stats(session: SessionDep, auth: AuthDep) -> InvoiceStatsResponse:
    return await report_service.invoice_stats(session, auth)


@invoices_router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    return await invoice_service.get_invoice(session, auth, invoice_id)


@invoices_router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: uuid.UUID,
    payload: UpdateInvoicePayload,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    """Update a draft or pending invoice (owner only)."""
    return await invoice_service.update_invoice(session, auth, invoice_id, payload)


@invoices_router.post("/{invoice_id}/submit", response_model=InvoiceResponse)
async def submit_invoice(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    """Submit a draft invoice for review (owner only)."""
    return await invoice_service.submit_invoice(session, auth, invoice_id)


@invoices_router.post("/{invoice_id}/approve", response_model=InvoiceResponse)
async def approve_invoice(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    return await invoice_service.approve_invoice(session, auth, invoice_id)


@invoices_router.post("/{invoice_id}/reject", response_model=InvoiceResponse)
async def reject_invoice(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: RejectPayload | None = None,
) -> InvoiceResponse:
    return await invoice_service.reject_invoice(session, auth, invoice_id, payload)


@invoices_router.post("/{invoice_id}/pay", response_model=InvoiceResponse)
async def mark_invoice_paid(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: PaymentPayload | None = None,
) -> InvoiceResponse:
    """Mark an approved invoice as paid (manager/admin)."""
    return await invoice_service.mark_invoice_paid(session, auth, invoice_id, payload)


@invoices_router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
async def cancel_invoice(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> InvoiceResponse:
    return await invoice_service.cancel_invoice(session, auth, invoice_id)


@invoices_router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Permanently delete an invoice (admin only)."""
    await invoice_service.delete_invoice(session, auth, invoice_id)
