"""Conditional status writes: at most one of several racing transitions wins."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from expensehub.exceptions import ConflictError
from expensehub.models import SQLModel
from expensehub.models.enums import InvoiceStatus, RequestStatus, RequestType
from expensehub.models.invoice import Invoice
from expensehub.models.request import ExpenseRequest
from expensehub.schemas.invoice import CreateInvoicePayload, LineItemInput, PaymentPayload
from expensehub.schemas.request import CreateRequestPayload
from expensehub.services import invoice as invoice_service
from expensehub.services import request as request_service
from expensehub.services.workflow import commit_transition

if TYPE_CHECKING:
    import uuid
    from collections.abc import AsyncIterator
    from pathlib import Path

    from expensehub.schemas.auth import AuthContext


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """File-backed database so that each session gets its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'race.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


async def test_stale_expected_status_is_rejected(db_session: AsyncSession, employee: AuthContext) -> None:
    created = await request_service.create_request(
        db_session,
        employee,
        CreateRequestPayload(title="Chair", description="Desk chair", type=RequestType.EQUIPMENT),
    )
    record = await db_session.get(ExpenseRequest, created.id)
    assert record is not None

    await commit_transition(db_session, record, RequestStatus.PENDING, {"status": RequestStatus.APPROVED})
    with pytest.raises(ConflictError):
        await commit_transition(db_session, record, RequestStatus.PENDING, {"status": RequestStatus.REJECTED})
    await db_session.commit()

    await db_session.refresh(record)
    assert record.status == RequestStatus.APPROVED


async def test_concurrent_approvals_only_one_wins(
    session_factory: async_sessionmaker[AsyncSession], employee: AuthContext, manager: AuthContext, admin: AuthContext
) -> None:
    async with session_factory() as session:
        created = await request_service.create_request(
            session,
            employee,
            CreateRequestPayload(title="Monitor", description="Second monitor", type=RequestType.EQUIPMENT),
        )

    async def _approve(actor: AuthContext) -> str:
        async with session_factory() as session:
            try:
                result = await request_service.approve_request(session, actor, created.id)
            except ConflictError:
                return "conflict"
            return str(result.approved_by)

    outcomes = await asyncio.gather(_approve(manager), _approve(admin))

    assert outcomes.count("conflict") == 1
    winner = next(o for o in outcomes if o != "conflict")

    async with session_factory() as session:
        record = await session.get(ExpenseRequest, created.id)
        assert record is not None
        assert record.status == RequestStatus.APPROVED
        assert str(record.approved_by) == winner


async def _pending_invoice(factory: async_sessionmaker[AsyncSession], vendor: AuthContext) -> uuid.UUID:
    async with factory() as session:
        created = await invoice_service.create_invoice(
            session,
            vendor,
            CreateInvoicePayload(
                title="Toner",
                items=[LineItemInput(description="Toner", quantity=2, unit_price=Decimal("40.00"))],
                due_date=date(2026, 12, 1),
            ),
        )
    return created.id


async def test_concurrent_invoice_approvals_only_one_wins(
    session_factory: async_sessionmaker[AsyncSession], vendor: AuthContext, manager: AuthContext, admin: AuthContext
) -> None:
    invoice_id = await _pending_invoice(session_factory, vendor)

    async def _approve(actor: AuthContext) -> str:
        async with session_factory() as session:
            try:
                result = await invoice_service.approve_invoice(session, actor, invoice_id)
            except ConflictError:
                return "conflict"
            return str(result.approved_by)

    outcomes = await asyncio.gather(_approve(manager), _approve(admin))

    assert outcomes.count("conflict") == 1
    winner = next(o for o in outcomes if o != "conflict")

    async with session_factory() as session:
        record = await session.get(Invoice, invoice_id)
        assert record is not None
        assert record.status == InvoiceStatus.APPROVED
        assert str(record.approved_by) == winner


async def test_concurrent_payments_record_one_payment(
    session_factory: async_sessionmaker[AsyncSession], vendor: AuthContext, manager: AuthContext, admin: AuthContext
) -> None:
    invoice_id = await _pending_invoice(session_factory, vendor)
    async with session_factory() as session:
        await invoice_service.approve_invoice(session, manager, invoice_id)

    async def _pay(actor: AuthContext, reference: str) -> str:
        async with session_factory() as session:
            try:
                result = await invoice_service.mark_invoice_paid(
                    session, actor, invoice_id, PaymentPayload(payment_reference=reference)
                )
            except ConflictError:
                return "conflict"
            return result.payment_reference or ""

    outcomes = await asyncio.gather(_pay(manager, "WIRE-1"), _pay(admin, "WIRE-2"))

    assert outcomes.count("conflict") == 1
    winner = next(o for o in outcomes if o != "conflict")

    async with session_factory() as session:
        record = await session.get(Invoice, invoice_id)
        assert record is not None
        assert record.status == InvoiceStatus.PAID
        assert record.payment_reference == winner
