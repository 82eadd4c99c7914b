from __future__ import annotations

from typing import TYPE_CHECKING

from expensehub.models.invoice import InvoiceCounter
from expensehub.services.numbering import next_invoice_number, next_invoice_sequence

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def test_first_claim_of_a_year_starts_at_one(db_session: AsyncSession) -> None:
    assert await next_invoice_sequence(db_session, 2026) == 1
    assert await next_invoice_sequence(db_session, 2026) == 2
    await db_session.commit()

    counter = await db_session.get(InvoiceCounter, 2026)
    assert counter is not None
    await db_session.refresh(counter)
    assert counter.last_value == 2


async def test_years_are_numbered_independently(db_session: AsyncSession) -> None:
    assert await next_invoice_number(db_session, 2026) == "INV-2026-00001"
    assert await next_invoice_number(db_session, 2026) == "INV-2026-00002"
    assert await next_invoice_number(db_session, 2027) == "INV-2027-00001"
    assert await next_invoice_number(db_session, 2026) == "INV-2026-00003"
