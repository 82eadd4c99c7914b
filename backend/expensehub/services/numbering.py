"""Invoice number assignment backed by a per-year counter row."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from expensehub.exceptions import ConflictError
from expensehub.models.invoice import InvoiceCounter

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"


def format_invoice_number(year: int, sequence: int) -> str:
    """`INV-<year>-<5-digit zero-padded sequence>`."""
    return f"{INVOICE_PREFIX}-{year}-{sequence:05d}"


async def next_invoice_sequence(session: AsyncSession, year: int) -> int:
    """Claim the next sequence value for `year` within the caller's transaction.

    The increment is a single UPDATE ... RETURNING on the year's counter row, so
    concurrent callers serialize on that row. The first claim of a year inserts
    the row; if another transaction inserted it first the create fails with
    `ConflictError` and the caller may retry.
    """
    result = await session.execute(
        update(InvoiceCounter)
        .where(col(InvoiceCounter.year) == year)
        .values(last_value=col(InvoiceCounter.last_value) + 1)
        .returning(col(InvoiceCounter.last_value))
        .execution_options(synchronize_session=False)
    )
    value = result.scalar_one_or_none()
    if value is not None:
        return int(value)

    session.add(InvoiceCounter(year=year, last_value=1))
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        logger.warning("Invoice counter for %d was initialised concurrently", year)
        raise ConflictError("Invoice number allocation collided; retry the request") from None
    logger.info("Started invoice numbering for %d", year)
    return 1


async def next_invoice_number(session: AsyncSession, year: int) -> str:
    return format_invoice_number(year, await next_invoice_sequence(session, year))
