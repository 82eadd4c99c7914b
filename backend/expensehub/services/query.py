"""Allow-listed filtering and pagination shared by the list endpoints."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import func, select

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import ColumnElement
    from sqlmodel import SQLModel

    from expensehub.schemas.common import PageParams

ModelT = TypeVar("ModelT", bound="SQLModel")

# Maps a public filter key to a function building the WHERE clause for a value.
FilterSpec = Mapping[str, Callable[[Any], "ColumnElement[bool]"]]


def build_filters(spec: FilterSpec, criteria: Mapping[str, Any]) -> list[ColumnElement[bool]]:
    """Translate `criteria` into clauses. Keys outside `spec` and None values are ignored."""
    clauses: list[ColumnElement[bool]] = []
    for key, value in criteria.items():
        builder = spec.get(key)
        if builder is None or value is None:
            continue
        clauses.append(builder(value))
    return clauses


async def fetch_page(
    session: AsyncSession,
    model: type[ModelT],
    filters: Sequence[ColumnElement[bool]],
    order_by: Sequence[Any],
    page: PageParams,
) -> tuple[list[ModelT], int]:
    """Return one page of rows plus the total row count for the same filters."""
    count_result = await session.execute(select(func.count()).select_from(model).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(model).where(*filters).order_by(*order_by).offset(page.offset).limit(page.size)
    )
    return list(result.scalars().all()), total


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=UTC)
