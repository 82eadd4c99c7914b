"""Derived invoice financials: line amounts, subtotal, tax and total."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel

from expensehub.exceptions import ValidationError
from expensehub.schemas.invoice import LineItem, LineItemInput

CENT = Decimal("0.01")
_HUNDRED = Decimal(100)


class InvoiceTotals(BaseModel):
    """Line items with computed amounts and the totals derived from them."""

    items: list[LineItem]
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    def items_json(self) -> list[dict[str, Any]]:
        return [item.model_dump(mode="json") for item in self.items]


def to_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_amount(quantity: int, unit_price: Decimal) -> Decimal:
    return to_money(quantity * unit_price)


def compute_totals(items: Iterable[LineItemInput], tax_rate: Decimal, discount: Decimal) -> InvoiceTotals:
    """Compute totals. `total = subtotal + tax - discount` holds exactly on the rounded values."""
    priced = [
        LineItem(
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=line_amount(item.quantity, item.unit_price),
        )
        for item in items
    ]
    if not priced:
        raise ValidationError("An invoice needs at least one line item")

    subtotal = sum((item.amount for item in priced), Decimal(0))
    tax_amount = to_money(subtotal * tax_rate / _HUNDRED)
    total_amount = subtotal + tax_amount - to_money(discount)
    if total_amount < 0:
        raise ValidationError("Discount cannot exceed subtotal plus tax")

    return InvoiceTotals(
        items=priced,
        subtotal=to_money(subtotal),
        tax_amount=tax_amount,
        total_amount=to_money(total_amount),
    )


def stored_items(items_json: list[dict[str, Any]]) -> list[LineItemInput]:
    """Re-read persisted line items as inputs so totals can be recomputed."""
    return [LineItemInput.model_validate(item) for item in items_json]
