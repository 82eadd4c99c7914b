"""Unit tests for invoice total computation and invoice number formatting."""

from __future__ import annotations

from decimal import Decimal

import pytest

from expensehub.exceptions import ValidationError
from expensehub.schemas.invoice import LineItemInput
from expensehub.services.numbering import format_invoice_number
from expensehub.services.totals import compute_totals, line_amount, stored_items, to_money


def _item(quantity: int, unit_price: str, description: str = "Item") -> LineItemInput:
    return LineItemInput(description=description, quantity=quantity, unit_price=Decimal(unit_price))


def test_two_items_with_ten_percent_tax() -> None:
    totals = compute_totals([_item(2, "10.00"), _item(1, "5.00")], Decimal("10"), Decimal("0"))
    assert [i.amount for i in totals.items] == [Decimal("20.00"), Decimal("5.00")]
    assert totals.subtotal == Decimal("25.00")
    assert totals.tax_amount == Decimal("2.50")
    assert totals.total_amount == Decimal("27.50")


def test_discount_is_subtracted_after_tax() -> None:
    totals = compute_totals([_item(2, "10.00"), _item(1, "5.00")], Decimal("10"), Decimal("2.00"))
    assert totals.total_amount == Decimal("25.50")


def test_tax_is_rounded_half_up_before_total() -> None:
    # 0.05 * 10.5% = 0.00525 -> 0.01
    totals = compute_totals([_item(1, "0.05")], Decimal("10.5"), Decimal("0"))
    assert totals.tax_amount == Decimal("0.01")
    assert totals.total_amount == Decimal("0.06")


@pytest.mark.parametrize(
    ("items", "tax_rate", "discount"),
    [
        ([("3", "19.99"), ("7", "0.33")], "8.25", "0"),
        ([("1", "1234.56")], "21", "100.00"),
        ([("12", "0.07"), ("1", "0.01"), ("5", "3.33")], "7.125", "0.50"),
        ([("1", "0.00")], "0", "0"),
    ],
)
def test_total_identity_holds_exactly(items: list[tuple[str, str]], tax_rate: str, discount: str) -> None:
    totals = compute_totals([_item(int(q), p) for q, p in items], Decimal(tax_rate), Decimal(discount))
    assert totals.subtotal == sum((i.amount for i in totals.items), Decimal(0))
    assert totals.total_amount == totals.subtotal + totals.tax_amount - Decimal(discount)
    assert totals.total_amount >= 0
    for value in (totals.subtotal, totals.tax_amount, totals.total_amount):
        assert value == to_money(value)


def test_discount_larger_than_total_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Discount"):
        compute_totals([_item(1, "10.00")], Decimal("0"), Decimal("10.01"))


def test_empty_items_are_rejected() -> None:
    with pytest.raises(ValidationError):
        compute_totals([], Decimal("0"), Decimal("0"))


def test_line_amount_rounds_to_cents() -> None:
    assert line_amount(3, Decimal("0.333")) == Decimal("1.00")


def test_stored_items_round_trip_through_json() -> None:
    totals = compute_totals([_item(2, "10.00", "Paper")], Decimal("0"), Decimal("0"))
    items = stored_items(totals.items_json())
    assert items == [LineItemInput(description="Paper", quantity=2, unit_price=Decimal("10.00"))]


@pytest.mark.parametrize(
    ("year", "sequence", "expected"),
    [
        (2026, 1, "INV-2026-00001"),
        (2026, 42, "INV-2026-00042"),
        (2027, 99999, "INV-2027-99999"),
    ],
)
def test_format_invoice_number(year: int, sequence: int, expected: str) -> None:
    assert format_invoice_number(year, sequence) == expected
