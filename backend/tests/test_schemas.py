from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from expensehub.schemas.common import PageMeta, PageParams
from expensehub.schemas.invoice import ClientDetails, CreateInvoicePayload
from expensehub.schemas.request import CreateRequestPayload, UpdateRequestPayload
from expensehub.schemas.user import CreateUserPayload

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def test_request_payload_defaults() -> None:
    payload = CreateRequestPayload(title="Laptop", description="Replacement", type="equipment")
    assert payload.amount == Decimal("0")
    assert payload.currency == "USD"
    assert payload.priority == "medium"


def test_request_payload_rejects_inverted_dates() -> None:
    with pytest.raises(ValidationError, match="end_date must not be before start_date"):
        CreateRequestPayload(
            title="Trip",
            description="Offsite",
            type="travel",
            start_date=date(2026, 5, 10),
            end_date=date(2026, 5, 9),
        )


def test_request_payload_accepts_same_day_range() -> None:
    payload = CreateRequestPayload(
        title="Trip",
        description="Offsite",
        type="travel",
        start_date=date(2026, 5, 10),
        end_date=date(2026, 5, 10),
    )
    assert payload.end_date == payload.start_date


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"title": "x" * 201},
        {"description": "x" * 2001},
        {"amount": "-1"},
        {"type": "bribe"},
        {"priority": "whenever"},
    ],
)
def test_request_payload_out_of_range(overrides: dict[str, str]) -> None:
    data = {"title": "Laptop", "description": "Replacement", "type": "equipment", **overrides}
    with pytest.raises(ValidationError):
        CreateRequestPayload.model_validate(data)


def test_update_payload_tracks_only_set_fields() -> None:
    payload = UpdateRequestPayload(title="New title")
    assert payload.model_dump(exclude_unset=True) == {"title": "New title"}


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------


def _invoice_data(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "title": "Supplies",
        "items": [{"description": "Paper", "quantity": 2, "unit_price": "10.00"}],
        "due_date": "2026-12-01",
    }
    data.update(overrides)
    return data


def test_invoice_payload_defaults() -> None:
    payload = CreateInvoicePayload.model_validate(_invoice_data())
    assert payload.tax_rate == Decimal("0")
    assert payload.discount == Decimal("0")
    assert payload.payment_method == "bank_transfer"
    assert payload.client == ClientDetails(company_name="ExpenseHub Inc.")
    assert payload.save_as_draft is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"items": []},
        {"items": [{"description": "Paper", "quantity": 0, "unit_price": "1"}]},
        {"items": [{"description": "Paper", "quantity": 1, "unit_price": "-1"}]},
        {"tax_rate": "100.01"},
        {"tax_rate": "-1"},
        {"discount": "-0.01"},
        {"due_date": None},
    ],
)
def test_invoice_payload_out_of_range(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        CreateInvoicePayload.model_validate(_invoice_data(**overrides))


def test_invoice_payload_ignores_client_supplied_totals() -> None:
    payload = CreateInvoicePayload.model_validate(_invoice_data(total_amount="999.99", subtotal="1"))
    assert not hasattr(payload, "total_amount")


# ---------------------------------------------------------------------------
# Users and pagination
# ---------------------------------------------------------------------------


def test_user_payload_rejects_bad_email() -> None:
    with pytest.raises(ValidationError):
        CreateUserPayload(name="Eli", email="not-an-email")


def test_page_params_offset() -> None:
    assert PageParams(page=3, size=10).offset == 20


def test_page_params_reject_zero_page() -> None:
    with pytest.raises(ValidationError):
        PageParams(page=0, size=10)


@pytest.mark.parametrize(
    ("page", "size", "returned", "total", "has_more", "total_pages"),
    [
        (1, 10, 10, 25, True, 3),
        (3, 10, 5, 25, False, 3),
        (1, 10, 0, 0, False, 0),
        (2, 5, 5, 10, False, 2),
    ],
)
def test_page_meta(page: int, size: int, returned: int, total: int, has_more: bool, total_pages: int) -> None:
    meta = PageMeta.build(PageParams(page=page, size=size), returned, total)
    assert meta.has_more is has_more
    assert meta.total_pages == total_pages
