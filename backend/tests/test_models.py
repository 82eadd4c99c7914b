from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from expensehub.models import (
    AuditLog,
    ExpenseRequest,
    Invoice,
    InvoiceCounter,
    RequestComment,
    SQLModel,
    User,
)
from expensehub.models.enums import InvoiceStatus, PaymentMethod, RequestPriority, RequestStatus, UserRole

EXPECTED_TABLES = {
    "app_user",
    "audit_log",
    "expense_request",
    "invoice",
    "invoice_counter",
    "request_comment",
}


def test_all_tables_registered() -> None:
    assert EXPECTED_TABLES.issubset(set(SQLModel.metadata.tables.keys()))


def test_user_defaults() -> None:
    user = User(name="Eli", email="eli@example.com")
    assert user.role == UserRole.EMPLOYEE
    assert user.is_active is True
    assert user.id is not None


def test_request_defaults() -> None:
    request = ExpenseRequest(
        title="Laptop",
        description="Replacement",
        type="equipment",
        requested_by=uuid.uuid4(),
    )
    assert request.status == RequestStatus.PENDING
    assert request.priority == RequestPriority.MEDIUM
    assert request.amount == Decimal("0")
    assert request.currency == "USD"
    assert request.attachments == []
    assert request.approved_by is None


def test_comment_instantiation() -> None:
    comment = RequestComment(request_id=uuid.uuid4(), author_id=uuid.uuid4(), text="Looks fine")
    assert comment.created_at is not None


def test_invoice_defaults() -> None:
    invoice = Invoice(
        invoice_number="INV-2026-00001",
        title="Supplies",
        vendor_id=uuid.uuid4(),
        due_date=date(2026, 12, 1),
    )
    assert invoice.status == InvoiceStatus.PENDING
    assert invoice.payment_method == PaymentMethod.BANK_TRANSFER
    assert invoice.issue_date == date.today()
    assert invoice.items == []
    assert invoice.paid_date is None


def test_invoice_number_is_unique() -> None:
    column = Invoice.__table__.c.invoice_number  # type: ignore[attr-defined]
    assert column.unique is True


def test_invoice_counter_keyed_by_year() -> None:
    table = InvoiceCounter.__table__  # type: ignore[attr-defined]
    assert [c.name for c in table.primary_key.columns] == ["year"]


def test_audit_log_instantiation() -> None:
    entry = AuditLog(
        actor_id=uuid.uuid4(),
        entity_type="REQUEST",
        entity_id=uuid.uuid4(),
        action="CREATE",
        after_json={"title": "Laptop"},
    )
    assert entry.before_json is None
    assert entry.after_json == {"title": "Laptop"}
