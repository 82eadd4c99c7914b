"""State machine tables for requests and invoices."""

from __future__ import annotations

import pytest

from expensehub.exceptions import ConflictError
from expensehub.models.enums import InvoiceStatus, RecordKind, RequestStatus, WorkflowOperation
from expensehub.services.workflow import INVOICE_WORKFLOW, REQUEST_WORKFLOW, WORKFLOWS

Op = WorkflowOperation


def test_workflows_registered_per_kind() -> None:
    assert WORKFLOWS[RecordKind.REQUEST] is REQUEST_WORKFLOW
    assert WORKFLOWS[RecordKind.INVOICE] is INVOICE_WORKFLOW


def test_initial_states() -> None:
    assert REQUEST_WORKFLOW.initial_state == RequestStatus.PENDING
    assert INVOICE_WORKFLOW.initial_state == InvoiceStatus.PENDING


@pytest.mark.parametrize(
    ("state", "operation", "expected"),
    [
        ("pending", Op.UPDATE, "pending"),
        ("pending", Op.APPROVE, "approved"),
        ("pending", Op.REJECT, "rejected"),
        ("pending", Op.CANCEL, "cancelled"),
    ],
)
def test_request_transitions(state: str, operation: WorkflowOperation, expected: str) -> None:
    assert REQUEST_WORKFLOW.next_state(state, operation) == expected


@pytest.mark.parametrize("state", ["approved", "rejected", "cancelled"])
@pytest.mark.parametrize("operation", [Op.UPDATE, Op.APPROVE, Op.REJECT, Op.CANCEL])
def test_terminal_request_states_deny_everything(state: str, operation: WorkflowOperation) -> None:
    assert not REQUEST_WORKFLOW.allows(state, operation)
    with pytest.raises(ConflictError):
        REQUEST_WORKFLOW.next_state(state, operation)


def test_requests_have_no_payment_or_draft_step() -> None:
    assert not REQUEST_WORKFLOW.allows("approved", Op.MARK_PAID)
    assert not REQUEST_WORKFLOW.allows("pending", Op.SUBMIT)


@pytest.mark.parametrize(
    ("state", "operation", "expected"),
    [
        ("draft", Op.UPDATE, "draft"),
        ("draft", Op.SUBMIT, "pending"),
        ("draft", Op.CANCEL, "cancelled"),
        ("pending", Op.UPDATE, "pending"),
        ("pending", Op.APPROVE, "approved"),
        ("pending", Op.REJECT, "rejected"),
        ("pending", Op.CANCEL, "cancelled"),
        ("approved", Op.MARK_PAID, "paid"),
    ],
)
def test_invoice_transitions(state: str, operation: WorkflowOperation, expected: str) -> None:
    assert INVOICE_WORKFLOW.next_state(state, operation) == expected


@pytest.mark.parametrize(
    ("state", "operation"),
    [
        ("draft", Op.APPROVE),
        ("draft", Op.MARK_PAID),
        ("pending", Op.MARK_PAID),
        ("pending", Op.SUBMIT),
        ("approved", Op.CANCEL),
        ("approved", Op.UPDATE),
        ("paid", Op.CANCEL),
        ("rejected", Op.MARK_PAID),
        ("cancelled", Op.SUBMIT),
    ],
)
def test_invoice_denied_transitions(state: str, operation: WorkflowOperation) -> None:
    with pytest.raises(ConflictError):
        INVOICE_WORKFLOW.next_state(state, operation)


def test_mutable_sets() -> None:
    assert REQUEST_WORKFLOW.states_allowing(Op.UPDATE) == {"pending"}
    assert INVOICE_WORKFLOW.states_allowing(Op.UPDATE) == {"draft", "pending"}
    assert INVOICE_WORKFLOW.states_allowing(Op.CANCEL) == {"draft", "pending"}


def test_deny_reason_is_carried_in_error() -> None:
    with pytest.raises(ConflictError) as exc_info:
        INVOICE_WORKFLOW.next_state("pending", Op.MARK_PAID)
    assert exc_info.value.message == "Invoice must be approved before marking as paid"
    assert exc_info.value.status_code == 409
