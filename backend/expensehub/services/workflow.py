"""Approval workflow state machine shared by requests and invoices.

Both record kinds use one transition table shape, `(state, operation) -> next
state`. Invoices extend the request table with the `draft` and `paid` states.
Status-changing writes go through `commit_transition`, which issues a
conditional UPDATE keyed on the expected pre-state so that at most one of
several racing writers wins.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import update
from sqlmodel import col

from expensehub.exceptions import ConflictError
from expensehub.models.enums import InvoiceStatus, RecordKind, RequestStatus, WorkflowOperation

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from expensehub.models.invoice import Invoice
    from expensehub.models.request import ExpenseRequest

logger = logging.getLogger(__name__)

_Transitions = Mapping[tuple[str, WorkflowOperation], str]


@dataclass(frozen=True)
class Workflow:
    """Transition table for one record kind."""

    kind: RecordKind
    initial_state: str
    transitions: _Transitions
    deny_reasons: Mapping[WorkflowOperation, str] = field(default_factory=dict)

    def allows(self, state: str, operation: WorkflowOperation) -> bool:
        return (state, operation) in self.transitions

    def states_allowing(self, operation: WorkflowOperation) -> frozenset[str]:
        """Pre-states from which `operation` is permitted (e.g. the mutable set for UPDATE)."""
        return frozenset(state for state, op in self.transitions if op == operation)

    def next_state(self, state: str, operation: WorkflowOperation) -> str:
        """Return the state `operation` moves to, or raise `ConflictError` with the deny reason."""
        try:
            return self.transitions[(state, operation)]
        except KeyError:
            reason = self.deny_reasons.get(operation, f"Cannot {operation} a {self.kind} in status '{state}'")
            raise ConflictError(reason) from None


_PENDING = RequestStatus.PENDING.value

_REVIEW_TRANSITIONS: dict[tuple[str, WorkflowOperation], str] = {
    (_PENDING, WorkflowOperation.UPDATE): _PENDING,
    (_PENDING, WorkflowOperation.APPROVE): RequestStatus.APPROVED.value,
    (_PENDING, WorkflowOperation.REJECT): RequestStatus.REJECTED.value,
    (_PENDING, WorkflowOperation.CANCEL): RequestStatus.CANCELLED.value,
}

REQUEST_WORKFLOW = Workflow(
    kind=RecordKind.REQUEST,
    initial_state=_PENDING,
    transitions=_REVIEW_TRANSITIONS,
    deny_reasons={
        WorkflowOperation.UPDATE: "Cannot update request that is not pending",
        WorkflowOperation.APPROVE: "Request is not pending",
        WorkflowOperation.REJECT: "Request is not pending",
        WorkflowOperation.CANCEL: "Can only cancel pending requests",
    },
)

INVOICE_WORKFLOW = Workflow(
    kind=RecordKind.INVOICE,
    initial_state=InvoiceStatus.PENDING.value,
    transitions={
        **_REVIEW_TRANSITIONS,
        (InvoiceStatus.DRAFT.value, WorkflowOperation.UPDATE): InvoiceStatus.DRAFT.value,
        (InvoiceStatus.DRAFT.value, WorkflowOperation.SUBMIT): InvoiceStatus.PENDING.value,
        (InvoiceStatus.DRAFT.value, WorkflowOperation.CANCEL): InvoiceStatus.CANCELLED.value,
        (InvoiceStatus.APPROVED.value, WorkflowOperation.MARK_PAID): InvoiceStatus.PAID.value,
    },
    deny_reasons={
        WorkflowOperation.UPDATE: "Cannot update invoice that is already processed",
        WorkflowOperation.SUBMIT: "Only draft invoices can be submitted",
        WorkflowOperation.APPROVE: "Invoice is not pending",
        WorkflowOperation.REJECT: "Invoice is not pending",
        WorkflowOperation.MARK_PAID: "Invoice must be approved before marking as paid",
        WorkflowOperation.CANCEL: "Can only cancel draft or pending invoices",
    },
)

WORKFLOWS: dict[RecordKind, Workflow] = {
    RecordKind.REQUEST: REQUEST_WORKFLOW,
    RecordKind.INVOICE: INVOICE_WORKFLOW,
}


async def commit_transition(
    session: AsyncSession,
    record: ExpenseRequest | Invoice,
    expected_status: str,
    values: dict[str, Any],
) -> None:
    """Apply `values` to `record` only if its stored status still equals `expected_status`.

    Flushes the conditional UPDATE within the caller's transaction. Raises
    `ConflictError` when no row matched, i.e. another writer changed the status
    first; nothing is written in that case.
    """
    model = type(record)
    record_id: uuid.UUID = record.id
    result = await session.execute(
        update(model)
        .where(col(model.id) == record_id, col(model.status) == expected_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        logger.warning(
            "Lost status race on %s %s: expected '%s'", model.__tablename__, record_id, expected_status
        )
        raise ConflictError(f"{model.__name__} {record_id} was modified concurrently; re-fetch and retry")
