from sqlmodel import SQLModel

from expensehub.models.audit import AuditLog
from expensehub.models.base import TimestampMixin, UUIDBase
from expensehub.models.enums import (
    AuditAction,
    AuditEntityType,
    InvoiceStatus,
    PaymentMethod,
    RecordKind,
    RequestPriority,
    RequestStatus,
    RequestType,
    UserRole,
    WorkflowOperation,
)
from expensehub.models.invoice import Invoice, InvoiceCounter
from expensehub.models.request import ExpenseRequest, RequestComment
from expensehub.models.user import User

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "ExpenseRequest",
    "Invoice",
    "InvoiceCounter",
    "InvoiceStatus",
    "PaymentMethod",
    "RecordKind",
    "RequestComment",
    "RequestPriority",
    "RequestStatus",
    "RequestType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "User",
    "UserRole",
    "WorkflowOperation",
]
