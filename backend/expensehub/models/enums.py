from __future__ import annotations

import enum


class UserRole(enum.StrEnum):
    """Flat capability roles. Employees submit requests, vendors submit invoices."""

    EMPLOYEE = "employee"
    VENDOR = "vendor"
    MANAGER = "manager"
    ADMIN = "admin"


class RequestType(enum.StrEnum):
    """Kind of expense/approval request."""

    EXPENSE = "expense"
    LEAVE = "leave"
    EQUIPMENT = "equipment"
    TRAVEL = "travel"
    TRAINING = "training"
    OTHER = "other"


class RequestPriority(enum.StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RequestStatus(enum.StrEnum):
    """State machine for requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class InvoiceStatus(enum.StrEnum):
    """State machine for invoices: request states plus draft and paid."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PaymentMethod(enum.StrEnum):
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    OTHER = "other"


class RecordKind(enum.StrEnum):
    """Which workflow record an operation targets."""

    REQUEST = "request"
    INVOICE = "invoice"


class WorkflowOperation(enum.StrEnum):
    """Operations looked up in the workflow transition table."""

    UPDATE = "update"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    MARK_PAID = "mark_paid"
    CANCEL = "cancel"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    USER = "USER"
    REQUEST = "REQUEST"
    REQUEST_COMMENT = "REQUEST_COMMENT"
    INVOICE = "INVOICE"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    PAY = "PAY"
    CANCEL = "CANCEL"
    COMMENT = "COMMENT"
    DEACTIVATE = "DEACTIVATE"
