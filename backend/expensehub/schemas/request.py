# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, model_validator

from expensehub.models.enums import RequestPriority, RequestStatus, RequestType
from expensehub.schemas.common import Attachment, PageMeta


def _check_date_range(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and end < start:
        msg = "end_date must not be before start_date"
        raise ValueError(msg)


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateRequestPayload(BaseModel):
    """Request body for submitting a new request."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=2000)
    type: RequestType
    amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    priority: RequestPriority = RequestPriority.MEDIUM
    start_date: date | None = None
    end_date: date | None = None
    category: str | None = Field(default=None, max_length=100)
    receipt_number: str | None = Field(default=None, max_length=100)
    attachments: list[Attachment] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        _check_date_range(self.start_date, self.end_date)
        return self


class UpdateRequestPayload(BaseModel):
    """Partial update of a pending request. Only fields that are set are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=2000)
    type: RequestType | None = None
    amount: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    priority: RequestPriority | None = None
    start_date: date | None = None
    end_date: date | None = None
    category: str | None = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        _check_date_range(self.start_date, self.end_date)
        return self


class RejectPayload(BaseModel):
    """Request body for reject actions."""

    rejection_reason: str | None = Field(default=None, max_length=1000)


class CommentPayload(BaseModel):
    text: str = Field(min_length=1, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CommentResponse(BaseModel):
    """Response schema for a single request comment."""

    id: uuid.UUID
    request_id: uuid.UUID
    author_id: uuid.UUID
    text: str
    created_at: datetime


class RequestResponse(BaseModel):
    """Response schema for a single request."""

    id: uuid.UUID
    title: str
    description: str
    type: RequestType
    amount: Decimal
    currency: str
    status: RequestStatus
    priority: RequestPriority
    requested_by: uuid.UUID
    approved_by: uuid.UUID | None
    approval_date: datetime | None
    rejection_reason: str | None
    start_date: date | None
    end_date: date | None
    category: str | None
    receipt_number: str | None
    attachments: list[Attachment]
    created_at: datetime
    updated_at: datetime


class RequestDetailResponse(RequestResponse):
    """A request together with its ordered comment thread."""

    comments: list[CommentResponse]


class RequestListResponse(BaseModel):
    """Paginated list of requests."""

    items: list[RequestResponse]
    pagination: PageMeta
