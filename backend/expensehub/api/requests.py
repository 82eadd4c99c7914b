# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from expensehub.api.deps import AdminDep, AuthDep, PageDep, ReviewerDep
from expensehub.db import SessionDep
from expensehub.models.enums import RequestPriority, RequestStatus, RequestType
from expensehub.schemas.report import RequestStatsResponse
from expensehub.schemas.request import (
    CommentPayload,
    CommentResponse,
    CreateRequestPayload,
    RejectPayload,
    RequestDetailResponse,
    RequestListResponse,
    RequestResponse,
    UpdateRequestPayload,
)
from expensehub.services import report as report_service
from expensehub.services import request as request_service

requests_router = APIRouter(prefix="/requests", tags=["requests"])


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Submit a new request."""
    return await request_service.create_request(session, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: ReviewerDep,
    page: PageDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    type_filter: RequestType | None = Query(default=None, alias="type"),
    priority: RequestPriority | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> RequestListResponse:
    """List all requests (manager/admin)."""
    criteria = {
        "status": status_filter,
        "type": type_filter,
        "priority": priority,
        "start_date": start_date,
        "end_date": end_date,
    }
    return await request_service.list_requests(session, auth, page, criteria)


@requests_router.get("/my", response_model=RequestListResponse)
async def list_my_requests(
    session: SessionDep,
    auth: AuthDep,
    page: PageDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    type_filter: RequestType | None = Query(default=None, alias="type"),
) -> RequestListResponse:
    """List the caller's own requests."""
    return await request_service.list_my_requests(
        session, auth, page, {"status": status_filter, "type": type_filter}
    )


@requests_router.get("/pending", response_model=RequestListResponse)
async def list_pending_requests(
    session: SessionDep,
    auth: ReviewerDep,
    page: PageDep,
    type_filter: RequestType | None = Query(default=None, alias="type"),
    priority: RequestPriority | None = Query(default=None),
) -> RequestListResponse:
    """List requests awaiting review (manager/admin)."""
    return await request_service.list_pending_requests(
        session, auth, page, {"type": type_filter, "priority": priority}
    )


@requests_router.get("/stats", response_model=RequestStatsResponse)
async def request_stats(session: SessionDep, auth: AuthDep) -> RequestStatsResponse:
    """Aggregates over the requests visible to the caller."""
    return await report_service.request_stats(session, auth)


@requests_router.get("/{request_id}", response_model=RequestDetailResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestDetailResponse:
    return await request_service.get_request(session, auth, request_id)


@requests_router.put("/{request_id}", response_model=RequestResponse)
async def update_request(
    request_id: uuid.UUID,
    payload: UpdateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Update a pending request (owner only)."""
    return await request_service.update_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/approve", response_model=RequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Approve a pending request (manager/admin)."""
    return await request_service.approve_request(session, auth, request_id)


@requests_router.post("/{request_id}/reject", response_model=RequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: RejectPayload | None = None,
) -> RequestResponse:
    """Reject a pending request (manager/admin)."""
    return await request_service.reject_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/cancel", response_model=RequestResponse)
async def cancel_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Cancel a pending request (owner only)."""
    return await request_service.cancel_request(session, auth, request_id)


@requests_router.post(
    "/{request_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    request_id: uuid.UUID,
    payload: CommentPayload,
    session: SessionDep,
    auth: AuthDep,
) -> CommentResponse:
    return await request_service.add_comment(session, auth, request_id, payload)


@requests_router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Permanently delete a request (admin only)."""
    await request_service.delete_request(session, auth, request_id)
