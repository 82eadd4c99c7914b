# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select
from sqlmodel import col

from expensehub.exceptions import NotFoundError, ValidationError
from expensehub.models.base import now_utc
from expensehub.models.enums import (
    AuditAction,
    AuditEntityType,
    RecordKind,
    RequestPriority,
    RequestStatus,
    RequestType,
    WorkflowOperation,
)
from expensehub.models.request import ExpenseRequest, RequestComment
from expensehub.schemas.common import Attachment, PageMeta
from expensehub.schemas.request import (
    CommentResponse,
    RequestDetailResponse,
    RequestListResponse,
    RequestResponse,
)
from expensehub.services.access import (
    authorize,
    can_create,
    can_delete,
    can_read,
    can_review,
    can_transition,
    can_update,
)
from expensehub.services.audit import model_to_audit_dict, write_audit_log
from expensehub.services.query import FilterSpec, build_filters, end_of_day, fetch_page, start_of_day
from expensehub.services.workflow import REQUEST_WORKFLOW, commit_transition

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from expensehub.schemas.auth import AuthContext
    from expensehub.schemas.common import PageParams
    from expensehub.schemas.request import (
        CommentPayload,
        CreateRequestPayload,
        RejectPayload,
        UpdateRequestPayload,
    )

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"

# Filter keys accepted by request listings. Anything else is ignored.
REQUEST_FILTERS: FilterSpec = {
    "status": lambda v: col(ExpenseRequest.status) == v,
    "type": lambda v: col(ExpenseRequest.type) == v,
    "priority": lambda v: col(ExpenseRequest.priority) == v,
    "start_date": lambda v: col(ExpenseRequest.created_at) >= start_of_day(v),
    "end_date": lambda v: col(ExpenseRequest.created_at) <= end_of_day(v),
}

_NEWEST_FIRST = (col(ExpenseRequest.created_at).desc(), col(ExpenseRequest.id).desc())


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: ExpenseRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,
        title=request.title,
        description=request.description,
        type=RequestType(request.type),
        amount=request.amount,
        currency=request.currency,
        status=RequestStatus(request.status),
        priority=RequestPriority(request.priority),
        requested_by=request.requested_by,
        approved_by=request.approved_by,
        approval_date=request.approval_date,
        rejection_reason=request.rejection_reason,
        start_date=request.start_date,
        end_date=request.end_date,
        category=request.category,
        receipt_number=request.receipt_number,
        attachments=[Attachment.model_validate(a) for a in request.attachments or []],
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


def _build_comment_response(comment: RequestComment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        request_id=comment.request_id,
        author_id=comment.author_id,
        text=comment.text,
        created_at=comment.created_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> ExpenseRequest:
    """Fetch a request by ID. Raises 404 if not found."""
    result = await session.execute(select(ExpenseRequest).where(col(ExpenseRequest.id) == request_id))
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Request not found")
    return request


async def _list_comments(session: AsyncSession, request_id: uuid.UUID) -> list[RequestComment]:
    result = await session.execute(
        select(RequestComment)
        .where(col(RequestComment.request_id) == request_id)
        .order_by(col(RequestComment.created_at), col(RequestComment.id))
    )
    return list(result.scalars().all())


async def _list(
    session: AsyncSession,
    base_filters: list[Any],
    criteria: Mapping[str, Any],
    page: PageParams,
) -> RequestListResponse:
    filters = base_filters + build_filters(REQUEST_FILTERS, criteria)
    requests, total = await fetch_page(session, ExpenseRequest, filters, _NEWEST_FIRST, page)
    return RequestListResponse(
        items=[_build_request_response(r) for r in requests],
        pagination=PageMeta.build(page, len(requests), total),
    )


async def _transition(
    session: AsyncSession,
    auth: AuthContext,
    request: ExpenseRequest,
    operation: WorkflowOperation,
    audit_action: AuditAction,
    values: dict[str, Any] | None = None,
) -> RequestResponse:
    """Run one status-changing operation.

    1. Authorize the actor for the operation.
    2. Resolve the next state from the transition table (409 if not allowed).
    3. Conditional UPDATE on the expected pre-state (409 if the race was lost).
    4. Audit log with before/after.
    5. Commit.
    """
    authorize(can_transition(auth, operation, request.requested_by), f"Not authorized to {operation} this request")

    expected_status = request.status
    new_status = REQUEST_WORKFLOW.next_state(expected_status, operation)
    before_dict = model_to_audit_dict(request)

    await commit_transition(
        session,
        request,
        expected_status,
        {"status": new_status, "updated_at": now_utc(), **(values or {})},
    )
    await session.refresh(request)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request.id,
        action=audit_action,
        before_json=before_dict,
        after_json=model_to_audit_dict(request),
    )

    await session.commit()
    logger.info("Request %s %s -> %s by %s", request.id, expected_status, new_status, auth.user_id)
    return _build_request_response(request)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateRequestPayload,
) -> RequestResponse:
    """Create a request owned by the actor, in the workflow's initial state."""
    authorize(can_create(auth, RecordKind.REQUEST), "Not authorized to submit requests")

    request = ExpenseRequest(
        title=payload.title,
        description=payload.description,
        type=payload.type.value,
        amount=payload.amount,
        currency=payload.currency.upper(),
        priority=payload.priority.value,
        status=REQUEST_WORKFLOW.initial_state,
        requested_by=auth.user_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        category=payload.category,
        receipt_number=payload.receipt_number,
        attachments=[a.model_dump(mode="json") for a in payload.attachments],
    )
    session.add(request)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(request),
    )

    await session.commit()
    await session.refresh(request)
    logger.info("Request %s created by %s", request.id, auth.user_id)
    return _build_request_response(request)


async def get_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestDetailResponse:
    """Get a single request with its comments. Owner or reviewer only."""
    request = await _get_request_or_404(session, request_id)
    authorize(can_read(auth, request.requested_by), "Not authorized to view this request")

    comments = await _list_comments(session, request.id)
    return RequestDetailResponse(
        **_build_request_response(request).model_dump(),
        comments=[_build_comment_response(c) for c in comments],
    )


async def list_my_requests(
    session: AsyncSession,
    auth: AuthContext,
    page: PageParams,
    criteria: Mapping[str, Any] | None = None,
) -> RequestListResponse:
    """List the actor's own requests, newest first."""
    return await _list(session, [col(ExpenseRequest.requested_by) == auth.user_id], criteria or {}, page)


async def list_requests(
    session: AsyncSession,
    auth: AuthContext,
    page: PageParams,
    criteria: Mapping[str, Any] | None = None,
) -> RequestListResponse:
    """List all requests (reviewers only), newest first."""
    authorize(can_review(auth), "Manager or admin access required")
    return await _list(session, [], criteria or {}, page)


async def list_pending_requests(
    session: AsyncSession,
    auth: AuthContext,
    page: PageParams,
    criteria: Mapping[str, Any] | None = None,
) -> RequestListResponse:
    """List requests awaiting review (reviewers only), newest first."""
    authorize(can_review(auth), "Manager or admin access required")
    criteria = {**(criteria or {}), "status": RequestStatus.PENDING.value}
    return await _list(session, [], criteria, page)


async def update_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: UpdateRequestPayload,
) -> RequestResponse:
    """Apply a partial update. Owner only, and only while the request is mutable."""
    request = await _get_request_or_404(session, request_id)
    authorize(can_update(auth, request.requested_by), "Not authorized to update this request")
    REQUEST_WORKFLOW.next_state(request.status, WorkflowOperation.UPDATE)

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    start_date = changes.get("start_date", request.start_date)
    end_date = changes.get("end_date", request.end_date)
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    return await _transition(session, auth, request, WorkflowOperation.UPDATE, AuditAction.UPDATE, changes)


async def approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Approve a pending request, recording the approver and timestamp."""
    request = await _get_request_or_404(session, request_id)
    return await _transition(
        session,
        auth,
        request,
        WorkflowOperation.APPROVE,
        AuditAction.APPROVE,
        {"approved_by": auth.user_id, "approval_date": now_utc()},
    )


async def reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: RejectPayload | None = None,
) -> RequestResponse:
    """Reject a pending request with a reason (a placeholder when none is given)."""
    request = await _get_request_or_404(session, request_id)
    reason = payload.rejection_reason if payload and payload.rejection_reason else DEFAULT_REJECTION_REASON
    return await _transition(
        session,
        auth,
        request,
        WorkflowOperation.REJECT,
        AuditAction.REJECT,
        {"approved_by": auth.user_id, "approval_date": now_utc(), "rejection_reason": reason},
    )


async def cancel_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Cancel a pending request. Only the owner can cancel, whatever the actor's role."""
    request = await _get_request_or_404(session, request_id)
    return await _transition(session, auth, request, WorkflowOperation.CANCEL, AuditAction.CANCEL)


async def add_comment(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: CommentPayload,
) -> CommentResponse:
    """Append a comment. Allowed in any status for anyone who can read the request."""
    request = await _get_request_or_404(session, request_id)
    authorize(can_read(auth, request.requested_by), "Not authorized to comment on this request")

    comment = RequestComment(request_id=request.id, author_id=auth.user_id, text=payload.text)
    session.add(comment)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST_COMMENT,
        entity_id=comment.id,
        action=AuditAction.COMMENT,
        after_json=model_to_audit_dict(comment),
    )

    await session.commit()
    await session.refresh(comment)
    return _build_comment_response(comment)


async def delete_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> None:
    """Hard-delete a request and its comments (admin only)."""
    authorize(can_delete(auth), "Admin access required")
    request = await _get_request_or_404(session, request_id)
    before_dict = model_to_audit_dict(request)

    await session.execute(delete(RequestComment).where(col(RequestComment.request_id) == request.id))
    await session.delete(request)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )

    await session.commit()
    logger.info("Request %s deleted by %s", request_id, auth.user_id)
