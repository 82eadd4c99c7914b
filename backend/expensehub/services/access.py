"""Role and ownership predicates.

Every authorization rule lives here. Predicates are pure functions of the actor
and the record owner and return an `AccessDecision`; `authorize` turns a denial
into an `AuthorizationError`.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, NamedTuple

from expensehub.exceptions import AuthorizationError
from expensehub.models.enums import RecordKind, UserRole, WorkflowOperation

if TYPE_CHECKING:
    from expensehub.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

REVIEWER_ROLES = frozenset({UserRole.MANAGER, UserRole.ADMIN})

# Which role submits which kind of record.
SUBMITTER_ROLES: dict[RecordKind, frozenset[UserRole]] = {
    RecordKind.REQUEST: frozenset({UserRole.EMPLOYEE, UserRole.MANAGER, UserRole.ADMIN}),
    RecordKind.INVOICE: frozenset({UserRole.VENDOR}),
}

# Operations reserved to the record owner, regardless of role.
_OWNER_OPERATIONS = frozenset({WorkflowOperation.UPDATE, WorkflowOperation.SUBMIT, WorkflowOperation.CANCEL})
# Operations reserved to reviewers.
_REVIEW_OPERATIONS = frozenset({WorkflowOperation.APPROVE, WorkflowOperation.REJECT, WorkflowOperation.MARK_PAID})


class AccessDecision(NamedTuple):
    """Allow, or deny with a reason tag."""

    allowed: bool
    reason: str | None = None


ALLOW = AccessDecision(allowed=True)


def _deny(reason: str) -> AccessDecision:
    return AccessDecision(allowed=False, reason=reason)


def is_reviewer(auth: AuthContext) -> bool:
    return auth.role in REVIEWER_ROLES


def is_owner(auth: AuthContext, owner_id: uuid.UUID) -> bool:
    return auth.user_id == owner_id


def can_create(auth: AuthContext, kind: RecordKind) -> AccessDecision:
    if auth.role in SUBMITTER_ROLES[kind]:
        return ALLOW
    return _deny(f"role_cannot_submit_{kind}")


def can_read(auth: AuthContext, owner_id: uuid.UUID) -> AccessDecision:
    if is_owner(auth, owner_id) or is_reviewer(auth):
        return ALLOW
    return _deny("not_owner_or_reviewer")


def can_update(auth: AuthContext, owner_id: uuid.UUID) -> AccessDecision:
    if is_owner(auth, owner_id):
        return ALLOW
    return _deny("not_owner")


def can_transition(auth: AuthContext, operation: WorkflowOperation, owner_id: uuid.UUID) -> AccessDecision:
    """Decide whether the actor may attempt `operation`. State is checked separately."""
    if operation in _OWNER_OPERATIONS:
        return can_update(auth, owner_id)
    if operation in _REVIEW_OPERATIONS:
        return can_review(auth)
    return _deny(f"unknown_operation:{operation}")


def can_review(auth: AuthContext) -> AccessDecision:
    if is_reviewer(auth):
        return ALLOW
    return _deny("reviewer_role_required")


def can_delete(auth: AuthContext) -> AccessDecision:
    if auth.role == UserRole.ADMIN:
        return ALLOW
    return _deny("admin_role_required")


def can_manage_users(auth: AuthContext) -> AccessDecision:
    return can_delete(auth)


def can_view_users(auth: AuthContext) -> AccessDecision:
    return can_review(auth)


def owner_scope(auth: AuthContext) -> uuid.UUID | None:
    """Owner id to restrict queries to, or None when the actor sees everything."""
    return None if is_reviewer(auth) else auth.user_id


def authorize(decision: AccessDecision, message: str = "Not authorized to perform this action") -> None:
    """Raise `AuthorizationError` when the decision is a denial."""
    if not decision.allowed:
        logger.warning("Access denied: %s (%s)", message, decision.reason)
        raise AuthorizationError(message)
