from __future__ import annotations

from sqlmodel import Field

from expensehub.models.base import TimestampMixin, UUIDBase
from expensehub.models.enums import UserRole


class User(UUIDBase, TimestampMixin, table=True):
    """A person acting in the system. Deactivated, never hard-deleted."""

    __tablename__ = "app_user"

    name: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True, index=True)
    role: str = Field(default=UserRole.EMPLOYEE, max_length=20, index=True)
    department: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    avatar: str | None = Field(default=None, max_length=500)
    is_active: bool = Field(default=True, index=True)
