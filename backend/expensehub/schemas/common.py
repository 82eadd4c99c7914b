from __future__ import annotations

from pydantic import BaseModel, Field


class PageParams(BaseModel):
    """1-indexed page number and page size."""

    page: int = Field(default=1, ge=1)
    size: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class PageMeta(BaseModel):
    """Pagination metadata returned alongside list results."""

    page: int
    size: int
    total: int
    total_pages: int
    has_more: bool

    @classmethod
    def build(cls, params: PageParams, returned: int, total: int) -> PageMeta:
        return cls(
            page=params.page,
            size=params.size,
            total=total,
            total_pages=-(-total // params.size),
            has_more=params.offset + returned < total,
        )


class Attachment(BaseModel):
    """File reference attached to a request or invoice."""

    file_name: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1, max_length=1000)
    file_type: str | None = Field(default=None, max_length=100)
