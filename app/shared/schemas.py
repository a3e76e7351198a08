"""Shared Pydantic schemas for API responses."""

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str = Field(..., description="Human-readable error message")


def _positive_int(raw: str | int | None) -> int | None:
    """Parse a positive integer, returning None for anything else."""
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value > 0 else None


class PaginationParams(BaseModel):
    """Resolved pagination window."""

    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(100, ge=1, description="Items per page")

    @classmethod
    def from_query(
        cls,
        page: str | int | None,
        limit: str | int | None,
        default_limit: int = 100,
    ) -> "PaginationParams":
        """Clamp raw query values into a valid window.

        Absent, non-numeric or non-positive values fall back to page 1 and
        ``default_limit``. No upper bound is applied to limit.

        Args:
            page: Raw page query value.
            limit: Raw limit query value.
            default_limit: Limit used when none is given.

        Returns:
            Resolved pagination parameters.
        """
        return cls(
            page=_positive_int(page) or 1,
            limit=_positive_int(limit) or default_limit,
        )

    @property
    def offset(self) -> int:
        """Calculate SQL offset from page number."""
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    """Pagination metadata returned with listings."""

    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Items per page")
    total: int = Field(..., ge=0, description="Total matching rows")
    pages: int = Field(..., ge=0, description="Total number of pages")

    @classmethod
    def from_total(cls, pagination: PaginationParams, total: int) -> "PaginationMeta":
        """Compute page count for a total row count."""
        return cls(
            page=pagination.page,
            limit=pagination.limit,
            total=total,
            pages=math.ceil(total / pagination.limit),
        )

    @property
    def has_next(self) -> bool:
        """Whether a page follows the current one."""
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        """Whether a page precedes the current one."""
        return self.page > 1


class ResponseMeta(BaseModel):
    """Envelope metadata. Absent sections are omitted from the output."""

    pagination: PaginationMeta | None = Field(
        None,
        description="Page window and totals. Present on listings only.",
    )
    filters: dict[str, Any] | None = Field(
        None,
        description="Resolved filter values, keyed by query parameter name. "
        "Resubmitting them reproduces the same result set.",
    )

    @model_serializer(mode="wrap")
    def _drop_absent(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        return {key: value for key, value in data.items() if value is not None}


T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Uniform ``{data, meta, links}`` response wrapper."""

    data: T = Field(..., description="Rows or nested aggregate object")
    meta: ResponseMeta = Field(default_factory=ResponseMeta)
    links: dict[str, str] = Field(
        ...,
        description="self plus navigation and related resource URLs",
    )
