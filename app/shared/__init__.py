"""Shared utilities used across features."""

from app.shared.schemas import (
    Envelope,
    ErrorResponse,
    PaginationMeta,
    PaginationParams,
    ResponseMeta,
)
from app.shared.utils import build_link, build_pagination_links

__all__ = [
    "Envelope",
    "ErrorResponse",
    "PaginationMeta",
    "PaginationParams",
    "ResponseMeta",
    "build_link",
    "build_pagination_links",
]
