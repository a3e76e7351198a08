"""Response envelope assembly.

Links and ``meta.filters`` are built from resolved filter values, never
from the raw request, so following a link reproduces the same filtering.
"""

from collections.abc import Mapping
from typing import Any, TypeVar

from app.shared.schemas import Envelope, PaginationMeta, PaginationParams, ResponseMeta
from app.shared.utils import build_link, build_pagination_links

T = TypeVar("T")


def listing_envelope(
    rows: list[T],
    *,
    pagination: PaginationParams,
    total: int,
    path: str,
    filters: Mapping[str, Any],
) -> Envelope[list[T]]:
    """Wrap one page of rows with pagination metadata and navigation links.

    Args:
        rows: Rows of the current page.
        pagination: Resolved page window.
        total: Total rows matching the filters.
        path: Listing path.
        filters: Resolved filters keyed by query parameter name.

    Returns:
        Envelope with ``meta.pagination``, ``meta.filters`` and page links.
    """
    meta = PaginationMeta.from_total(pagination, total)
    return Envelope[list[T]](
        data=rows,
        meta=ResponseMeta(pagination=meta, filters=dict(filters)),
        links=build_pagination_links(path, filters, meta),
    )


def aggregate_envelope(
    data: T,
    *,
    path: str,
    filters: Mapping[str, Any] | None = None,
    related: Mapping[str, str] | None = None,
) -> Envelope[T]:
    """Wrap an aggregate object with its filters and related links.

    Args:
        data: Aggregate payload.
        path: Path of the current resource.
        filters: Resolved filters keyed by query parameter name.
        related: Extra links keyed by relation name.

    Returns:
        Envelope whose ``self`` link carries the resolved filters.
    """
    return Envelope[T](
        data=data,
        meta=ResponseMeta(filters=dict(filters) if filters is not None else None),
        links={"self": build_link(path, filters), **(related or {})},
    )
