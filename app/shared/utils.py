"""Shared utility functions for building response links."""

from collections.abc import Mapping
from datetime import date
from typing import Any
from urllib.parse import urlencode

from app.shared.schemas import PaginationMeta


def format_query_value(value: Any) -> str:
    """Render a resolved filter value the way it is accepted back as input."""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def build_link(path: str, query: Mapping[str, Any] | None = None) -> str:
    """Build a relative URL from a path and resolved query values.

    None values are skipped, so an unset filter never shows up in a link.

    Args:
        path: URL path.
        query: Query parameters in the order they should appear.

    Returns:
        Path with an encoded query string (if any).
    """
    params = {
        key: format_query_value(value)
        for key, value in (query or {}).items()
        if value is not None
    }
    if not params:
        return path
    return f"{path}?{urlencode(params)}"


def build_pagination_links(
    path: str,
    query: Mapping[str, Any],
    meta: PaginationMeta,
) -> dict[str, str]:
    """Create self/first/last/next/prev links for a listing.

    ``next`` is present iff ``page < pages`` and ``prev`` iff ``page > 1``.
    ``last`` points at page 1 when there are no pages at all.

    Args:
        path: Listing path.
        query: Resolved filters to carry on every link.
        meta: Pagination metadata of the current page.

    Returns:
        Navigation links keyed by relation.
    """

    def page_link(page: int) -> str:
        return build_link(path, {**query, "page": page, "limit": meta.limit})

    links = {
        "self": page_link(meta.page),
        "first": page_link(1),
        "last": page_link(max(meta.pages, 1)),
    }
    if meta.has_next:
        links["next"] = page_link(meta.page + 1)
    if meta.has_prev:
        links["prev"] = page_link(meta.page - 1)
    return links
