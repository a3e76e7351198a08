"""Tests for link building."""

from datetime import date
from decimal import Decimal

from app.shared.schemas import PaginationMeta, PaginationParams
from app.shared.utils import build_link, build_pagination_links


def test_build_link_without_query():
    assert build_link("/api/metrics/sales") == "/api/metrics/sales"


def test_build_link_skips_none_and_formats_values():
    link = build_link(
        "/api/metrics/sales",
        {"startDate": date(2021, 2, 1), "endDate": None, "minAmount": Decimal("10.50")},
    )

    assert link == "/api/metrics/sales?startDate=2021-02-01&minAmount=10.50"


def _links(page: int, limit: int, total: int) -> dict[str, str]:
    meta = PaginationMeta.from_total(PaginationParams(page=page, limit=limit), total)
    return build_pagination_links("/p", {"sortBy": "amount"}, meta)


def test_middle_page_links():
    links = _links(page=2, limit=10, total=25)

    assert links == {
        "self": "/p?sortBy=amount&page=2&limit=10",
        "first": "/p?sortBy=amount&page=1&limit=10",
        "last": "/p?sortBy=amount&page=3&limit=10",
        "next": "/p?sortBy=amount&page=3&limit=10",
        "prev": "/p?sortBy=amount&page=1&limit=10",
    }


def test_single_page_has_no_navigation():
    links = _links(page=1, limit=10, total=5)

    assert "next" not in links
    assert "prev" not in links


def test_empty_listing_points_last_at_first_page():
    links = _links(page=1, limit=10, total=0)

    assert links["last"] == links["first"]
    assert "next" not in links
