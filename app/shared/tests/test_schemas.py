"""Tests for shared pagination and envelope schemas."""

import pytest

from app.shared.schemas import Envelope, PaginationMeta, PaginationParams, ResponseMeta


class TestPaginationParams:
    """Tests for PaginationParams.from_query."""

    def test_defaults(self):
        params = PaginationParams.from_query(None, None)

        assert params.page == 1
        assert params.limit == 100
        assert params.offset == 0

    def test_parses_strings(self):
        params = PaginationParams.from_query("3", "25")

        assert params.page == 3
        assert params.limit == 25
        assert params.offset == 50

    @pytest.mark.parametrize("raw", ["0", "-2", "abc", "", "1.5", "10abc"])
    def test_invalid_values_fall_back(self, raw):
        params = PaginationParams.from_query(raw, raw, default_limit=10)

        assert params.page == 1
        assert params.limit == 10

    def test_no_upper_bound_on_limit(self):
        assert PaginationParams.from_query("1", "50000").limit == 50000


class TestPaginationMeta:
    """Tests for PaginationMeta.from_total."""

    @pytest.mark.parametrize(
        ("total", "limit", "pages"),
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 10, 3)],
    )
    def test_pages_is_ceiling(self, total, limit, pages):
        meta = PaginationMeta.from_total(PaginationParams(page=1, limit=limit), total)

        assert meta.pages == pages

    def test_middle_page_has_both_neighbours(self):
        meta = PaginationMeta.from_total(PaginationParams(page=2, limit=10), 25)

        assert meta.has_next is True
        assert meta.has_prev is True

    def test_last_page_has_no_next(self):
        meta = PaginationMeta.from_total(PaginationParams(page=3, limit=10), 25)

        assert meta.has_next is False
        assert meta.has_prev is True

    def test_page_past_the_end(self):
        meta = PaginationMeta.from_total(PaginationParams(page=9, limit=10), 25)

        assert meta.has_next is False
        assert meta.has_prev is True


class TestEnvelope:
    """Tests for envelope serialization."""

    def test_absent_meta_sections_are_omitted(self):
        envelope = Envelope[dict](data={"a": 1}, links={"self": "/x"})

        assert envelope.model_dump() == {"data": {"a": 1}, "meta": {}, "links": {"self": "/x"}}

    def test_filters_keep_unbounded_dates(self):
        meta = ResponseMeta(filters={"startDate": None, "endDate": "2021-12-31"})

        assert meta.model_dump() == {"filters": {"startDate": None, "endDate": "2021-12-31"}}
