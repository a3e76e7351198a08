"""Tests for statement execution ordering."""

import asyncio
from collections.abc import Sequence
from typing import Any

import pytest

from app.core.database import Row
from app.core.exceptions import DatabaseError, NotFoundError
from app.features.metrics import queries
from app.features.metrics.conditions import Statement
from app.features.metrics.coordinator import AggregateCoordinator
from app.features.metrics.filters import SaleFilters, SortSpec
from app.features.metrics.schemas import EntityKind
from app.shared.schemas import PaginationParams


class InFlightStore:
    """Store that records how many statements were in flight at once."""

    def __init__(self) -> None:
        self.in_flight = 0
        self.peak = 0

    async def execute(self, statement: str, values: Sequence[Any] = ()) -> list[Row]:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        return [{"statement": statement}]


class FailingStore:
    """Store where one statement fails while the others wait on the database."""

    def __init__(self) -> None:
        self.cancelled: list[str] = []

    async def execute(self, statement: str, values: Sequence[Any] = ()) -> list[Row]:
        if statement == "FAIL":
            await asyncio.sleep(0)
            raise DatabaseError(details={"error_type": "QueryCanceledError"})
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled.append(statement)
            raise
        return []


class TestEnsureExists:
    """Tests for the existence guard."""

    async def test_missing_entity_raises_after_one_call(self, fake_store) -> None:
        coordinator = AggregateCoordinator(fake_store)

        with pytest.raises(NotFoundError, match="Group not found"):
            await coordinator.ensure_exists(EntityKind.GROUP, 7)

        assert len(fake_store.calls) == 1
        assert fake_store.calls[0][1] == (7,)

    async def test_existing_entity_returns_row(self, fake_store, user_row) -> None:
        fake_store.when("FROM users", [user_row])
        coordinator = AggregateCoordinator(fake_store)

        row = await coordinator.ensure_exists(EntityKind.USER, 42)

        assert row == user_row


class TestFetchPage:
    """Tests for listing then count."""

    async def test_listing_runs_before_count(self, fake_store) -> None:
        fake_store.when("COUNT(*) AS count", [{"count": 3}])
        listing = queries.sales_listing(
            SaleFilters(), SortSpec(column="date", direction="desc"), PaginationParams()
        )

        _, total = await AggregateCoordinator(fake_store).fetch_page(listing)

        assert total == 3
        assert "LIMIT" in fake_store.calls[0][0]
        assert "COUNT(*)" in fake_store.calls[1][0]

    async def test_count_may_observe_a_later_snapshot(self, fake_store) -> None:
        """A row inserted between listing and count is reflected in total only."""
        fake_store.when("COUNT(*) AS count", [{"count": 3}])
        fake_store.when("SELECT s.id", [{"id": 1}, {"id": 2}])
        listing = queries.sales_listing(
            SaleFilters(), SortSpec(column="date", direction="desc"), PaginationParams()
        )

        rows, total = await AggregateCoordinator(fake_store).fetch_page(listing)

        assert len(rows) == 2
        assert total == 3

    async def test_missing_count_row_is_zero(self, fake_store) -> None:
        listing = queries.sales_listing(
            SaleFilters(), SortSpec(column="date", direction="desc"), PaginationParams()
        )

        rows, total = await AggregateCoordinator(fake_store).fetch_page(listing)

        assert rows == []
        assert total == 0


class TestGather:
    """Tests for concurrent aggregates."""

    async def test_results_are_keyed_by_name(self) -> None:
        coordinator = AggregateCoordinator(InFlightStore())

        results = await coordinator.gather(a=Statement("SELECT 1"), b=Statement("SELECT 2"))

        assert results == {
            "a": [{"statement": "SELECT 1"}],
            "b": [{"statement": "SELECT 2"}],
        }

    async def test_statements_are_in_flight_together(self) -> None:
        store = InFlightStore()

        await AggregateCoordinator(store).gather(
            a=Statement("SELECT 1"), b=Statement("SELECT 2"), c=Statement("SELECT 3")
        )

        assert store.peak == 3

    async def test_any_failure_fails_the_request(self, fake_store) -> None:
        fake_store.fail_with(DatabaseError())

        with pytest.raises(DatabaseError):
            await AggregateCoordinator(fake_store).gather(a=Statement("SELECT 1"))

    async def test_failure_cancels_statements_still_running(self) -> None:
        store = FailingStore()

        with pytest.raises(DatabaseError) as exc_info:
            await AggregateCoordinator(store).gather(
                trend=Statement("SLOW 1"), failing=Statement("FAIL"), rankings=Statement("SLOW 2")
            )

        assert exc_info.value.details["error_type"] == "QueryCanceledError"
        assert sorted(store.cancelled) == ["SLOW 1", "SLOW 2"]
