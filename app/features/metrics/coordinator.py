"""Execution of the statements behind one metrics request.

Sequential dependencies are explicit: the existence guard runs before any
aggregate and a listing runs before its count. Aggregates with no data
dependency between them are issued concurrently in a task group; the first
failure cancels the statements still running and fails the request. No
transaction spans the statements, so a listing, its count and the aggregates
may each observe a different snapshot.
"""

import asyncio
import time

from app.core.database import Row, Store
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.features.metrics.conditions import Statement
from app.features.metrics.queries import SelectQuery, existence_statement
from app.features.metrics.schemas import EntityKind

logger = get_logger(__name__)


class AggregateCoordinator:
    """Run metrics statements against an injected store."""

    def __init__(self, store: Store) -> None:
        """Initialize coordinator.

        Args:
            store: Store capability used for every statement.
        """
        self.store = store

    async def run(self, statement: Statement) -> list[Row]:
        """Execute one statement."""
        started = time.perf_counter()
        rows = await self.store.execute(statement.text, statement.values)
        logger.debug(
            "metrics.statement_executed",
            param_count=len(statement.values),
            row_count=len(rows),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return rows

    async def fetch_one(self, statement: Statement) -> Row | None:
        """Execute one statement and return its first row, if any."""
        rows = await self.run(statement)
        return rows[0] if rows else None

    async def ensure_exists(self, kind: EntityKind, entity_id: int) -> Row:
        """Existence guard: look the entity up before anything depends on it.

        Args:
            kind: Entity table to check.
            entity_id: Identifier to resolve.

        Returns:
            The entity row.

        Raises:
            NotFoundError: If no row has this id.
        """
        row = await self.fetch_one(existence_statement(kind, entity_id))
        if row is None:
            raise NotFoundError(
                f"{kind.label} not found",
                details={"entity": kind.value, "id": entity_id},
            )
        return row

    async def fetch_page(self, listing: SelectQuery) -> tuple[list[Row], int]:
        """Run a paginated listing, then its count.

        Args:
            listing: Listing with its LIMIT/OFFSET window set.

        Returns:
            Rows of the current page and the total matching row count.
        """
        rows = await self.run(listing.statement())
        count_row = await self.fetch_one(listing.count_statement())
        total = int(count_row["count"]) if count_row else 0
        return rows, total

    async def gather(self, **statements: Statement) -> dict[str, list[Row]]:
        """Run independent statements concurrently.

        Args:
            **statements: Statements keyed by the name their rows come back under.

        Returns:
            Rows per statement name.

        Raises:
            MetricsError: The first failure; statements still running are cancelled.
        """
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = {
                    name: tg.create_task(self.run(statement))
                    for name, statement in statements.items()
                }
        except ExceptionGroup as group:
            raise group.exceptions[0] from None
        return {name: task.result() for name, task in tasks.items()}
