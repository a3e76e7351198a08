"""Async SQLAlchemy 2.0 store setup.

The metrics engine does not own the schema it reads, so there are no ORM
models here. Everything goes through a single capability: execute one
parameterized statement on a pooled connection and return its rows.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.config import get_settings
from app.core.exceptions import DatabaseError
from app.core.logging import get_logger

logger = get_logger(__name__)

Row = dict[str, Any]


class Store(Protocol):
    """Read capability the metrics engine depends on."""

    async def execute(self, statement: str, values: Sequence[Any] = ()) -> list[Row]:
        """Execute a statement with $n placeholders and return its rows."""
        ...


def get_engine() -> AsyncEngine:
    """Create async engine from settings."""
    settings = get_settings()
    engine: AsyncEngine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=settings.db_pool_recycle_seconds,
    )
    return engine


class EngineStore:
    """Store backed by an AsyncEngine connection pool.

    Each statement borrows its own connection and releases it as soon as the
    rows are buffered, so independent statements can run concurrently. No
    transaction spans more than one statement.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize store.

        Args:
            engine: Async engine using the asyncpg driver.
        """
        self.engine = engine

    async def execute(self, statement: str, values: Sequence[Any] = ()) -> list[Row]:
        """Execute a statement and return its rows as dicts.

        The asyncpg dialect uses the numeric-dollar paramstyle, so $n
        placeholders are handed to the driver untouched.

        Args:
            statement: SQL text with 1-indexed $n placeholders.
            values: Bound values in placeholder order.

        Returns:
            Result rows keyed by column label.

        Raises:
            DatabaseError: If the statement fails for any reason.
        """
        try:
            async with self.engine.connect() as conn:
                result = await conn.exec_driver_sql(statement, tuple(values))
                return [dict(row) for row in result.mappings().all()]
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "store.query_failed",
                error=str(e),
                error_type=type(e).__name__,
                statement=statement,
                param_count=len(values),
                exc_info=True,
            )
            raise DatabaseError(
                details={"error_type": type(e).__name__},
            ) from e

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


def get_store(request: Request) -> Store:
    """Dependency returning the application's store.

    Args:
        request: Incoming request; the store lives on app state.

    Returns:
        Store created during application startup.
    """
    store: Store = request.app.state.store
    return store
