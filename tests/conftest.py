"""Shared pytest fixtures for SalesMetrics tests."""

from collections.abc import Sequence
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.database import Row, get_store
from app.main import app


class FakeStore:
    """In-memory store that records every statement it receives.

    Responses are registered against a text fragment; the first fragment
    found in the statement decides the rows returned. Unmatched statements
    return no rows. Failures registered with ``fail_on`` take precedence.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.responses: list[tuple[str, list[Row]]] = []
        self.error: Exception | None = None
        self.failures: list[tuple[str, Exception]] = []

    def when(self, fragment: str, rows: list[Row]) -> "FakeStore":
        self.responses.append((fragment, rows))
        return self

    def fail_with(self, error: Exception) -> "FakeStore":
        self.error = error
        return self

    def fail_on(self, fragment: str, error: Exception) -> "FakeStore":
        self.failures.append((fragment, error))
        return self

    async def execute(self, statement: str, values: Sequence[Any] = ()) -> list[Row]:
        self.calls.append((statement, tuple(values)))
        if self.error is not None:
            raise self.error
        for fragment, error in self.failures:
            if fragment in statement:
                raise error
        for fragment, rows in self.responses:
            if fragment in statement:
                return [dict(row) for row in rows]
        return []

    def statements_containing(self, fragment: str) -> list[tuple[str, tuple[Any, ...]]]:
        return [call for call in self.calls if fragment in call[0]]


@pytest.fixture
def fake_store():
    """Create a recording fake store."""
    return FakeStore()


@pytest.fixture
async def client(fake_store):
    """Create async HTTP client with the store replaced by the fake."""
    app.dependency_overrides[get_store] = lambda: fake_store
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
