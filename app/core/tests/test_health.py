"""Tests for health check endpoints."""

import pytest

from app.core.exceptions import DatabaseError


@pytest.mark.asyncio
async def test_health_check_returns_ok(client, fake_store):
    """Health endpoint should return status ok without touching the store."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert fake_store.calls == []


@pytest.mark.asyncio
async def test_health_check_includes_request_id_header(client):
    """Health endpoint should include X-Request-ID in response."""
    response = await client.get("/health")

    assert "X-Request-ID" in response.headers
    assert len(response.headers["X-Request-ID"]) > 0


@pytest.mark.asyncio
async def test_readiness_check_connected(client, fake_store):
    """Readiness should report a connected database after one round-trip."""
    fake_store.when("SELECT NOW()", [{"now": "2021-01-01T00:00:00"}])

    response = await client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected"}
    assert len(fake_store.calls) == 1


@pytest.mark.asyncio
async def test_readiness_check_disconnected(client, fake_store):
    """Readiness should report unhealthy when the store fails."""
    fake_store.fail_with(DatabaseError())

    response = await client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "unhealthy", "database": "disconnected"}
