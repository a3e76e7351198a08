"""Health check endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.database import Store, get_store
from app.core.exceptions import DatabaseError
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "unhealthy"]
    database: Literal["connected", "disconnected"] | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check; never touches the store."""
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(
    store: Store = Depends(get_store),
) -> HealthResponse:
    """Readiness check including a store round-trip.

    Args:
        store: Store dependency.

    Returns:
        Health status with database state.
    """
    try:
        await store.execute("SELECT NOW() AS now")
    except DatabaseError:
        logger.warning("health.database_disconnected")
        return HealthResponse(status="unhealthy", database="disconnected")

    logger.debug("health.database_connected")
    return HealthResponse(status="ok", database="connected")
