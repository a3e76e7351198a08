"""Core infrastructure: config, store, logging, middleware, exceptions."""

from app.core.config import Settings, get_settings
from app.core.database import EngineStore, Store, get_store
from app.core.logging import get_logger, request_id_ctx

__all__ = [
    "EngineStore",
    "Settings",
    "Store",
    "get_logger",
    "get_settings",
    "get_store",
    "request_id_ctx",
]
