"""Tests for logging configuration."""

from app.core.logging import add_request_id, configure_logging, get_logger, request_id_ctx


def test_get_logger_returns_bound_logger():
    """get_logger should return a structlog logger."""
    configure_logging()
    logger = get_logger("test")

    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")


def test_request_id_context_variable():
    """request_id_ctx should store and retrieve values."""
    assert request_id_ctx.get() is None

    token = request_id_ctx.set("test-id-123")
    assert request_id_ctx.get() == "test-id-123"

    request_id_ctx.reset(token)
    assert request_id_ctx.get() is None


def test_add_request_id_binds_current_request():
    """Events logged inside a request carry its request_id."""
    token = request_id_ctx.set("req-42")
    try:
        event = add_request_id(None, "info", {"event": "metrics.sales_listed"})
    finally:
        request_id_ctx.reset(token)

    assert event["request_id"] == "req-42"


def test_add_request_id_outside_request():
    """Events logged outside a request have no request_id key."""
    event = add_request_id(None, "info", {"event": "app.startup_started"})

    assert "request_id" not in event
