"""Allow-list validation and fallback parsing of query parameters.

Column names, sort directions and trend granularities cannot be bound as
statement parameters, so they are only ever spliced into SQL after passing
``validate_allowed``. Malformed optional filters fall back to a default
instead of raising.
"""

from collections.abc import Collection
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Final

from app.core.exceptions import BadRequestError
from app.features.metrics.schemas import TimeGranularity

SORT_ORDERS: Final = ("asc", "desc")
INTERVALS: Final = tuple(granularity.value for granularity in TimeGranularity)


def validate_allowed(
    candidate: str | None,
    allowed: Collection[str],
    default: str,
    *,
    case_sensitive: bool = True,
) -> str:
    """Return ``candidate`` if it is allow-listed, otherwise ``default``.

    Args:
        candidate: Caller-supplied identifier.
        allowed: Identifiers that are safe to splice into statement text.
        default: Fallback identifier (must itself be safe).
        case_sensitive: Compare as given, or lower-case both sides.

    Returns:
        A member of ``allowed`` or ``default``.
    """
    if candidate is None:
        return default
    if case_sensitive:
        return candidate if candidate in allowed else default
    lowered = candidate.lower()
    return lowered if lowered in {item.lower() for item in allowed} else default


def validate_sort_column(candidate: str | None, allowed: Collection[str], default: str) -> str:
    """Validate a sort column (case-sensitive)."""
    return validate_allowed(candidate, allowed, default)


def validate_sort_order(candidate: str | None, default: str = "asc") -> str:
    """Validate a sort direction (case-insensitive, normalized to lower case)."""
    return validate_allowed(candidate, SORT_ORDERS, default, case_sensitive=False)


def validate_interval(candidate: str | None, default: str = "month") -> str:
    """Validate a trend granularity."""
    return validate_allowed(candidate, INTERVALS, default)


def parse_date(raw: str | None, fallback: date | None) -> date | None:
    """Parse an ISO date, falling back on absent or malformed input.

    A full ISO datetime is accepted and truncated to its date.
    """
    if not raw:
        return fallback
    value = raw.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return fallback


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse a non-negative monetary bound, or None."""
    if not raw:
        return None
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


def parse_int(raw: str | None) -> int | None:
    """Parse an integer scoping filter (userId, groupId), or None."""
    if not raw:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def parse_limit(raw: str | None, default: int) -> int:
    """Parse a positive row limit, falling back to ``default``."""
    value = parse_int(raw)
    return value if value is not None and value > 0 else default


def require_id(raw: str | None, kind: str) -> int:
    """Resolve a required path identifier.

    Args:
        raw: Path segment as received.
        kind: Entity label used in the error message, e.g. "User".

    Returns:
        The identifier as an integer.

    Raises:
        BadRequestError: If the identifier is missing or not an integer.
    """
    value = parse_int(raw)
    if value is None:
        raise BadRequestError(f"{kind} ID is required", details={"raw_id": raw})
    return value
