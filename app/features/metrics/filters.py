"""Resolution of raw query parameters into frozen filter objects.

A resolved filter is what the statements are built from and what gets
echoed back in ``meta.filters`` and links, under the same names as the
query parameters, so resubmitting it reproduces the result set. Path
identifiers are not part of a filter; they are applied when a statement
is built.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Final

from app.features.metrics.validation import (
    parse_amount,
    parse_date,
    parse_int,
    parse_limit,
    validate_interval,
    validate_sort_column,
    validate_sort_order,
)

SALE_SORT_COLUMNS: Final = ("date", "amount")
SCOPED_SALE_SORT_COLUMNS: Final = ("date", "amount", "user_id")
MEMBER_SORT_COLUMNS: Final = ("name", "role")
USER_PERFORMANCE_SORT_COLUMNS: Final = ("total_revenue", "average_revenue", "sales_count", "name")
GROUP_PERFORMANCE_SORT_COLUMNS: Final = (
    "total_revenue",
    "average_revenue",
    "sales_count",
    "active_users",
    "name",
)


@dataclass(frozen=True)
class RawQuery:
    """Query parameters exactly as received (all optional strings)."""

    start_date: str | None = None
    end_date: str | None = None
    page: str | None = None
    limit: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    interval: str | None = None
    role: str | None = None
    group_id: str | None = None
    user_id: str | None = None
    min_amount: str | None = None
    max_amount: str | None = None


@dataclass(frozen=True)
class SortSpec:
    """Allow-listed ORDER BY column and direction."""

    column: str
    direction: str

    @classmethod
    def resolve(
        cls,
        raw: RawQuery,
        allowed: tuple[str, ...],
        default_column: str,
        default_direction: str,
    ) -> "SortSpec":
        return cls(
            column=validate_sort_column(raw.sort_by, allowed, default_column),
            direction=validate_sort_order(raw.sort_order, default_direction),
        )

    def render(self, qualifier: str = "") -> str:
        """Render ``"<qualifier><column> <direction>"``."""
        return f"{qualifier}{self.column} {self.direction}"

    def as_query(self) -> dict[str, Any]:
        return {"sortBy": self.column, "sortOrder": self.direction}


@dataclass(frozen=True)
class SaleFilters:
    """Scope shared by every statement that reads the sales table.

    Attributes:
        start_date: Inclusive lower date bound.
        end_date: Inclusive upper date bound.
        user_id: Seller scope.
        group_id: Group scope, reached through membership.
        role: Seller role scope.
        min_amount: Inclusive lower amount bound.
        max_amount: Inclusive upper amount bound.
    """

    start_date: date | None = None
    end_date: date | None = None
    user_id: int | None = None
    group_id: int | None = None
    role: str | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None

    @classmethod
    def resolve(
        cls,
        raw: RawQuery,
        *,
        default_start: date | None = None,
        default_end: date | None = None,
        user_scope: bool = False,
        group_scope: bool = False,
        amounts: bool = False,
    ) -> "SaleFilters":
        """Resolve the filters an endpoint accepts from its query string.

        Args:
            raw: Raw query parameters.
            default_start: Start date used when none (or a bad one) is given.
            default_end: End date used when none (or a bad one) is given.
            user_scope: Accept ``userId``.
            group_scope: Accept ``groupId`` and ``role``.
            amounts: Accept ``minAmount`` and ``maxAmount``.

        Returns:
            Resolved sale filters.
        """
        return cls(
            start_date=parse_date(raw.start_date, default_start),
            end_date=parse_date(raw.end_date, default_end),
            user_id=parse_int(raw.user_id) if user_scope else None,
            group_id=parse_int(raw.group_id) if group_scope else None,
            role=(raw.role or None) if group_scope else None,
            min_amount=parse_amount(raw.min_amount) if amounts else None,
            max_amount=parse_amount(raw.max_amount) if amounts else None,
        )

    @property
    def date_window(self) -> "SaleFilters":
        """Same dates with every other scope dropped."""
        return SaleFilters(start_date=self.start_date, end_date=self.end_date)

    def as_query(self) -> dict[str, Any]:
        """Echo the filters under their query parameter names.

        Dates are always echoed (None meaning unbounded); other filters only
        when set.
        """
        query: dict[str, Any] = {"startDate": self.start_date, "endDate": self.end_date}
        optional = {
            "userId": self.user_id,
            "groupId": self.group_id,
            "role": self.role,
            "minAmount": self.min_amount,
            "maxAmount": self.max_amount,
        }
        query.update({key: value for key, value in optional.items() if value is not None})
        return query


@dataclass(frozen=True)
class PerformanceFilters:
    """Date window, granularity and top-N settings of a performance view."""

    sales: SaleFilters
    interval: str
    sort: SortSpec | None = None
    limit: int | None = None

    @classmethod
    def resolve(
        cls,
        raw: RawQuery,
        *,
        default_start: date,
        default_end: date,
        default_interval: str,
        sort_columns: tuple[str, ...] | None = None,
        default_limit: int = 10,
        group_scope: bool = False,
    ) -> "PerformanceFilters":
        """Resolve a performance request.

        The date window always resolves to concrete dates. Sorting and the
        top-N limit are only resolved for ranked listings (``sort_columns``).
        """
        sales = SaleFilters.resolve(
            raw,
            default_start=default_start,
            default_end=default_end,
            group_scope=group_scope,
        )
        sort = None
        limit = None
        if sort_columns is not None:
            sort = SortSpec.resolve(raw, sort_columns, "total_revenue", "desc")
            limit = parse_limit(raw.limit, default_limit)
        return cls(
            sales=sales,
            interval=validate_interval(raw.interval, default_interval),
            sort=sort,
            limit=limit,
        )

    def as_query(self) -> dict[str, Any]:
        query = {**self.sales.as_query(), "interval": self.interval}
        if self.sort is not None:
            query.update(self.sort.as_query())
            query["limit"] = self.limit
        return query
