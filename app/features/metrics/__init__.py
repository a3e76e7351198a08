"""Sales metrics over users, groups and sales.

Exports:
    Service:
        - MetricsService: One engine behind every metrics endpoint
        - AggregateCoordinator: Runs statements against the injected store

    Statements:
        - ConditionBuilder: Incremental WHERE clause with $n placeholders
        - SelectQuery: Typed parts of one read statement

    Filters:
        - RawQuery, SaleFilters, PerformanceFilters, SortSpec
"""

from app.features.metrics.conditions import ConditionBuilder, Statement, WhereClause
from app.features.metrics.coordinator import AggregateCoordinator
from app.features.metrics.filters import PerformanceFilters, RawQuery, SaleFilters, SortSpec
from app.features.metrics.queries import SelectQuery
from app.features.metrics.service import MetricsService

__all__ = [
    "AggregateCoordinator",
    "ConditionBuilder",
    "MetricsService",
    "PerformanceFilters",
    "RawQuery",
    "SaleFilters",
    "SelectQuery",
    "SortSpec",
    "Statement",
    "WhereClause",
]
