"""Statement assembly for every metrics endpoint.

``SelectQuery`` holds the typed parts of one read (projection, joins,
WHERE clause, grouping, validated ordering, row window) and renders them
once. Statement factories below are pure functions of resolved filters, so
a listing and its count, or a summary and its trend, are built by running
the same fragment logic again rather than by slicing shared state.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Final

from app.features.metrics.conditions import (
    ConditionBuilder,
    Statement,
    WhereClause,
    placeholder,
)
from app.features.metrics.filters import SaleFilters, SortSpec
from app.features.metrics.schemas import EntityKind
from app.shared.schemas import PaginationParams

USERS_JOIN: Final = "JOIN users u ON s.user_id = u.id"
MEMBERSHIP_JOIN: Final = "JOIN user_groups ug ON s.user_id = ug.user_id"
GROUPS_JOIN: Final = "JOIN groups g ON ug.group_id = g.id"
GROUP_SIZES_JOIN: Final = (
    "JOIN (SELECT group_id, COUNT(DISTINCT user_id) AS member_count "
    "FROM user_groups GROUP BY group_id) gs ON gs.group_id = g.id"
)

SUMMARY_COLUMNS: Final = (
    "COUNT(s.id) AS total_sales",
    "SUM(s.amount) AS total_revenue",
    "AVG(s.amount) AS average_sale_amount",
    "MIN(s.amount) AS min_sale_amount",
    "MAX(s.amount) AS max_sale_amount",
)
ACTIVE_USERS: Final = "COUNT(DISTINCT s.user_id) AS active_users"
ACTIVE_GROUPS: Final = "COUNT(DISTINCT ug.group_id) AS active_groups"
PERFORMER_COLUMNS: Final = (
    "COUNT(s.id) AS sales_count",
    "SUM(s.amount) AS total_revenue",
    "AVG(s.amount) AS average_revenue",
)

EMPTY_WHERE: Final = WhereClause(text="", values=())


@dataclass(frozen=True)
class SelectQuery:
    """One read statement, assembled from typed parts.

    Attributes:
        columns: Projection.
        source: Base table with alias, e.g. ``"sales s"``.
        joins: Join clauses in the order they are rendered.
        where: Frozen WHERE clause (owns placeholders ``$1..$n``).
        group_by: Grouping expressions.
        order_by: ORDER BY items; only allow-listed identifiers.
        limit: Row limit, bound after the WHERE values.
        offset: Row offset, bound after the limit.
    """

    columns: Sequence[str]
    source: str
    joins: Sequence[str] = ()
    where: WhereClause = EMPTY_WHERE
    group_by: Sequence[str] = ()
    order_by: Sequence[str] = ()
    limit: int | None = None
    offset: int | None = None

    def _body(self) -> list[str]:
        parts = [f"FROM {self.source}", *self.joins]
        if self.where.text:
            parts.append(self.where.text)
        if self.group_by:
            parts.append(f"GROUP BY {', '.join(self.group_by)}")
        return parts

    def statement(self) -> Statement:
        """Render the full statement, window values appended last."""
        parts = [f"SELECT {', '.join(self.columns)}", *self._body()]
        if self.order_by:
            parts.append(f"ORDER BY {', '.join(self.order_by)}")

        values = list(self.where.values)
        if self.limit is not None:
            parts.append(f"LIMIT {placeholder(len(values) + 1)}")
            values.append(self.limit)
        if self.offset is not None:
            parts.append(f"OFFSET {placeholder(len(values) + 1)}")
            values.append(self.offset)
        return Statement(text="\n".join(parts), values=tuple(values))

    def count_statement(self) -> Statement:
        """Render the row count over the same joins and filters.

        No ordering or window; the values are exactly those of the WHERE
        clause. Grouped reads are counted per group.
        """
        body = "\n".join(self._body())
        if self.group_by:
            columns = ", ".join(self.columns)
            text = f"SELECT COUNT(*) AS count FROM (SELECT {columns}\n{body}) AS grouped"
        else:
            text = f"SELECT COUNT(*) AS count\n{body}"
        return Statement(text=text, values=self.where.values)

    def paginate(self, pagination: PaginationParams) -> "SelectQuery":
        """Copy with a LIMIT/OFFSET window."""
        return replace(self, limit=pagination.limit, offset=pagination.offset)


# =============================================================================
# Shared fragments
# =============================================================================


def existence_statement(kind: EntityKind, entity_id: int) -> Statement:
    """``SELECT * FROM <table> WHERE id = $1`` for an allow-listed table."""
    where = ConditionBuilder().add("id = {}", entity_id).build()
    return SelectQuery(columns=("*",), source=kind.value, where=where).statement()


def sale_conditions(
    filters: SaleFilters,
    builder: ConditionBuilder | None = None,
    keyword: str = "WHERE",
) -> WhereClause:
    """Add every active sale filter to ``builder`` in a fixed order.

    Args:
        filters: Resolved sale filters.
        builder: Builder that may already hold static values.
        keyword: ``"WHERE"``, or ``"AND"`` to extend a join condition.

    Returns:
        Frozen WHERE clause.
    """
    builder = builder or ConditionBuilder()
    if filters.user_id is not None:
        builder.add("s.user_id = {}", filters.user_id)
    if filters.group_id is not None:
        builder.add("ug.group_id = {}", filters.group_id)
    if filters.role is not None:
        builder.add("u.role = {}", filters.role)
    if filters.start_date is not None:
        builder.add("s.date >= {}::date", filters.start_date)
    if filters.end_date is not None:
        builder.add("s.date <= {}::date", filters.end_date)
    if filters.min_amount is not None:
        builder.add("s.amount >= {}", filters.min_amount)
    if filters.max_amount is not None:
        builder.add("s.amount <= {}", filters.max_amount)
    return builder.build(keyword)


def sale_joins(
    filters: SaleFilters,
    *,
    with_user: bool = False,
    membership: bool = False,
) -> tuple[str, ...]:
    """Joins needed from ``sales s`` for the active filters.

    The users join comes first, then group membership.
    """
    joins: list[str] = []
    if with_user or filters.role is not None:
        joins.append(USERS_JOIN)
    if membership or filters.group_id is not None:
        joins.append(MEMBERSHIP_JOIN)
    return tuple(joins)


# =============================================================================
# Listings
# =============================================================================


def sales_listing(
    filters: SaleFilters,
    sort: SortSpec,
    pagination: PaginationParams,
    *,
    with_user: bool = True,
) -> SelectQuery:
    """Paginated sales rows for any combination of sale filters."""
    columns = ["s.id", "s.amount", "s.date"]
    if with_user:
        columns[1:1] = ["s.user_id", "u.name AS user_name"]
    return SelectQuery(
        columns=tuple(columns),
        source="sales s",
        joins=sale_joins(filters, with_user=with_user),
        where=sale_conditions(filters),
        order_by=(sort.render("s."), "s.id"),
    ).paginate(pagination)


def group_members_listing(
    group_id: int,
    role: str | None,
    sort: SortSpec,
    pagination: PaginationParams,
) -> SelectQuery:
    """Paginated members of one group."""
    builder = ConditionBuilder().add("ug.group_id = {}", group_id)
    if role is not None:
        builder.add("u.role = {}", role)
    return SelectQuery(
        columns=("u.id", "u.name", "u.role"),
        source="users u",
        joins=("JOIN user_groups ug ON u.id = ug.user_id",),
        where=builder.build(),
        order_by=(sort.render("u."), "u.id"),
    ).paginate(pagination)


def sale_detail(sale_id: int) -> Statement:
    """One sale with its seller."""
    where = ConditionBuilder().add("s.id = {}", sale_id).build()
    return SelectQuery(
        columns=(
            "s.id",
            "s.user_id",
            "u.name AS user_name",
            "u.role AS user_role",
            "s.amount",
            "s.date",
        ),
        source="sales s",
        joins=(USERS_JOIN,),
        where=where,
    ).statement()


def user_groups(user_id: int) -> Statement:
    """Groups a user belongs to."""
    where = ConditionBuilder().add("ug.user_id = {}", user_id).build()
    return SelectQuery(
        columns=("g.id", "g.name"),
        source="groups g",
        joins=("JOIN user_groups ug ON g.id = ug.group_id",),
        where=where,
        order_by=("g.name asc",),
    ).statement()


# =============================================================================
# Aggregates
# =============================================================================


def sales_summary(filters: SaleFilters, *, active_users: bool = False) -> Statement:
    """Count, sum, avg, min and max of the scoped sales.

    SUM/AVG/MIN/MAX over zero rows come back as NULL.
    """
    columns = [*SUMMARY_COLUMNS]
    if active_users:
        columns.append(ACTIVE_USERS)
    return SelectQuery(
        columns=tuple(columns),
        source="sales s",
        joins=sale_joins(filters),
        where=sale_conditions(filters),
    ).statement()


def sales_trend(
    filters: SaleFilters,
    interval: str,
    *,
    active_users: bool = False,
    active_groups: bool = False,
) -> Statement:
    """Scoped sales bucketed by ``DATE_TRUNC`` on the validated interval.

    The interval is bound as ``$1``; filter placeholders start at ``$2``.
    """
    bucket = f"DATE_TRUNC({placeholder(1)}, s.date)"
    columns = [f"{bucket} AS time_period", *PERFORMER_COLUMNS]
    if active_users:
        columns.append(ACTIVE_USERS)
    if active_groups:
        columns.append(ACTIVE_GROUPS)
    return SelectQuery(
        columns=tuple(columns),
        source="sales s",
        joins=sale_joins(filters, membership=active_groups),
        where=sale_conditions(filters, ConditionBuilder(static_values=(interval,))),
        group_by=("time_period",),
        order_by=("time_period",),
    ).statement()


def user_group_rankings(user_id: int, filters: SaleFilters) -> Statement:
    """A user's dense rank by revenue inside each of their groups.

    Driven by membership: every member of a group is ranked, with zero
    revenue when they sold nothing in the window, so ``total_users`` is the
    group's member count and a user without sales still gets a row per group.
    """
    window = sale_conditions(filters.date_window, keyword="AND")
    outer = ConditionBuilder(static_values=window.values).add("r.user_id = {}", user_id).build()
    text = f"""WITH member_revenue AS (
  SELECT ug.group_id, ug.user_id, COALESCE(SUM(s.amount), 0) AS revenue
  FROM user_groups ug
  LEFT JOIN sales s ON s.user_id = ug.user_id {window.text}
  GROUP BY ug.group_id, ug.user_id
),
ranked AS (
  SELECT group_id, user_id, revenue,
    DENSE_RANK() OVER (PARTITION BY group_id ORDER BY revenue DESC) AS rank,
    COUNT(*) OVER (PARTITION BY group_id) AS total_users
  FROM member_revenue
)
SELECT g.id AS group_id, g.name AS group_name, r.revenue AS user_revenue, r.rank, r.total_users
FROM ranked r
JOIN groups g ON g.id = r.group_id
{outer.text}
ORDER BY g.name asc"""
    return Statement(text=text, values=outer.values)


def top_performers(filters: SaleFilters, sort: SortSpec, limit: int) -> Statement:
    """Users ranked by the validated sort, within the scoped sales."""
    return SelectQuery(
        columns=(
            "u.id",
            "u.name",
            "u.role",
            *PERFORMER_COLUMNS,
            "MIN(s.date) AS first_sale_date",
            "MAX(s.date) AS last_sale_date",
            "RANK() OVER (ORDER BY SUM(s.amount) DESC) AS rank",
        ),
        source="sales s",
        joins=sale_joins(filters, with_user=True),
        where=sale_conditions(filters),
        group_by=("u.id", "u.name", "u.role"),
        order_by=(sort.render(), "u.id"),
        limit=limit,
    ).statement()


def role_breakdown(filters: SaleFilters) -> Statement:
    """Scoped sales per user role. Role itself is not filtered."""
    unscoped = replace(filters, role=None)
    return SelectQuery(
        columns=("u.role", "COUNT(DISTINCT u.id) AS user_count", *PERFORMER_COLUMNS),
        source="sales s",
        joins=sale_joins(unscoped, with_user=True),
        where=sale_conditions(unscoped),
        group_by=("u.role",),
        order_by=("total_revenue desc",),
    ).statement()


def user_breakdown(filters: SaleFilters) -> Statement:
    """Scoped sales per seller."""
    return SelectQuery(
        columns=(
            "u.id AS user_id",
            "u.name AS user_name",
            "u.role",
            *PERFORMER_COLUMNS,
        ),
        source="sales s",
        joins=sale_joins(filters, with_user=True),
        where=sale_conditions(filters),
        group_by=("u.id", "u.name", "u.role"),
        order_by=("total_revenue desc", "u.id"),
    ).statement()


def top_groups(filters: SaleFilters, sort: SortSpec, limit: int) -> Statement:
    """Groups ranked by the validated sort over their members' sales.

    ``total_users`` is the full member count, not only members with sales in
    the window.
    """
    return SelectQuery(
        columns=(
            "g.id",
            "g.name",
            *PERFORMER_COLUMNS,
            ACTIVE_USERS,
            "gs.member_count AS total_users",
            "MIN(s.date) AS first_sale_date",
            "MAX(s.date) AS last_sale_date",
        ),
        source="sales s",
        joins=(*sale_joins(filters, membership=True), GROUPS_JOIN, GROUP_SIZES_JOIN),
        where=sale_conditions(filters),
        group_by=("g.id", "g.name", "gs.member_count"),
        order_by=(sort.render(), "g.id"),
        limit=limit,
    ).statement()


def group_comparison(group_id: int, filters: SaleFilters) -> Statement:
    """Every group's metrics and ranks, the requested group first."""
    window = sale_conditions(filters.date_window)
    focus = placeholder(window.next_index)
    metrics = ", ".join((*PERFORMER_COLUMNS, ACTIVE_USERS))
    text = f"""WITH group_metrics AS (
  SELECT g.id AS group_id, g.name AS group_name,
    {metrics}
  FROM sales s
  {MEMBERSHIP_JOIN}
  {GROUPS_JOIN}
  {window.text}
  GROUP BY g.id, g.name
)
SELECT gm.*,
  RANK() OVER (ORDER BY gm.total_revenue DESC) AS revenue_rank,
  RANK() OVER (ORDER BY gm.sales_count DESC) AS sales_rank,
  RANK() OVER (ORDER BY gm.average_revenue DESC) AS avg_revenue_rank
FROM group_metrics gm
ORDER BY CASE WHEN gm.group_id = {focus} THEN 0 ELSE 1 END, gm.total_revenue DESC"""
    return Statement(text=text, values=(*window.values, group_id))


def group_size_analysis(filters: SaleFilters) -> Statement:
    """Average group revenue and sales per membership size."""
    window = sale_conditions(filters.date_window)
    text = f"""WITH group_sizes AS (
  SELECT ug.group_id AS id, COUNT(DISTINCT ug.user_id) AS user_count
  FROM user_groups ug
  GROUP BY ug.group_id
),
group_performance AS (
  SELECT ug.group_id AS id, SUM(s.amount) AS total_revenue, COUNT(s.id) AS sales_count
  FROM sales s
  {MEMBERSHIP_JOIN}
  {window.text}
  GROUP BY ug.group_id
)
SELECT gs.user_count,
  COUNT(DISTINCT gs.id) AS group_count,
  AVG(gp.total_revenue) AS avg_revenue,
  AVG(gp.sales_count) AS avg_sales
FROM group_sizes gs
LEFT JOIN group_performance gp ON gs.id = gp.id
GROUP BY gs.user_count
ORDER BY gs.user_count"""
    return Statement(text=text, values=window.values)


def scoped(filters: SaleFilters, **scope: int) -> SaleFilters:
    """Sale filters with a path-level user or group scope applied."""
    return replace(filters, **scope)
