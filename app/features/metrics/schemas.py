"""Pydantic schemas for metrics endpoints.

Aggregates over zero rows keep the store's NULL: ``total_revenue`` and the
averages are ``None`` meaning "no data", never a coerced zero. Counts are
always integers.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class EntityKind(str, Enum):
    """Entity tables the existence guard may look up."""

    USER = "users"
    GROUP = "groups"
    SALE = "sales"

    @property
    def label(self) -> str:
        """Singular display name, e.g. "User"."""
        return self.value[:-1].capitalize()


class TimeGranularity(str, Enum):
    """Trend bucket sizes accepted by ``interval``."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


# =============================================================================
# Row Schemas
# =============================================================================


class RowModel(BaseModel):
    """Base for schemas validated from store rows."""

    model_config = ConfigDict(from_attributes=True)


class UserSale(RowModel):
    """A sale as listed under its seller."""

    id: int
    amount: Decimal
    date: date


class SaleRecord(UserSale):
    """A sale with its seller."""

    user_id: int
    user_name: str


class GroupRef(RowModel):
    """Group identity."""

    id: int
    name: str


class SaleDetail(SaleRecord):
    """A single sale with its seller's role and groups."""

    user_role: str | None = None
    user_groups: list[GroupRef] = Field(
        default_factory=list,
        description="Groups the seller currently belongs to.",
    )


class GroupMember(RowModel):
    """A user listed as a group member."""

    id: int
    name: str
    role: str | None = None


# =============================================================================
# Aggregate Schemas
# =============================================================================


class SalesSummary(RowModel):
    """Scalar summary of a set of sales."""

    total_sales: int = Field(..., ge=0, description="Number of sales in scope.")
    total_revenue: Decimal | None = Field(
        None,
        description="Sum of amounts. Null when there are no sales.",
    )
    average_sale_amount: Decimal | None = Field(
        None,
        description="Average amount. Null when there are no sales.",
    )
    min_sale_amount: Decimal | None = None
    max_sale_amount: Decimal | None = None
    active_users: int | None = Field(
        None,
        ge=0,
        description="Distinct sellers in scope (group views only).",
    )


class TrendPoint(RowModel):
    """One time bucket of a trend."""

    time_period: datetime = Field(..., description="Start of the bucket.")
    sales_count: int = Field(..., ge=0)
    total_revenue: Decimal | None = None
    average_revenue: Decimal | None = None
    active_users: int | None = None
    active_groups: int | None = None


class PerformerMetrics(RowModel):
    """Revenue metrics shared by ranked rows."""

    sales_count: int = Field(..., ge=0)
    total_revenue: Decimal | None = None
    average_revenue: Decimal | None = None


class UserPerformer(PerformerMetrics):
    """A user in a ranked listing."""

    id: int
    name: str
    role: str | None = None
    rank: int | None = Field(None, ge=1, description="Rank by revenue (1 = highest).")
    first_sale_date: date | None = None
    last_sale_date: date | None = None


class UserBreakdownRow(PerformerMetrics):
    """A seller's share of a group's sales."""

    user_id: int
    user_name: str
    role: str | None = None


class RoleBreakdownRow(PerformerMetrics):
    """Sales aggregated per user role."""

    role: str | None = None
    user_count: int = Field(..., ge=0)


class GroupRanking(RowModel):
    """A user's standing within one of their groups."""

    group_id: int
    group_name: str
    user_revenue: Decimal | None = None
    rank: int = Field(..., ge=1, description="Dense rank by revenue within the group.")
    total_users: int = Field(..., ge=1, description="Members of the group.")


class GroupPerformer(PerformerMetrics):
    """A group in a ranked listing."""

    id: int
    name: str
    active_users: int = Field(..., ge=0)
    total_users: int = Field(..., ge=0)
    first_sale_date: date | None = None
    last_sale_date: date | None = None


class GroupComparisonRow(PerformerMetrics):
    """A group's metrics and ranks across all groups."""

    group_id: int
    group_name: str
    active_users: int = Field(..., ge=0)
    revenue_rank: int
    sales_rank: int
    avg_revenue_rank: int


class GroupSizeBucket(RowModel):
    """Average group performance for one membership size."""

    user_count: int
    group_count: int
    avg_revenue: Decimal | None = None
    avg_sales: Decimal | None = None


# =============================================================================
# Response Data Schemas
# =============================================================================


class UserSalesSummaryData(BaseModel):
    """Data of GET /users/{id}/sales/summary."""

    summary: SalesSummary
    monthly_breakdown: list[TrendPoint]


class GroupSalesSummaryData(BaseModel):
    """Data of GET /groups/{id}/sales/summary."""

    summary: SalesSummary
    user_breakdown: list[UserBreakdownRow]


class UserPerformanceData(BaseModel):
    """Data of GET /users/{id}/performance."""

    summary: SalesSummary
    trends: list[TrendPoint]
    group_rankings: list[GroupRanking]


class GroupPerformanceData(BaseModel):
    """Data of GET /groups/{id}/performance."""

    summary: SalesSummary
    trends: list[TrendPoint]
    top_performers: list[UserPerformer]
    comparison: list[GroupComparisonRow]


class UsersPerformanceData(BaseModel):
    """Data of GET /users/performance."""

    top_performers: list[UserPerformer]
    trends: list[TrendPoint]
    role_breakdown: list[RoleBreakdownRow]


class GroupsPerformanceData(BaseModel):
    """Data of GET /groups/performance."""

    top_groups: list[GroupPerformer]
    trends: list[TrendPoint]
    group_size_analysis: list[GroupSizeBucket]
