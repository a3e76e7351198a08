"""API routes for sales metrics.

Read-only listings and aggregates over users, groups and sales. Every
response is an envelope of ``data``, ``meta`` and ``links``.
"""

from fastapi import APIRouter, Depends, Query

from app.core.database import Store, get_store
from app.features.metrics.filters import RawQuery
from app.features.metrics.schemas import (
    GroupMember,
    GroupPerformanceData,
    GroupSalesSummaryData,
    GroupsPerformanceData,
    SaleDetail,
    SaleRecord,
    UserPerformanceData,
    UserSale,
    UserSalesSummaryData,
    UsersPerformanceData,
)
from app.features.metrics.service import MetricsService
from app.features.metrics.validation import require_id
from app.shared.schemas import Envelope

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


def get_raw_query(
    start_date: str | None = Query(
        None,
        alias="startDate",
        description="Inclusive lower date bound. Format: YYYY-MM-DD.",
    ),
    end_date: str | None = Query(
        None,
        alias="endDate",
        description="Inclusive upper date bound. Format: YYYY-MM-DD.",
    ),
    page: str | None = Query(None, description="1-based page number (default 1)."),
    limit: str | None = Query(
        None,
        description="Page size for listings (default 100), top-N for performance views (default 10).",
    ),
    sort_by: str | None = Query(
        None,
        alias="sortBy",
        description="Sort column. Unknown columns fall back to the endpoint default.",
    ),
    sort_order: str | None = Query(None, alias="sortOrder", description="asc or desc."),
    interval: str | None = Query(
        None,
        description="Trend granularity: day, week, month, quarter or year (default month).",
    ),
    role: str | None = Query(None, description="Filter by user role."),
    group_id_param: str | None = Query(None, alias="groupId", description="Filter by group ID."),
    user_id_param: str | None = Query(None, alias="userId", description="Filter by user ID."),
    min_amount: str | None = Query(
        None, alias="minAmount", description="Inclusive lower amount bound."
    ),
    max_amount: str | None = Query(
        None, alias="maxAmount", description="Inclusive upper amount bound."
    ),
) -> RawQuery:
    """Collect the recognized query parameters as received.

    Parameters are taken as strings so malformed values fall back to the
    endpoint default instead of failing validation.
    """
    return RawQuery(
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        interval=interval,
        role=role,
        group_id=group_id_param,
        user_id=user_id_param,
        min_amount=min_amount,
        max_amount=max_amount,
    )


# =============================================================================
# User Endpoints
# =============================================================================


@router.get(
    "/users/performance",
    response_model=Envelope[UsersPerformanceData],
    summary="Performance across all users",
    description="""
Top performers, a sales trend and a per-role breakdown across all users.

**Filtering**: `startDate`/`endDate` (default 2021-01-01..2021-12-31),
`role`, `groupId`.

**Ranking**: `sortBy` in `total_revenue`, `average_revenue`, `sales_count`,
`name` (default `total_revenue desc`); `limit` top performers (default 10).
""",
)
async def get_users_performance(
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[UsersPerformanceData]:
    """Compute performance across all users."""
    return await MetricsService(store).get_users_performance(raw)


@router.get(
    "/users/{user_id}/sales",
    response_model=Envelope[list[UserSale]],
    summary="List a user's sales",
    description="""
Paginated sales of one user.

**Sorting**: `sortBy` in `date`, `amount` (default `date desc`).

**Errors**: 400 if the user ID is not an integer, 404 if the user does not exist.
""",
)
async def list_user_sales(
    user_id: str,
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[list[UserSale]]:
    """List a user's sales.

    Args:
        user_id: User identifier from the path.
        raw: Query parameters as received.
        store: Store capability.

    Returns:
        One page of sales with pagination metadata and links.
    """
    return await MetricsService(store).list_user_sales(require_id(user_id, "User"), raw)


@router.get(
    "/users/{user_id}/sales/summary",
    response_model=Envelope[UserSalesSummaryData],
    summary="Summarize a user's sales",
    description="Sales count, revenue, average, min and max with a monthly breakdown.",
)
async def get_user_sales_summary(
    user_id: str,
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[UserSalesSummaryData]:
    """Summarize a user's sales."""
    return await MetricsService(store).get_user_sales_summary(require_id(user_id, "User"), raw)


@router.get(
    "/users/{user_id}/performance",
    response_model=Envelope[UserPerformanceData],
    summary="A user's performance",
    description="""
Summary, sales trend and the user's rank inside each of their groups.

**Date Range**: defaults to 2021-01-01..2021-12-31.

**Trend**: `interval` in `day`, `week`, `month`, `quarter`, `year`.
""",
)
async def get_user_performance(
    user_id: str,
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[UserPerformanceData]:
    """Compute a user's performance."""
    return await MetricsService(store).get_user_performance(require_id(user_id, "User"), raw)


# =============================================================================
# Group Endpoints
# =============================================================================


@router.get(
    "/groups/performance",
    response_model=Envelope[GroupsPerformanceData],
    summary="Performance across all groups",
    description="""
Top groups, a sales trend and an analysis of performance by group size.

**Ranking**: `sortBy` in `total_revenue`, `average_revenue`, `sales_count`,
`active_users`, `name` (default `total_revenue desc`); `limit` groups
(default 10).
""",
)
async def get_groups_performance(
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[GroupsPerformanceData]:
    """Compute performance across all groups."""
    return await MetricsService(store).get_groups_performance(raw)


@router.get(
    "/groups/{group_id}/users",
    response_model=Envelope[list[GroupMember]],
    summary="List a group's members",
    description="Paginated members, optionally by `role`. `sortBy` in `name`, `role` (default `name asc`).",
)
async def list_group_users(
    group_id: str,
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[list[GroupMember]]:
    """List a group's members."""
    return await MetricsService(store).list_group_users(require_id(group_id, "Group"), raw)


@router.get(
    "/groups/{group_id}/sales",
    response_model=Envelope[list[SaleRecord]],
    summary="List a group's sales",
    description="""
Paginated sales made by the group's members.

**Filtering**: `startDate`, `endDate`, `userId`.

**Sorting**: `sortBy` in `date`, `amount`, `user_id` (default `date desc`).
""",
)
async def list_group_sales(
    group_id: str,
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[list[SaleRecord]]:
    """List a group's sales."""
    return await MetricsService(store).list_group_sales(require_id(group_id, "Group"), raw)


@router.get(
    "/groups/{group_id}/sales/summary",
    response_model=Envelope[GroupSalesSummaryData],
    summary="Summarize a group's sales",
    description="Group summary with active users and a per-user breakdown.",
)
async def get_group_sales_summary(
    group_id: str,
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[GroupSalesSummaryData]:
    """Summarize a group's sales."""
    return await MetricsService(store).get_group_sales_summary(require_id(group_id, "Group"), raw)


@router.get(
    "/groups/{group_id}/performance",
    response_model=Envelope[GroupPerformanceData],
    summary="A group's performance",
    description="""
Summary, sales trend, top 10 performers and a comparison against every
other group.

**Date Range**: defaults to 2021-01-01..2021-12-31.
""",
)
async def get_group_performance(
    group_id: str,
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[GroupPerformanceData]:
    """Compute a group's performance."""
    return await MetricsService(store).get_group_performance(require_id(group_id, "Group"), raw)


# =============================================================================
# Sales Endpoints
# =============================================================================


@router.get(
    "/sales",
    response_model=Envelope[list[SaleRecord]],
    summary="List sales",
    description="""
Paginated sales across all users.

**Filtering**: `startDate`, `endDate`, `userId`, `groupId`, `minAmount`,
`maxAmount`. Malformed filters are ignored.

**Sorting**: `sortBy` in `date`, `amount`, `user_id` (default `date desc`).
""",
)
async def list_sales(
    raw: RawQuery = Depends(get_raw_query),
    store: Store = Depends(get_store),
) -> Envelope[list[SaleRecord]]:
    """List sales."""
    return await MetricsService(store).list_sales(raw)


@router.get(
    "/sales/{sale_id}",
    response_model=Envelope[SaleDetail],
    summary="Get a sale",
    description="One sale with its seller and the seller's groups. 404 if the sale does not exist.",
)
async def get_sale(
    sale_id: str,
    store: Store = Depends(get_store),
) -> Envelope[SaleDetail]:
    """Get one sale.

    Args:
        sale_id: Sale identifier from the path.
        store: Store capability.

    Returns:
        The sale with its seller and the seller's groups.

    Raises:
        BadRequestError: If the sale ID is not an integer.
        NotFoundError: If the sale does not exist.
    """
    return await MetricsService(store).get_sale(require_id(sale_id, "Sale"))
