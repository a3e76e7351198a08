"""Service layer for metrics operations.

One engine serves the user, group and sales views: resolve filters, build
statements, run them through the coordinator, wrap the rows in an envelope.
"""

from app.core.config import get_settings
from app.core.database import Row, Store
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.features.metrics import queries
from app.features.metrics.coordinator import AggregateCoordinator
from app.features.metrics.envelope import aggregate_envelope, listing_envelope
from app.features.metrics.filters import (
    GROUP_PERFORMANCE_SORT_COLUMNS,
    MEMBER_SORT_COLUMNS,
    SALE_SORT_COLUMNS,
    SCOPED_SALE_SORT_COLUMNS,
    USER_PERFORMANCE_SORT_COLUMNS,
    PerformanceFilters,
    RawQuery,
    SaleFilters,
    SortSpec,
)
from app.features.metrics.schemas import (
    EntityKind,
    GroupComparisonRow,
    GroupMember,
    GroupPerformanceData,
    GroupPerformer,
    GroupRanking,
    GroupRef,
    GroupSalesSummaryData,
    GroupSizeBucket,
    GroupsPerformanceData,
    RoleBreakdownRow,
    SaleDetail,
    SaleRecord,
    SalesSummary,
    TrendPoint,
    UserBreakdownRow,
    UserPerformanceData,
    UserPerformer,
    UserSale,
    UserSalesSummaryData,
    UsersPerformanceData,
)
from app.shared.schemas import Envelope, PaginationParams
from app.shared.utils import build_link

logger = get_logger(__name__)

API_PREFIX = "/api/metrics"


def summarize(rows: list[Row]) -> SalesSummary:
    """Validate a summary row; an aggregate without GROUP BY yields one row."""
    return SalesSummary.model_validate(rows[0]) if rows else SalesSummary(total_sales=0)


class MetricsService:
    """Service for read-only sales metrics.

    Every entity-scoped method runs the existence guard first; nothing else
    touches the store if the entity is missing.
    """

    def __init__(self, store: Store) -> None:
        """Initialize metrics service.

        Args:
            store: Store capability injected by the route.
        """
        self.settings = get_settings()
        self.coordinator = AggregateCoordinator(store)

    def _pagination(self, raw: RawQuery) -> PaginationParams:
        return PaginationParams.from_query(
            raw.page,
            raw.limit,
            default_limit=self.settings.metrics_default_page_limit,
        )

    def _performance(
        self,
        raw: RawQuery,
        sort_columns: tuple[str, ...] | None = None,
        group_scope: bool = False,
    ) -> PerformanceFilters:
        return PerformanceFilters.resolve(
            raw,
            default_start=self.settings.metrics_default_start_date,
            default_end=self.settings.metrics_default_end_date,
            default_interval=self.settings.metrics_default_interval,
            sort_columns=sort_columns,
            default_limit=self.settings.metrics_default_top_limit,
            group_scope=group_scope,
        )

    # =========================================================================
    # Users
    # =========================================================================

    async def list_user_sales(self, user_id: int, raw: RawQuery) -> Envelope[list[UserSale]]:
        """Paginated sales of one user, optionally bounded by date."""
        await self.coordinator.ensure_exists(EntityKind.USER, user_id)

        filters = SaleFilters.resolve(raw)
        sort = SortSpec.resolve(raw, SALE_SORT_COLUMNS, "date", "desc")
        pagination = self._pagination(raw)
        listing = queries.sales_listing(
            queries.scoped(filters, user_id=user_id),
            sort,
            pagination,
            with_user=False,
        )
        rows, total = await self.coordinator.fetch_page(listing)

        logger.info(
            "metrics.user_sales_listed",
            user_id=user_id,
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

        return listing_envelope(
            [UserSale.model_validate(row) for row in rows],
            pagination=pagination,
            total=total,
            path=f"{API_PREFIX}/users/{user_id}/sales",
            filters={**filters.as_query(), **sort.as_query()},
        )

    async def get_user_sales_summary(
        self, user_id: int, raw: RawQuery
    ) -> Envelope[UserSalesSummaryData]:
        """Summary and monthly breakdown of one user's sales."""
        await self.coordinator.ensure_exists(EntityKind.USER, user_id)

        filters = SaleFilters.resolve(raw)
        scope = queries.scoped(filters, user_id=user_id)
        results = await self.coordinator.gather(
            summary=queries.sales_summary(scope),
            monthly=queries.sales_trend(scope, "month"),
        )

        logger.info("metrics.user_summary_computed", user_id=user_id)

        window = filters.as_query()
        return aggregate_envelope(
            UserSalesSummaryData(
                summary=summarize(results["summary"]),
                monthly_breakdown=[TrendPoint.model_validate(row) for row in results["monthly"]],
            ),
            path=f"{API_PREFIX}/users/{user_id}/sales/summary",
            filters=window,
            related={"sales": build_link(f"{API_PREFIX}/users/{user_id}/sales", window)},
        )

    async def get_user_performance(
        self, user_id: int, raw: RawQuery
    ) -> Envelope[UserPerformanceData]:
        """Summary, trend and group rankings of one user."""
        await self.coordinator.ensure_exists(EntityKind.USER, user_id)

        perf = self._performance(raw)
        scope = queries.scoped(perf.sales, user_id=user_id)
        results = await self.coordinator.gather(
            summary=queries.sales_summary(scope),
            trends=queries.sales_trend(scope, perf.interval),
            rankings=queries.user_group_rankings(user_id, perf.sales),
        )

        logger.info(
            "metrics.user_performance_computed",
            user_id=user_id,
            interval=perf.interval,
            groups=len(results["rankings"]),
        )

        return aggregate_envelope(
            UserPerformanceData(
                summary=summarize(results["summary"]),
                trends=[TrendPoint.model_validate(row) for row in results["trends"]],
                group_rankings=[GroupRanking.model_validate(row) for row in results["rankings"]],
            ),
            path=f"{API_PREFIX}/users/{user_id}/performance",
            filters=perf.as_query(),
            related={
                "sales": build_link(
                    f"{API_PREFIX}/users/{user_id}/sales", perf.sales.as_query()
                ),
                "summary": build_link(
                    f"{API_PREFIX}/users/{user_id}/sales/summary", perf.sales.as_query()
                ),
            },
        )

    async def get_users_performance(self, raw: RawQuery) -> Envelope[UsersPerformanceData]:
        """Top performers, trend and role breakdown across users."""
        perf = self._performance(raw, USER_PERFORMANCE_SORT_COLUMNS, group_scope=True)
        sort = perf.sort or SortSpec(column="total_revenue", direction="desc")
        limit = perf.limit or self.settings.metrics_default_top_limit

        results = await self.coordinator.gather(
            top_performers=queries.top_performers(perf.sales, sort, limit),
            trends=queries.sales_trend(perf.sales, perf.interval, active_users=True),
            roles=queries.role_breakdown(perf.sales),
        )

        logger.info(
            "metrics.users_performance_computed",
            interval=perf.interval,
            role=perf.sales.role,
            group_id=perf.sales.group_id,
            performers=len(results["top_performers"]),
        )

        return aggregate_envelope(
            UsersPerformanceData(
                top_performers=[UserPerformer.model_validate(r) for r in results["top_performers"]],
                trends=[TrendPoint.model_validate(row) for row in results["trends"]],
                role_breakdown=[RoleBreakdownRow.model_validate(r) for r in results["roles"]],
            ),
            path=f"{API_PREFIX}/users/performance",
            filters=perf.as_query(),
            related={"sales": build_link(f"{API_PREFIX}/sales", perf.sales.as_query())},
        )

    # =========================================================================
    # Groups
    # =========================================================================

    async def list_group_users(self, group_id: int, raw: RawQuery) -> Envelope[list[GroupMember]]:
        """Paginated members of one group, optionally by role."""
        await self.coordinator.ensure_exists(EntityKind.GROUP, group_id)

        role = raw.role or None
        sort = SortSpec.resolve(raw, MEMBER_SORT_COLUMNS, "name", "asc")
        pagination = self._pagination(raw)
        listing = queries.group_members_listing(group_id, role, sort, pagination)
        rows, total = await self.coordinator.fetch_page(listing)

        logger.info(
            "metrics.group_users_listed",
            group_id=group_id,
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

        filters = {"role": role} if role is not None else {}
        return listing_envelope(
            [GroupMember.model_validate(row) for row in rows],
            pagination=pagination,
            total=total,
            path=f"{API_PREFIX}/groups/{group_id}/users",
            filters={**filters, **sort.as_query()},
        )

    async def list_group_sales(self, group_id: int, raw: RawQuery) -> Envelope[list[SaleRecord]]:
        """Paginated sales of a group's members."""
        await self.coordinator.ensure_exists(EntityKind.GROUP, group_id)

        filters = SaleFilters.resolve(raw, user_scope=True)
        sort = SortSpec.resolve(raw, SCOPED_SALE_SORT_COLUMNS, "date", "desc")
        pagination = self._pagination(raw)
        listing = queries.sales_listing(
            queries.scoped(filters, group_id=group_id), sort, pagination
        )
        rows, total = await self.coordinator.fetch_page(listing)

        logger.info(
            "metrics.group_sales_listed",
            group_id=group_id,
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

        return listing_envelope(
            [SaleRecord.model_validate(row) for row in rows],
            pagination=pagination,
            total=total,
            path=f"{API_PREFIX}/groups/{group_id}/sales",
            filters={**filters.as_query(), **sort.as_query()},
        )

    async def get_group_sales_summary(
        self, group_id: int, raw: RawQuery
    ) -> Envelope[GroupSalesSummaryData]:
        """Summary and per-seller breakdown of a group's sales."""
        await self.coordinator.ensure_exists(EntityKind.GROUP, group_id)

        filters = SaleFilters.resolve(raw)
        scope = queries.scoped(filters, group_id=group_id)
        results = await self.coordinator.gather(
            summary=queries.sales_summary(scope, active_users=True),
            users=queries.user_breakdown(scope),
        )

        logger.info("metrics.group_summary_computed", group_id=group_id)

        window = filters.as_query()
        return aggregate_envelope(
            GroupSalesSummaryData(
                summary=summarize(results["summary"]),
                user_breakdown=[UserBreakdownRow.model_validate(row) for row in results["users"]],
            ),
            path=f"{API_PREFIX}/groups/{group_id}/sales/summary",
            filters=window,
            related={"sales": build_link(f"{API_PREFIX}/groups/{group_id}/sales", window)},
        )

    async def get_group_performance(
        self, group_id: int, raw: RawQuery
    ) -> Envelope[GroupPerformanceData]:
        """Summary, trend, top performers and cross-group comparison."""
        await self.coordinator.ensure_exists(EntityKind.GROUP, group_id)

        perf = self._performance(raw)
        scope = queries.scoped(perf.sales, group_id=group_id)
        by_revenue = SortSpec(column="total_revenue", direction="desc")
        results = await self.coordinator.gather(
            summary=queries.sales_summary(scope, active_users=True),
            trends=queries.sales_trend(scope, perf.interval, active_users=True),
            top_performers=queries.top_performers(
                scope, by_revenue, self.settings.metrics_default_top_limit
            ),
            comparison=queries.group_comparison(group_id, perf.sales),
        )

        logger.info(
            "metrics.group_performance_computed",
            group_id=group_id,
            interval=perf.interval,
            buckets=len(results["trends"]),
        )

        return aggregate_envelope(
            GroupPerformanceData(
                summary=summarize(results["summary"]),
                trends=[TrendPoint.model_validate(row) for row in results["trends"]],
                top_performers=[UserPerformer.model_validate(r) for r in results["top_performers"]],
                comparison=[GroupComparisonRow.model_validate(r) for r in results["comparison"]],
            ),
            path=f"{API_PREFIX}/groups/{group_id}/performance",
            filters=perf.as_query(),
            related={
                "group_sales": build_link(
                    f"{API_PREFIX}/groups/{group_id}/sales", perf.sales.as_query()
                ),
                "group_users": f"{API_PREFIX}/groups/{group_id}/users",
            },
        )

    async def get_groups_performance(self, raw: RawQuery) -> Envelope[GroupsPerformanceData]:
        """Top groups, trend and group size analysis across groups."""
        perf = self._performance(raw, GROUP_PERFORMANCE_SORT_COLUMNS)
        sort = perf.sort or SortSpec(column="total_revenue", direction="desc")
        limit = perf.limit or self.settings.metrics_default_top_limit

        results = await self.coordinator.gather(
            top_groups=queries.top_groups(perf.sales, sort, limit),
            trends=queries.sales_trend(
                perf.sales, perf.interval, active_users=True, active_groups=True
            ),
            sizes=queries.group_size_analysis(perf.sales),
        )

        logger.info(
            "metrics.groups_performance_computed",
            interval=perf.interval,
            groups=len(results["top_groups"]),
        )

        return aggregate_envelope(
            GroupsPerformanceData(
                top_groups=[GroupPerformer.model_validate(row) for row in results["top_groups"]],
                trends=[TrendPoint.model_validate(row) for row in results["trends"]],
                group_size_analysis=[GroupSizeBucket.model_validate(r) for r in results["sizes"]],
            ),
            path=f"{API_PREFIX}/groups/performance",
            filters=perf.as_query(),
            related={"sales": build_link(f"{API_PREFIX}/sales", perf.sales.as_query())},
        )

    # =========================================================================
    # Sales
    # =========================================================================

    async def list_sales(self, raw: RawQuery) -> Envelope[list[SaleRecord]]:
        """Paginated sales with date, seller, group and amount filters."""
        filters = SaleFilters.resolve(raw, user_scope=True, group_scope=True, amounts=True)
        sort = SortSpec.resolve(raw, SCOPED_SALE_SORT_COLUMNS, "date", "desc")
        pagination = self._pagination(raw)
        rows, total = await self.coordinator.fetch_page(
            queries.sales_listing(filters, sort, pagination)
        )

        logger.info(
            "metrics.sales_listed",
            total=total,
            page=pagination.page,
            limit=pagination.limit,
            filters=filters.as_query(),
        )

        return listing_envelope(
            [SaleRecord.model_validate(row) for row in rows],
            pagination=pagination,
            total=total,
            path=f"{API_PREFIX}/sales",
            filters={**filters.as_query(), **sort.as_query()},
        )

    async def get_sale(self, sale_id: int) -> Envelope[SaleDetail]:
        """One sale with its seller and the seller's groups."""
        sale = await self.coordinator.ensure_exists(EntityKind.SALE, sale_id)
        user_id = int(sale["user_id"])

        results = await self.coordinator.gather(
            detail=queries.sale_detail(sale_id),
            groups=queries.user_groups(user_id),
        )
        if not results["detail"]:
            raise NotFoundError("Sale not found", details={"entity": "sales", "id": sale_id})

        detail = SaleDetail.model_validate(
            {
                **results["detail"][0],
                "user_groups": [GroupRef.model_validate(row) for row in results["groups"]],
            }
        )

        return aggregate_envelope(
            detail,
            path=f"{API_PREFIX}/sales/{sale_id}",
            related={
                "user_sales": f"{API_PREFIX}/users/{user_id}/sales",
                "user_performance": f"{API_PREFIX}/users/{user_id}/performance",
                "all_sales": f"{API_PREFIX}/sales",
            },
        )
