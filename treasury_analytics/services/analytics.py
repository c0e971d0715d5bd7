"""Analytics service - async entry points composing store queries and domain calculators"""

import asyncio
import logging
import re
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import async_sessionmaker

from treasury_analytics.config import settings
from treasury_analytics.domain.benchmarking import (
    calculate_percentile_rank,
    generate_benchmark_comparisons,
    get_industry_benchmarks,
)
from treasury_analytics.domain.bucketing import bucket_by_period
from treasury_analytics.domain.categories import (
    analyze_category_patterns,
    build_category_breakdown,
    build_vendor_breakdown,
)
from treasury_analytics.domain.dashboard import calculate_dashboard_date_ranges, generate_dashboard_kpis
from treasury_analytics.domain.exceptions import ClientNotFoundError, InvalidRequestError
from treasury_analytics.domain.export import (
    build_enhanced_document,
    render_enhanced_export,
    render_export,
    validate_export_format,
    validate_export_sections,
    validate_export_template,
)
from treasury_analytics.domain.forecasting import (
    analyze_seasonal_patterns,
    generate_cash_flow_forecast,
    generate_forecast_recommendations,
    parse_forecast_period,
    validate_confidence_level,
)
from treasury_analytics.domain.liquidity import analyze_liquidity
from treasury_analytics.domain.models import (
    AnalyticsFilter,
    AnalyticsOverview,
    AnalyticsSummary,
    BenchmarkResult,
    CategoryBreakdown,
    Dashboard,
    DashboardCharts,
    ExportResult,
    ForecastResult,
    LiquiditySnapshot,
    PeriodBucket,
    ReportPeriod,
    SpendingPattern,
    TrendPoint,
    TrendSet,
    VendorBreakdown,
)
from treasury_analytics.domain.overview import summarize_overview
from treasury_analytics.domain.trends import calculate_trends_by_period, validate_metric
from treasury_analytics.infrastructure.database.models import ClientRecord
from treasury_analytics.infrastructure.database.repositories import ClientRepository, TransactionRepository
from treasury_analytics.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(days=30)
FORECAST_HISTORY_MONTHS = 6
MAX_TREND_MONTHS = 1200

_MONTH_PERIOD = re.compile(r"^(\d+)m$")


def parse_month_period(period: str) -> int:
    """'12m' -> 12, between 1 and MAX_TREND_MONTHS"""
    match = _MONTH_PERIOD.match((period or "").strip())
    if not match or not 1 <= int(match.group(1)) <= MAX_TREND_MONTHS:
        raise InvalidRequestError('Invalid period. Use format like "12m"')
    return int(match.group(1))


def current_period_filter(filters: AnalyticsFilter, now: datetime) -> AnalyticsFilter:
    """Fill in missing window bounds: the last 30 days up to now"""
    return replace(
        filters,
        start_date=filters.start_date or now - DEFAULT_WINDOW,
        end_date=filters.end_date or now,
    )


def previous_period_filter(filters: AnalyticsFilter, now: datetime) -> AnalyticsFilter:
    """
    Same filters moved to the equal-length window right before the current one.

    Store bounds are inclusive, so the end stops just short of the current start.
    """
    current = current_period_filter(filters, now)
    length = current.end_date - current.start_date
    return replace(
        current,
        start_date=current.start_date - length,
        end_date=current.start_date - timedelta(microseconds=1),
    )


class AnalyticsService:
    """
    Treasury analytics for one client at a time.

    Every public method first checks that the client exists and raises
    ClientNotFoundError otherwise. Store failures propagate unchanged.
    """

    def __init__(self, session_factory: async_sessionmaker, clock: Callable[[], datetime] = utc_now):
        self.clients = ClientRepository(session_factory)
        self.transactions = TransactionRepository(session_factory)
        self.clock = clock

    async def _require_client(self, client_id: str) -> ClientRecord:
        client = await self.clients.get_client(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        return client

    async def get_analytics_overview(
        self, client_id: str, filters: Optional[AnalyticsFilter] = None
    ) -> AnalyticsOverview:
        await self._require_client(client_id)
        filters = filters or AnalyticsFilter()

        (inflow, _), (outflow, _), count, recent = await asyncio.gather(
            self.transactions.sum_amounts(client_id, filters, "inflow"),
            self.transactions.sum_amounts(client_id, filters, "outflow"),
            self.transactions.count(client_id, filters),
            self.transactions.get_recent(client_id, settings.overview_balance_window),
        )

        return summarize_overview(inflow, outflow, count, [t.balance_after for t in recent], filters)

    async def get_cash_flow_analytics(
        self,
        client_id: str,
        period: str = "daily",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[PeriodBucket]:
        await self._require_client(client_id)
        now = self.clock()
        transactions = await self.transactions.get_in_range(
            client_id,
            start_date or now - DEFAULT_WINDOW,
            end_date or now,
        )
        return bucket_by_period(transactions, period or "daily")

    async def get_category_analytics(
        self, client_id: str, filters: Optional[AnalyticsFilter] = None
    ) -> List[CategoryBreakdown]:
        await self._require_client(client_id)
        filters = filters or AnalyticsFilter()
        now = self.clock()

        current, previous = await asyncio.gather(
            self.transactions.get_category_totals(client_id, current_period_filter(filters, now)),
            self.transactions.get_category_totals(client_id, previous_period_filter(filters, now)),
        )
        return build_category_breakdown(current, previous)

    async def get_liquidity_analytics(self, client_id: str) -> LiquiditySnapshot:
        await self._require_client(client_id)
        recent = await self.transactions.get_recent(client_id, settings.liquidity_window)
        return analyze_liquidity(recent, settings.liquidity_threshold_amount)

    async def get_spending_patterns(self, client_id: str) -> List[SpendingPattern]:
        await self._require_client(client_id)
        return analyze_category_patterns(await self.transactions.get_outgoing(client_id))

    async def get_vendor_analytics(self, client_id: str) -> List[VendorBreakdown]:
        await self._require_client(client_id)
        vendors = await self.transactions.get_vendor_totals(client_id, settings.vendor_limit)

        methods = await asyncio.gather(
            *(self.transactions.get_payment_methods(client_id, v.counterparty) for v in vendors)
        )
        payment_methods = {vendor.counterparty: found for vendor, found in zip(vendors, methods)}
        return build_vendor_breakdown(vendors, payment_methods, settings.vendor_limit)

    async def get_trend_analytics(self, client_id: str, metric: str, period: str = "12m") -> List[TrendPoint]:
        await self._require_client(client_id)
        validate_metric(metric)
        months = parse_month_period(period)

        start_date = self.clock() - relativedelta(months=months)
        transactions = await self.transactions.get_in_range(client_id, start_date)
        return calculate_trends_by_period(transactions, metric, "monthly")

    async def get_analytics_summary(
        self, client_id: str, filters: Optional[AnalyticsFilter] = None
    ) -> AnalyticsSummary:
        await self._require_client(client_id)
        metrics, cash_flow, categories, liquidity, patterns, inflow, outflow, balance = await asyncio.gather(
            self.get_analytics_overview(client_id, filters),
            self.get_cash_flow_analytics(client_id, "daily"),
            self.get_category_analytics(client_id, filters),
            self.get_liquidity_analytics(client_id),
            self.get_spending_patterns(client_id),
            self.get_trend_analytics(client_id, "inflow", "12m"),
            self.get_trend_analytics(client_id, "outflow", "12m"),
            self.get_trend_analytics(client_id, "balance", "12m"),
        )
        return AnalyticsSummary(
            metrics=metrics,
            cash_flow=cash_flow,
            categories=categories,
            liquidity=liquidity,
            patterns=patterns,
            trends=TrendSet(inflow=inflow, outflow=outflow, balance=balance),
        )

    async def export_analytics_data(
        self, client_id: str, fmt: str, filters: Optional[AnalyticsFilter] = None
    ) -> ExportResult:
        fmt = validate_export_format(fmt)
        summary = await self.get_analytics_summary(client_id, filters)
        return render_export(client_id, fmt, summary, self.clock().isoformat())

    async def export_enhanced_analytics(
        self,
        client_id: str,
        fmt: str,
        template: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        sections: Optional[Sequence[str]] = None,
    ) -> ExportResult:
        """
        Summary, forecast and benchmarks bundled under a metadata block.

        Format, template and sections are validated before the client check.
        The date window applies to the summary sections only.
        """
        fmt = validate_export_format(fmt)
        template = validate_export_template(template)
        sections = validate_export_sections(sections)
        await self._require_client(client_id)

        summary, forecasting, benchmarking = await asyncio.gather(
            self.get_analytics_summary(client_id, AnalyticsFilter(start_date=start_date, end_date=end_date)),
            self.get_forecasting_analytics(client_id),
            self.get_benchmarking_analytics(client_id),
        )

        document = build_enhanced_document(
            client_id,
            fmt,
            template,
            sections,
            self.clock().isoformat(),
            summary,
            forecasting,
            benchmarking,
        )
        logger.info(
            "Enhanced export rendered",
            extra={"client_id": client_id, "export_format": fmt, "template": template, "sections": len(sections)},
        )
        return render_enhanced_export(document)

    async def get_dashboard(
        self,
        client_id: str,
        date_range: str = "30d",
        compare_mode: str = "previous",
    ) -> Dashboard:
        """
        Dashboard for the selected range with KPI cards against a comparison window.

        compare_mode "none" skips the comparison query and leaves every KPI flat.
        """
        await self._require_client(client_id)
        current_period, comparison_period = calculate_dashboard_date_ranges(date_range, compare_mode, self.clock())
        current_filter = AnalyticsFilter(start_date=current_period.start_date, end_date=current_period.end_date)

        metrics, cash_flow, categories = await asyncio.gather(
            self.get_analytics_overview(client_id, current_filter),
            self.get_cash_flow_analytics(
                client_id,
                "daily",
                current_period.start_date,
                current_period.end_date,
            ),
            self.get_category_analytics(client_id, current_filter),
        )

        comparison_metrics = None
        if comparison_period is not None:
            comparison_metrics = await self.get_analytics_overview(
                client_id,
                AnalyticsFilter(start_date=comparison_period.start_date, end_date=comparison_period.end_date),
            )

        charts = DashboardCharts(
            cash_flow=cash_flow[-settings.dashboard_cash_flow_points:],
            categories=categories[: settings.dashboard_category_limit],
            trends=await self.get_trend_analytics(client_id, "balance", "3m"),
        )

        return Dashboard(
            metrics=metrics,
            charts=charts,
            kpis=generate_dashboard_kpis(metrics, comparison_metrics),
            period=ReportPeriod(
                start_date=current_period.start_date.isoformat(),
                end_date=current_period.end_date.isoformat(),
            ),
        )

    async def get_forecasting_analytics(
        self,
        client_id: str,
        forecast_period: str = "90d",
        confidence_level: float = 0.85,
    ) -> ForecastResult:
        await self._require_client(client_id)
        days = parse_forecast_period(forecast_period)
        validate_confidence_level(confidence_level)

        now = self.clock()
        history_start = now - relativedelta(months=FORECAST_HISTORY_MONTHS)
        history = await self.transactions.get_in_range(client_id, history_start)

        forecast = generate_cash_flow_forecast(history, days, confidence_level, now)
        seasonality = analyze_seasonal_patterns(history)
        if not forecast:
            logger.info(
                "Not enough history for forecast",
                extra={"client_id": client_id, "transaction_count": len(history)},
            )

        return ForecastResult(
            forecast=forecast,
            seasonality=seasonality,
            recommendations=generate_forecast_recommendations(forecast, seasonality),
        )

    async def get_benchmarking_analytics(
        self,
        client_id: str,
        industry: Optional[str] = None,
        business_segment: Optional[str] = None,
    ) -> BenchmarkResult:
        client = await self._require_client(client_id)
        benchmarks = get_industry_benchmarks(
            industry or client.industry,
            business_segment or client.business_segment,
        )

        overview, liquidity = await asyncio.gather(
            self.get_analytics_overview(client_id),
            self.get_liquidity_analytics(client_id),
        )

        return BenchmarkResult(
            client_metrics=overview,
            liquidity=liquidity,
            industry_benchmarks=benchmarks,
            percentile_rank=calculate_percentile_rank(overview, liquidity, benchmarks),
            comparison_areas=generate_benchmark_comparisons(overview, liquidity, benchmarks),
        )
