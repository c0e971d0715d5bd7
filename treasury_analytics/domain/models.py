"""Domain models - pure Python dataclasses representing analytics entities"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union


@dataclass
class Transaction:
    """Bank transaction as stored for a client account"""

    id: str
    client_id: str
    account_id: str
    date: datetime
    amount: float  # > 0 inflow, < 0 outflow
    type: str
    description: str = ""
    balance_after: Optional[float] = None
    category: Optional[str] = None
    counterparty: Optional[str] = None


@dataclass
class AnalyticsFilter:
    """Optional narrowing applied to transaction queries"""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    account_id: Optional[str] = None
    categories: Optional[List[str]] = None
    transaction_types: Optional[List[str]] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None


@dataclass
class DateWindow:
    """Inclusive start/end pair used for period comparisons"""

    start_date: datetime
    end_date: datetime


@dataclass
class PeriodBucket:
    """Cash flow accumulated for one calendar period"""

    period_key: str
    inflow: float = 0.0
    outflow: float = 0.0
    net_flow: float = 0.0
    balance: float = 0.0


@dataclass
class DailyBalance:
    """Per-day balance and activity used for idle-day detection"""

    date: str
    average_balance: float
    transaction_count: int
    total_activity: float


@dataclass
class LiquiditySnapshot:
    """Balance statistics over the most recent transactions"""

    average_balance: float
    minimum_balance: float
    maximum_balance: float
    volatility: float
    idle_days: int
    liquidity_score: float
    threshold_exceeded: bool
    threshold_amount: float


@dataclass
class CategoryTotal:
    """Store-side aggregate of absolute amounts for one category"""

    category: Optional[str]
    amount: float
    count: int


@dataclass
class CategoryBreakdown:
    """Category share of activity with period-over-period trend"""

    category: str
    amount: float
    count: int
    percentage: float
    trend: str  # up | down | stable | new


@dataclass
class VendorTotal:
    """Store-side aggregate of outgoing spend for one counterparty"""

    counterparty: str
    amount: float  # signed sum, negative for spend
    count: int


@dataclass
class VendorBreakdown:
    """Spend with one counterparty"""

    vendor_name: str
    total_amount: float
    transaction_count: int
    percentage: float
    payment_methods: List[str] = field(default_factory=list)


@dataclass
class SpendingPattern:
    """Spending behaviour within one category"""

    category: str
    subcategory: str
    average_amount: float
    frequency: str  # high | medium | low
    seasonality: str
    vendors: List[VendorBreakdown] = field(default_factory=list)


@dataclass
class TrendPoint:
    """Metric value for one period compared with the previous period"""

    period: str
    value: float
    change: float
    change_percent: float


@dataclass
class ReportPeriod:
    """ISO-8601 bounds of the window a response covers; None when unbounded"""

    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass
class AnalyticsOverview:
    """Headline cash flow metrics for a client"""

    total_inflow: float
    total_outflow: float
    net_cash_flow: float
    average_daily_balance: float
    liquidity_ratio: float
    idle_balance: float
    transaction_count: int
    period: ReportPeriod = field(default_factory=ReportPeriod)


@dataclass
class KPI:
    """Dashboard KPI card"""

    name: str
    value: float
    unit: str
    trend: str = "stable"
    change: float = 0.0
    change_percent: float = 0.0


@dataclass
class DashboardCharts:
    """Chart series rendered on the dashboard"""

    cash_flow: List[PeriodBucket]
    categories: List[CategoryBreakdown]
    trends: List[TrendPoint]


@dataclass
class Dashboard:
    """Composed dashboard payload"""

    metrics: AnalyticsOverview
    charts: DashboardCharts
    kpis: List[KPI]
    period: ReportPeriod


@dataclass
class TrendSet:
    """Inflow, outflow and balance trends over the same window"""

    inflow: List[TrendPoint]
    outflow: List[TrendPoint]
    balance: List[TrendPoint]


@dataclass
class AnalyticsSummary:
    """Everything the analytics page shows for one client"""

    metrics: AnalyticsOverview
    cash_flow: List[PeriodBucket]
    categories: List[CategoryBreakdown]
    liquidity: LiquiditySnapshot
    patterns: List[SpendingPattern]
    trends: TrendSet


@dataclass
class ForecastPoint:
    """Predicted cash flow for one future day"""

    date: str
    predicted_inflow: float
    predicted_outflow: float
    predicted_balance: float
    confidence: float


@dataclass
class SeasonalPeriod:
    """Average activity for one month or weekday"""

    period: str
    avg_inflow: float
    avg_outflow: float
    transaction_count: int


@dataclass
class SeasonalPattern:
    type: str  # monthly | weekly
    data: List[SeasonalPeriod]


@dataclass
class SeasonalFactor:
    name: str
    description: str
    value: List[str]


@dataclass
class Seasonality:
    patterns: List[SeasonalPattern]
    factors: List[SeasonalFactor]


@dataclass
class ForecastResult:
    forecast: List[ForecastPoint]
    seasonality: Seasonality
    recommendations: List[str]


@dataclass
class IndustryBenchmark:
    liquidity_ratio: float
    avg_daily_balance: float
    volatility: float


@dataclass
class BenchmarkComparison:
    metric: str
    client_value: float
    benchmark_value: float
    performance: str  # above_average | below_average


@dataclass
class BenchmarkResult:
    client_metrics: AnalyticsOverview
    liquidity: LiquiditySnapshot
    industry_benchmarks: IndustryBenchmark
    percentile_rank: int
    comparison_areas: List[BenchmarkComparison]


@dataclass
class ExportResult:
    """Rendered export document"""

    format: str
    media_type: str
    filename: str
    content: Union[str, bytes]  # bytes for pdf and excel
    metadata: Dict[str, Any] = field(default_factory=dict)
