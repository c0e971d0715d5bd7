"""Pydantic schemas for API responses (camelCase on the wire)"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase in JSON"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PeriodSchema(CamelModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class OverviewResponse(CamelModel):
    """Response for GET .../analytics/overview"""

    total_inflow: float
    total_outflow: float
    net_cash_flow: float
    average_daily_balance: float
    liquidity_ratio: float
    idle_balance: float
    transaction_count: int
    period: PeriodSchema


class PeriodBucketSchema(CamelModel):
    """Cash flow for one period"""

    period_key: str
    inflow: float
    outflow: float
    net_flow: float
    balance: float


class CategoryBreakdownSchema(CamelModel):
    category: str
    amount: float
    count: int
    percentage: float
    trend: str


class LiquidityResponse(CamelModel):
    """Response for GET .../analytics/liquidity"""

    average_balance: float
    minimum_balance: float
    maximum_balance: float
    volatility: float
    idle_days: int
    liquidity_score: float
    threshold_exceeded: bool
    threshold_amount: float


class VendorBreakdownSchema(CamelModel):
    vendor_name: str
    total_amount: float
    transaction_count: int
    percentage: float
    payment_methods: List[str]


class SpendingPatternSchema(CamelModel):
    category: str
    subcategory: str
    average_amount: float
    frequency: str
    seasonality: str
    vendors: List[VendorBreakdownSchema]


class TrendPointSchema(CamelModel):
    period: str
    value: float
    change: float
    change_percent: float


class TrendSetSchema(CamelModel):
    inflow: List[TrendPointSchema]
    outflow: List[TrendPointSchema]
    balance: List[TrendPointSchema]


class SummaryResponse(CamelModel):
    """Response for GET .../analytics/summary"""

    metrics: OverviewResponse
    cash_flow: List[PeriodBucketSchema]
    categories: List[CategoryBreakdownSchema]
    liquidity: LiquidityResponse
    patterns: List[SpendingPatternSchema]
    trends: TrendSetSchema


class KPISchema(CamelModel):
    name: str
    value: float
    unit: str
    trend: str
    change: float
    change_percent: float


class DashboardChartsSchema(CamelModel):
    cash_flow: List[PeriodBucketSchema]
    categories: List[CategoryBreakdownSchema]
    trends: List[TrendPointSchema]


class DashboardResponse(CamelModel):
    """Response for GET .../analytics/dashboard"""

    metrics: OverviewResponse
    charts: DashboardChartsSchema
    kpis: List[KPISchema]
    period: PeriodSchema


class ForecastPointSchema(CamelModel):
    date: str
    predicted_inflow: float
    predicted_outflow: float
    predicted_balance: float
    confidence: float


class SeasonalPeriodSchema(CamelModel):
    period: str
    avg_inflow: float
    avg_outflow: float
    transaction_count: int


class SeasonalPatternSchema(CamelModel):
    type: str
    data: List[SeasonalPeriodSchema]


class SeasonalFactorSchema(CamelModel):
    name: str
    description: str
    value: List[str]


class SeasonalitySchema(CamelModel):
    patterns: List[SeasonalPatternSchema]
    factors: List[SeasonalFactorSchema]


class ForecastResponse(CamelModel):
    """Response for GET .../analytics/forecast"""

    forecast: List[ForecastPointSchema]
    seasonality: SeasonalitySchema
    recommendations: List[str]


class IndustryBenchmarkSchema(CamelModel):
    liquidity_ratio: float
    avg_daily_balance: float
    volatility: float


class BenchmarkComparisonSchema(CamelModel):
    metric: str
    client_value: float
    benchmark_value: float
    performance: str


class BenchmarkResponse(CamelModel):
    """Response for GET .../analytics/benchmarks"""

    client_metrics: OverviewResponse
    liquidity: LiquidityResponse
    industry_benchmarks: IndustryBenchmarkSchema
    percentile_rank: int
    comparison_areas: List[BenchmarkComparisonSchema]
