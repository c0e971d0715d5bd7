"""Industry benchmark comparison"""

from typing import List, Optional

from treasury_analytics.domain.models import (
    AnalyticsOverview,
    BenchmarkComparison,
    IndustryBenchmark,
    LiquiditySnapshot,
)
from treasury_analytics.utils.numbers import round_to

# Static reference figures per industry and business segment
BENCHMARKS = {
    "technology": {
        "small": IndustryBenchmark(liquidity_ratio=1.2, avg_daily_balance=75_000, volatility=0.12),
        "medium": IndustryBenchmark(liquidity_ratio=1.5, avg_daily_balance=200_000, volatility=0.08),
        "large": IndustryBenchmark(liquidity_ratio=2.0, avg_daily_balance=500_000, volatility=0.06),
    },
    "manufacturing": {
        "small": IndustryBenchmark(liquidity_ratio=1.1, avg_daily_balance=100_000, volatility=0.15),
        "medium": IndustryBenchmark(liquidity_ratio=1.3, avg_daily_balance=300_000, volatility=0.10),
        "large": IndustryBenchmark(liquidity_ratio=1.8, avg_daily_balance=750_000, volatility=0.07),
    },
    "retail": {
        "small": IndustryBenchmark(liquidity_ratio=0.9, avg_daily_balance=50_000, volatility=0.20),
        "medium": IndustryBenchmark(liquidity_ratio=1.1, avg_daily_balance=150_000, volatility=0.15),
        "large": IndustryBenchmark(liquidity_ratio=1.4, avg_daily_balance=400_000, volatility=0.10),
    },
}

DEFAULT_BENCHMARK = IndustryBenchmark(liquidity_ratio=1.2, avg_daily_balance=150_000, volatility=0.12)


def get_industry_benchmarks(industry: Optional[str], business_segment: Optional[str]) -> IndustryBenchmark:
    segments = BENCHMARKS.get((industry or "").lower(), {})
    return segments.get((business_segment or "").lower(), DEFAULT_BENCHMARK)


def _tier(value: float, reference: float, steps: tuple[float, float, float], higher_is_better: bool = True) -> int:
    """Score 25/20/15/10 depending on which multiple of the reference the value reaches"""
    for points, multiple in zip((25, 20, 15), steps):
        limit = reference * multiple
        if (value >= limit) if higher_is_better else (value <= limit):
            return points
    return 10


def calculate_percentile_rank(
    overview: AnalyticsOverview,
    liquidity: LiquiditySnapshot,
    benchmarks: IndustryBenchmark,
) -> int:
    """Average of three tiered comparisons mapped onto 0-100"""
    scores = [
        _tier(overview.liquidity_ratio, benchmarks.liquidity_ratio, (1.2, 1.0, 0.8)),
        _tier(overview.average_daily_balance, benchmarks.avg_daily_balance, (1.5, 1.0, 0.7)),
        _tier(liquidity.volatility, benchmarks.volatility, (0.7, 1.0, 1.3), higher_is_better=False),
    ]
    return int(round_to(sum(scores) / len(scores) / 25 * 100, 0))


def generate_benchmark_comparisons(
    overview: AnalyticsOverview,
    liquidity: LiquiditySnapshot,
    benchmarks: IndustryBenchmark,
) -> List[BenchmarkComparison]:
    def performance(better: bool) -> str:
        return "above_average" if better else "below_average"

    return [
        BenchmarkComparison(
            metric="Liquidity Ratio",
            client_value=overview.liquidity_ratio,
            benchmark_value=benchmarks.liquidity_ratio,
            performance=performance(overview.liquidity_ratio >= benchmarks.liquidity_ratio),
        ),
        BenchmarkComparison(
            metric="Average Daily Balance",
            client_value=overview.average_daily_balance,
            benchmark_value=benchmarks.avg_daily_balance,
            performance=performance(overview.average_daily_balance >= benchmarks.avg_daily_balance),
        ),
        BenchmarkComparison(
            metric="Balance Volatility",
            client_value=liquidity.volatility,
            benchmark_value=benchmarks.volatility,
            performance=performance(liquidity.volatility <= benchmarks.volatility),
        ),
    ]
