"""Dashboard date ranges and KPI cards"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from treasury_analytics.domain.models import KPI, AnalyticsOverview, DateWindow
from treasury_analytics.utils.numbers import round_to

DATE_RANGES = ("7d", "30d", "90d", "6m", "1y")
COMPARE_MODES = ("previous", "year_over_year", "none")

# (card name, overview attribute, unit)
KPI_DEFINITIONS = (
    ("Net Cash Flow", "net_cash_flow", "USD"),
    ("Average Daily Balance", "average_daily_balance", "USD"),
    ("Liquidity Ratio", "liquidity_ratio", "ratio"),
    ("Total Inflow", "total_inflow", "USD"),
    ("Total Outflow", "total_outflow", "USD"),
    ("Transaction Count", "transaction_count", "count"),
)


def resolve_current_period(date_range: str, now: datetime) -> DateWindow:
    """Window ending now; unknown ranges fall back to 30 days"""
    if date_range == "7d":
        start = now - timedelta(days=7)
    elif date_range == "90d":
        start = now - timedelta(days=90)
    elif date_range == "6m":
        start = now - relativedelta(months=6)
    elif date_range == "1y":
        start = now - relativedelta(years=1)
    else:
        start = now - timedelta(days=30)
    return DateWindow(start_date=start, end_date=now)


def resolve_comparison_period(current: DateWindow, compare_mode: str) -> Optional[DateWindow]:
    """
    Comparison window for the KPI cards.

    - previous:       the equal-length window immediately before
    - year_over_year: the same window one calendar year earlier
    - anything else:  no comparison
    """
    if compare_mode == "previous":
        length = current.end_date - current.start_date
        return DateWindow(start_date=current.start_date - length, end_date=current.start_date)
    if compare_mode == "year_over_year":
        return DateWindow(
            start_date=current.start_date - relativedelta(years=1),
            end_date=current.end_date - relativedelta(years=1),
        )
    return None


def calculate_dashboard_date_ranges(
    date_range: str,
    compare_mode: str,
    now: datetime,
) -> Tuple[DateWindow, Optional[DateWindow]]:
    current = resolve_current_period(date_range, now)
    return current, resolve_comparison_period(current, compare_mode)


def build_kpi(name: str, unit: str, current: float, comparison: Optional[float]) -> KPI:
    """
    One KPI card. Without a comparison the card is flat.

    The percentage divides by |comparison|, substituting 1 when the comparison
    value is 0, so a move from 0 to 50 reads as +5000%.
    """
    kpi = KPI(name=name, value=round_to(current), unit=unit)
    if comparison is None:
        return kpi

    change = current - comparison
    kpi.change = round_to(change)
    kpi.change_percent = round_to(change / abs(comparison or 1) * 100)
    kpi.trend = "up" if change > 0 else "down" if change < 0 else "stable"
    return kpi


def generate_dashboard_kpis(
    current: AnalyticsOverview,
    comparison: Optional[AnalyticsOverview] = None,
) -> List[KPI]:
    return [
        build_kpi(
            name,
            unit,
            getattr(current, attribute),
            getattr(comparison, attribute) if comparison is not None else None,
        )
        for name, attribute, unit in KPI_DEFINITIONS
    ]
