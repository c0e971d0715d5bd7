"""Headline cash flow metrics"""

from typing import Optional, Sequence

from treasury_analytics.domain.models import AnalyticsFilter, AnalyticsOverview, ReportPeriod
from treasury_analytics.utils.numbers import round_to

# Share of outflow kept back as an operating buffer before cash counts as idle
OUTFLOW_BUFFER_RATIO = 0.1


def summarize_overview(
    inflow_sum: Optional[float],
    outflow_sum: Optional[float],
    transaction_count: int,
    recent_balances: Sequence[Optional[float]],
    filters: Optional[AnalyticsFilter] = None,
) -> AnalyticsOverview:
    """
    Combine store aggregates into overview metrics.

    Average daily balance is approximated by the mean balance_after of the
    latest transactions (missing balances count as 0). Liquidity ratio is that
    balance over total outflow, 0 when nothing flowed out.
    """
    filters = filters or AnalyticsFilter()
    total_inflow = inflow_sum or 0.0
    total_outflow = abs(outflow_sum or 0.0)
    net_cash_flow = total_inflow - total_outflow

    if recent_balances:
        average_daily_balance = sum(b or 0.0 for b in recent_balances) / len(recent_balances)
    else:
        average_daily_balance = 0.0

    liquidity_ratio = average_daily_balance / total_outflow if total_outflow > 0 else 0.0
    idle_balance = max(0.0, average_daily_balance - total_outflow * OUTFLOW_BUFFER_RATIO)

    return AnalyticsOverview(
        total_inflow=round_to(total_inflow),
        total_outflow=round_to(total_outflow),
        net_cash_flow=round_to(net_cash_flow),
        average_daily_balance=round_to(average_daily_balance),
        liquidity_ratio=round_to(liquidity_ratio),
        idle_balance=round_to(idle_balance),
        transaction_count=transaction_count,
        period=ReportPeriod(
            start_date=filters.start_date.isoformat() if filters.start_date else None,
            end_date=filters.end_date.isoformat() if filters.end_date else None,
        ),
    )
