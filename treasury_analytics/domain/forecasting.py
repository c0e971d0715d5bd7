"""Cash flow forecasting and seasonality analysis"""

import math
import re
from datetime import datetime, timedelta
from typing import Dict, List, Sequence, Tuple

from treasury_analytics.domain.bucketing import bucket_by_period
from treasury_analytics.domain.exceptions import InvalidRequestError
from treasury_analytics.domain.models import (
    ForecastPoint,
    SeasonalFactor,
    SeasonalPattern,
    SeasonalPeriod,
    Seasonality,
    Transaction,
)
from treasury_analytics.utils.date_utils import sunday_based_weekday, to_naive_utc
from treasury_analytics.utils.numbers import round_to

MIN_HISTORY = 30
RECENT_DAYS = 30
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

_FORECAST_PERIOD = re.compile(r"^(\d+)d$")


def parse_forecast_period(forecast_period: str) -> int:
    """'90d' -> 90; 1 to 365 days"""
    match = _FORECAST_PERIOD.match(forecast_period.strip())
    days = int(match.group(1)) if match else 0
    if days < 1 or days > 365:
        raise InvalidRequestError('Invalid forecast period. Use format like "90d" (1-365 days)')
    return days


def validate_confidence_level(confidence_level: float) -> float:
    if confidence_level < 0.1 or confidence_level > 1.0:
        raise InvalidRequestError("Confidence level must be between 0.1 and 1.0")
    return confidence_level


def linear_slope(values: Sequence[float]) -> float:
    """Least-squares slope of values against their index"""
    n = len(values)
    if n < 2:
        return 0.0
    sum_x = sum(range(n))
    sum_y = sum(values)
    sum_xy = sum(i * y for i, y in enumerate(values))
    sum_xx = sum(i * i for i in range(n))
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def seasonal_factor(day_offset: int) -> float:
    """Weekly and monthly sine cycles around 1.0"""
    week_cycle = math.sin(day_offset * 2 * math.pi / 7) * 0.1
    month_cycle = math.sin(day_offset * 2 * math.pi / 30) * 0.05
    return 1 + week_cycle + month_cycle


def generate_cash_flow_forecast(
    transactions: Sequence[Transaction],
    forecast_days: int,
    confidence_level: float,
    today: datetime,
) -> List[ForecastPoint]:
    """
    Project daily inflow, outflow and balance forward.

    Uses the last 30 daily buckets: their mean inflow/outflow plus a linear
    trend scaled by a seasonal factor. Confidence decays linearly by up to 0.3
    over the horizon but never drops below 0.5. Fewer than 30 transactions
    yield no forecast.
    """
    if len(transactions) < MIN_HISTORY:
        return []

    recent = bucket_by_period(transactions, "daily")[-RECENT_DAYS:]
    inflows = [b.inflow for b in recent]
    outflows = [b.outflow for b in recent]
    avg_inflow = sum(inflows) / len(recent)
    avg_outflow = sum(outflows) / len(recent)
    inflow_trend = linear_slope(inflows)
    outflow_trend = linear_slope(outflows)

    running_balance = recent[-1].balance
    forecast = []
    for day in range(1, forecast_days + 1):
        factor = seasonal_factor(day)
        predicted_inflow = max(0.0, avg_inflow + inflow_trend * day * factor)
        predicted_outflow = max(0.0, avg_outflow + outflow_trend * day * factor)
        running_balance += predicted_inflow - predicted_outflow

        forecast.append(
            ForecastPoint(
                date=(today + timedelta(days=day)).date().isoformat(),
                predicted_inflow=round_to(predicted_inflow),
                predicted_outflow=round_to(predicted_outflow),
                predicted_balance=round_to(running_balance),
                confidence=max(0.5, confidence_level - (day / forecast_days) * 0.3),
            )
        )

    return forecast


def _accumulate(stats: Dict[int, Dict[str, float]], key: int, amount: float) -> None:
    entry = stats.setdefault(key, {"inflow": 0.0, "outflow": 0.0, "count": 0})
    if amount > 0:
        entry["inflow"] += amount
    else:
        entry["outflow"] += abs(amount)
    entry["count"] += 1


def _periods(stats: Dict[int, Dict[str, float]], names: List[str]) -> List[SeasonalPeriod]:
    return [
        SeasonalPeriod(
            period=names[key],
            avg_inflow=round_to(entry["inflow"] / entry["count"]),
            avg_outflow=round_to(entry["outflow"] / entry["count"]),
            transaction_count=int(entry["count"]),
        )
        for key, entry in stats.items()
    ]


def _busiest(stats: Dict[int, Dict[str, float]], names: List[str], top: int = 3) -> List[str]:
    ranked: List[Tuple[int, Dict[str, float]]] = sorted(stats.items(), key=lambda item: item[1]["count"], reverse=True)
    return [names[key] for key, entry in ranked[:top] if entry["count"] > 0]


def analyze_seasonal_patterns(transactions: Sequence[Transaction]) -> Seasonality:
    """Average activity per calendar month and weekday, with the busiest of each"""
    monthly: Dict[int, Dict[str, float]] = {}
    weekly: Dict[int, Dict[str, float]] = {}

    for txn in transactions:
        when = to_naive_utc(txn.date)
        _accumulate(monthly, when.month - 1, txn.amount)
        _accumulate(weekly, sunday_based_weekday(when.date()), txn.amount)

    return Seasonality(
        patterns=[
            SeasonalPattern(type="monthly", data=_periods(monthly, MONTH_NAMES)),
            SeasonalPattern(type="weekly", data=_periods(weekly, DAY_NAMES)),
        ],
        factors=[
            SeasonalFactor(
                name="High Activity Months",
                description="Months with above-average transaction volume",
                value=_busiest(monthly, MONTH_NAMES),
            ),
            SeasonalFactor(
                name="High Activity Days",
                description="Days of week with above-average transaction volume",
                value=_busiest(weekly, DAY_NAMES),
            ),
        ],
    )


def generate_forecast_recommendations(forecast: Sequence[ForecastPoint], seasonality: Seasonality) -> List[str]:
    if not forecast:
        return [
            "Insufficient historical data for detailed recommendations. "
            "Consider accumulating more transaction history."
        ]

    recommendations = []

    if any(day.predicted_balance < 10_000 for day in forecast):
        recommendations.append(
            "Potential low balance periods detected in forecast. "
            "Consider establishing credit facilities or adjusting cash management strategy."
        )

    high_balance_days = sum(1 for day in forecast if day.predicted_balance > 100_000)
    if high_balance_days > len(forecast) * 0.5:
        recommendations.append(
            "Consistently high cash balances predicted. Consider investment options to optimize idle cash returns."
        )

    for factor in seasonality.factors:
        if factor.name == "High Activity Months":
            recommendations.append(
                f"Plan for increased activity during {', '.join(factor.value)} based on historical patterns."
            )

    average_confidence = sum(day.confidence for day in forecast) / len(forecast)
    if average_confidence < 0.7:
        recommendations.append(
            "Forecast confidence is moderate. Monitor actual performance closely and update predictions regularly."
        )

    return recommendations
