"""Period-over-period trend calculation"""

from typing import Iterable, List

from treasury_analytics.domain.bucketing import bucket_by_period
from treasury_analytics.domain.exceptions import InvalidRequestError
from treasury_analytics.domain.models import PeriodBucket, Transaction, TrendPoint
from treasury_analytics.utils.numbers import round_to

TREND_METRICS = ("inflow", "outflow", "balance", "transactions")


def validate_metric(metric: str) -> str:
    if metric not in TREND_METRICS:
        raise InvalidRequestError("Invalid metric")
    return metric


def _metric_value(bucket: PeriodBucket, metric: str) -> float:
    if metric == "inflow":
        return bucket.inflow
    if metric == "outflow":
        return bucket.outflow
    if metric == "balance":
        return bucket.balance
    # "transactions": per-period counts are not tracked on buckets, volume stands in
    return bucket.inflow + bucket.outflow


def calculate_trends_by_period(
    transactions: Iterable[Transaction],
    metric: str,
    granularity: str = "monthly",
) -> List[TrendPoint]:
    """
    Bucket transactions and compare each period's metric with the one before.

    change_percent is 0 when the previous value is not positive. The first
    point always reports zero change, and so does every point of the
    "transactions" metric.
    """
    validate_metric(metric)
    buckets = bucket_by_period(transactions, granularity)

    points = []
    previous_value = None
    for bucket in buckets:
        value = _metric_value(bucket, metric)
        change = 0.0
        change_percent = 0.0

        if previous_value is not None and metric != "transactions":
            change = value - previous_value
            if previous_value > 0:
                change_percent = change / previous_value * 100

        points.append(
            TrendPoint(
                period=bucket.period_key,
                value=round_to(value),
                change=round_to(change),
                change_percent=round_to(change_percent),
            )
        )
        previous_value = value

    return points
