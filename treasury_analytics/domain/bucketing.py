"""Period bucketing - fold transactions into calendar cash flow buckets"""

from datetime import datetime
from typing import Dict, Iterable, List

from treasury_analytics.domain.models import DailyBalance, PeriodBucket, Transaction
from treasury_analytics.utils.date_utils import to_naive_utc, week_start

GRANULARITIES = ("daily", "weekly", "monthly", "yearly")


def period_key(when: datetime, granularity: str) -> str:
    """
    Bucket key for a transaction date.

    Keys sort lexicographically in chronological order:
    - daily:   YYYY-MM-DD
    - weekly:  YYYY-MM-DD of the Sunday starting the week (not ISO week numbers)
    - monthly: YYYY-MM
    - yearly:  YYYY

    Unknown granularities fall back to daily.
    """
    day = to_naive_utc(when).date()

    if granularity == "weekly":
        return week_start(day).isoformat()
    if granularity == "monthly":
        return f"{day.year:04d}-{day.month:02d}"
    if granularity == "yearly":
        return f"{day.year:04d}"
    return day.isoformat()


def bucket_by_period(transactions: Iterable[Transaction], granularity: str = "daily") -> List[PeriodBucket]:
    """
    Group transactions into period buckets of inflow, outflow, net flow and balance.

    Positive amounts count as inflow, everything else as outflow (absolute value).
    A bucket's balance is the balance_after of the last transaction in it that
    carries one; buckets without any balance_after stay at 0.

    Input is stably sorted by date first, so rows sharing a timestamp keep
    their original order when deciding the closing balance.
    """
    ordered = sorted(transactions, key=lambda t: to_naive_utc(t.date))
    buckets: Dict[str, PeriodBucket] = {}

    for txn in ordered:
        key = period_key(txn.date, granularity)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = PeriodBucket(period_key=key)
            buckets[key] = bucket

        if txn.amount > 0:
            bucket.inflow += txn.amount
        else:
            bucket.outflow += abs(txn.amount)
        bucket.net_flow = bucket.inflow - bucket.outflow

        if txn.balance_after is not None:
            bucket.balance = txn.balance_after

    return sorted(buckets.values(), key=lambda b: b.period_key)


def group_balances_by_day(transactions: Iterable[Transaction]) -> List[DailyBalance]:
    """Per calendar day: mean balance_after (missing as 0), count and total absolute activity"""
    days: Dict[str, List[Transaction]] = {}
    for txn in transactions:
        days.setdefault(period_key(txn.date, "daily"), []).append(txn)

    return [
        DailyBalance(
            date=day,
            average_balance=sum(t.balance_after or 0.0 for t in txns) / len(txns),
            transaction_count=len(txns),
            total_activity=sum(abs(t.amount) for t in txns),
        )
        for day, txns in days.items()
    ]
