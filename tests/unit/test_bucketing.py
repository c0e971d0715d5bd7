"""Unit tests for period bucketing"""

from datetime import datetime, timedelta

import pytest
from treasury_analytics.domain.bucketing import bucket_by_period, group_balances_by_day, period_key


def test_single_day_bucket_uses_last_balance(make_txn):
    """Three same-day transactions fold into one bucket closing at the last balance"""
    day = datetime(2024, 3, 5, 9)
    transactions = [
        make_txn(day, 500, 1000),
        make_txn(day + timedelta(hours=1), -200, 800),
        make_txn(day + timedelta(hours=2), 100, 900),
    ]

    buckets = bucket_by_period(transactions, "daily")

    assert len(buckets) == 1
    bucket = buckets[0]
    assert bucket.period_key == "2024-03-05"
    assert bucket.inflow == 600
    assert bucket.outflow == 200
    assert bucket.net_flow == 400
    assert bucket.balance == 900


@pytest.mark.parametrize(
    "granularity,expected",
    [
        ("daily", "2024-06-12"),
        ("weekly", "2024-06-09"),  # Wednesday floors to Sunday
        ("monthly", "2024-06"),
        ("yearly", "2024"),
        ("fortnightly", "2024-06-12"),  # unknown falls back to daily
    ],
)
def test_period_key_formats(granularity, expected):
    assert period_key(datetime(2024, 6, 12, 18, 30), granularity) == expected


def test_weekly_key_on_sunday_is_same_day():
    assert period_key(datetime(2024, 6, 9, 0, 0), "weekly") == "2024-06-09"


def test_weekly_key_crosses_month_boundary():
    # Saturday 1 June 2024 belongs to the week starting Sunday 26 May
    assert period_key(datetime(2024, 6, 1), "weekly") == "2024-05-26"


def test_buckets_sorted_by_key(make_txn):
    transactions = [
        make_txn(datetime(2024, 1, 15), 100, 100),
        make_txn(datetime(2024, 3, 1), 100, 200),
        make_txn(datetime(2024, 2, 10), -50, 150),
    ]

    buckets = bucket_by_period(transactions, "monthly")

    assert [b.period_key for b in buckets] == ["2024-01", "2024-02", "2024-03"]


def test_unsorted_input_closes_on_chronologically_last_balance(make_txn):
    transactions = [
        make_txn(datetime(2024, 1, 20), -100, 400),
        make_txn(datetime(2024, 1, 5), 500, 500),
    ]

    buckets = bucket_by_period(transactions, "monthly")

    assert buckets[0].balance == 400


def test_missing_balance_keeps_previous_bucket_balance(make_txn):
    transactions = [
        make_txn(datetime(2024, 1, 5, 9), 500, 1500),
        make_txn(datetime(2024, 1, 5, 10), -100, None),
        make_txn(datetime(2024, 1, 6), -100, None),
    ]

    buckets = bucket_by_period(transactions, "daily")

    assert buckets[0].balance == 1500
    assert buckets[1].balance == 0


def test_zero_amount_counts_as_outflow_of_zero(make_txn):
    buckets = bucket_by_period([make_txn(datetime(2024, 1, 5), 0, 10)], "daily")
    assert buckets[0].inflow == 0
    assert buckets[0].outflow == 0
    assert buckets[0].net_flow == 0


def test_empty_input():
    assert bucket_by_period([], "daily") == []


@pytest.mark.parametrize("granularity", ["daily", "weekly", "monthly", "yearly"])
def test_inflow_minus_outflow_equals_signed_sum(make_txn, granularity):
    """Bucketing partitions amounts without losing or double counting any"""
    start = datetime(2023, 11, 20)
    amounts = [1200.5, -300.25, -45.1, 980, -2200, 15.75, -0.5, 640, -99.99, 3100]
    transactions = [
        make_txn(start + timedelta(days=i * 9, hours=i), amount, 10000 + i)
        for i, amount in enumerate(amounts)
    ]

    buckets = bucket_by_period(transactions, granularity)

    total_in = sum(b.inflow for b in buckets)
    total_out = sum(b.outflow for b in buckets)
    assert total_in - total_out == pytest.approx(sum(amounts))
    assert all(b.net_flow == pytest.approx(b.inflow - b.outflow) for b in buckets)


def test_rebucketing_flattened_buckets_is_stable(make_txn):
    """Flattening buckets back to one inflow and one outflow row reproduces them"""
    transactions = [
        make_txn(datetime(2024, 1, 3), 400, 1400),
        make_txn(datetime(2024, 1, 17), -150, 1250),
        make_txn(datetime(2024, 2, 2), -600, 650),
        make_txn(datetime(2024, 2, 20), 80, 730),
        make_txn(datetime(2024, 4, 1), 1000, 1730),
    ]
    buckets = bucket_by_period(transactions, "monthly")

    flattened = []
    for bucket in buckets:
        year, month = (int(part) for part in bucket.period_key.split("-"))
        when = datetime(year, month, 1)
        flattened.append(make_txn(when, bucket.inflow, None))
        flattened.append(make_txn(when, -bucket.outflow, bucket.balance))

    rebucketed = bucket_by_period(flattened, "monthly")

    assert [b.period_key for b in rebucketed] == [b.period_key for b in buckets]
    for original, again in zip(buckets, rebucketed):
        assert again.inflow == pytest.approx(original.inflow)
        assert again.outflow == pytest.approx(original.outflow)
        assert again.balance == original.balance


def test_group_balances_by_day(make_txn):
    transactions = [
        make_txn(datetime(2024, 1, 5, 9), 300, 60000),
        make_txn(datetime(2024, 1, 5, 17), -500, 40000),
        make_txn(datetime(2024, 1, 6), -50, None),
    ]

    days = {d.date: d for d in group_balances_by_day(transactions)}

    assert days["2024-01-05"].average_balance == 50000
    assert days["2024-01-05"].total_activity == 800
    assert days["2024-01-05"].transaction_count == 2
    assert days["2024-01-06"].average_balance == 0
