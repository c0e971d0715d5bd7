"""Unit tests for forecasting and seasonality"""

from datetime import datetime, timedelta

import pytest
from treasury_analytics.domain.exceptions import InvalidRequestError
from treasury_analytics.domain.forecasting import (
    analyze_seasonal_patterns,
    generate_cash_flow_forecast,
    generate_forecast_recommendations,
    linear_slope,
    parse_forecast_period,
    seasonal_factor,
    validate_confidence_level,
)

TODAY = datetime(2024, 6, 15, 12, 0)


@pytest.mark.parametrize("value,expected", [("90d", 90), ("1d", 1), ("365d", 365)])
def test_parse_forecast_period(value, expected):
    assert parse_forecast_period(value) == expected


@pytest.mark.parametrize("value", ["0d", "366d", "90", "abc", "12m"])
def test_parse_forecast_period_rejects(value):
    with pytest.raises(InvalidRequestError):
        parse_forecast_period(value)


@pytest.mark.parametrize("value", [0.05, 1.01])
def test_confidence_level_bounds(value):
    with pytest.raises(InvalidRequestError):
        validate_confidence_level(value)


def test_linear_slope():
    assert linear_slope([1, 3, 5, 7]) == pytest.approx(2)
    assert linear_slope([4, 4, 4]) == 0
    assert linear_slope([10]) == 0


def test_seasonal_factor_is_one_on_full_cycles():
    assert seasonal_factor(0) == pytest.approx(1)
    assert seasonal_factor(210) == pytest.approx(1)


def test_forecast_requires_thirty_transactions(make_txn):
    transactions = [make_txn(TODAY - timedelta(days=i), 100, 1000) for i in range(29)]
    assert generate_cash_flow_forecast(transactions, 30, 0.85, TODAY) == []


def test_flat_history_forecast(make_txn):
    """Constant daily flows project the same net movement every day"""
    start = TODAY - timedelta(days=40)
    transactions = []
    for i in range(40):
        day = start + timedelta(days=i)
        transactions.append(make_txn(day, 1000, None))
        transactions.append(make_txn(day + timedelta(hours=1), -400, 20000 + i * 600))

    forecast = generate_cash_flow_forecast(transactions, 10, 0.85, TODAY)

    assert len(forecast) == 10
    assert forecast[0].date == "2024-06-16"
    assert forecast[0].predicted_inflow == 1000
    assert forecast[0].predicted_outflow == 400
    last_balance = 20000 + 39 * 600
    assert forecast[-1].predicted_balance == pytest.approx(last_balance + 10 * 600)
    assert forecast[0].confidence == pytest.approx(0.85 - 0.03)
    assert all(p.confidence >= 0.5 for p in forecast)


def test_confidence_never_below_half(make_txn):
    transactions = [make_txn(TODAY - timedelta(days=i), 100, 1000) for i in range(35)]
    forecast = generate_cash_flow_forecast(transactions, 365, 0.6, TODAY)
    assert forecast[-1].confidence == 0.5


def test_seasonal_patterns(make_txn):
    transactions = [
        make_txn(datetime(2024, 6, 9), 300, None),  # Sunday in June
        make_txn(datetime(2024, 6, 9), -100, None),
        make_txn(datetime(2024, 5, 13), -50, None),  # Monday in May
    ]

    seasonality = analyze_seasonal_patterns(transactions)

    monthly = {p.period: p for p in seasonality.patterns[0].data}
    weekly = {p.period: p for p in seasonality.patterns[1].data}
    assert monthly["Jun"].avg_inflow == 150
    assert monthly["Jun"].avg_outflow == 50
    assert monthly["Jun"].transaction_count == 2
    assert weekly["Sun"].transaction_count == 2
    assert weekly["Mon"].avg_outflow == 50
    assert seasonality.factors[0].name == "High Activity Months"
    assert seasonality.factors[0].value == ["Jun", "May"]
    assert seasonality.factors[1].value == ["Sun", "Mon"]


def test_recommendations_without_forecast():
    seasonality = analyze_seasonal_patterns([])
    recommendations = generate_forecast_recommendations([], seasonality)
    assert len(recommendations) == 1
    assert recommendations[0].startswith("Insufficient historical data")


def test_recommendations_flag_low_balance(make_txn):
    transactions = [make_txn(TODAY - timedelta(days=i), -100, 5000) for i in range(35)]
    forecast = generate_cash_flow_forecast(transactions, 30, 0.85, TODAY)

    recommendations = generate_forecast_recommendations(forecast, analyze_seasonal_patterns(transactions))

    assert any("low balance" in r for r in recommendations)
    assert any(r.startswith("Plan for increased activity") for r in recommendations)
