"""Liquidity analysis - balance statistics, idle cash detection and scoring"""

import math
from typing import List, Sequence

from treasury_analytics.domain.bucketing import group_balances_by_day
from treasury_analytics.domain.models import DailyBalance, LiquiditySnapshot, Transaction
from treasury_analytics.utils.numbers import round_to

DEFAULT_THRESHOLD_AMOUNT = 25000.0

# A day is idle when a lot of cash sits in the account and barely moves
IDLE_BALANCE_FLOOR = 50000.0
IDLE_ACTIVITY_CEILING = 1000.0


def calculate_idle_days(daily_balances: Sequence[DailyBalance]) -> List[DailyBalance]:
    """Days with average balance above 50k and total activity below 1k"""
    return [
        day
        for day in daily_balances
        if day.average_balance > IDLE_BALANCE_FLOOR and day.total_activity < IDLE_ACTIVITY_CEILING
    ]


def calculate_liquidity_score(average_balance: float, volatility: float, idle_days: int) -> float:
    """
    Heuristic liquidity score on a 0-10 scale.

    Starts at 5, then:
    - balance:    +2 above 100k, +1 above 50k, -2 below 10k
    - volatility: +1 below 0.1, -1 above 0.5
    - idle days:  -1 above 10, +1 below 3
    """
    score = 5.0

    if average_balance > 100_000:
        score += 2
    elif average_balance > 50_000:
        score += 1
    elif average_balance < 10_000:
        score -= 2

    if volatility < 0.1:
        score += 1
    elif volatility > 0.5:
        score -= 1

    if idle_days > 10:
        score -= 1
    elif idle_days < 3:
        score += 1

    return max(0.0, min(10.0, score))


def analyze_liquidity(
    transactions: Sequence[Transaction],
    threshold_amount: float = DEFAULT_THRESHOLD_AMOUNT,
) -> LiquiditySnapshot:
    """
    Build a liquidity snapshot from the most recent transactions.

    Volatility is the population standard deviation of balance_after divided by
    its mean (0 when the mean is not positive). threshold_exceeded flags a
    minimum balance *below* the threshold amount.
    """
    if not transactions:
        return LiquiditySnapshot(
            average_balance=0.0,
            minimum_balance=0.0,
            maximum_balance=0.0,
            volatility=0.0,
            idle_days=0,
            liquidity_score=0.0,
            threshold_exceeded=False,
            threshold_amount=threshold_amount,
        )

    balances = [t.balance_after or 0.0 for t in transactions]
    average_balance = sum(balances) / len(balances)
    minimum_balance = min(balances)
    maximum_balance = max(balances)

    variance = sum((b - average_balance) ** 2 for b in balances) / len(balances)
    volatility = math.sqrt(variance) / average_balance if average_balance > 0 else 0.0

    idle_days = len(calculate_idle_days(group_balances_by_day(transactions)))
    score = calculate_liquidity_score(average_balance, volatility, idle_days)

    return LiquiditySnapshot(
        average_balance=round_to(average_balance),
        minimum_balance=round_to(minimum_balance),
        maximum_balance=round_to(maximum_balance),
        volatility=round_to(volatility),
        idle_days=idle_days,
        liquidity_score=round_to(score, 1),
        threshold_exceeded=minimum_balance < threshold_amount,
        threshold_amount=threshold_amount,
    )
