"""Category and vendor analysis"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from treasury_analytics.domain.models import (
    CategoryBreakdown,
    CategoryTotal,
    SpendingPattern,
    Transaction,
    VendorBreakdown,
    VendorTotal,
)
from treasury_analytics.utils.numbers import round_to, safe_percentage

UNCATEGORIZED = "Uncategorized"
TOP_PATTERN_VENDORS = 5


def category_label(category: Optional[str]) -> str:
    return category or UNCATEGORIZED


def determine_trend(current: float, previous: float) -> str:
    """Compare a category's amount against the preceding period"""
    if previous <= 0:
        return "new"
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "stable"


def build_category_breakdown(
    current: Sequence[CategoryTotal],
    previous: Sequence[CategoryTotal],
) -> List[CategoryBreakdown]:
    """
    Category shares of total activity with trend against the previous period.

    Amounts are absolute. Percentages are of the sum over all categories and
    are 0 when that sum is 0. Output is ordered by amount, largest first.
    """
    totals: Dict[str, CategoryTotal] = {}
    for row in current:
        label = category_label(row.category)
        merged = totals.setdefault(label, CategoryTotal(category=label, amount=0.0, count=0))
        merged.amount += abs(row.amount)
        merged.count += row.count

    previous_amounts: Dict[str, float] = {}
    for row in previous:
        label = category_label(row.category)
        previous_amounts[label] = previous_amounts.get(label, 0.0) + abs(row.amount)

    grand_total = sum(row.amount for row in totals.values())

    breakdown = [
        CategoryBreakdown(
            category=label,
            amount=round_to(row.amount),
            count=row.count,
            percentage=round_to(safe_percentage(row.amount, grand_total)),
            trend=determine_trend(row.amount, previous_amounts.get(label, 0.0)),
        )
        for label, row in totals.items()
    ]
    breakdown.sort(key=lambda item: item.amount, reverse=True)
    return breakdown


def build_vendor_breakdown(
    vendors: Sequence[VendorTotal],
    payment_methods: Mapping[str, Iterable[str]],
    limit: int = 50,
) -> List[VendorBreakdown]:
    """
    Spend per counterparty, largest spend first, capped at `limit` vendors.

    `vendors` carry signed (negative) sums; percentages are shares of the
    total spend across the returned vendors.
    """
    ranked = sorted(vendors, key=lambda v: v.amount)[:limit]
    total_spend = sum(abs(v.amount) for v in ranked)

    return [
        VendorBreakdown(
            vendor_name=vendor.counterparty or "Unknown",
            total_amount=round_to(abs(vendor.amount)),
            transaction_count=vendor.count,
            percentage=round_to(safe_percentage(abs(vendor.amount), total_spend)),
            payment_methods=sorted(set(payment_methods.get(vendor.counterparty, ()))),
        )
        for vendor in ranked
    ]


def classify_frequency(count: int) -> str:
    if count > 30:
        return "high"
    if count > 10:
        return "medium"
    return "low"


def analyze_category_patterns(transactions: Iterable[Transaction]) -> List[SpendingPattern]:
    """
    Spending behaviour per category for outgoing transactions.

    Each pattern reports the mean absolute amount, a coarse frequency class and
    the top five vendors by spend inside the category. Seasonality is not
    computed and is always reported as "medium".
    """
    amounts: Dict[str, List[float]] = {}
    vendors: Dict[str, Dict[str, dict]] = {}

    for txn in transactions:
        if txn.amount >= 0:
            continue
        label = category_label(txn.category)
        amounts.setdefault(label, []).append(abs(txn.amount))
        category_vendors = vendors.setdefault(label, {})

        if txn.counterparty:
            vendor = category_vendors.setdefault(
                txn.counterparty,
                {"total": 0.0, "count": 0, "methods": set()},
            )
            vendor["total"] += abs(txn.amount)
            vendor["count"] += 1
            vendor["methods"].add(txn.type)

    patterns = []
    for label, values in amounts.items():
        category_vendors = vendors.get(label, {})
        category_total = sum(v["total"] for v in category_vendors.values())

        top_vendors = sorted(category_vendors.items(), key=lambda item: item[1]["total"], reverse=True)
        vendor_rows = [
            VendorBreakdown(
                vendor_name=name,
                total_amount=round_to(stats["total"]),
                transaction_count=stats["count"],
                percentage=round_to(safe_percentage(stats["total"], category_total)),
                payment_methods=sorted(stats["methods"]),
            )
            for name, stats in top_vendors[:TOP_PATTERN_VENDORS]
        ]

        patterns.append(
            SpendingPattern(
                category=label,
                subcategory=label,
                average_amount=round_to(sum(values) / len(values)),
                frequency=classify_frequency(len(values)),
                seasonality="medium",
                vendors=vendor_rows,
            )
        )

    return patterns
