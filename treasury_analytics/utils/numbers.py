"""Numeric helpers shared by the analytics calculators"""

import math


def round_to(value: float, places: int = 2) -> float:
    """
    Round half up to a fixed number of decimal places.

    Python's round() uses banker's rounding; dashboard figures are expected to
    round 0.125 -> 0.13 and -0.125 -> -0.12 (half towards +infinity).
    """
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def safe_percentage(part: float, total: float) -> float:
    """part / total * 100, or 0 when total is not positive"""
    return (part / total) * 100 if total > 0 else 0.0
