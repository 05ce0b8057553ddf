"""
Scoring Math Helpers

Rounding, clamping and growth helpers shared by every calculator.
"""
import math
from typing import Sequence


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity (12.5 -> 13, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def round_to(value: float, decimals: int) -> float:
    factor = 10 ** decimals
    return round_half_up(value * factor) / factor


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def growth_pct(current: float, previous: float) -> float:
    """
    Percentage change from `previous` to `current`.

    A zero baseline with positive current volume counts as +100%, never infinity.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    if current > 0:
        return 100.0
    return 0.0


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def population_stdev(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    avg = mean(values)
    return math.sqrt(sum((v - avg) ** 2 for v in values) / len(values))
