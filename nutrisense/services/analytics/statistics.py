"""
Numeric primitives for the analytics engines.

Every function is total: empty or degenerate input returns a neutral value
(usually 0) instead of raising.
"""

import math
from typing import Sequence

EPSILON = 1e-9
MAD_SCALE = 1.4826  # MAD -> sigma under normality


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def percentile(values: Sequence[float], p: float) -> float:
    """Percentile with linear interpolation between order statistics, ``p`` in [0, 1]."""
    if not values:
        return 0.0
    ordered = sorted(values)
    rank = clamp(p, 0.0, 1.0) * (len(ordered) - 1)
    low = math.floor(rank)
    high = math.ceil(rank)
    if low == high:
        return ordered[low]
    t = rank - low
    return ordered[low] * (1 - t) + ordered[high] * t


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    variance = sum((value - avg) ** 2 for value in values) / len(values)
    return math.sqrt(variance)


def mad(values: Sequence[float]) -> float:
    """Median absolute deviation from the median."""
    if not values:
        return 0.0
    center = median(values)
    return median([abs(value - center) for value in values])


def robust_z_score(value: float, values: Sequence[float]) -> float:
    """
    Outlier-resistant z-score of ``value`` against ``values``.

    Uses median/MAD; falls back to the standard deviation when the MAD is
    negligible and to 0 when the series is effectively constant.
    """
    if not values:
        return 0.0
    center = median(values)
    spread = mad(values)
    if spread <= EPSILON:
        sigma = std_dev(values)
        if sigma <= EPSILON:
            return 0.0
        return (value - center) / sigma
    return (value - center) / (MAD_SCALE * spread)


def linear_regression_slope(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` against their index."""
    n = len(values)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = mean(values)
    numerator = 0.0
    denominator = 0.0
    for index, value in enumerate(values):
        x = index - x_mean
        numerator += x * (value - y_mean)
        denominator += x * x
    if denominator == 0:
        return 0.0
    return numerator / denominator


def coefficient_of_variation(values: Sequence[float]) -> float:
    avg = mean(values)
    if abs(avg) < EPSILON:
        return 0.0
    return std_dev(values) / abs(avg)
