#!/usr/bin/env python3
"""
Statistical utilities for the scoring and ranking engine.

Provides the small numeric helpers shared by the trend, aggregation and
ranking layers.
"""

import math
from typing import Sequence

import numpy as np


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves rounded toward +infinity.

    Scores are displayed as integers and x.5 must always round up (81.5 -> 82),
    unlike Python's banker's rounding.
    """
    return int(math.floor(value + 0.5))


def round_to(value: float, decimals: int) -> float:
    """Half-up rounding to a fixed number of decimals."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def ols_slope(values: Sequence[float]) -> float:
    """
    Ordinary least-squares slope of ``values`` against x = 0..n-1.

    Uses the closed form m = (n*Sxy - Sx*Sy) / (n*Sxx - Sx^2).

    Args:
        values: Observations in chronological order

    Returns:
        Slope, or 0.0 when the denominator vanishes (fewer than 2 points)
    """
    y = np.asarray(values, dtype=float)
    n = len(y)
    if n < 2:
        return 0.0

    x = np.arange(n, dtype=float)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_xx = (x * x).sum()

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0

    return float((n * sum_xy - sum_x * sum_y) / denominator)


def mean_or_zero(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))
