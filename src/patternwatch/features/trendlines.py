"""Least-squares trendlines through pivot points."""

import math
from typing import Optional, Sequence

import numpy as np

from patternwatch.core.models import IntersectionPoint, Pivot, Trendline


def fit_trendline(pivots: Sequence[Pivot]) -> Optional[Trendline]:
    """
    Fit ``price = slope * time + intercept`` by ordinary least squares.

    Sums are taken around the mean time so epoch-millisecond timestamps
    keep full precision.

    Args:
        pivots: At least two pivots

    Returns:
        Trendline, or None for fewer than two pivots. When every pivot shares
        one timestamp the slope is NaN and the line is degenerate.
    """
    if len(pivots) < 2:
        return None

    x = np.array([p.time for p in pivots], dtype=float)
    y = np.array([p.price for p in pivots], dtype=float)
    n = len(pivots)

    x_mean = x.sum() / n
    y_mean = y.sum() / n
    dx = x - x_mean
    sxx = float(np.dot(dx, dx))

    if sxx == 0:
        return Trendline(slope=math.nan, intercept=math.nan, r2=math.nan)

    slope = float(np.dot(dx, y - y_mean)) / sxx
    intercept = float(y_mean - slope * x_mean)

    return Trendline(
        slope=slope,
        intercept=intercept,
        r2=calculate_r2(x, y, slope, intercept),
    )


def calculate_r2(x: np.ndarray, y: np.ndarray, slope: float, intercept: float) -> float:
    """Coefficient of determination; NaN when ``y`` has zero variance."""
    predicted = slope * x + intercept
    ss_res = float(np.sum((y - predicted) ** 2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    if ss_tot == 0:
        return math.nan
    return 1 - ss_res / ss_tot


def intersect(line1: Trendline, line2: Trendline) -> Optional[IntersectionPoint]:
    """Solve ``slope1 * t + intercept1 == slope2 * t + intercept2``."""
    if line1.is_degenerate or line2.is_degenerate:
        return None

    slope_diff = line1.slope - line2.slope
    if slope_diff == 0:
        return None

    time = (line2.intercept - line1.intercept) / slope_diff
    return IntersectionPoint(time=time, price=line1.price_at(time))
