"""
Swing high / swing low extraction.

A pivot is a bar whose high (or low) is the strict, unique extremum of the
window spanning ``lookback`` bars on each side.
"""

from typing import Sequence

import numpy as np

from patternwatch.core.models import Bar, Pivot


def _find_pivots(
    values: np.ndarray,
    times: np.ndarray,
    lookback: int,
    max_pivots: int,
    highs: bool,
) -> list[Pivot]:
    pivots = []

    for i in range(lookback, len(values) - lookback):
        window = np.concatenate((
            values[i - lookback:i],
            values[i + 1:i + lookback + 1],
        ))
        # Ties disqualify: neighbors must be strictly lower (higher for lows)
        if highs:
            is_pivot = bool(np.all(window < values[i]))
        else:
            is_pivot = bool(np.all(window > values[i]))

        if is_pivot:
            pivots.append(Pivot(index=i, time=int(times[i]), price=float(values[i])))

    return pivots[-max_pivots:]


def extract_highs(
    bars: Sequence[Bar],
    lookback: int = 3,
    max_pivots: int = 10,
) -> list[Pivot]:
    """
    Find swing highs.

    Args:
        bars: Bars ordered by open time
        lookback: Number of bars on each side to compare
        max_pivots: Keep only the most recent pivots

    Returns:
        Pivots on ``high``, oldest first
    """
    values = np.array([b.high for b in bars], dtype=float)
    times = np.array([b.open_time for b in bars], dtype=np.int64)
    return _find_pivots(values, times, lookback, max_pivots, highs=True)


def extract_lows(
    bars: Sequence[Bar],
    lookback: int = 3,
    max_pivots: int = 10,
) -> list[Pivot]:
    """
    Find swing lows.

    Args:
        bars: Bars ordered by open time
        lookback: Number of bars on each side to compare
        max_pivots: Keep only the most recent pivots

    Returns:
        Pivots on ``low``, oldest first
    """
    values = np.array([b.low for b in bars], dtype=float)
    times = np.array([b.open_time for b in bars], dtype=np.int64)
    return _find_pivots(values, times, lookback, max_pivots, highs=False)
