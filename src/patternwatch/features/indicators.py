"""
Moving averages used by the convergence classifier.
"""

from typing import Sequence

import numpy as np
import pandas as pd


def sma(df: pd.DataFrame, period: int = 20, column: str = "close") -> pd.Series:
    """
    Simple Moving Average.

    Args:
        df: DataFrame with OHLCV data
        period: Number of periods for the moving average
        column: Column to calculate SMA on

    Returns:
        Series with SMA values, NaN for the first ``period - 1`` rows
    """
    return df[column].rolling(window=period).mean()


def ema(df: pd.DataFrame, period: int = 20, column: str = "close") -> pd.Series:
    """
    Exponential Moving Average seeded with the SMA of the first ``period`` values.

    Uses ``EMA[i] = (x[i] - EMA[i-1]) * k + EMA[i-1]`` with ``k = 2 / (period + 1)``.

    Args:
        df: DataFrame with OHLCV data
        period: Number of periods for the EMA
        column: Column to calculate EMA on

    Returns:
        Series with EMA values, NaN for the first ``period - 1`` rows
    """
    values = df[column].astype(float)
    result = pd.Series(np.nan, index=values.index, name=values.name)
    if len(values) < period:
        return result

    # positional, so repeated index labels are fine
    seeded = values.iloc[period - 1:].reset_index(drop=True)
    seeded.iloc[0] = values.iloc[:period].mean()

    result.iloc[period - 1:] = seeded.ewm(span=period, adjust=False).mean().to_numpy()
    return result


def moving_averages(
    df: pd.DataFrame,
    periods: Sequence[int] = (20, 60, 120),
    column: str = "close",
) -> pd.DataFrame:
    """
    SMA and EMA for each period.

    Returns:
        DataFrame with columns ``ma{period}`` then ``ema{period}``
    """
    columns = {}
    for period in periods:
        columns[f"ma{period}"] = sma(df, period, column).to_numpy()
    for period in periods:
        columns[f"ema{period}"] = ema(df, period, column).to_numpy()
    return pd.DataFrame(columns, index=df.index)
