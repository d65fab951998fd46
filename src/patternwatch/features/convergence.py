"""
Moving-average convergence classification.

Flags instruments whose simple and exponential moving averages of several
periods have contracted into a narrow band for a sustained stretch.
"""

from typing import Callable, Optional, Sequence

import pandas as pd

from patternwatch.config import get_logger
from patternwatch.core.models import (
    Bar,
    BreakoutTargets,
    ConvergencePattern,
    PatternDirection,
)
from patternwatch.data.bars import bars_to_frame
from patternwatch.data.registry import PatternRegistry, wall_clock_ms
from patternwatch.features.config import DetectionConfig
from patternwatch.features.indicators import moving_averages

logger = get_logger("features.convergence")


def band_deviation(averages: pd.DataFrame) -> pd.Series:
    """Largest distance of any average from the row mean, relative to that mean."""
    center = averages.mean(axis=1)
    return averages.sub(center, axis=0).abs().max(axis=1) / center


def convergence_duration(
    averages: pd.DataFrame,
    open_times: pd.Series,
    threshold: float,
) -> int:
    """
    Milliseconds between the first and last bar whose averages sit within
    ``threshold`` of each other. Rows with any undefined average are skipped.
    """
    defined = averages.notna().all(axis=1)
    within = defined & (band_deviation(averages) <= threshold)
    times = open_times[within]
    if times.empty:
        return 0
    return int(times.iloc[-1] - times.iloc[0])


def trend_direction(
    averages: pd.DataFrame,
    periods: Sequence[int],
    lookback: int = 5,
    threshold: float = 0.001,
) -> PatternDirection:
    """
    Classify the drift of the simple moving averages.

    Averages the relative change of each SMA over ``lookback`` bars; an SMA
    without a value ``lookback`` bars back contributes zero.
    """
    slopes = []
    for period in periods:
        series = averages[f"ma{period}"]
        current = series.iloc[-1]
        prior = series.iloc[-1 - lookback] if len(series) > lookback else float("nan")
        if pd.isna(prior) or prior == 0:
            slopes.append(0.0)
        else:
            slopes.append((current - prior) / prior)

    avg_slope = sum(slopes) / len(slopes)
    if avg_slope > threshold:
        return PatternDirection.BULLISH
    if avg_slope < -threshold:
        return PatternDirection.BEARISH
    return PatternDirection.NEUTRAL


class ConvergenceClassifier:
    """Detects MA convergence in a bar sequence."""

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        registry: Optional[PatternRegistry] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.config = config or DetectionConfig()
        self.registry = registry
        self._clock = clock or wall_clock_ms

    def evaluate(self, bars: Sequence[Bar], instrument_id: str) -> Optional[ConvergencePattern]:
        """
        Convergence pattern in ``bars`` without consulting the registry.

        Returns:
            ConvergencePattern, or None on insufficient data or rejection
        """
        config = self.config
        if len(bars) < config.min_bars_convergence:
            logger.debug(f"{instrument_id}: {len(bars)} bars, need {config.min_bars_convergence}")
            return None

        df = bars_to_frame(bars).reset_index(drop=True)
        averages = moving_averages(df, config.ma_periods)

        latest = averages.iloc[-1]
        if latest.isna().any():
            return None

        avg_price = latest.mean()
        max_deviation = float((latest - avg_price).abs().max() / avg_price)
        if max_deviation > config.convergence_threshold:
            return None

        duration_ms = convergence_duration(averages, df["open_time"], config.convergence_threshold)
        if duration_ms < config.min_convergence_duration_ms:
            logger.debug(f"{instrument_id}: converged for {duration_ms} ms only")
            return None

        strength = 1 - max_deviation / config.convergence_threshold
        if strength < config.min_signal_strength:
            logger.debug(f"{instrument_id}: convergence strength {strength:.2f} below floor")
            return None

        direction = trend_direction(
            averages,
            config.ma_periods,
            config.trend_lookback,
            config.trend_threshold,
        )
        price = float(df["close"].iloc[-1])

        return ConvergencePattern(
            instrument_id=instrument_id,
            detected_at_ms=self._clock(),
            confidence=min(strength, 1.0),
            current_price=price,
            ma_values={name: float(value) for name, value in latest.items()},
            deviation=max_deviation,
            duration_ms=duration_ms,
            trend_direction=direction,
            breakout_targets=BreakoutTargets(
                bullish=price * (1 + config.breakout_pct),
                bearish=price * (1 - config.breakout_pct),
            ),
        )

    def classify(self, bars: Sequence[Bar], instrument_id: str) -> Optional[ConvergencePattern]:
        """
        Detect MA convergence and emit it only if it is new for the instrument.

        Args:
            bars: Bars ordered by open time
            instrument_id: Instrument identifier

        Returns:
            New ConvergencePattern, or None
        """
        pattern = self.evaluate(bars, instrument_id)
        if pattern is None:
            return None

        if self.registry is not None and not self.registry.offer(pattern, pattern.detected_at_ms):
            logger.debug(f"{instrument_id}: convergence unchanged, suppressed")
            return None

        logger.info(
            f"{instrument_id}: detected MA convergence "
            f"(deviation {pattern.deviation:.4%}, {pattern.trend_direction.value})"
        )
        return pattern
