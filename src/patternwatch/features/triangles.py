"""
Triangle pattern classification.

Ascending, descending and symmetrical triangles are evaluated independently
from the most recent swing pivots; the most confident survivor is emitted.
"""

import math
from typing import Callable, Optional, Sequence

from patternwatch.config import get_logger
from patternwatch.core.models import (
    Bar,
    BreakoutTargets,
    PatternDirection,
    PatternKind,
    Pivot,
    TrianglePattern,
    Trendline,
)
from patternwatch.data.registry import PatternRegistry, wall_clock_ms
from patternwatch.features.config import DetectionConfig
from patternwatch.features.extrema import extract_highs, extract_lows
from patternwatch.features.trendlines import fit_trendline, intersect

logger = get_logger("features.triangles")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def relative_spread(pivots: Sequence[Pivot]) -> tuple[float, float]:
    """Return ``(mean price, (max - min) / mean)`` of a pivot set."""
    prices = [p.price for p in pivots]
    avg = sum(prices) / len(prices)
    return avg, (max(prices) - min(prices)) / avg


def calculate_confidence(
    high_count: int,
    low_count: int,
    fit_quality: float,
    config: DetectionConfig,
) -> float:
    """
    Score a candidate from pivot sufficiency and trendline fit.

    Non-decreasing in ``fit_quality`` for fixed pivot counts; clipped to [0, 1].
    """
    norm = config.pivot_count_norm
    confidence = (
        config.high_count_weight * min(high_count / norm, 1)
        + config.low_count_weight * min(low_count / norm, 1)
        + config.fit_weight * fit_quality
    )
    return max(0.0, min(confidence, 1.0))


def _usable(line: Optional[Trendline]) -> bool:
    return line is not None and not line.is_degenerate


# =============================================================================
# CLASSIFIER
# =============================================================================


class TriangleClassifier:
    """Detects the best triangle pattern in a bar sequence."""

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        registry: Optional[PatternRegistry] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.config = config or DetectionConfig()
        self.registry = registry
        self._clock = clock or wall_clock_ms

    def detect_ascending(
        self,
        highs: Sequence[Pivot],
        lows: Sequence[Pivot],
    ) -> Optional[dict]:
        """Flat resistance over rising support."""
        config = self.config
        recent_highs = list(highs[-config.recent_pivots:])
        recent_lows = list(lows[-config.recent_pivots:])

        resistance, spread = relative_spread(recent_highs)
        if spread >= config.tolerance:
            return None

        support = fit_trendline(recent_lows)
        if not _usable(support) or support.slope <= 0:
            return None

        confidence = calculate_confidence(
            len(recent_highs), len(recent_lows), support.r2, config
        )
        if confidence < config.min_confidence:
            logger.debug(f"Ascending candidate rejected, confidence {confidence:.2f}")
            return None

        return {
            "kind": PatternKind.ASCENDING_TRIANGLE,
            "direction": PatternDirection.BULLISH,
            "confidence": confidence,
            "resistance_level": resistance,
            "support_trendline": support,
            "highs": recent_highs,
            "lows": recent_lows,
            "breakout_target": resistance * (1 + config.tolerance * 2),
        }

    def detect_descending(
        self,
        highs: Sequence[Pivot],
        lows: Sequence[Pivot],
    ) -> Optional[dict]:
        """Flat support under falling resistance."""
        config = self.config
        recent_highs = list(highs[-config.recent_pivots:])
        recent_lows = list(lows[-config.recent_pivots:])

        support, spread = relative_spread(recent_lows)
        if spread >= config.tolerance:
            return None

        resistance = fit_trendline(recent_highs)
        if not _usable(resistance) or resistance.slope >= 0:
            return None

        confidence = calculate_confidence(
            len(recent_highs), len(recent_lows), resistance.r2, config
        )
        if confidence < config.min_confidence:
            logger.debug(f"Descending candidate rejected, confidence {confidence:.2f}")
            return None

        return {
            "kind": PatternKind.DESCENDING_TRIANGLE,
            "direction": PatternDirection.BEARISH,
            "confidence": confidence,
            "support_level": support,
            "resistance_trendline": resistance,
            "highs": recent_highs,
            "lows": recent_lows,
            "breakout_target": support * (1 - config.tolerance * 2),
        }

    def detect_symmetrical(
        self,
        highs: Sequence[Pivot],
        lows: Sequence[Pivot],
        now_ms: int,
    ) -> Optional[dict]:
        """Falling resistance and rising support converging on a future apex."""
        config = self.config
        recent_highs = list(highs[-config.recent_pivots:])
        recent_lows = list(lows[-config.recent_pivots:])

        resistance = fit_trendline(recent_highs)
        support = fit_trendline(recent_lows)
        if not _usable(resistance) or not _usable(support):
            return None

        if resistance.slope >= 0 or support.slope <= 0:
            return None

        angle = abs(resistance.slope - support.slope)
        if not config.min_convergence_angle < angle < config.max_convergence_angle:
            logger.debug(f"Symmetrical candidate rejected, convergence angle {angle:.6f}")
            return None

        apex = intersect(resistance, support)
        if apex is None or not math.isfinite(apex.time) or apex.time < now_ms:
            return None

        confidence = calculate_confidence(
            len(recent_highs),
            len(recent_lows),
            (resistance.r2 + support.r2) / 2,
            config,
        )
        if confidence < config.min_confidence:
            logger.debug(f"Symmetrical candidate rejected, confidence {confidence:.2f}")
            return None

        return {
            "kind": PatternKind.SYMMETRICAL_TRIANGLE,
            "direction": PatternDirection.NEUTRAL,
            "confidence": confidence,
            "resistance_trendline": resistance,
            "support_trendline": support,
            "intersection": apex,
            "highs": recent_highs,
            "lows": recent_lows,
            "breakout_targets": BreakoutTargets(
                bullish=apex.price * (1 + config.tolerance * 2),
                bearish=apex.price * (1 - config.tolerance * 2),
            ),
        }

    def find_best(self, bars: Sequence[Bar], instrument_id: str) -> Optional[TrianglePattern]:
        """
        Best triangle in ``bars`` without consulting the registry.

        Returns:
            Highest-confidence triangle, or None on insufficient data or
            when no candidate survives
        """
        config = self.config
        if len(bars) < config.min_bars_triangle:
            logger.debug(f"{instrument_id}: {len(bars)} bars, need {config.min_bars_triangle}")
            return None

        highs = extract_highs(bars, config.pivot_lookback, config.max_pivots)
        lows = extract_lows(bars, config.pivot_lookback, config.max_pivots)
        if len(highs) < config.min_points or len(lows) < config.min_points:
            logger.debug(f"{instrument_id}: {len(highs)} highs / {len(lows)} lows, too few pivots")
            return None

        now_ms = self._clock()
        candidates = [
            self.detect_ascending(highs, lows),
            self.detect_descending(highs, lows),
            self.detect_symmetrical(highs, lows, now_ms),
        ]
        candidates = [c for c in candidates if c is not None]
        if not candidates:
            return None

        # max keeps the first of equal scores
        best = max(candidates, key=lambda c: c["confidence"])
        return TrianglePattern(instrument_id=instrument_id, detected_at_ms=now_ms, **best)

    def classify(self, bars: Sequence[Bar], instrument_id: str) -> Optional[TrianglePattern]:
        """
        Detect a triangle and emit it only if it is new for the instrument.

        Args:
            bars: Bars ordered by open time
            instrument_id: Instrument identifier

        Returns:
            New TrianglePattern, or None
        """
        pattern = self.find_best(bars, instrument_id)
        if pattern is None:
            return None

        if self.registry is not None and not self.registry.offer(pattern, pattern.detected_at_ms):
            logger.debug(f"{instrument_id}: {pattern.kind.value} unchanged, suppressed")
            return None

        logger.info(
            f"{instrument_id}: detected {pattern.kind.value} "
            f"(confidence {pattern.confidence:.2f})"
        )
        return pattern
