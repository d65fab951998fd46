"""Unit tests for moving-average convergence classification."""

import numpy as np
import pytest

from patternwatch.core import ConvergencePattern, PatternDirection, PatternKind
from patternwatch.data import PatternRegistry
from patternwatch.features import ConvergenceClassifier, DetectionConfig

MINUTE_MS = 60_000


def _ramp(slope: float, n: int = 130, flat: int = 100) -> list[float]:
    """Flat at 100 for ``flat`` bars, then a linear drift of ``slope`` per bar."""
    return [100.0 if i < flat else 100.0 + slope * (i - flat + 1) for i in range(n)]


@pytest.fixture
def relaxed_config():
    """Wide band so a drifting market still counts as converged."""
    return DetectionConfig(convergence_threshold=0.05, min_signal_strength=0.5)


class TestInsufficientData:
    """Test data sufficiency guards."""

    def test_fewer_than_longest_period(self, close_series_bars):
        """Fewer than 120 bars never yields a pattern."""
        bars = close_series_bars([100.0] * 119)
        assert ConvergenceClassifier().classify(bars, "BTCUSDT") is None

    def test_custom_periods_lower_requirement(self, close_series_bars):
        """The bar requirement follows the longest configured period."""
        config = DetectionConfig(ma_periods=[5, 10, 20])
        bars = close_series_bars([100.0] * 40)

        pattern = ConvergenceClassifier(config).classify(bars, "BTCUSDT")

        assert pattern is not None
        assert set(pattern.ma_values) == {"ma5", "ma10", "ma20", "ema5", "ema10", "ema20"}


class TestConvergenceDetection:
    """Test convergence acceptance and rejection."""

    def test_tight_band_detected(self, close_series_bars, clock):
        """Averages within 0.05% for 50 minutes produce a strong signal."""
        closes = [100.0 + 0.01 * (-1) ** i for i in range(130)]
        bars = close_series_bars(closes)

        pattern = ConvergenceClassifier(clock=clock).classify(bars, "BTCUSDT")

        assert isinstance(pattern, ConvergencePattern)
        assert pattern.kind == PatternKind.MA_CONVERGENCE
        assert pattern.confidence >= 0.8
        assert pattern.deviation <= 0.0005
        assert pattern.duration_ms == 10 * 5 * MINUTE_MS
        assert pattern.trend_direction == PatternDirection.NEUTRAL
        assert pattern.instrument_id == "BTCUSDT"
        assert pattern.detected_at_ms == clock.now_ms
        assert set(pattern.ma_values) == {"ma20", "ma60", "ma120", "ema20", "ema60", "ema120"}

    def test_breakout_targets(self, close_series_bars):
        """Targets sit 5% either side of the last close."""
        bars = close_series_bars([100.0] * 130)
        pattern = ConvergenceClassifier().classify(bars, "BTCUSDT")

        assert pattern.current_price == pytest.approx(100.0)
        assert pattern.breakout_targets.bullish == pytest.approx(105.0)
        assert pattern.breakout_targets.bearish == pytest.approx(95.0)

    def test_wide_band_rejected(self, close_series_bars):
        """Averages more than 0.1% apart are not converged."""
        bars = close_series_bars(_ramp(0.2))
        assert ConvergenceClassifier().classify(bars, "BTCUSDT") is None

    def test_short_duration_rejected(self, close_series_bars):
        """Ten one-minute bars of convergence is under the 30 minute minimum."""
        bars = close_series_bars([100.0] * 130, step_ms=MINUTE_MS)
        assert ConvergenceClassifier().classify(bars, "BTCUSDT") is None

        config = DetectionConfig(min_convergence_duration_ms=5 * MINUTE_MS)
        pattern = ConvergenceClassifier(config).classify(bars, "BTCUSDT")
        assert pattern.duration_ms == 10 * MINUTE_MS

    def test_weak_signal_rejected(self, close_series_bars):
        """Deviation inside the threshold but above the strength floor is dropped."""
        bars = close_series_bars(_ramp(0.005))
        assert ConvergenceClassifier().classify(bars, "BTCUSDT") is None

        config = DetectionConfig(min_signal_strength=0.3)
        pattern = ConvergenceClassifier(config).classify(bars, "BTCUSDT")
        assert pattern is not None
        assert 0.3 <= pattern.confidence < 0.8
        assert pattern.confidence == pytest.approx(1 - pattern.deviation / 0.001)


class TestTrendDirection:
    """Test trend classification from SMA drift."""

    def test_bullish_drift(self, close_series_bars, relaxed_config):
        bars = close_series_bars(_ramp(0.2))
        pattern = ConvergenceClassifier(relaxed_config).classify(bars, "BTCUSDT")

        assert pattern.trend_direction == PatternDirection.BULLISH

    def test_bearish_drift(self, close_series_bars, relaxed_config):
        bars = close_series_bars(_ramp(-0.2))
        pattern = ConvergenceClassifier(relaxed_config).classify(bars, "BTCUSDT")

        assert pattern.trend_direction == PatternDirection.BEARISH

    def test_flat_is_neutral(self, close_series_bars, relaxed_config):
        bars = close_series_bars([100.0] * 130)
        pattern = ConvergenceClassifier(relaxed_config).classify(bars, "BTCUSDT")

        assert pattern.trend_direction == PatternDirection.NEUTRAL


class TestDeduplication:
    """Test registry interaction."""

    def test_repeat_suppressed(self, close_series_bars, clock):
        registry = PatternRegistry(clock=clock)
        classifier = ConvergenceClassifier(registry=registry, clock=clock)
        bars = close_series_bars([100.0] * 130)

        assert classifier.classify(bars, "BTCUSDT") is not None
        assert classifier.classify(bars, "BTCUSDT") is None

    def test_evaluate_ignores_registry(self, close_series_bars, clock):
        registry = PatternRegistry(clock=clock)
        classifier = ConvergenceClassifier(registry=registry, clock=clock)
        bars = close_series_bars([100.0] * 130)

        assert classifier.evaluate(bars, "BTCUSDT") is not None
        assert classifier.evaluate(bars, "BTCUSDT") is not None
        assert len(registry) == 0


def test_input_bars_untouched(close_series_bars):
    bars = close_series_bars(list(np.linspace(100, 101, 130)))
    snapshot = list(bars)
    ConvergenceClassifier().classify(bars, "BTCUSDT")
    assert bars == snapshot
