"""Unit tests for domain models and configuration."""

import pytest
from pydantic import ValidationError

from patternwatch.config import Settings
from patternwatch.core import (
    Bar,
    PatternDirection,
    PatternFamily,
    PatternKind,
    TrianglePattern,
    Trendline,
)
from patternwatch.features import DetectionConfig


class TestModels:
    """Test pattern and bar models."""

    def test_bar_is_immutable(self):
        bar = Bar(open_time=0, open=1, high=2, low=0.5, close=1.5, volume=3)
        with pytest.raises(ValidationError):
            bar.close = 2.0

    def test_triangle_rejects_convergence_kind(self):
        with pytest.raises(ValidationError):
            TrianglePattern(
                instrument_id="BTCUSDT",
                detected_at_ms=0,
                confidence=0.7,
                kind=PatternKind.MA_CONVERGENCE,
                direction=PatternDirection.NEUTRAL,
            )

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            TrianglePattern(
                instrument_id="BTCUSDT",
                detected_at_ms=0,
                confidence=1.2,
                kind=PatternKind.ASCENDING_TRIANGLE,
                direction=PatternDirection.BULLISH,
            )

    def test_family(self):
        pattern = TrianglePattern(
            instrument_id="BTCUSDT",
            detected_at_ms=0,
            confidence=0.7,
            kind=PatternKind.SYMMETRICAL_TRIANGLE,
            direction=PatternDirection.NEUTRAL,
        )
        assert pattern.family == PatternFamily.TRIANGLE

    def test_trendline_projection(self):
        line = Trendline(slope=2.0, intercept=1.0, r2=0.9)
        assert line.price_at(3) == 7.0
        assert not line.is_degenerate


class TestDetectionConfig:
    """Test DetectionConfig validation."""

    def test_default_config(self):
        """Defaults carry the documented thresholds."""
        config = DetectionConfig()
        assert config.min_points == 5
        assert config.tolerance == 0.02
        assert config.min_confidence == 0.6
        assert config.min_convergence_angle == 0.001
        assert config.max_convergence_angle == 0.1
        assert config.ma_periods == [20, 60, 120]
        assert config.convergence_threshold == 0.001
        assert config.min_convergence_duration_ms == 30 * 60_000
        assert config.min_signal_strength == 0.8
        assert config.pattern_expiry_ms == 2 * 60 * 60_000
        assert config.min_bars_triangle == 10
        assert config.min_bars_convergence == 120

    def test_angle_band_validation(self):
        with pytest.raises(ValueError):
            DetectionConfig(min_convergence_angle=0.1, max_convergence_angle=0.05)

    def test_ma_periods_validation(self):
        with pytest.raises(ValueError):
            DetectionConfig(ma_periods=[20, 20])
        with pytest.raises(ValueError):
            DetectionConfig(ma_periods=[])

    def test_ma_periods_sorted(self):
        assert DetectionConfig(ma_periods=[120, 20, 60]).ma_periods == [20, 60, 120]

    def test_from_settings(self):
        settings = Settings(PATTERN_TOLERANCE=0.03, MA_PERIODS=[10, 30])
        config = DetectionConfig.from_settings(settings, min_confidence=0.7)

        assert config.tolerance == 0.03
        assert config.ma_periods == [10, 30]
        assert config.min_confidence == 0.7
