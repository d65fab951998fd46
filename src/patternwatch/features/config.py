"""Detection thresholds shared by the classifiers and the registry."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from patternwatch.config import Settings, get_settings
from patternwatch.core.models import PatternKind

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS


class DetectionConfig(BaseModel):
    """Configuration for pattern detection."""

    # Pivot extraction
    pivot_lookback: int = Field(default=3, ge=1, le=20)
    max_pivots: int = Field(default=10, ge=2, le=100)

    # Triangles
    min_points: int = Field(default=5, ge=2, le=50)
    recent_pivots: int = Field(default=5, ge=2, le=50)
    tolerance: float = Field(default=0.02, gt=0, lt=1)
    min_confidence: float = Field(default=0.6, ge=0, le=1)
    min_convergence_angle: float = Field(default=0.001, ge=0)
    max_convergence_angle: float = Field(default=0.1, gt=0)
    high_count_weight: float = Field(default=0.3, ge=0, le=1)
    low_count_weight: float = Field(default=0.3, ge=0, le=1)
    fit_weight: float = Field(default=0.4, ge=0, le=1)
    pivot_count_norm: int = Field(default=5, ge=1)

    # MA convergence
    ma_periods: list[int] = Field(default_factory=lambda: [20, 60, 120])
    convergence_threshold: float = Field(default=0.001, gt=0)
    min_convergence_duration_ms: int = Field(default=30 * MINUTE_MS, ge=0)
    min_signal_strength: float = Field(default=0.8, ge=0, le=1)
    trend_lookback: int = Field(default=5, ge=1)
    trend_threshold: float = Field(default=0.001, ge=0)
    breakout_pct: float = Field(default=0.05, gt=0, lt=1)

    # Registry
    confidence_step: float = Field(default=0.1, ge=0)
    realert_after_ms: int = Field(default=30 * MINUTE_MS, ge=0)
    pattern_expiry_ms: int = Field(default=2 * HOUR_MS, ge=0)

    enabled_kinds: set[PatternKind] = Field(default_factory=lambda: set(PatternKind))

    @field_validator("max_convergence_angle")
    @classmethod
    def validate_angle_band(cls, v: float, info) -> float:
        """Ensure the angle band is not empty."""
        if "min_convergence_angle" in info.data and v <= info.data["min_convergence_angle"]:
            raise ValueError("max_convergence_angle must be greater than min_convergence_angle")
        return v

    @field_validator("ma_periods")
    @classmethod
    def validate_ma_periods(cls, v: list[int]) -> list[int]:
        """Periods must be positive and distinct; stored ascending."""
        if not v:
            raise ValueError("ma_periods must not be empty")
        if any(p < 1 for p in v):
            raise ValueError("ma_periods must be positive")
        if len(set(v)) != len(v):
            raise ValueError("ma_periods must be distinct")
        return sorted(v)

    @property
    def min_bars_triangle(self) -> int:
        return self.min_points * 2

    @property
    def min_bars_convergence(self) -> int:
        return max(self.ma_periods)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides) -> "DetectionConfig":
        """Build a config from environment-driven settings."""
        settings = settings or get_settings()
        values = {
            "min_points": settings.PATTERN_MIN_POINTS,
            "tolerance": settings.PATTERN_TOLERANCE,
            "min_confidence": settings.PATTERN_MIN_CONFIDENCE,
            "ma_periods": list(settings.MA_PERIODS),
            "convergence_threshold": settings.MA_CONVERGENCE_THRESHOLD,
            "min_convergence_duration_ms": settings.MA_MIN_CONVERGENCE_DURATION_MS,
            "min_signal_strength": settings.MA_SIGNAL_STRENGTH,
            "pattern_expiry_ms": settings.PATTERN_EXPIRY_MS,
        }
        values.update(overrides)
        return cls(**values)
