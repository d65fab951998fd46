"""Core domain models using Pydantic."""

import math
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PatternKind(str, Enum):
    """Pattern kinds emitted by the classifiers."""
    ASCENDING_TRIANGLE = "ascending_triangle"
    DESCENDING_TRIANGLE = "descending_triangle"
    SYMMETRICAL_TRIANGLE = "symmetrical_triangle"
    MA_CONVERGENCE = "ma_convergence"


class PatternFamily(str, Enum):
    """Groups of kinds that share one registry slot per instrument."""
    TRIANGLE = "triangle"
    CONVERGENCE = "convergence"


class PatternDirection(str, Enum):
    """Pattern signal direction."""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


TRIANGLE_KINDS = frozenset({
    PatternKind.ASCENDING_TRIANGLE,
    PatternKind.DESCENDING_TRIANGLE,
    PatternKind.SYMMETRICAL_TRIANGLE,
})

PATTERN_DESCRIPTIONS: dict[PatternKind, str] = {
    PatternKind.ASCENDING_TRIANGLE: (
        "Ascending triangle - bullish, may rally after breaking resistance"
    ),
    PatternKind.DESCENDING_TRIANGLE: (
        "Descending triangle - bearish, may drop after breaking support"
    ),
    PatternKind.SYMMETRICAL_TRIANGLE: (
        "Symmetrical triangle - neutral, breakout direction sets the next move"
    ),
    PatternKind.MA_CONVERGENCE: (
        "MA convergence - moving averages squeezed into a tight band ahead of a breakout"
    ),
}


# =============================================================================
# Market Data
# =============================================================================


class Bar(BaseModel):
    """Single OHLCV bar keyed by its open time in epoch milliseconds."""
    model_config = ConfigDict(frozen=True)

    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


class Pivot(BaseModel):
    """Local swing high or low."""
    model_config = ConfigDict(frozen=True)

    index: int
    time: int
    price: float


# =============================================================================
# Geometry
# =============================================================================


class Trendline(BaseModel):
    """Least-squares line ``price = slope * time + intercept``.

    ``slope`` is in price per millisecond. ``r2`` is NaN when the fitted
    prices have zero variance and may be negative for a poor fit.
    """
    model_config = ConfigDict(frozen=True)

    slope: float
    intercept: float
    r2: float

    @property
    def is_degenerate(self) -> bool:
        """True when any coefficient is non-finite."""
        return not (
            math.isfinite(self.slope)
            and math.isfinite(self.intercept)
            and math.isfinite(self.r2)
        )

    def price_at(self, time_ms: float) -> float:
        """Project the line at a timestamp."""
        return self.slope * time_ms + self.intercept


class IntersectionPoint(BaseModel):
    """Apex where two trendlines meet."""
    model_config = ConfigDict(frozen=True)

    time: float
    price: float


class BreakoutTargets(BaseModel):
    """Price objectives for a move out of the pattern in either direction."""
    bullish: float
    bearish: float


# =============================================================================
# Pattern Models
# =============================================================================


class PatternBase(BaseModel):
    """Fields shared by every emitted pattern."""
    instrument_id: str
    detected_at_ms: int
    confidence: float = Field(ge=0.0, le=1.0)
    kind: PatternKind

    @property
    def family(self) -> PatternFamily:
        if self.kind in TRIANGLE_KINDS:
            return PatternFamily.TRIANGLE
        return PatternFamily.CONVERGENCE

    def describe(self) -> str:
        """Human-readable summary for alert composition."""
        return (
            f"{self.instrument_id}: {PATTERN_DESCRIPTIONS[self.kind]} "
            f"(confidence {self.confidence:.0%})"
        )


class TrianglePattern(PatternBase):
    """Detected ascending, descending or symmetrical triangle.

    Ascending triangles carry a flat ``resistance_level`` and a rising
    ``support_trendline``; descending triangles the mirror image. Symmetrical
    triangles carry both trendlines and their ``intersection``.
    """
    direction: PatternDirection
    highs: list[Pivot] = Field(default_factory=list)
    lows: list[Pivot] = Field(default_factory=list)

    resistance_level: Optional[float] = None
    support_level: Optional[float] = None
    resistance_trendline: Optional[Trendline] = None
    support_trendline: Optional[Trendline] = None
    intersection: Optional[IntersectionPoint] = None

    breakout_target: Optional[float] = None
    breakout_targets: Optional[BreakoutTargets] = None

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: PatternKind) -> PatternKind:
        """Ensure the kind is one of the triangle kinds."""
        if v not in TRIANGLE_KINDS:
            raise ValueError(f"{v.value} is not a triangle kind")
        return v


class ConvergencePattern(PatternBase):
    """Moving averages of several periods contracted into a narrow band."""
    kind: Literal[PatternKind.MA_CONVERGENCE] = PatternKind.MA_CONVERGENCE
    current_price: float
    ma_values: dict[str, float]
    deviation: float = Field(ge=0.0)
    duration_ms: int = Field(ge=0)
    trend_direction: PatternDirection
    breakout_targets: BreakoutTargets


Pattern = Union[TrianglePattern, ConvergencePattern]
