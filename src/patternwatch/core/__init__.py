"""Core module exports."""

from .models import (
    PATTERN_DESCRIPTIONS,
    TRIANGLE_KINDS,
    Bar,
    BreakoutTargets,
    ConvergencePattern,
    IntersectionPoint,
    Pattern,
    PatternBase,
    PatternDirection,
    PatternFamily,
    PatternKind,
    Pivot,
    TrianglePattern,
    Trendline,
)

__all__ = [
    "PatternKind",
    "PatternFamily",
    "PatternDirection",
    "TRIANGLE_KINDS",
    "PATTERN_DESCRIPTIONS",
    "Bar",
    "Pivot",
    "Trendline",
    "IntersectionPoint",
    "BreakoutTargets",
    "PatternBase",
    "TrianglePattern",
    "ConvergencePattern",
    "Pattern",
]
