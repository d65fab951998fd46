"""Features module exports."""

from .config import DetectionConfig
from .convergence import ConvergenceClassifier
from .detector import PatternDetector, describe_pattern
from .extrema import extract_highs, extract_lows
from .indicators import ema, moving_averages, sma
from .trendlines import fit_trendline, intersect
from .triangles import TriangleClassifier, calculate_confidence

__all__ = [
    "DetectionConfig",
    "extract_highs",
    "extract_lows",
    "fit_trendline",
    "intersect",
    "sma",
    "ema",
    "moving_averages",
    "calculate_confidence",
    "TriangleClassifier",
    "ConvergenceClassifier",
    "PatternDetector",
    "describe_pattern",
]
