"""Data module exports."""

from .bars import (
    bar_from_stream_event,
    bars_from_frame,
    bars_from_klines,
    bars_to_frame,
    merge_bar,
    normalize_dataframe,
)
from .registry import PatternRegistry, wall_clock_ms

__all__ = [
    "PatternRegistry",
    "wall_clock_ms",
    "normalize_dataframe",
    "bars_from_frame",
    "bars_to_frame",
    "bars_from_klines",
    "bar_from_stream_event",
    "merge_bar",
]
