"""Pytest configuration and fixtures."""

import pytest

from patternwatch.core import Bar

T0 = 1_700_000_000_000
MINUTE_MS = 60_000


def _bar(open_time: int, high: float, low: float, close: float = None) -> Bar:
    close = (high + low) / 2 if close is None else close
    return Bar(
        open_time=open_time,
        open=low + (high - low) * 0.25,
        high=high,
        low=low,
        close=close,
        volume=1_000.0,
    )


@pytest.fixture
def make_bar():
    """Build a single bar from high/low (and optional close)."""
    return _bar


@pytest.fixture
def ascending_bars():
    """
    Factory for an ascending triangle: peaks every 8 bars at exactly
    ``resistance``, troughs (4 bars after each peak) at ``troughs[k]``.
    """
    def build(
        troughs=(95.0, 95.6, 96.2, 96.8, 97.4, 98.0),
        resistance: float = 100.0,
        step_ms: int = MINUTE_MS,
    ) -> list[Bar]:
        bars = []
        for i in range(len(troughs) * 8):
            phase = i % 8
            high = resistance - 0.15 * min(phase, 8 - phase)
            low = troughs[i // 8] + 0.15 * abs(phase - 4)
            bars.append(_bar(T0 + i * step_ms, high, low))
        return bars

    return build


@pytest.fixture
def descending_bars():
    """Factory for a descending triangle: flat support at ``support``, falling peaks."""
    def build(
        support: float = 95.0,
        top: float = 105.0,
        step: float = 0.6,
        n: int = 48,
        step_ms: int = MINUTE_MS,
    ) -> list[Bar]:
        bars = []
        for i in range(n):
            phase = i % 8
            peak = top - step * ((i + 4) // 8)
            high = peak - 0.15 * min(phase, 8 - phase)
            low = support + 0.15 * abs(phase - 4)
            bars.append(_bar(T0 + i * step_ms, high, low))
        return bars

    return build


@pytest.fixture
def symmetrical_bars():
    """
    Factory for a symmetrical triangle: resistance ``53000 - slope*i`` and
    support ``47000 + slope*i`` per bar, meeting at bar 75 with the defaults.
    """
    def build(
        slope: float = 40.0,
        n: int = 48,
        step_ms: int = 1_000,
    ) -> list[Bar]:
        bars = []
        for i in range(n):
            phase = i % 8
            resistance = 53_000.0 - slope * i
            support = 47_000.0 + slope * i
            high = resistance - 100.0 * min(phase, 8 - phase)
            low = support + 100.0 * abs(phase - 4)
            bars.append(_bar(T0 + i * step_ms, high, low))
        return bars

    return build


@pytest.fixture
def close_series_bars():
    """Factory turning a list of closes into bars spaced ``step_ms`` apart."""
    def build(closes, step_ms: int = 5 * MINUTE_MS) -> list[Bar]:
        return [
            _bar(T0 + i * step_ms, close + 0.5, close - 0.5, close)
            for i, close in enumerate(closes)
        ]

    return build


class FixedClock:
    """Settable millisecond clock."""

    def __init__(self, now_ms: int = T0):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock():
    """Clock frozen at T0."""
    return FixedClock()
