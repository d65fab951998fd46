"""
Pattern detection entry point.

Runs the triangle and convergence classifiers over one instrument's bars
against a shared registry.
"""

from typing import Callable, Optional, Sequence

from patternwatch.config import get_logger
from patternwatch.core.models import PATTERN_DESCRIPTIONS, Bar, Pattern
from patternwatch.data.registry import PatternRegistry, wall_clock_ms
from patternwatch.features.config import DetectionConfig
from patternwatch.features.convergence import ConvergenceClassifier
from patternwatch.features.triangles import TriangleClassifier

logger = get_logger("features.detector")


def describe_pattern(pattern: Pattern) -> str:
    """Describe a pattern's kind in one sentence."""
    return PATTERN_DESCRIPTIONS.get(pattern.kind, "Unknown pattern")


class PatternDetector:
    """
    Triangle and convergence classifiers sharing one registry.

    Create one instance at startup and pass it to every call site.
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        registry: Optional[PatternRegistry] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.config = config or DetectionConfig()
        self._clock = clock or wall_clock_ms
        self.registry = registry or PatternRegistry(
            clock=self._clock,
            confidence_step=self.config.confidence_step,
            realert_after_ms=self.config.realert_after_ms,
        )
        self.triangles = TriangleClassifier(self.config, self.registry, self._clock)
        self.convergence = ConvergenceClassifier(self.config, self.registry, self._clock)

    def detect(self, bars: Sequence[Bar], instrument_id: str) -> list[Pattern]:
        """
        Run both classifiers on one instrument.

        Args:
            bars: Bars ordered by open time
            instrument_id: Instrument identifier

        Returns:
            New patterns whose kind is enabled, triangle first. Patterns of a
            disabled kind are dropped before reaching the registry.
        """
        patterns: list[Pattern] = []

        for find in (self.triangles.find_best, self.convergence.evaluate):
            pattern = find(bars, instrument_id)
            if pattern is None:
                continue
            if pattern.kind not in self.config.enabled_kinds:
                logger.debug(f"{instrument_id}: {pattern.kind.value} filtered out")
                continue
            if not self.registry.offer(pattern, pattern.detected_at_ms):
                logger.debug(f"{instrument_id}: {pattern.kind.value} unchanged, suppressed")
                continue
            logger.info(
                f"{instrument_id}: detected {pattern.kind.value} "
                f"(confidence {pattern.confidence:.2f})"
            )
            patterns.append(pattern)

        return patterns

    def get_all_detected_patterns(self) -> list[Pattern]:
        """All live patterns in the registry."""
        return self.registry.all()

    def clear_expired_patterns(self, now_ms: Optional[int] = None) -> int:
        """Sweep registry entries older than the configured expiry."""
        return self.registry.sweep_expired(now_ms, self.config.pattern_expiry_ms)
