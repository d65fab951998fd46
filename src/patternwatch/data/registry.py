"""
In-memory registry of the most recently emitted pattern per instrument.

Suppresses re-alerts of materially unchanged patterns and holds entries
until an explicit expiry sweep:
- One slot per (instrument, pattern family)
- Re-alert on kind change, confidence jump or cool-down elapsed
- Expired entries removed only by ``sweep_expired``
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from patternwatch.config import get_logger
from patternwatch.core.models import Pattern, PatternFamily

logger = get_logger("data.registry")

DEFAULT_CONFIDENCE_STEP = 0.1
DEFAULT_REALERT_AFTER_MS = 30 * 60 * 1000
DEFAULT_MAX_AGE_MS = 2 * 60 * 60 * 1000


def wall_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class PatternRegistry:
    """
    Per-instrument memory of emitted patterns.

    Triangle and convergence patterns for the same instrument occupy
    separate slots. All public methods are serialized on one lock, and
    ``offer`` performs the new-check and the write as a single step.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        confidence_step: float = DEFAULT_CONFIDENCE_STEP,
        realert_after_ms: int = DEFAULT_REALERT_AFTER_MS,
    ):
        """
        Initialize the registry.

        Args:
            clock: Returns the current time in epoch milliseconds
            confidence_step: Confidence gain that makes a same-kind pattern new
            realert_after_ms: Age after which a same-kind pattern is new again
        """
        self._clock = clock or wall_clock_ms
        self._confidence_step = confidence_step
        self._realert_after_ms = realert_after_ms
        self._entries: dict[tuple[str, PatternFamily], Pattern] = {}
        self._lock = threading.Lock()

    def _is_new(self, instrument_id: str, candidate: Pattern, now_ms: int) -> bool:
        prior = self._entries.get((instrument_id, candidate.family))

        if prior is None:
            return True
        if prior.kind != candidate.kind:
            return True
        if candidate.confidence > prior.confidence + self._confidence_step:
            return True
        if now_ms - prior.detected_at_ms > self._realert_after_ms:
            return True
        return False

    def is_new(self, instrument_id: str, candidate: Pattern, now_ms: Optional[int] = None) -> bool:
        """Check whether ``candidate`` differs materially from the stored pattern."""
        now_ms = self._clock() if now_ms is None else now_ms
        with self._lock:
            return self._is_new(instrument_id, candidate, now_ms)

    def record(self, instrument_id: str, pattern: Pattern) -> None:
        """Store ``pattern``, overwriting the instrument's slot for its family."""
        with self._lock:
            self._entries[(instrument_id, pattern.family)] = pattern

    def offer(self, pattern: Pattern, now_ms: Optional[int] = None) -> bool:
        """
        Record ``pattern`` if it is new for its instrument.

        Returns:
            True when the pattern was recorded and should be emitted
        """
        now_ms = self._clock() if now_ms is None else now_ms
        with self._lock:
            if not self._is_new(pattern.instrument_id, pattern, now_ms):
                return False
            self._entries[(pattern.instrument_id, pattern.family)] = pattern
            return True

    def get(
        self,
        instrument_id: str,
        family: Optional[PatternFamily] = None,
    ) -> Optional[Pattern]:
        """Latest pattern for an instrument, optionally restricted to one family."""
        with self._lock:
            if family is not None:
                return self._entries.get((instrument_id, family))
            matches = [p for (iid, _), p in self._entries.items() if iid == instrument_id]
        if not matches:
            return None
        return max(matches, key=lambda p: p.detected_at_ms)

    def all(self) -> list[Pattern]:
        """All live patterns."""
        with self._lock:
            return list(self._entries.values())

    def sweep_expired(
        self,
        now_ms: Optional[int] = None,
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
    ) -> int:
        """
        Remove entries older than ``max_age_ms``.

        An entry exactly ``max_age_ms`` old is kept.

        Returns:
            Number of entries removed
        """
        now_ms = self._clock() if now_ms is None else now_ms
        with self._lock:
            expired = [
                key for key, pattern in self._entries.items()
                if now_ms - pattern.detected_at_ms > max_age_ms
            ]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.info(f"Swept {len(expired)} expired patterns")
        return len(expired)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, instrument_id: object) -> bool:
        with self._lock:
            return any(iid == instrument_id for iid, _ in self._entries)
