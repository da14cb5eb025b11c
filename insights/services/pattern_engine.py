"""
Pattern detection orchestration.

Key patterns demonstrated:
- Protocol-based dependency injection (detectors are registered, not hardcoded)
- Generic Result type for explicit per-detector error handling
- Comprehensive error boundaries (one failing detector never blanks a report)
"""

import time
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Generic, TypeVar

import structlog

from insights.domain.models import Confidence, Pattern, PatternType, Symptom
from insights.services.detectors import BUILT_IN_DETECTORS, PatternDetector, PatternOptions
from insights.services.timeline import local_now

logger = structlog.get_logger(__name__)

MAX_PATTERNS = 3
MIN_ENTRIES = 7
FALLBACK_PATTERN = Pattern(
    text="Insufficient data for pattern detection (aim for 7+ days of logs)",
    confidence=Confidence.LOW,
    type=PatternType.STATISTICAL,
)

ValueT = TypeVar("ValueT")


class Result(Generic[ValueT]):
    """
    Explicit error handling without exceptions for expected failures.

    Why: Makes error paths visible in type system, forces handling decisions.
    When to use: When failure is expected business logic, not exceptional.
    """

    def __init__(self, value: ValueT | None = None, error: Exception | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: Exception | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: Exception) -> "Result[ValueT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def unwrap(self) -> ValueT:
        if self._error:
            raise self._error
        return self._value  # type: ignore

    def unwrap_err(self) -> Exception:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


def rank_patterns(patterns: Iterable[Pattern], limit: int = MAX_PATTERNS) -> list[Pattern]:
    """Highest confidence first, emission order kept within a tier, truncated."""
    return sorted(patterns, key=lambda p: p.confidence.rank, reverse=True)[:limit]


class PatternEngine:
    """
    Runs a set of detectors over one symptom snapshot and merges their output.

    Design principles:
    - Fail open per detector (errors are logged and skipped)
    - Stable output shape (1 to ``max_patterns`` patterns, never empty)
    - Too little history short-circuits to the fallback pattern
    - Observable (structured logging for debugging)
    """

    def __init__(
        self,
        detectors: Iterable[PatternDetector] | None = None,
        max_patterns: int = MAX_PATTERNS,
        min_entries: int = MIN_ENTRIES,
    ) -> None:
        self.detectors: list[PatternDetector] = list(
            BUILT_IN_DETECTORS if detectors is None else detectors
        )
        self.max_patterns = max_patterns
        self.min_entries = min_entries
        self.logger = logger.bind(component="pattern_engine")

    def add_detector(self, detector: PatternDetector) -> None:
        """Register a detector. Validates it implements the protocol."""
        if not callable(getattr(detector, "detect", None)):
            raise TypeError(f"Detector {detector!r} must implement PatternDetector protocol")
        self.detectors.append(detector)
        self.logger.info("detector_added", detector=_detector_name(detector))

    def remove_detector(self, detector: PatternDetector) -> None:
        self.detectors.remove(detector)
        self.logger.info("detector_removed", detector=_detector_name(detector))

    def _run_detector(
        self, detector: PatternDetector, symptoms: Sequence[Symptom], options: PatternOptions
    ) -> Result[list[Pattern]]:
        try:
            return Result.ok(list(detector.detect(symptoms, options)))
        except Exception as e:
            return Result.err(e)

    def run(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        """Run every detector, rank the merged output and apply the fallback."""
        start_time = time.perf_counter()
        collected: list[Pattern] = []
        failed = 0

        if len(symptoms) < self.min_entries:
            self.logger.info(
                "pattern_detection_skipped",
                symptom_count=len(symptoms),
                min_entries=self.min_entries,
            )
            return [FALLBACK_PATTERN]

        for detector in self.detectors:
            result = self._run_detector(detector, symptoms, options)
            if result.is_ok():
                collected.extend(result.unwrap())
            else:
                failed += 1
                self.logger.warning(
                    "detector_failed",
                    detector=_detector_name(detector),
                    error=str(result.unwrap_err()),
                )

        top = rank_patterns(collected, self.max_patterns)
        if not top:
            top = [FALLBACK_PATTERN]

        self.logger.info(
            "patterns_detected",
            symptom_count=len(symptoms),
            candidates=len(collected),
            returned=len(top),
            failed_detectors=failed,
            total_detectors=len(self.detectors),
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )
        return top


def _detector_name(detector: PatternDetector) -> str:
    return getattr(detector, "name", type(detector).__name__)


def detect_patterns(
    symptoms: Sequence[Symptom],
    *,
    now: datetime | None = None,
    min_occurrences: int = 3,
    tag_lag_window_hours: tuple[int, int] = (12, 24),
    lookback_days: int = 30,
    detectors: Iterable[PatternDetector] | None = None,
) -> list[Pattern]:
    """
    Detect up to three ranked patterns in a symptom snapshot.

    Args:
        symptoms: Snapshot to analyse; never mutated.
        now: Reference clock, defaults to the current local time.
        min_occurrences: Minimum hits for tag and cluster detectors.
        tag_lag_window_hours: Inclusive (low, high) hour window for the tag-lag detector.
        lookback_days: Trailing window for the cluster and weekday detectors.
        detectors: Detectors to run instead of the built-in set.

    Returns:
        Between one and three patterns, highest confidence first. With fewer
        than seven entries, or when nothing is detected, a single
        low-confidence fallback pattern is returned.
    """
    options = PatternOptions(
        now=now or local_now(),
        min_occurrences=min_occurrences,
        tag_lag_window_hours=tag_lag_window_hours,
        lookback_days=lookback_days,
    )
    return PatternEngine(detectors).run(symptoms, options)
