"""
Tests for the pattern engine.

Testing philosophy:
- Test doubles implement the detector protocol instead of mocking internals
- Exact fallback text, since callers render it verbatim
- Property-based check of the output shape
"""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import NOW, make_symptom
from insights.domain.models import Confidence, Pattern, PatternType, Symptom
from insights.services.detectors import FunctionDetector, PatternOptions
from insights.services.pattern_engine import (
    FALLBACK_PATTERN,
    PatternEngine,
    Result,
    detect_patterns,
    rank_patterns,
)


def _pattern(text: str, confidence: Confidence = Confidence.MEDIUM) -> Pattern:
    return Pattern(text=text, confidence=confidence, type=PatternType.STATISTICAL)


def _week(severity: int = 5) -> list[Symptom]:
    return [make_symptom("headache", severity, NOW - timedelta(days=d)) for d in range(7)]


class StaticDetector:
    """Test double that implements the PatternDetector protocol."""

    def __init__(self, name: str, patterns: Sequence[Pattern] = ()) -> None:
        self.name = name
        self.patterns = list(patterns)
        self.call_count = 0

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        self.call_count += 1
        return list(self.patterns)


class FailingDetector:
    name = "broken"

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        raise RuntimeError("detector exploded")


class TestResult:
    """Test the Result type for explicit error handling."""

    def test_result_ok_creates_successful_result(self) -> None:
        result: Result[list[int]] = Result.ok([1, 2])
        assert result.is_ok()
        assert result.unwrap() == [1, 2]

    def test_result_error_creates_failed_result(self) -> None:
        result: Result[str] = Result.err(ValueError("test error"))
        assert not result.is_ok()
        assert isinstance(result.unwrap_err(), ValueError)

    def test_unwrap_raises_on_error_result(self) -> None:
        result: Result[str] = Result.err(ValueError("test error"))

        with pytest.raises(ValueError, match="test error"):
            result.unwrap()

    def test_unwrap_err_on_ok_value_raises(self) -> None:
        with pytest.raises(ValueError):
            Result.ok("fine").unwrap_err()


class TestRankPatterns:
    def test_higher_confidence_first_with_emission_order_kept(self) -> None:
        patterns = [
            _pattern("low", Confidence.LOW),
            _pattern("medium-1"),
            _pattern("high", Confidence.HIGH),
            _pattern("medium-2"),
        ]

        ranked = rank_patterns(patterns, limit=10)

        assert [p.text for p in ranked] == ["high", "medium-1", "medium-2", "low"]

    def test_truncates_to_limit(self) -> None:
        ranked = rank_patterns([_pattern(str(i)) for i in range(5)], limit=3)

        assert [p.text for p in ranked] == ["0", "1", "2"]


class TestPatternEngine:
    @pytest.fixture
    def options(self) -> PatternOptions:
        return PatternOptions(now=NOW)

    def test_empty_snapshot_returns_fallback(self, options: PatternOptions) -> None:
        patterns = PatternEngine().run([], options)

        assert patterns == [FALLBACK_PATTERN]
        assert patterns[0].text == (
            "Insufficient data for pattern detection (aim for 7+ days of logs)"
        )
        assert patterns[0].confidence is Confidence.LOW

    def test_fewer_than_seven_entries_skip_detectors(self, options: PatternOptions) -> None:
        detector = StaticDetector("always", [_pattern("found", Confidence.HIGH)])
        engine = PatternEngine([detector])

        patterns = engine.run(_week()[:6], options)

        assert patterns == [FALLBACK_PATTERN]
        assert detector.call_count == 0

    def test_no_detections_returns_fallback(self, options: PatternOptions) -> None:
        engine = PatternEngine([StaticDetector("quiet")])

        assert engine.run(_week(), options) == [FALLBACK_PATTERN]

    def test_failing_detector_is_skipped(self, options: PatternOptions) -> None:
        engine = PatternEngine(
            [FailingDetector(), StaticDetector("healthy", [_pattern("still here")])]
        )

        patterns = engine.run(_week(), options)

        assert [p.text for p in patterns] == ["still here"]

    def test_only_failing_detectors_fall_back(self, options: PatternOptions) -> None:
        engine = PatternEngine([FailingDetector()])

        assert engine.run(_week(), options) == [FALLBACK_PATTERN]

    def test_merges_ranks_and_truncates(self, options: PatternOptions) -> None:
        engine = PatternEngine(
            [
                StaticDetector("a", [_pattern("a-low", Confidence.LOW), _pattern("a-med")]),
                StaticDetector("b", [_pattern("b-high", Confidence.HIGH)]),
                StaticDetector("c", [_pattern("c-med"), _pattern("c-high", Confidence.HIGH)]),
            ]
        )

        patterns = engine.run(_week(), options)

        assert [p.text for p in patterns] == ["b-high", "c-high", "a-med"]

    def test_function_detector_plugs_in(self, options: PatternOptions) -> None:
        def loud_days(symptoms: Sequence[Symptom], opts: PatternOptions) -> list[Pattern]:
            loud = [s for s in symptoms if s.severity >= 8]
            if not loud:
                return []
            return [_pattern(f"{len(loud)} severe entries", Confidence.HIGH)]

        engine = PatternEngine([FunctionDetector("loud-days", loud_days)])

        patterns = engine.run(_week(severity=9), options)

        assert patterns[0].text == "7 severe entries"

    def test_add_detector_validates_protocol(self) -> None:
        engine = PatternEngine([])

        with pytest.raises(TypeError):
            engine.add_detector(object())  # type: ignore[arg-type]

    def test_add_and_remove_detector(self, options: PatternOptions) -> None:
        engine = PatternEngine([])
        detector = StaticDetector("extra", [_pattern("extra")])

        engine.add_detector(detector)
        assert engine.run(_week(), options)[0].text == "extra"

        engine.remove_detector(detector)
        assert engine.run(_week(), options) == [FALLBACK_PATTERN]

    def test_custom_max_patterns(self, options: PatternOptions) -> None:
        engine = PatternEngine(
            [StaticDetector("many", [_pattern(str(i)) for i in range(5)])], max_patterns=1
        )

        assert len(engine.run(_week(), options)) == 1


class TestDetectPatterns:
    def test_worsening_fortnight_reports_upward_trend_first(self) -> None:
        symptoms = [
            make_symptom("headache", 10 - d // 2, NOW - timedelta(days=d)) for d in range(15)
        ]

        patterns = detect_patterns(symptoms, now=NOW)

        assert 1 <= len(patterns) <= 3
        assert patterns[0].confidence is Confidence.HIGH
        assert patterns[0].text.startswith("Severity trending up")

    def test_co_occurring_pair_is_reported(self) -> None:
        symptoms = []
        for d in range(0, 11, 2):
            symptoms.append(make_symptom("nausea", 6, NOW - timedelta(days=d)))
            symptoms.append(make_symptom("headache", 7, NOW - timedelta(days=d)))

        patterns = detect_patterns(symptoms, now=NOW)

        assert any("headache + nausea" in p.text for p in patterns)

    def test_custom_detectors_replace_built_ins(self) -> None:
        detector = StaticDetector("only", [_pattern("custom")])

        patterns = detect_patterns(_week(), now=NOW, detectors=[detector])

        assert [p.text for p in patterns] == ["custom"]

    def test_invalid_window_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            detect_patterns(_week(), now=NOW, tag_lag_window_hours=(24, 12))

    def test_input_is_not_mutated(self) -> None:
        symptoms = _week()
        snapshot = list(symptoms)

        detect_patterns(symptoms, now=NOW)

        assert symptoms == snapshot

    @settings(max_examples=50, deadline=None)
    @given(
        entries=st.lists(
            st.tuples(
                st.sampled_from(["headache", "nausea", "fatigue", "cramps"]),
                st.integers(min_value=0, max_value=10),
                st.datetimes(
                    min_value=datetime(2026, 9, 1),
                    max_value=datetime(2026, 10, 19, 11, 59),
                    timezones=st.just(UTC),
                ),
                st.lists(st.sampled_from(["dairy", "coffee", "meal"]), max_size=2),
            ),
            max_size=40,
        )
    )
    def test_output_shape_property(
        self, entries: list[tuple[str, int, datetime, list[str]]]
    ) -> None:
        """Any snapshot gives one to three patterns, highest confidence first."""
        symptoms = [make_symptom(name, sev, at, tags) for name, sev, at, tags in entries]

        patterns = detect_patterns(symptoms, now=NOW)

        assert 1 <= len(patterns) <= 3
        ranks = [p.confidence.rank for p in patterns]
        assert ranks == sorted(ranks, reverse=True)
        if len(symptoms) < 7:
            assert patterns == [FALLBACK_PATTERN]
