"""
Built-in heuristic pattern detectors.

Each detector is a small stateless object with a ``name`` and a ``detect``
method. The thresholds below are calibration constants for deliberately crude
heuristics (no multiple-comparison control, coarse baselines); changing any of
them changes which patterns users see.

Key patterns demonstrated:
- Protocol-based detectors (structural typing, bring-your-own detector)
- Pure functions over an immutable snapshot
- Validated, shared read-only options
"""

from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from insights.domain.models import Confidence, Pattern, PatternType, Symptom
from insights.services.timeline import (
    align,
    days_ago,
    mean,
    round_half_up,
    safe_div,
    whole_hours_between,
)
from insights.services.trends import calculate_trend

TREND_DAYS = 14
TREND_MIN_SLOPE = 0.04
TREND_MIN_DELTA = 0.8
TREND_HIGH_SLOPE = 0.08
TREND_HIGH_DELTA = 1.5

LAG_MIN_LIFT = 0.8
LAG_MIN_AVG = 5.0
LAG_HIGH_LIFT = 1.5
LAG_HIGH_HITS = 5

PERIOD_MIN_ENTRIES = 7
PERIOD_MIN_BUCKET = 3
PERIOD_MIN_AVG = 5.0
PERIOD_HIGH_AVG = 7.0

CLUSTER_TOP_PAIRS = 3

WEEKDAY_MIN_ENTRIES = 10
WEEKDAY_MIN_DIFF = 1.5
WEEKDAY_HIGH_DIFF = 2.5


class PatternOptions(BaseModel):
    """Resolved options shared read-only by every detector in one run."""

    model_config = ConfigDict(frozen=True)

    now: datetime
    min_occurrences: int = Field(default=3, ge=1)
    tag_lag_window_hours: tuple[int, int] = (12, 24)
    lookback_days: int = Field(default=30, ge=1)

    @field_validator("tag_lag_window_hours")
    def validate_window(cls, v):
        low, high = v
        if low < 0 or high < low:
            raise ValueError("tag lag window must satisfy 0 <= low <= high")
        return v


class PatternDetector(Protocol):
    """
    Protocol every detector implements.

    Why Protocol over ABC: any object with a name and a detect method plugs in,
    including future model-backed detectors.
    """

    name: str

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        """Return zero or more patterns for the snapshot."""
        ...


class FunctionDetector:
    """Adapts a plain callable to the PatternDetector protocol."""

    def __init__(
        self,
        name: str,
        fn: Callable[[Sequence[Symptom], PatternOptions], list[Pattern]],
    ) -> None:
        self.name = name
        self._fn = fn

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        return list(self._fn(symptoms, options))

    def __repr__(self) -> str:
        return f"FunctionDetector({self.name!r})"


def _recent(symptoms: Sequence[Symptom], options: PatternOptions) -> list[Symptom]:
    cutoff = days_ago(options.now, options.lookback_days)
    return [s for s in symptoms if align(s.timestamp, options.now) > cutoff]


class SeverityTrendDetector:
    """Least-squares slope over the last two weeks of daily averages."""

    name = "severity-trend"

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        daily = calculate_trend(symptoms, days=TREND_DAYS, now=options.now)
        if len(daily) < 7:
            return []

        ys = [point.avg_severity for point in daily]
        xs = list(range(len(ys)))
        x_mean = mean(xs)
        y_mean = mean(ys)
        num = sum((x - x_mean) * (y - y_mean) for x, y in zip(xs, ys, strict=True))
        den = sum((x - x_mean) ** 2 for x in xs)
        slope = safe_div(num, den)
        delta = ys[-1] - ys[0]

        if abs(slope) < TREND_MIN_SLOPE and abs(delta) < TREND_MIN_DELTA:
            return []

        direction = "down" if slope < 0 else "up"
        confidence = (
            Confidence.HIGH
            if abs(slope) > TREND_HIGH_SLOPE or abs(delta) > TREND_HIGH_DELTA
            else Confidence.MEDIUM
        )
        return [
            Pattern(
                text=f"Severity trending {direction} (~{abs(delta):.1f} points over 2 weeks)",
                confidence=confidence,
                type=PatternType.STATISTICAL,
                metadata={
                    "slope_per_day": round_half_up(slope, 3),
                    "delta": round_half_up(delta, 2),
                },
            )
        ]


class TagLagDetector:
    """
    Tag -> later-severity timing detector.

    For each tagged entry, severities of entries logged within the lag window
    after it count as hits for that tag. The baseline is the mean over the
    whole snapshot, in-window entries included.
    """

    name = "tag-lag"

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        low, high = options.tag_lag_window_hours
        events = sorted(
            ((align(s.timestamp, options.now), s) for s in symptoms), key=lambda pair: pair[0]
        )

        hits_by_tag: dict[str, list[int]] = {}
        for i, (tagged_at, event) in enumerate(events):
            for tag in sorted(event.tags):
                hits = hits_by_tag.setdefault(tag, [])
                for later_at, later in events[i + 1 :]:
                    hours = whole_hours_between(later_at, tagged_at)
                    if hours > high:
                        break
                    if hours >= low:
                        hits.append(later.severity)

        baseline = mean(s.severity for _, s in events)

        patterns: list[Pattern] = []
        for tag, hits in hits_by_tag.items():
            if len(hits) < options.min_occurrences:
                continue
            hit_avg = mean(hits)
            lift = hit_avg - baseline
            if lift > LAG_MIN_LIFT and hit_avg > LAG_MIN_AVG:
                confidence = (
                    Confidence.HIGH
                    if lift > LAG_HIGH_LIFT and len(hits) >= LAG_HIGH_HITS
                    else Confidence.MEDIUM
                )
                patterns.append(
                    Pattern(
                        text=(
                            f'Higher severity {low}-{high}h after "{tag}" '
                            f"({len(hits)} occurrences, avg {hit_avg:.1f}/10)"
                        ),
                        confidence=confidence,
                        type=PatternType.TIMING,
                        metadata={
                            "tag": tag,
                            "window_hours": [low, high],
                            "occurrences": len(hits),
                            "lift": round_half_up(lift, 2),
                        },
                    )
                )
        return patterns


def _period_of(hour: int) -> str:
    if hour < 5:
        return "night"
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    return "evening"


class PeriodPeakDetector:
    """Which part of the day carries the highest mean severity."""

    name = "period-peak"

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        if len(symptoms) < PERIOD_MIN_ENTRIES:
            return []

        buckets: dict[str, list[int]] = {"night": [], "morning": [], "afternoon": [], "evening": []}
        for symptom in symptoms:
            buckets[_period_of(align(symptom.timestamp, options.now).hour)].append(
                symptom.severity
            )

        scored = sorted(
            (
                (period, mean(values), len(values))
                for period, values in buckets.items()
                if len(values) >= PERIOD_MIN_BUCKET
            ),
            key=lambda item: item[1],
            reverse=True,
        )
        if not scored:
            return []

        period, avg, count = scored[0]
        if avg <= PERIOD_MIN_AVG:
            return []

        return [
            Pattern(
                text=f"Symptoms often peak in the {period} (avg {avg:.1f}/10)",
                confidence=Confidence.HIGH if avg > PERIOD_HIGH_AVG else Confidence.MEDIUM,
                type=PatternType.TEMPORAL,
                metadata={"period": period, "count": count},
            )
        ]


class SymptomClusterDetector:
    """Symptom pairs logged on the same calendar day."""

    name = "symptom-clusters"

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        recent = _recent(symptoms, options)
        if len(recent) < options.min_occurrences * 2:
            return []

        by_day: defaultdict[str, list[str]] = defaultdict(list)
        for symptom in recent:
            by_day[align(symptom.timestamp, options.now).date().isoformat()].append(symptom.name)

        pairs: Counter[str] = Counter()
        for names in by_day.values():
            distinct = list(dict.fromkeys(names))
            for i, first in enumerate(distinct):
                for second in distinct[i + 1 :]:
                    pairs[" + ".join(sorted((first, second)))] += 1

        ranked = sorted(
            ((pair, count) for pair, count in pairs.items() if count >= options.min_occurrences),
            key=lambda item: item[1],
            reverse=True,
        )[:CLUSTER_TOP_PAIRS]

        return [
            Pattern(
                text=f"{pair} occur together ({count} days in past {options.lookback_days})",
                confidence=(
                    Confidence.HIGH
                    if count >= options.min_occurrences * 2
                    else Confidence.MEDIUM
                ),
                type=PatternType.CLUSTER,
                metadata={
                    "pair": pair,
                    "occurrences": count,
                    "lookback_days": options.lookback_days,
                },
            )
            for pair, count in ranked
        ]


class WeekdayPatternDetector:
    """Weekday (Mon-Fri) versus weekend mean severity."""

    name = "weekday-pattern"

    def detect(self, symptoms: Sequence[Symptom], options: PatternOptions) -> list[Pattern]:
        recent = _recent(symptoms, options)
        if len(recent) < WEEKDAY_MIN_ENTRIES:
            return []

        weekday: list[int] = []
        weekend: list[int] = []
        for symptom in recent:
            if align(symptom.timestamp, options.now).weekday() >= 5:
                weekend.append(symptom.severity)
            else:
                weekday.append(symptom.severity)

        if not weekday or not weekend:
            return []

        weekday_avg = mean(weekday)
        weekend_avg = mean(weekend)
        diff = abs(weekday_avg - weekend_avg)
        if diff <= WEEKDAY_MIN_DIFF:
            return []

        worse, better = (
            ("weekdays", "weekends") if weekday_avg > weekend_avg else ("weekends", "weekdays")
        )
        return [
            Pattern(
                text=f"Symptoms worse on {worse} ({diff:.1f} points higher than {better})",
                confidence=Confidence.HIGH if diff > WEEKDAY_HIGH_DIFF else Confidence.MEDIUM,
                type=PatternType.TEMPORAL,
                metadata={
                    "weekday_avg": round_half_up(weekday_avg, 1),
                    "weekend_avg": round_half_up(weekend_avg, 1),
                    "difference": round_half_up(diff, 1),
                    "lookback_days": options.lookback_days,
                },
            )
        ]


BUILT_IN_DETECTORS: tuple[PatternDetector, ...] = (
    SeverityTrendDetector(),
    TagLagDetector(),
    PeriodPeakDetector(),
    SymptomClusterDetector(),
    WeekdayPatternDetector(),
)
