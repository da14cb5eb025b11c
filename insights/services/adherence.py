"""
Adherence statistics for scheduled medications.

``calculate_adherence`` turns one schedule and its dose records into
``AdherenceMetrics``; ``get_adherence_insights`` renders those metrics as a
handful of plain-language observations using fixed thresholds.
"""

import math
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timedelta

import structlog

from insights.domain.models import (
    AdherenceMetrics,
    AdherenceStatus,
    Frequency,
    MedicationAdherence,
    MedicationSchedule,
    MissedByTimeOfDay,
)
from insights.services.timeline import align, local_now, mean, round_half_up

logger = structlog.get_logger(__name__)

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

EXCELLENT_ADHERENCE = 90
GOOD_ADHERENCE = 75
MODERATE_ADHERENCE = 50
CONSISTENT_TIMING_MINUTES = 30
GOOD_TIMING_MINUTES = 60
TIME_OF_DAY_MISS_FLAG = 2
WEEKEND_MISS_RATIO = 0.4


def _time_of_day(hour: int) -> str:
    if 5 <= hour < 11:
        return "morning"
    if 11 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def _weekday_name(ts: datetime) -> str:
    # datetime.weekday() counts from Monday
    return WEEKDAY_NAMES[(ts.weekday() + 1) % 7]


def _expected_doses(
    schedule: MedicationSchedule, window_start: datetime, now: datetime
) -> int:
    if schedule.frequency is Frequency.AS_NEEDED:
        return 0
    start = max(window_start, align(schedule.start_date, now))
    end = min(now, align(schedule.end_date, now)) if schedule.end_date else now
    days = math.ceil((end - start) / timedelta(days=1))
    return max(days, 0) * len(schedule.schedule_times)


def _population_stdev(values: Sequence[float]) -> float:
    avg = mean(values)
    return math.sqrt(sum((v - avg) ** 2 for v in values) / len(values))


def calculate_adherence(
    schedule: MedicationSchedule,
    adherence_records: Sequence[MedicationAdherence],
    days: int = 30,
    now: datetime | None = None,
) -> AdherenceMetrics:
    """
    Dose-level statistics for ``schedule`` over the last ``days`` days.

    Records outside ``[now - days, now]`` are ignored. Missing optional fields
    (``taken_time``, ``skip_reason``) only drop the record from the statistic
    that needs them.
    """
    now = now or local_now()
    window_start = now - timedelta(days=days)

    relevant = [
        r
        for r in adherence_records
        if window_start <= align(r.scheduled_time, now) <= now
    ]

    expected_doses = _expected_doses(schedule, window_start, now)
    status_counts = Counter(r.status for r in relevant)
    taken = status_counts[AdherenceStatus.TAKEN]

    total_doses = max(expected_doses, len(relevant))
    percentage = int(round_half_up(taken / total_doses * 100)) if total_doses else 0

    deviations = [
        abs((align(r.taken_time, now) - align(r.scheduled_time, now)).total_seconds()) / 60
        for r in relevant
        if r.status is AdherenceStatus.TAKEN and r.taken_time is not None
    ]
    timing_consistency = (
        int(round_half_up(_population_stdev(deviations))) if len(deviations) > 1 else None
    )

    missed_by_time_of_day = Counter[str]()
    missed_by_weekday = dict.fromkeys(WEEKDAY_NAMES, 0)
    for record in relevant:
        if record.status not in (AdherenceStatus.MISSED, AdherenceStatus.SKIPPED):
            continue
        scheduled = align(record.scheduled_time, now)
        missed_by_time_of_day[_time_of_day(scheduled.hour)] += 1
        missed_by_weekday[_weekday_name(scheduled)] += 1

    skip_reasons = Counter(
        r.skip_reason for r in relevant if r.status is AdherenceStatus.SKIPPED and r.skip_reason
    )

    metrics = AdherenceMetrics(
        adherence_percentage=percentage,
        total_doses=total_doses,
        taken_doses=taken,
        missed_doses=status_counts[AdherenceStatus.MISSED],
        skipped_doses=status_counts[AdherenceStatus.SKIPPED],
        timing_consistency_minutes=timing_consistency,
        missed_by_time_of_day=MissedByTimeOfDay(**missed_by_time_of_day),
        missed_by_weekday=missed_by_weekday,
        skip_reasons=dict(skip_reasons),
    )

    logger.info(
        "adherence_calculated",
        schedule_id=schedule.id,
        records=len(relevant),
        expected_doses=expected_doses,
        adherence_percentage=percentage,
    )
    return metrics


def get_adherence_insights(metrics: AdherenceMetrics) -> list[str]:
    """Up to four plain-language observations about adherence metrics."""
    insights: list[str] = []

    if metrics.adherence_percentage >= EXCELLENT_ADHERENCE:
        insights.append("Excellent adherence! Keep up the great work.")
    elif metrics.adherence_percentage >= GOOD_ADHERENCE:
        insights.append("Good adherence. Consider setting reminders for occasional misses.")
    elif metrics.adherence_percentage >= MODERATE_ADHERENCE:
        insights.append("Moderate adherence. Discuss barriers with your healthcare provider.")
    elif metrics.total_doses > 0:
        insights.append("Low adherence. Consider simplifying your medication schedule.")

    if metrics.timing_consistency_minutes is not None:
        if metrics.timing_consistency_minutes <= CONSISTENT_TIMING_MINUTES:
            insights.append("Very consistent timing - excellent routine!")
        elif metrics.timing_consistency_minutes <= GOOD_TIMING_MINUTES:
            insights.append("Good timing consistency.")
        else:
            insights.append("Variable timing - consider setting alarms.")

    by_time = metrics.missed_by_time_of_day.model_dump()
    worst_time = max(by_time, key=by_time.__getitem__)
    if by_time[worst_time] > TIME_OF_DAY_MISS_FLAG:
        insights.append(f"Most doses missed in the {worst_time} - consider adjusting schedule.")

    # The ratio is taken against misses on every day, weekend included
    all_misses = sum(metrics.missed_by_weekday.values())
    weekend_misses = metrics.missed_by_weekday.get("Sat", 0) + metrics.missed_by_weekday.get(
        "Sun", 0
    )
    if all_misses > 0 and weekend_misses / all_misses > WEEKEND_MISS_RATIO:
        insights.append("More misses on weekends - set weekend reminders.")

    return insights
