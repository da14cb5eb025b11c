"""
Daily severity trend and top-symptom ranking.

Both calculators are pure: they read a symptom snapshot and return fresh
value objects. Empty input is not an error, it yields an all-zero trend and an
empty ranking.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta

from insights.domain.models import Symptom, TopSymptom, TrendPoint
from insights.services.timeline import align, local_now, mean, round_half_up


def calculate_trend(
    symptoms: Sequence[Symptom], days: int = 30, now: datetime | None = None
) -> list[TrendPoint]:
    """
    Average severity per calendar day for the ``days`` days ending at ``now``.

    Returns exactly ``days`` points, oldest first. Days without entries
    average to 0.
    """
    now = now or local_now()
    today = now.date()

    daily: dict[str, list[int]] = {}
    for offset in range(days - 1, -1, -1):
        daily[(today - timedelta(days=offset)).isoformat()] = []

    for symptom in symptoms:
        key = align(symptom.timestamp, now).date().isoformat()
        if key in daily:
            daily[key].append(symptom.severity)

    return [
        TrendPoint(date=date, avg_severity=round_half_up(mean(values), 2))
        for date, values in daily.items()
    ]


def get_top_symptoms(symptoms: Sequence[Symptom], top_n: int = 5) -> list[TopSymptom]:
    """Most frequently logged symptom names with their mean severity."""
    totals: dict[str, list[int]] = {}
    for symptom in symptoms:
        entry = totals.setdefault(symptom.name, [0, 0])
        entry[0] += 1
        entry[1] += symptom.severity

    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(totals.items(), key=lambda item: item[1][0], reverse=True)
    return [
        TopSymptom(name=name, count=count, avg_severity=round_half_up(total / count, 2))
        for name, (count, total) in ranked[:top_n]
    ]
