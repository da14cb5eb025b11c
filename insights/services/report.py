"""
Report service that combines the store snapshot with every insight calculator.

This is the end-to-end pipeline a visit report or summary screen runs:
1. Read the report window of symptoms and medication logs, plus active
   schedules, from the Entry Store
2. Compute trend, top symptoms and ranked patterns
3. Compute adherence per active schedule
4. Evaluate timing hints for the most recent medications and merge them
"""

import asyncio
import time
from collections.abc import Sequence
from datetime import datetime, timedelta

import structlog

from insights.config import AppConfig, get_config
from insights.domain.models import (
    InsightReport,
    MedicationLog,
    MedicationSchedule,
    RecentMedication,
    ScheduleAdherence,
    Symptom,
    TimingHint,
)
from insights.services.adherence import calculate_adherence, get_adherence_insights
from insights.services.detectors import PatternOptions
from insights.services.entry_store import EntryStore
from insights.services.pattern_engine import PatternEngine
from insights.services.timeline import align, local_now
from insights.services.timing_rules import evaluate_timing_hints, merge_timing_hints
from insights.services.trends import calculate_trend, get_top_symptoms

logger = structlog.get_logger(__name__)


def recent_context_tags(symptoms: Sequence[Symptom], now: datetime, hours: int) -> list[str]:
    """Union of tags on symptoms logged within the last ``hours`` hours."""
    cutoff = now - timedelta(hours=hours)
    tags = {
        tag for s in symptoms if align(s.timestamp, now) >= cutoff for tag in s.tags
    }
    return sorted(tags)


def latest_per_medication(meds: Sequence[MedicationLog], now: datetime) -> list[MedicationLog]:
    """Most recent log for each medication name, newest first."""
    latest: dict[str, MedicationLog] = {}
    for med in sorted(meds, key=lambda m: align(m.timestamp, now), reverse=True):
        latest.setdefault(med.name, med)
    return list(latest.values())


class InsightReportService:
    """
    Orchestrates the insight pipeline over an Entry Store.

    Store failures propagate to the caller; everything downstream of the
    snapshot is total and never raises on sparse data.
    """

    def __init__(
        self,
        store: EntryStore,
        config: AppConfig | None = None,
        engine: PatternEngine | None = None,
    ) -> None:
        self.store = store
        self.config = config or get_config()
        self.engine = engine or PatternEngine(max_patterns=self.config.patterns.max_patterns)
        self.logger = logger.bind(component="insight_report")

    async def _load_adherence(
        self, schedules: Sequence[MedicationSchedule], now: datetime
    ) -> list[ScheduleAdherence]:
        window = self.config.adherence.window_days
        records_per_schedule = await asyncio.gather(
            *(
                self.store.get_adherence_by_schedule(schedule.id, window, now=now)
                for schedule in schedules
            )
        )

        results = []
        for schedule, records in zip(schedules, records_per_schedule, strict=True):
            if not records:
                continue
            metrics = calculate_adherence(schedule, records, days=window, now=now)
            results.append(
                ScheduleAdherence(
                    schedule=schedule,
                    metrics=metrics,
                    insights=get_adherence_insights(metrics),
                )
            )
        return results

    def _timing_hints(
        self, meds: Sequence[MedicationLog], tags: list[str], now: datetime
    ) -> tuple[list[MedicationLog], list[TimingHint]]:
        timing = self.config.timing
        unique_meds = latest_per_medication(meds, now)[: timing.unique_meds_limit]
        recent = [
            RecentMedication(name=m.name, timestamp=m.timestamp, dosage=m.dose) for m in meds
        ]

        batches = [
            evaluate_timing_hints(
                current_med=med.name,
                current_tags=tags,
                recent_meds=recent,
                max_hints=timing.max_hints,
            )
            for med in unique_meds[: timing.meds_for_hints]
        ]
        return unique_meds, merge_timing_hints(batches, limit=timing.max_hints)

    async def build_report(self, now: datetime | None = None) -> InsightReport:
        """Build a full insight report from the current store contents."""
        now = now or local_now()
        start_time = time.perf_counter()
        self.logger.info("insight_report_starting")

        window_start = now - timedelta(days=self.config.report.window_days)
        all_symptoms, meds, schedules = await asyncio.gather(
            self.store.get_all_symptoms(),
            self.store.get_meds_in_range(window_start, now),
            self.store.get_active_schedules(),
        )
        symptoms = [s for s in all_symptoms if align(s.timestamp, now) >= window_start]
        self.logger.debug(
            "snapshot_loaded",
            symptoms=len(symptoms),
            medication_logs=len(meds),
            active_schedules=len(schedules),
        )

        adherence = await self._load_adherence(schedules, now)

        patterns_cfg = self.config.patterns
        options = PatternOptions(
            now=now,
            min_occurrences=patterns_cfg.min_occurrences,
            tag_lag_window_hours=patterns_cfg.tag_lag_window_hours,
            lookback_days=patterns_cfg.lookback_days,
        )
        patterns = self.engine.run(symptoms, options)

        tags = recent_context_tags(symptoms, now, self.config.timing.recent_tag_window_hours)
        unique_meds, hints = self._timing_hints(meds, tags, now)

        report = InsightReport(
            generated_at=now,
            trend=calculate_trend(symptoms, days=self.config.trend.days, now=now),
            top_symptoms=get_top_symptoms(symptoms, self.config.trend.top_symptoms),
            patterns=patterns,
            timing_hints=hints,
            recent_tags=tags,
            recent_medications=unique_meds,
            adherence=adherence,
            analysis_duration_seconds=time.perf_counter() - start_time,
        )

        self.logger.info(
            "insight_report_completed",
            patterns=len(report.patterns),
            timing_hints=len(report.timing_hints),
            schedules_with_adherence=len(adherence),
            duration_seconds=round(report.analysis_duration_seconds, 3),
        )
        return report
