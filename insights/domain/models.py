"""
Domain models for the symptom journal.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation but could be swapped to dataclasses if needed.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Confidence(str, Enum):
    """Confidence tier attached to patterns and timing hints."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return {"High": 3, "Medium": 2, "Low": 1}[self.value]


class PatternType(str, Enum):
    """Kind of signal a pattern was derived from."""

    TEMPORAL = "temporal"
    CORRELATION = "correlation"
    TIMING = "timing"
    STATISTICAL = "statistical"
    CLUSTER = "cluster"


class Frequency(str, Enum):
    """How often a scheduled medication is due."""

    DAILY = "daily"
    TWICE_DAILY = "twice-daily"
    THREE_TIMES = "three-times"
    FOUR_TIMES = "four-times"
    AS_NEEDED = "as-needed"

    @property
    def doses_per_day(self) -> int:
        return {
            "daily": 1,
            "twice-daily": 2,
            "three-times": 3,
            "four-times": 4,
            "as-needed": 0,
        }[self.value]


class AdherenceStatus(str, Enum):
    """Lifecycle of a single expected dose."""

    TAKEN = "taken"
    SKIPPED = "skipped"
    MISSED = "missed"
    PENDING = "pending"


class Symptom(BaseModel):
    """A single logged symptom reading."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    severity: int = Field(ge=0, le=10)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    duration_minutes: int | None = Field(default=None, ge=0)
    notes: str | None = None
    tags: frozenset[str] = Field(
        default_factory=frozenset, description="Free-form context labels, e.g. dairy, meal"
    )


class MedicationLog(BaseModel):
    """Fire-and-forget record of a medication taken at a point in time."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    dose: str | None = Field(default=None, description='e.g. "50mg", "2 tablets"')
    notes: str | None = None


class MedicationSchedule(BaseModel):
    """A prescribed regimen with fixed time-of-day slots."""

    model_config = ConfigDict(frozen=True)

    id: str
    medication_name: str
    dosage: str
    frequency: Frequency
    schedule_times: list[str] = Field(
        default_factory=list, description="Time-of-day slots in 24h HH:MM format"
    )
    is_active: bool = True
    start_date: datetime
    end_date: datetime | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def expected_doses_per_day(self) -> int:
        return self.frequency.doses_per_day


class MedicationAdherence(BaseModel):
    """One expected dose occurrence and what happened to it."""

    model_config = ConfigDict(frozen=True)

    id: str
    schedule_id: str
    medication_name: str
    scheduled_time: datetime
    taken_time: datetime | None = None
    status: AdherenceStatus = AdherenceStatus.PENDING
    skip_reason: str | None = None
    notes: str | None = None


class RecentMedication(BaseModel):
    """Lightweight view of a recently taken medication for timing checks."""

    model_config = ConfigDict(frozen=True)

    name: str
    timestamp: datetime
    dosage: str | None = None


class Pattern(BaseModel):
    """A heuristic, human-readable hypothesis about symptom behaviour."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: Confidence
    type: PatternType
    metadata: dict[str, Any] | None = None


class TimingHint(BaseModel):
    """A rule-table warning about medication and context timing."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    confidence: Confidence
    message: str
    window: str | None = None


class TrendPoint(BaseModel):
    """Average severity for one calendar day."""

    model_config = ConfigDict(frozen=True)

    date: str = Field(description="yyyy-mm-dd in the reference clock's zone")
    avg_severity: float = Field(ge=0.0, le=10.0)


class TopSymptom(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    count: int = Field(gt=0)
    avg_severity: float


class MissedByTimeOfDay(BaseModel):
    morning: int = 0
    afternoon: int = 0
    evening: int = 0
    night: int = 0


class AdherenceMetrics(BaseModel):
    """Dose-level statistics for one schedule over a trailing window."""

    adherence_percentage: int = Field(ge=0)
    total_doses: int = Field(ge=0)
    taken_doses: int = Field(ge=0)
    missed_doses: int = Field(ge=0)
    skipped_doses: int = Field(ge=0)
    timing_consistency_minutes: int | None = None
    missed_by_time_of_day: MissedByTimeOfDay = Field(default_factory=MissedByTimeOfDay)
    missed_by_weekday: dict[str, int] = Field(default_factory=dict)
    skip_reasons: dict[str, int] = Field(default_factory=dict)


class DueDose(BaseModel):
    """A schedule slot due today that has not been acted on yet."""

    schedule: MedicationSchedule
    scheduled_time: datetime
    adherence: MedicationAdherence | None = None


class ScheduleAdherence(BaseModel):
    """Adherence metrics and observations for one active schedule."""

    schedule: MedicationSchedule
    metrics: AdherenceMetrics
    insights: list[str] = Field(default_factory=list)


class InsightReport(BaseModel):
    """Everything the presentation layer renders for a visit or summary."""

    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    trend: list[TrendPoint]
    top_symptoms: list[TopSymptom]
    patterns: list[Pattern] = Field(min_length=1)
    timing_hints: list[TimingHint] = Field(default_factory=list)
    recent_tags: list[str] = Field(default_factory=list)
    recent_medications: list[MedicationLog] = Field(default_factory=list)
    adherence: list[ScheduleAdherence] = Field(default_factory=list)
    analysis_duration_seconds: float = Field(ge=0.0)


def severity_label(value: int) -> str:
    """Plain-language label for a 0-10 severity score."""
    if value == 0:
        return "None"
    if value <= 2:
        return "Mild"
    if value <= 4:
        return "Moderate"
    if value <= 6:
        return "Significant"
    if value <= 8:
        return "Severe"
    return "Critical"
