"""
In-memory Entry Store.

Keeps each record type in a dict keyed by id. Suitable for tests, demos and
as a reference for real storage adapters: every read returns a new list so
callers always work on a snapshot.
"""

from datetime import datetime, time, timedelta

import structlog

from insights.domain.models import (
    AdherenceStatus,
    DueDose,
    MedicationAdherence,
    MedicationLog,
    MedicationSchedule,
    Symptom,
)
from insights.services.entry_store import DuplicateEntryError, EntryNotFoundError
from insights.services.timeline import align, local_now

logger = structlog.get_logger(__name__)


class InMemoryEntryStore:
    """Dict-backed implementation of the EntryStore protocol."""

    def __init__(self, store_name: str = "memory") -> None:
        self.store_name = store_name
        self.logger = logger.bind(component="entry_store", store=store_name)
        self._symptoms: dict[str, Symptom] = {}
        self._meds: dict[str, MedicationLog] = {}
        self._schedules: dict[str, MedicationSchedule] = {}
        self._adherence: dict[str, MedicationAdherence] = {}

    def _insert(self, table: dict, kind: str, record) -> None:
        if record.id in table:
            raise DuplicateEntryError(f"{kind} {record.id} already exists")
        table[record.id] = record
        self.logger.debug("entry_added", kind=kind, entry_id=record.id)

    def _replace(self, table: dict, kind: str, record) -> None:
        if record.id not in table:
            raise EntryNotFoundError(f"{kind} {record.id} not found")
        table[record.id] = record
        self.logger.debug("entry_updated", kind=kind, entry_id=record.id)

    def _remove(self, table: dict, kind: str, entry_id: str) -> None:
        if table.pop(entry_id, None) is None:
            raise EntryNotFoundError(f"{kind} {entry_id} not found")
        self.logger.debug("entry_deleted", kind=kind, entry_id=entry_id)

    # Symptoms

    async def add_symptom(self, symptom: Symptom) -> None:
        self._insert(self._symptoms, "symptom", symptom)

    async def update_symptom(self, symptom: Symptom) -> None:
        self._replace(self._symptoms, "symptom", symptom)

    async def delete_symptom(self, symptom_id: str) -> None:
        self._remove(self._symptoms, "symptom", symptom_id)

    async def get_all_symptoms(self) -> list[Symptom]:
        return list(self._symptoms.values())

    # Medication logs

    async def add_med(self, med: MedicationLog) -> None:
        self._insert(self._meds, "medication_log", med)

    async def update_med(self, med: MedicationLog) -> None:
        self._replace(self._meds, "medication_log", med)

    async def delete_med(self, med_id: str) -> None:
        self._remove(self._meds, "medication_log", med_id)

    async def get_all_meds(self) -> list[MedicationLog]:
        return list(self._meds.values())

    async def get_meds_in_range(self, start: datetime, end: datetime) -> list[MedicationLog]:
        """Medication logs with ``start <= timestamp <= end``."""
        return [
            m
            for m in self._meds.values()
            if start <= align(m.timestamp, start) and align(m.timestamp, end) <= end
        ]

    async def get_recent_meds(
        self, hours: int = 24, now: datetime | None = None
    ) -> list[MedicationLog]:
        now = now or local_now()
        cutoff = now - timedelta(hours=hours)
        return [m for m in self._meds.values() if align(m.timestamp, now) >= cutoff]

    # Schedules

    async def save_schedule(self, schedule: MedicationSchedule) -> None:
        """Insert or replace a schedule."""
        self._schedules[schedule.id] = schedule
        self.logger.debug("entry_saved", kind="schedule", entry_id=schedule.id)

    async def delete_schedule(self, schedule_id: str) -> None:
        self._remove(self._schedules, "schedule", schedule_id)

    async def get_all_schedules(self) -> list[MedicationSchedule]:
        return list(self._schedules.values())

    async def get_active_schedules(self) -> list[MedicationSchedule]:
        return [s for s in self._schedules.values() if s.is_active]

    # Adherence

    async def log_adherence(self, record: MedicationAdherence) -> None:
        """Insert or replace an adherence record."""
        self._adherence[record.id] = record
        self.logger.debug("entry_saved", kind="adherence", entry_id=record.id)

    async def update_adherence(self, record: MedicationAdherence) -> None:
        self._replace(self._adherence, "adherence", record)

    async def delete_adherence(self, record_id: str) -> None:
        self._remove(self._adherence, "adherence", record_id)

    async def get_all_adherence(self) -> list[MedicationAdherence]:
        return list(self._adherence.values())

    async def get_adherence_by_schedule(
        self, schedule_id: str, days: int = 30, now: datetime | None = None
    ) -> list[MedicationAdherence]:
        now = now or local_now()
        cutoff = now - timedelta(days=days)
        return [
            r
            for r in self._adherence.values()
            if r.schedule_id == schedule_id and align(r.scheduled_time, now) >= cutoff
        ]

    async def get_adherence_for_time(
        self, schedule_id: str, scheduled_time: datetime
    ) -> MedicationAdherence | None:
        for record in self._adherence.values():
            if (
                record.schedule_id == schedule_id
                and align(record.scheduled_time, scheduled_time) == scheduled_time
            ):
                return record
        return None

    async def get_todays_due_medications(self, now: datetime | None = None) -> list[DueDose]:
        """Active schedule slots for today with no record yet, or a pending one."""
        now = now or local_now()
        due: list[DueDose] = []
        for schedule in await self.get_active_schedules():
            for slot in schedule.schedule_times:
                hour, minute = (int(part) for part in slot.split(":"))
                scheduled_time = datetime.combine(now.date(), time(hour, minute), now.tzinfo)
                record = await self.get_adherence_for_time(schedule.id, scheduled_time)
                if record is None or record.status is AdherenceStatus.PENDING:
                    due.append(
                        DueDose(schedule=schedule, scheduled_time=scheduled_time, adherence=record)
                    )
        return due
