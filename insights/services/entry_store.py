"""
Entry Store contract.

The insight services only need a record store that hands back complete
snapshots. Concrete stores live under ``adapters``; anything satisfying this
protocol structurally can be passed to ``InsightReportService``.
"""

from datetime import datetime
from typing import Protocol

from insights.domain.models import (
    DueDose,
    MedicationAdherence,
    MedicationLog,
    MedicationSchedule,
    Symptom,
)


class EntryStoreError(Exception):
    """Base class for record store failures."""


class DuplicateEntryError(EntryStoreError):
    """Raised when inserting a record whose id already exists."""


class EntryNotFoundError(EntryStoreError):
    """Raised when updating or deleting a record that does not exist."""


class EntryStore(Protocol):
    """
    Protocol for the persistence collaborator.

    Why Protocol over ABC: Structural typing, easier mocking, less coupling.
    Design: async-first, every read returns a fresh snapshot list.
    """

    # Symptoms
    async def add_symptom(self, symptom: Symptom) -> None: ...

    async def update_symptom(self, symptom: Symptom) -> None: ...

    async def delete_symptom(self, symptom_id: str) -> None: ...

    async def get_all_symptoms(self) -> list[Symptom]: ...

    # Medication logs
    async def add_med(self, med: MedicationLog) -> None: ...

    async def update_med(self, med: MedicationLog) -> None: ...

    async def delete_med(self, med_id: str) -> None: ...

    async def get_all_meds(self) -> list[MedicationLog]: ...

    async def get_meds_in_range(self, start: datetime, end: datetime) -> list[MedicationLog]: ...

    async def get_recent_meds(
        self, hours: int = 24, now: datetime | None = None
    ) -> list[MedicationLog]: ...

    # Schedules
    async def save_schedule(self, schedule: MedicationSchedule) -> None: ...

    async def delete_schedule(self, schedule_id: str) -> None: ...

    async def get_all_schedules(self) -> list[MedicationSchedule]: ...

    async def get_active_schedules(self) -> list[MedicationSchedule]: ...

    # Adherence
    async def log_adherence(self, record: MedicationAdherence) -> None: ...

    async def update_adherence(self, record: MedicationAdherence) -> None: ...

    async def delete_adherence(self, record_id: str) -> None: ...

    async def get_all_adherence(self) -> list[MedicationAdherence]: ...

    async def get_adherence_by_schedule(
        self, schedule_id: str, days: int = 30, now: datetime | None = None
    ) -> list[MedicationAdherence]: ...

    async def get_adherence_for_time(
        self, schedule_id: str, scheduled_time: datetime
    ) -> MedicationAdherence | None: ...

    async def get_todays_due_medications(self, now: datetime | None = None) -> list[DueDose]: ...
