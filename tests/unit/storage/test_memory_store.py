"""
Tests for the in-memory Entry Store.

Testing philosophy:
- Exercise the store through its async protocol methods only
- Every read is a snapshot; mutating it must not touch the store
"""

from datetime import datetime, timedelta

import pytest

from adapters.memory.store import InMemoryEntryStore
from conftest import NOW, make_symptom
from insights.domain.models import (
    AdherenceStatus,
    Frequency,
    MedicationAdherence,
    MedicationLog,
    MedicationSchedule,
)
from insights.services.entry_store import DuplicateEntryError, EntryNotFoundError


@pytest.fixture
def store() -> InMemoryEntryStore:
    return InMemoryEntryStore("test")


def _med(med_id: str, name: str, hours_ago: float) -> MedicationLog:
    return MedicationLog(id=med_id, name=name, timestamp=NOW - timedelta(hours=hours_ago))


def _schedule(
    schedule_id: str, times: list[str], is_active: bool = True
) -> MedicationSchedule:
    return MedicationSchedule(
        id=schedule_id,
        medication_name=f"med-{schedule_id}",
        dosage="10mg",
        frequency=Frequency.DAILY if len(times) == 1 else Frequency.TWICE_DAILY,
        schedule_times=times,
        is_active=is_active,
        start_date=NOW - timedelta(days=60),
    )


def _adherence(
    record_id: str,
    schedule_id: str,
    hour: int,
    days_ago: int = 0,
    status: AdherenceStatus = AdherenceStatus.TAKEN,
) -> MedicationAdherence:
    scheduled = (NOW - timedelta(days=days_ago)).replace(hour=hour, minute=0)
    return MedicationAdherence(
        id=record_id,
        schedule_id=schedule_id,
        medication_name=f"med-{schedule_id}",
        scheduled_time=scheduled,
        status=status,
    )


class TestSymptoms:
    async def test_add_update_delete(self, store: InMemoryEntryStore) -> None:
        symptom = make_symptom("headache", 4, NOW)
        await store.add_symptom(symptom)

        await store.update_symptom(symptom.model_copy(update={"severity": 7}))
        assert [s.severity for s in await store.get_all_symptoms()] == [7]

        await store.delete_symptom(symptom.id)
        assert await store.get_all_symptoms() == []

    async def test_duplicate_id_is_rejected(self, store: InMemoryEntryStore) -> None:
        symptom = make_symptom("headache", 4, NOW)
        await store.add_symptom(symptom)

        with pytest.raises(DuplicateEntryError):
            await store.add_symptom(symptom)

    async def test_missing_entries_raise(self, store: InMemoryEntryStore) -> None:
        with pytest.raises(EntryNotFoundError):
            await store.update_symptom(make_symptom("headache", 4, NOW))
        with pytest.raises(EntryNotFoundError):
            await store.delete_symptom("nope")

    async def test_reads_are_snapshots(self, store: InMemoryEntryStore) -> None:
        await store.add_symptom(make_symptom("headache", 4, NOW))

        snapshot = await store.get_all_symptoms()
        snapshot.clear()

        assert len(await store.get_all_symptoms()) == 1


class TestMedicationLogs:
    async def test_range_is_inclusive(self, store: InMemoryEntryStore) -> None:
        for med in (_med("m1", "Iron", 1), _med("m2", "Iron", 5), _med("m3", "Iron", 10)):
            await store.add_med(med)

        found = await store.get_meds_in_range(NOW - timedelta(hours=5), NOW - timedelta(hours=1))

        assert sorted(m.id for m in found) == ["m1", "m2"]

    async def test_range_accepts_bounds_with_mixed_awareness(
        self, store: InMemoryEntryStore
    ) -> None:
        for med in (_med("m1", "Iron", 1), _med("m2", "Iron", 5), _med("m3", "Iron", 10)):
            await store.add_med(med)

        found = await store.get_meds_in_range(NOW - timedelta(hours=5), datetime(2100, 1, 1))

        assert sorted(m.id for m in found) == ["m1", "m2"]

    async def test_recent_meds(self, store: InMemoryEntryStore) -> None:
        await store.add_med(_med("m1", "Iron", 2))
        await store.add_med(_med("m2", "Ibuprofen", 30))

        recent = await store.get_recent_meds(hours=24, now=NOW)

        assert [m.id for m in recent] == ["m1"]

    async def test_update_and_delete(self, store: InMemoryEntryStore) -> None:
        med = _med("m1", "Iron", 2)
        await store.add_med(med)

        await store.update_med(med.model_copy(update={"dose": "65mg"}))
        assert (await store.get_all_meds())[0].dose == "65mg"

        await store.delete_med("m1")
        with pytest.raises(EntryNotFoundError):
            await store.delete_med("m1")


class TestSchedulesAndAdherence:
    async def test_save_schedule_upserts(self, store: InMemoryEntryStore) -> None:
        schedule = _schedule("s1", ["08:00"])
        await store.save_schedule(schedule)
        await store.save_schedule(schedule.model_copy(update={"dosage": "20mg"}))

        schedules = await store.get_all_schedules()

        assert [s.dosage for s in schedules] == ["20mg"]

    async def test_active_schedules(self, store: InMemoryEntryStore) -> None:
        await store.save_schedule(_schedule("s1", ["08:00"]))
        await store.save_schedule(_schedule("s2", ["08:00"], is_active=False))

        assert [s.id for s in await store.get_active_schedules()] == ["s1"]

        await store.delete_schedule("s2")
        assert len(await store.get_all_schedules()) == 1

    async def test_adherence_by_schedule_window(self, store: InMemoryEntryStore) -> None:
        await store.log_adherence(_adherence("a1", "s1", 8, days_ago=1))
        await store.log_adherence(_adherence("a2", "s1", 8, days_ago=40))
        await store.log_adherence(_adherence("a3", "s2", 8, days_ago=1))

        records = await store.get_adherence_by_schedule("s1", days=30, now=NOW)

        assert [r.id for r in records] == ["a1"]

    async def test_adherence_for_time(self, store: InMemoryEntryStore) -> None:
        record = _adherence("a1", "s1", 8)
        await store.log_adherence(record)

        assert await store.get_adherence_for_time("s1", record.scheduled_time) == record
        assert await store.get_adherence_for_time("s2", record.scheduled_time) is None

    async def test_update_and_delete_adherence(self, store: InMemoryEntryStore) -> None:
        record = _adherence("a1", "s1", 8, status=AdherenceStatus.PENDING)
        await store.log_adherence(record)

        await store.update_adherence(record.model_copy(update={"status": AdherenceStatus.TAKEN}))
        assert (await store.get_all_adherence())[0].status is AdherenceStatus.TAKEN

        await store.delete_adherence("a1")
        assert await store.get_all_adherence() == []
        with pytest.raises(EntryNotFoundError):
            await store.update_adherence(record)

    async def test_todays_due_medications(self, store: InMemoryEntryStore) -> None:
        await store.save_schedule(_schedule("s1", ["08:00", "20:00"]))
        await store.save_schedule(_schedule("s2", ["09:00"]))
        await store.save_schedule(_schedule("s3", ["10:00"], is_active=False))
        await store.log_adherence(_adherence("a1", "s1", 8))
        pending = _adherence("a2", "s2", 9, status=AdherenceStatus.PENDING)
        await store.log_adherence(pending)

        due = await store.get_todays_due_medications(now=NOW)

        assert [(d.schedule.id, d.scheduled_time.hour) for d in due] == [("s1", 20), ("s2", 9)]
        assert due[0].adherence is None
        assert due[1].adherence == pending
