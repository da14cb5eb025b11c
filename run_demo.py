"""
Demo of the full insight pipeline over a synthetic month of journal entries.

This script:
1. Loads and prints the configuration
2. Seeds an in-memory Entry Store with symptoms, medication logs and a schedule
3. Builds an insight report
4. Renders trend, top symptoms, patterns, timing hints and adherence

Run with: uv run python run_demo.py
"""

import asyncio
import random
from datetime import datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.memory.store import InMemoryEntryStore
from insights.config import get_config
from insights.domain.models import (
    AdherenceStatus,
    Frequency,
    InsightReport,
    MedicationAdherence,
    MedicationLog,
    MedicationSchedule,
    Symptom,
    severity_label,
)
from insights.services.report import InsightReportService
from insights.services.timeline import local_now

console = Console()


async def seed_store(store: InMemoryEntryStore, now: datetime, seed: int = 7) -> None:
    """Fill the store with a month that has a few deliberate patterns in it."""
    rng = random.Random(seed)
    entry_id = 0

    def next_id(prefix: str) -> str:
        nonlocal entry_id
        entry_id += 1
        return f"{prefix}-{entry_id}"

    for day in range(30, -1, -1):
        morning = (now - timedelta(days=day)).replace(hour=8, minute=30, second=0, microsecond=0)
        evening = morning.replace(hour=19)
        if morning > now:
            continue
        weekend = morning.weekday() >= 5
        # Slowly worsening headaches, worse on weekdays
        base = 3 + (30 - day) // 6

        await store.add_symptom(
            Symptom(
                id=next_id("sym"),
                name="headache",
                severity=min(10, base + (0 if weekend else 2) + rng.randint(0, 1)),
                timestamp=evening if evening <= now else morning,
            )
        )

        if day % 3 == 0:
            # Dairy at breakfast, bloating and nausea 18 hours later
            await store.add_symptom(
                Symptom(
                    id=next_id("sym"),
                    name="fatigue",
                    severity=2,
                    timestamp=morning,
                    tags=frozenset({"dairy", "breakfast"}),
                )
            )
            for name in ("bloating", "nausea"):
                at = morning + timedelta(hours=18)
                if at <= now:
                    await store.add_symptom(
                        Symptom(id=next_id("sym"), name=name, severity=7, timestamp=at)
                    )

    await store.add_symptom(
        Symptom(
            id=next_id("sym"),
            name="reflux",
            severity=4,
            timestamp=now - timedelta(hours=1),
            tags=frozenset({"coffee", "meal"}),
        )
    )

    await store.add_med(
        MedicationLog(id=next_id("med"), name="Iron", timestamp=now - timedelta(hours=2))
    )
    await store.add_med(
        MedicationLog(id=next_id("med"), name="Ibuprofen", timestamp=now - timedelta(hours=3))
    )

    schedule = MedicationSchedule(
        id="sched-metformin",
        medication_name="Metformin",
        dosage="500mg",
        frequency=Frequency.TWICE_DAILY,
        schedule_times=["08:00", "20:00"],
        start_date=now - timedelta(days=60),
    )
    await store.save_schedule(schedule)

    for day in range(30, 0, -1):
        for hour in (8, 20):
            scheduled = (now - timedelta(days=day)).replace(
                hour=hour, minute=0, second=0, microsecond=0
            )
            roll = rng.random()
            if roll < 0.8:
                status = AdherenceStatus.TAKEN
                taken = scheduled + timedelta(minutes=rng.randint(-20, 40))
            elif roll < 0.9:
                status, taken = AdherenceStatus.SKIPPED, None
            else:
                status, taken = AdherenceStatus.MISSED, None
            await store.log_adherence(
                MedicationAdherence(
                    id=next_id("adh"),
                    schedule_id=schedule.id,
                    medication_name=schedule.medication_name,
                    scheduled_time=scheduled,
                    taken_time=taken,
                    status=status,
                    skip_reason="felt nauseous" if status is AdherenceStatus.SKIPPED else None,
                )
            )


def render_report(report: InsightReport) -> None:
    """Print every section of the report."""
    trend_table = Table(title="Severity Trend (last 14 days)")
    trend_table.add_column("Date", style="cyan")
    trend_table.add_column("Avg", style="green", justify="right")
    trend_table.add_column("", style="magenta")
    for point in report.trend[-14:]:
        bar = "█" * round(point.avg_severity)
        trend_table.add_row(point.date, f"{point.avg_severity:.2f}", bar)
    console.print(trend_table)

    top_table = Table(title="Top Symptoms")
    top_table.add_column("Symptom", style="cyan")
    top_table.add_column("Count", justify="right")
    top_table.add_column("Avg Severity", justify="right")
    top_table.add_column("Label", style="yellow")
    for top in report.top_symptoms:
        top_table.add_row(
            top.name,
            str(top.count),
            f"{top.avg_severity:.2f}",
            severity_label(round(top.avg_severity)),
        )
    console.print(top_table)

    confidence_style = {"High": "bold red", "Medium": "yellow", "Low": "dim"}
    console.print(Panel("🔍 Patterns", style="blue"))
    for pattern in report.patterns:
        console.print(
            f"[{confidence_style[pattern.confidence.value]}]{pattern.confidence.value}[/] "
            f"({pattern.type.value}) {pattern.text}"
        )

    console.print(Panel(f"⏱️  Timing Hints (tags: {', '.join(report.recent_tags) or 'none'})"))
    if not report.timing_hints:
        console.print("No timing conflicts for recent medications", style="green")
    for hint in report.timing_hints:
        console.print(f"• {hint.message} [dim]({hint.rule_id}, {hint.window})[/]")

    for entry in report.adherence:
        metrics = entry.metrics
        table = Table(title=f"Adherence: {entry.schedule.medication_name} {entry.schedule.dosage}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Adherence", f"{metrics.adherence_percentage}%")
        table.add_row(
            "Doses",
            f"{metrics.taken_doses} taken / {metrics.missed_doses} missed / "
            f"{metrics.skipped_doses} skipped of {metrics.total_doses}",
        )
        table.add_row(
            "Timing spread",
            "n/a"
            if metrics.timing_consistency_minutes is None
            else f"±{metrics.timing_consistency_minutes} min",
        )
        table.add_row("Skip reasons", ", ".join(metrics.skip_reasons) or "none")
        console.print(table)
        for insight in entry.insights:
            console.print(f"💡 {insight}", style="green")

    console.print(f"\n⏲️  Analysis took {report.analysis_duration_seconds * 1000:.1f} ms")


async def run_demo() -> None:
    console.print(Panel("🩺 Symptom Insights - Demo", style="bold blue"))

    config = get_config()
    console.print(
        f"Environment: {config.environment} | trend days: {config.trend.days} | "
        f"lag window: {config.patterns.tag_lag_window_hours} | "
        f"adherence window: {config.adherence.window_days}d"
    )

    now = local_now()
    store = InMemoryEntryStore("demo")
    await seed_store(store, now)

    report = await InsightReportService(store, config=config).build_report(now=now)
    render_report(report)

    due = await store.get_todays_due_medications(now=now)
    if due:
        console.print(Panel("💊 Due Today", style="blue"))
        for dose in due:
            console.print(
                f"{dose.scheduled_time:%H:%M} {dose.schedule.medication_name} "
                f"{dose.schedule.dosage}"
            )


if __name__ == "__main__":
    try:
        asyncio.run(run_demo())
    except KeyboardInterrupt:
        console.print("\n👋 Demo stopped by user", style="yellow")
