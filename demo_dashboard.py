"""
End-to-end walkthrough of the dashboard pipeline.

This script:
1. Loads and validates configuration
2. Seeds an in-memory store with sample history
3. Computes dashboards for each allowed window
4. Simulates a category outage and shows partial degradation
5. Logs and deletes an entry through the service

Run with: uv run python demo_dashboard.py
"""

import asyncio
import random
from datetime import UTC, datetime

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.records import InMemoryRecordStore, seed_sample_data
from healthboard.config import get_config, print_config_summary, validate_config
from healthboard.domain.models import Category, Severity
from healthboard.domain.summaries import DashboardResult
from healthboard.services.aggregator import daily_series
from healthboard.services.dashboard import DashboardService
from healthboard.services.insights import NO_INSIGHTS_MESSAGE

console = Console()

DEMO_USER = "demo-user"


def _fmt(value: float | None, unit: str = "") -> str:
    return "--" if value is None else f"{value:,.1f}{unit}"


def render_dashboard(result: DashboardResult) -> None:
    summaries = result.summaries

    table = Table(title=f"Last {result.window.days} days")
    table.add_column("Category", style="cyan")
    table.add_column("Entries", justify="right")
    table.add_column("Highlights")

    table.add_row(
        "activity",
        str(summaries.activity.entry_count),
        f"{_fmt(summaries.activity.total_calories_burned, ' kcal')} burned, "
        f"avg {_fmt(summaries.activity.average_calories_burned, ' kcal')}",
    )
    table.add_row(
        "nutrition",
        str(summaries.nutrition.entry_count),
        f"{_fmt(summaries.nutrition.total_protein, ' g')} protein",
    )
    table.add_row(
        "mood",
        str(summaries.mood.entry_count),
        f"mood {_fmt(summaries.mood.average_mood)}, "
        f"energy {_fmt(summaries.mood.average_energy)}, "
        f"stress {_fmt(summaries.mood.average_stress)}",
    )
    table.add_row(
        "water",
        str(summaries.water.entry_count),
        f"{_fmt(summaries.water.total_volume_ml, ' ml')} total",
    )
    table.add_row(
        "vitals",
        str(summaries.vitals.entry_count),
        f"{_fmt(summaries.vitals.heart_rate, ' bpm')}, "
        f"{_fmt(summaries.vitals.blood_pressure_systolic)}/"
        f"{_fmt(summaries.vitals.blood_pressure_diastolic)}",
    )
    table.add_row(
        "measurement",
        str(summaries.measurement.entry_count),
        f"weight {_fmt(summaries.measurement.weight, ' kg')}",
    )
    console.print(table)

    calories = daily_series(result.buckets[Category.ACTIVITY], "calories_burned")
    console.print(
        "Daily calories: " + ", ".join(f"{p.label}={p.value:.0f}" for p in calories[-7:])
    )

    if result.unavailable_categories:
        missing = ", ".join(sorted(c.value for c in result.unavailable_categories))
        console.print(f"[yellow]Unavailable categories: {missing}[/yellow]")

    if not result.insights:
        console.print(Panel(NO_INSIGHTS_MESSAGE, style="dim"))
    for insight in result.insights:
        style = "green" if insight.severity is Severity.POSITIVE else "yellow"
        console.print(Panel(insight.message, title=insight.rule, style=style))


async def main() -> None:
    console.print(Panel("Configuration", style="blue"))
    validate_config()
    print_config_summary()
    config = get_config()

    store = InMemoryRecordStore(latency_seconds=0.05)
    service = DashboardService(store, config)
    now = datetime.now(UTC)

    console.print(Panel("Seeding sample data", style="blue"))
    counts = await seed_sample_data(store, DEMO_USER, now=now, rng=random.Random(42))
    console.print({category.value: count for category, count in counts.items()})

    for days in config.dashboard.allowed_window_days:
        result = await service.compute_dashboard(DEMO_USER, days, now=now)
        render_dashboard(result)

    console.print(Panel("Nutrition store outage", style="blue"))
    store.mark_unavailable(Category.NUTRITION)
    render_dashboard(await service.compute_dashboard(DEMO_USER, 7, now=now))
    store.mark_unavailable(Category.NUTRITION, False)

    console.print(Panel("Logging and deleting an entry", style="blue"))
    logged = await service.log_entry(DEMO_USER, Category.WATER, {"amount_ml": 750}, now=now)
    if logged.is_ok():
        record_id = logged.unwrap()
        console.print(f"Logged water entry {record_id}")
        deleted = await service.delete_entry(DEMO_USER, Category.WATER, record_id)
        console.print(f"Deleted: {deleted.unwrap_or(False)}")
    else:
        console.print(f"[red]Entry rejected: {logged.unwrap_err()}[/red]")


if __name__ == "__main__":
    asyncio.run(main())
