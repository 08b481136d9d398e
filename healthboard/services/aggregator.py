"""
Per-category summary statistics.

Averages only count records that actually carry a value for the field: a
workout logged without calories does not drag the calorie average down. With
no contributing records an average is ``None``, never 0 or NaN.
"""

from collections import defaultdict
from collections.abc import Callable, Sequence
from typing import Any, Literal

import structlog

from healthboard.domain.models import (
    CATEGORY_SPECS,
    ActivityEntry,
    Bucket,
    Category,
    HealthEntry,
    WaterEntry,
)
from healthboard.domain.summaries import (
    ActivitySummary,
    CategorySummary,
    FieldStats,
    MeasurementSummary,
    MoodSummary,
    NutritionSummary,
    SeriesPoint,
    VitalsSummary,
    WaterSummary,
)

logger = structlog.get_logger(__name__)

SeriesReducer = Literal["sum", "average", "latest"]


def _present_values(records: Sequence[Any], field: str) -> list[float]:
    values = []
    for record in records:
        value = getattr(record, field, None)
        if value is not None:
            values.append(float(value))
    return values


def _chronological(records: Sequence[Any]) -> list[Any]:
    # sorted() is stable, so records sharing a timestamp keep their input order
    return sorted(records, key=lambda record: record.timestamp)


def field_sum(records: Sequence[Any], field: str) -> float:
    return float(sum(_present_values(records, field)))


def field_average(records: Sequence[Any], field: str) -> float | None:
    values = _present_values(records, field)
    if not values:
        return None
    return sum(values) / len(values)


def field_latest(records: Sequence[Any], field: str) -> float | None:
    """Value of ``field`` from the chronologically last record that has it."""
    for record in reversed(_chronological(records)):
        value = getattr(record, field, None)
        if value is not None:
            return float(value)
    return None


def field_stats(records: Sequence[Any], field: str) -> FieldStats:
    values = _present_values(records, field)
    if not values:
        return FieldStats()
    return FieldStats(
        count=len(values),
        total=sum(values),
        average=sum(values) / len(values),
        minimum=min(values),
        maximum=max(values),
        latest=field_latest(records, field),
    )


def _base_fields(records: Sequence[HealthEntry], category: Category) -> dict[str, Any]:
    timestamps = [record.timestamp for record in records]
    return {
        "entry_count": len(records),
        "first_at": min(timestamps) if timestamps else None,
        "last_at": max(timestamps) if timestamps else None,
        "stats": {
            name: field_stats(records, name) for name in CATEGORY_SPECS[category].numeric_fields
        },
    }


def summarize_activity(records: Sequence[ActivityEntry]) -> ActivitySummary:
    calories_by_type: defaultdict[str, float] = defaultdict(float)
    for record in records:
        if record.calories_burned is not None:
            calories_by_type[record.activity_type.value] += record.calories_burned

    peak_values = _present_values(records, "heart_rate_max") or _present_values(
        records, "heart_rate_avg"
    )
    return ActivitySummary(
        **_base_fields(records, Category.ACTIVITY),
        total_calories_burned=field_sum(records, "calories_burned"),
        average_calories_burned=field_average(records, "calories_burned"),
        total_duration_minutes=field_sum(records, "duration_minutes"),
        average_heart_rate=field_average(records, "heart_rate_avg"),
        peak_heart_rate=max(peak_values) if peak_values else None,
        calories_by_type=dict(calories_by_type),
    )


def summarize_nutrition(records: Sequence[HealthEntry]) -> NutritionSummary:
    return NutritionSummary(
        **_base_fields(records, Category.NUTRITION),
        total_calories=field_sum(records, "calories"),
        total_protein=field_sum(records, "protein"),
        total_carbohydrates=field_sum(records, "carbohydrates"),
        total_fats=field_sum(records, "fats"),
        average_calories=field_average(records, "calories"),
    )


def summarize_mood(records: Sequence[HealthEntry]) -> MoodSummary:
    return MoodSummary(
        **_base_fields(records, Category.MOOD),
        average_mood=field_average(records, "mood_rating"),
        average_energy=field_average(records, "energy_level"),
        average_stress=field_average(records, "stress_level"),
    )


def summarize_water(records: Sequence[WaterEntry]) -> WaterSummary:
    volume_by_drink_type: defaultdict[str, float] = defaultdict(float)
    for record in records:
        volume_by_drink_type[record.drink_type.value] += record.amount_ml

    return WaterSummary(
        **_base_fields(records, Category.WATER),
        total_volume_ml=field_sum(records, "amount_ml"),
        average_volume_ml=field_average(records, "amount_ml"),
        latest_volume_ml=field_latest(records, "amount_ml"),
        volume_by_drink_type=dict(volume_by_drink_type),
    )


def _snapshot(records: Sequence[HealthEntry], category: Category) -> dict[str, float | None]:
    return {name: field_latest(records, name) for name in CATEGORY_SPECS[category].numeric_fields}


def summarize_vitals(records: Sequence[HealthEntry]) -> VitalsSummary:
    return VitalsSummary(
        **_base_fields(records, Category.VITALS), **_snapshot(records, Category.VITALS)
    )


def summarize_measurements(records: Sequence[HealthEntry]) -> MeasurementSummary:
    return MeasurementSummary(
        **_base_fields(records, Category.MEASUREMENT),
        **_snapshot(records, Category.MEASUREMENT),
    )


SUMMARIZERS: dict[Category, Callable[[Sequence[Any]], CategorySummary]] = {
    Category.ACTIVITY: summarize_activity,
    Category.NUTRITION: summarize_nutrition,
    Category.MOOD: summarize_mood,
    Category.WATER: summarize_water,
    Category.VITALS: summarize_vitals,
    Category.MEASUREMENT: summarize_measurements,
}


def summarize_category(category: Category, records: Sequence[HealthEntry]) -> CategorySummary:
    summary = SUMMARIZERS[category](records)
    logger.debug("category_summarized", category=category.value, entry_count=summary.entry_count)
    return summary


def daily_series(
    buckets: Sequence[Bucket], field: str, how: SeriesReducer = "sum"
) -> list[SeriesPoint]:
    """
    Reduce each bucket to one chart point.

    ``sum`` reports 0.0 for empty days; ``average`` and ``latest`` report None.
    """
    reducers: dict[str, Callable[[Sequence[Any], str], float | None]] = {
        "sum": field_sum,
        "average": field_average,
        "latest": field_latest,
    }
    if how not in reducers:
        raise ValueError(f"Unknown series reducer: {how}")
    reduce = reducers[how]

    return [
        SeriesPoint(day=bucket.day, label=bucket.label, value=reduce(bucket.records, field))
        for bucket in buckets
    ]
