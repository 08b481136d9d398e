"""
Derived statistics for a window of health records.

Statistics that cannot be computed are ``None`` rather than zero: an empty
category has no average mood, which is different from a mood of 0. Explicit
totals are the exception and start at zero.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from healthboard.domain.models import Bucket, Category, Insight, Window


class FieldStats(BaseModel):
    """Statistics of one numeric field over the records that carry it."""

    model_config = ConfigDict(frozen=True)

    count: int = Field(default=0, ge=0, description="Records contributing a value")
    total: float = 0.0
    average: float | None = None
    minimum: float | None = None
    maximum: float | None = None
    latest: float | None = None


class CategorySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    entry_count: int = Field(default=0, ge=0)
    first_at: datetime | None = None
    last_at: datetime | None = None
    stats: dict[str, FieldStats] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.entry_count == 0


class ActivitySummary(CategorySummary):
    category: Category = Category.ACTIVITY
    total_calories_burned: float = 0.0
    average_calories_burned: float | None = None
    total_duration_minutes: float = 0.0
    average_heart_rate: float | None = None
    peak_heart_rate: float | None = None
    calories_by_type: dict[str, float] = Field(default_factory=dict)


class NutritionSummary(CategorySummary):
    category: Category = Category.NUTRITION
    total_calories: float = 0.0
    total_protein: float = 0.0
    total_carbohydrates: float = 0.0
    total_fats: float = 0.0
    average_calories: float | None = None


class MoodSummary(CategorySummary):
    category: Category = Category.MOOD
    average_mood: float | None = None
    average_energy: float | None = None
    average_stress: float | None = None


class WaterSummary(CategorySummary):
    category: Category = Category.WATER
    total_volume_ml: float = 0.0
    average_volume_ml: float | None = None
    latest_volume_ml: float | None = None
    volume_by_drink_type: dict[str, float] = Field(default_factory=dict)


class VitalsSummary(CategorySummary):
    """Most recent value of each vital sign in the window."""

    category: Category = Category.VITALS
    heart_rate: float | None = None
    blood_pressure_systolic: float | None = None
    blood_pressure_diastolic: float | None = None
    temperature: float | None = None
    oxygen_saturation: float | None = None
    respiratory_rate: float | None = None


class MeasurementSummary(CategorySummary):
    """Most recent value of each body measurement in the window."""

    category: Category = Category.MEASUREMENT
    weight: float | None = None
    body_fat_percentage: float | None = None
    chest: float | None = None
    waist: float | None = None
    hips: float | None = None
    biceps: float | None = None
    thighs: float | None = None
    calves: float | None = None


class WindowSummaries(BaseModel):
    """Per-category summaries for one window; unavailable categories are empty."""

    model_config = ConfigDict(frozen=True)

    activity: ActivitySummary = Field(default_factory=ActivitySummary)
    nutrition: NutritionSummary = Field(default_factory=NutritionSummary)
    mood: MoodSummary = Field(default_factory=MoodSummary)
    water: WaterSummary = Field(default_factory=WaterSummary)
    vitals: VitalsSummary = Field(default_factory=VitalsSummary)
    measurement: MeasurementSummary = Field(default_factory=MeasurementSummary)

    def for_category(self, category: Category) -> CategorySummary:
        summary: CategorySummary = getattr(self, category.value)
        return summary

    @property
    def is_empty(self) -> bool:
        return all(self.for_category(category).is_empty for category in Category)


class SeriesPoint(BaseModel):
    """One chart point: a bucket day and its reduced value."""

    model_config = ConfigDict(frozen=True)

    day: date
    label: str
    value: float | None = None


class DashboardResult(BaseModel):
    """Everything the presenter needs to render a dashboard for one window."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    window: Window
    buckets: dict[Category, list[Bucket]]
    summaries: WindowSummaries
    insights: list[Insight]
    unavailable_categories: frozenset[Category] = frozenset()
    unavailable_reasons: dict[Category, str] = Field(default_factory=dict)
    rejected_counts: dict[Category, int] = Field(default_factory=dict)
    missing_timestamp_counts: dict[Category, int] = Field(
        default_factory=dict,
        description=(
            "Records dropped by the window filter for lacking a timestamp. Normalized"
            " records always carry one, so only records that skip normalization count here;"
            " rows with a missing timestamp are rejected earlier and land in rejected_counts."
        ),
    )

    @property
    def has_insights(self) -> bool:
        return bool(self.insights)
