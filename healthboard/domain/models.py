"""
Domain models for personal health records.

Raw records arrive from the record store as loosely typed mappings whose
timestamp lives under a category-specific key (``date_performed``,
``meal_time``, ...). The models below resolve that key to a single canonical
UTC ``timestamp`` and validate the numeric fields, so the rest of the pipeline
only ever sees one shape per category.

They use Pydantic for validation and are frozen: entries are never edited in
place, only created or deleted.
"""

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from enum import Enum
from typing import Annotated, Any, Literal
from zoneinfo import ZoneInfo

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


class Category(str, Enum):
    """The six record categories aggregated by the dashboard."""

    ACTIVITY = "activity"
    NUTRITION = "nutrition"
    MOOD = "mood"
    WATER = "water"
    VITALS = "vitals"
    MEASUREMENT = "measurement"

    @property
    def table_name(self) -> str:
        return CATEGORY_SPECS[self].table_name

    @property
    def timestamp_field(self) -> str:
        return CATEGORY_SPECS[self].timestamp_field


class Severity(str, Enum):
    """Tone of an insight as shown to the user."""

    POSITIVE = "positive"
    CAUTION = "caution"


class ActivityType(str, Enum):
    RUNNING = "Running"
    CYCLING = "Cycling"
    SWIMMING = "Swimming"
    YOGA = "Yoga"
    WEIGHT_TRAINING = "Weight Training"


class MealType(str, Enum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"


class DrinkType(str, Enum):
    WATER = "water"
    TEA = "tea"
    COFFEE = "coffee"


def _match_choice(choices: type[Enum], value: Any) -> Any:
    """Resolve free-text choices such as ``"running"`` to their enum member."""
    if isinstance(value, str):
        folded = value.strip().casefold()
        for member in choices:
            if member.value.casefold() == folded:
                return member
    return value


_CLOCK_DURATION = re.compile(
    r"^\s*(?:(\d+)\s*days?,?\s*)?(\d+):(\d{1,2})(?::(\d{1,2}(?:\.\d+)?))?\s*$", re.IGNORECASE
)
_UNIT_DURATION = re.compile(
    r"(\d+(?:\.\d+)?)\s*(days?|d|hours?|hrs?|h|minutes?|mins?|m|seconds?|secs?|s)(?=\d|\s|,|$)",
    re.IGNORECASE,
)
_MINUTES_PER_UNIT = {"d": 1440.0, "h": 60.0, "m": 1.0, "s": 1.0 / 60.0}


def parse_duration_minutes(value: Any) -> float:
    """
    Convert an elapsed-time value to minutes.

    Accepts bare numbers (already minutes), timedeltas, clock text such as
    ``"01:30:00"`` or ``"1 day 02:00:00"`` (Postgres interval output) and unit
    text such as ``"45 minutes"``, ``"1 hour 15 min"`` or ``"1h30m"``.
    """
    if isinstance(value, bool):
        raise ValueError("duration must be a number or text, not a boolean")
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, timedelta):
        return value.total_seconds() / 60.0
    if not isinstance(value, str):
        raise ValueError(f"unsupported duration value: {value!r}")

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    clock = _CLOCK_DURATION.match(text)
    if clock:
        days, hours, minutes, seconds = clock.groups()
        return (
            int(days or 0) * 1440.0
            + int(hours) * 60.0
            + int(minutes)
            + float(seconds or 0) / 60.0
        )

    parts = _UNIT_DURATION.findall(text)
    if not parts:
        raise ValueError(f"unparsable duration: {value!r}")
    return sum(float(amount) * _MINUTES_PER_UNIT[unit[0].lower()] for amount, unit in parts)


def _timestamp_field(*aliases: str) -> Any:
    return Field(validation_alias=AliasChoices(*aliases, "timestamp"))


class HealthEntry(BaseModel):
    """Fields shared by every normalized record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    record_id: str | None = Field(default=None, validation_alias=AliasChoices("id", "record_id"))
    user_id: str | None = None
    timestamp: datetime

    @field_validator("record_id", "user_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @field_validator("timestamp")
    @classmethod
    def _normalize_to_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are read as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class ActivityEntry(HealthEntry):
    category: Literal[Category.ACTIVITY] = Category.ACTIVITY
    timestamp: datetime = _timestamp_field("date_performed", "performed_at", "performedAt")

    activity_type: ActivityType
    duration_minutes: float = Field(
        ge=0.0, validation_alias=AliasChoices("duration", "duration_minutes")
    )
    distance: float | None = Field(default=None, ge=0.0)
    calories_burned: int | None = Field(default=None, ge=0)
    heart_rate_avg: float | None = Field(default=None, ge=0.0)
    heart_rate_max: float | None = Field(default=None, ge=0.0)
    steps: int | None = Field(default=None, ge=0)
    intensity: str | None = None
    notes: str | None = None

    @field_validator("activity_type", mode="before")
    @classmethod
    def _canonical_activity_type(cls, value: Any) -> Any:
        return _match_choice(ActivityType, value)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> float:
        return parse_duration_minutes(value)


class NutritionEntry(HealthEntry):
    category: Literal[Category.NUTRITION] = Category.NUTRITION
    timestamp: datetime = _timestamp_field("meal_time", "mealTime")

    meal_type: MealType
    food_name: str = Field(min_length=1)
    portion_size: float | None = Field(default=None, ge=0.0)
    calories: float | None = Field(default=None, ge=0.0)
    protein: float | None = Field(default=None, ge=0.0)
    carbohydrates: float | None = Field(default=None, ge=0.0)
    fats: float | None = Field(default=None, ge=0.0)
    fiber: float | None = Field(default=None, ge=0.0)
    sugar: float | None = Field(default=None, ge=0.0)
    sodium: float | None = Field(default=None, ge=0.0)

    @field_validator("meal_type", mode="before")
    @classmethod
    def _canonical_meal_type(cls, value: Any) -> Any:
        return _match_choice(MealType, value)


class MoodEntry(HealthEntry):
    category: Literal[Category.MOOD] = Category.MOOD
    timestamp: datetime = _timestamp_field("logged_at", "loggedAt")

    mood_rating: int = Field(ge=1, le=5)
    energy_level: int = Field(ge=1, le=5)
    stress_level: int = Field(ge=1, le=5)
    notes: str | None = None


class WaterEntry(HealthEntry):
    category: Literal[Category.WATER] = Category.WATER
    timestamp: datetime = _timestamp_field("consumed_at", "consumedAt")

    amount_ml: float = Field(ge=0.0)
    drink_type: DrinkType = DrinkType.WATER

    @field_validator("drink_type", mode="before")
    @classmethod
    def _canonical_drink_type(cls, value: Any) -> Any:
        return _match_choice(DrinkType, value)


class VitalsEntry(HealthEntry):
    category: Literal[Category.VITALS] = Category.VITALS
    timestamp: datetime = _timestamp_field("measured_at", "measuredAt")

    heart_rate: float | None = Field(default=None, ge=0.0)
    blood_pressure_systolic: float | None = Field(default=None, ge=0.0)
    blood_pressure_diastolic: float | None = Field(default=None, ge=0.0)
    temperature: float | None = Field(default=None, ge=0.0)
    oxygen_saturation: float | None = Field(default=None, ge=0.0, le=100.0)
    respiratory_rate: float | None = Field(default=None, ge=0.0)


class MeasurementEntry(HealthEntry):
    category: Literal[Category.MEASUREMENT] = Category.MEASUREMENT
    timestamp: datetime = _timestamp_field("measured_at", "measuredAt")

    weight: float | None = Field(default=None, ge=0.0)
    body_fat_percentage: float | None = Field(default=None, ge=0.0, le=100.0)
    chest: float | None = Field(default=None, ge=0.0)
    waist: float | None = Field(default=None, ge=0.0)
    hips: float | None = Field(default=None, ge=0.0)
    biceps: float | None = Field(default=None, ge=0.0)
    thighs: float | None = Field(default=None, ge=0.0)
    calves: float | None = Field(default=None, ge=0.0)


HealthRecord = Annotated[
    ActivityEntry | NutritionEntry | MoodEntry | WaterEntry | VitalsEntry | MeasurementEntry,
    Field(discriminator="category"),
]


@dataclass(frozen=True)
class CategorySpec:
    """Static description of one category: its schema and where its data lives."""

    category: Category
    model: type[HealthEntry]
    table_name: str
    timestamp_field: str
    numeric_fields: tuple[str, ...]

    @property
    def timestamp_keys(self) -> tuple[str, ...]:
        """Every payload key the schema reads the timestamp from."""
        alias = self.model.model_fields["timestamp"].validation_alias
        if isinstance(alias, AliasChoices):
            return tuple(choice for choice in alias.choices if isinstance(choice, str))
        return (self.timestamp_field, "timestamp")


CATEGORY_SPECS: dict[Category, CategorySpec] = {
    Category.ACTIVITY: CategorySpec(
        category=Category.ACTIVITY,
        model=ActivityEntry,
        table_name="activities",
        timestamp_field="date_performed",
        numeric_fields=(
            "duration_minutes",
            "distance",
            "calories_burned",
            "heart_rate_avg",
            "heart_rate_max",
            "steps",
        ),
    ),
    Category.NUTRITION: CategorySpec(
        category=Category.NUTRITION,
        model=NutritionEntry,
        table_name="nutrition_logs",
        timestamp_field="meal_time",
        numeric_fields=(
            "portion_size",
            "calories",
            "protein",
            "carbohydrates",
            "fats",
            "fiber",
            "sugar",
            "sodium",
        ),
    ),
    Category.MOOD: CategorySpec(
        category=Category.MOOD,
        model=MoodEntry,
        table_name="mood_logs",
        timestamp_field="logged_at",
        numeric_fields=("mood_rating", "energy_level", "stress_level"),
    ),
    Category.WATER: CategorySpec(
        category=Category.WATER,
        model=WaterEntry,
        table_name="water_intake",
        timestamp_field="consumed_at",
        numeric_fields=("amount_ml",),
    ),
    Category.VITALS: CategorySpec(
        category=Category.VITALS,
        model=VitalsEntry,
        table_name="vital_signs",
        timestamp_field="measured_at",
        numeric_fields=(
            "heart_rate",
            "blood_pressure_systolic",
            "blood_pressure_diastolic",
            "temperature",
            "oxygen_saturation",
            "respiratory_rate",
        ),
    ),
    Category.MEASUREMENT: CategorySpec(
        category=Category.MEASUREMENT,
        model=MeasurementEntry,
        table_name="measurements",
        timestamp_field="measured_at",
        numeric_fields=(
            "weight",
            "body_fat_percentage",
            "chest",
            "waist",
            "hips",
            "biceps",
            "thighs",
            "calves",
        ),
    ),
}


class Window(BaseModel):
    """
    Half-open time interval ``[start, end)`` covering ``days`` calendar days.

    Trailing windows start at local midnight, not at ``end - days``: a 7-day
    window ending mid-afternoon covers today plus six whole days, so it can
    span up to one day less than a plain ``now - 7 days`` cutoff.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    days: int = Field(gt=0)
    timezone: str = "UTC"

    @model_validator(mode="after")
    def start_not_after_end(self) -> "Window":
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("window bounds must be timezone-aware")
        if self.start > self.end:
            raise ValueError("window start must not be after its end")
        return self

    @classmethod
    def trailing(cls, days: int, now: datetime, timezone: str = "UTC") -> "Window":
        """
        Window of the last ``days`` calendar days, today included.

        The start is aligned to local midnight of the day ``days - 1`` days
        before today, so every record in the window lands in exactly one of the
        window's ``days`` buckets. Records older than that midnight are
        excluded even when they are less than ``days * 24`` hours old.
        """
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        tz = ZoneInfo(timezone)
        first_day = now.astimezone(tz).date() - timedelta(days=days - 1)
        start = datetime.combine(first_day, time.min, tzinfo=tz)
        return cls(start=start, end=now, days=days, timezone=timezone)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def local_date(self, moment: datetime) -> date:
        return moment.astimezone(self.tz).date()

    def calendar_days(self) -> list[date]:
        first = self.local_date(self.start)
        return [first + timedelta(days=offset) for offset in range(self.days)]


class Bucket(BaseModel):
    """One calendar day of a window with the records logged that day."""

    model_config = ConfigDict(frozen=True)

    day: date
    records: tuple[HealthRecord, ...] = ()

    @property
    def key(self) -> str:
        return self.day.isoformat()

    @property
    def label(self) -> str:
        return f"{self.day:%b} {self.day.day}"

    @property
    def count(self) -> int:
        return len(self.records)


class Insight(BaseModel):
    """Rule-triggered observation shown on the dashboard."""

    model_config = ConfigDict(frozen=True)

    rule: str
    severity: Severity
    message: str
