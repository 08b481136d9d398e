"""
Sample data for trying the dashboard without logging weeks of entries.

Generates the same shape of history as the hosted "add sample data" action:
one to three workouts, three to five meals, one mood check-in, four to eight
drinks and one vitals reading per day, plus a body measurement on roughly
three days out of ten.
"""

import random
from datetime import UTC, datetime, timedelta

import structlog

from healthboard.domain.models import ActivityType, Category, DrinkType, MealType
from healthboard.services.category_fetcher import RawRecord, RecordStore

logger = structlog.get_logger(__name__)

FOODS = [
    {"food_name": "Oatmeal with Berries", "calories": 350, "protein": 12, "carbohydrates": 60},
    {"food_name": "Chicken Salad", "calories": 400, "protein": 35, "carbohydrates": 20},
    {"food_name": "Salmon with Quinoa", "calories": 550, "protein": 40, "carbohydrates": 45},
    {"food_name": "Greek Yogurt", "calories": 150, "protein": 15, "carbohydrates": 10},
    {"food_name": "Turkey Sandwich", "calories": 450, "protein": 28, "carbohydrates": 48},
]


def generate_sample_day(day: datetime, rng: random.Random) -> list[tuple[Category, RawRecord]]:
    """Raw records for one day, timestamped at or before ``day``."""
    rows: list[tuple[Category, RawRecord]] = []

    for _ in range(rng.randint(1, 3)):
        rows.append(
            (
                Category.ACTIVITY,
                {
                    "activity_type": rng.choice(list(ActivityType)).value,
                    "duration": f"{rng.randint(15, 120)} minutes",
                    "calories_burned": rng.randint(100, 800),
                    "heart_rate_avg": rng.randint(60, 150),
                    "date_performed": day.isoformat(),
                },
            )
        )

    meal_count = rng.randint(3, 5)
    for i in range(meal_count):
        food = rng.choice(FOODS)
        rows.append(
            (
                Category.NUTRITION,
                {
                    **food,
                    "meal_type": rng.choice(list(MealType)).value,
                    "meal_time": (day - timedelta(hours=12 * i / meal_count)).isoformat(),
                },
            )
        )

    rows.append(
        (
            Category.MOOD,
            {
                "mood_rating": rng.randint(2, 5),
                "energy_level": rng.randint(2, 5),
                "stress_level": rng.randint(1, 4),
                "logged_at": day.isoformat(),
            },
        )
    )

    drink_count = rng.randint(4, 8)
    for i in range(drink_count):
        rows.append(
            (
                Category.WATER,
                {
                    "amount_ml": rng.randint(200, 500),
                    "drink_type": (DrinkType.TEA if rng.random() > 0.8 else DrinkType.WATER).value,
                    "consumed_at": (day - timedelta(hours=12 * i / drink_count)).isoformat(),
                },
            )
        )

    rows.append(
        (
            Category.VITALS,
            {
                "heart_rate": rng.randint(60, 100),
                "blood_pressure_systolic": rng.randint(110, 130),
                "blood_pressure_diastolic": rng.randint(70, 85),
                "temperature": round(rng.uniform(36.1, 37.2), 1),
                "measured_at": day.isoformat(),
            },
        )
    )

    if rng.random() > 0.7:
        rows.append(
            (
                Category.MEASUREMENT,
                {
                    "weight": round(rng.uniform(70, 72), 1),
                    "body_fat_percentage": round(rng.uniform(15, 18), 1),
                    "measured_at": day.isoformat(),
                },
            )
        )

    return rows


async def seed_sample_data(
    store: RecordStore,
    user_id: str,
    days: int = 20,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> dict[Category, int]:
    """
    Insert ``days`` days of sample history for ``user_id``.

    Returns:
        dict[Category, int]: number of records inserted per category.
    """
    now = now or datetime.now(UTC)
    rng = rng or random.Random()
    inserted = {category: 0 for category in Category}

    for offset in range(days):
        # Windows exclude their end instant, so today's rows sit just before now
        day = now - timedelta(days=offset, minutes=5)
        for category, payload in generate_sample_day(day, rng):
            result = await store.insert_record(user_id, category, payload)
            if result.is_err():
                logger.warning(
                    "sample_record_insert_failed",
                    category=category.value,
                    error=str(result.unwrap_err()),
                )
                continue
            inserted[category] += 1

    logger.info(
        "sample_data_seeded",
        user_id=user_id,
        days=days,
        records={category.value: count for category, count in inserted.items()},
    )
    return inserted
