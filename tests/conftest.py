"""Shared fixtures: a fixed clock, raw-record builders and a fake record store."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from healthboard.domain.errors import CategoryUnavailable
from healthboard.domain.models import Category, Window
from healthboard.services.category_fetcher import Result

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def at(days_ago: float = 0, hours: float = 0) -> str:
    """ISO timestamp relative to the fixed test clock."""
    return (NOW - timedelta(days=days_ago, hours=hours)).isoformat()


def raw_activity(calories: int | None = 320, when: str | None = None, **extra: Any) -> dict:
    row: dict[str, Any] = {
        "activity_type": "Running",
        "duration": "45 minutes",
        "calories_burned": calories,
        "date_performed": when or at(hours=1),
    }
    row.update(extra)
    return row


def raw_meal(protein: float | None = 20, when: str | None = None, **extra: Any) -> dict:
    row: dict[str, Any] = {
        "meal_type": "Lunch",
        "food_name": "Chicken Salad",
        "calories": 400,
        "protein": protein,
        "meal_time": when or at(hours=1),
    }
    row.update(extra)
    return row


def raw_mood(mood: int = 4, when: str | None = None, **extra: Any) -> dict:
    row: dict[str, Any] = {
        "mood_rating": mood,
        "energy_level": 3,
        "stress_level": 2,
        "logged_at": when or at(hours=1),
    }
    row.update(extra)
    return row


def raw_water(amount_ml: float = 500, when: str | None = None, **extra: Any) -> dict:
    row: dict[str, Any] = {"amount_ml": amount_ml, "consumed_at": when or at(hours=1)}
    row.update(extra)
    return row


def raw_vitals(heart_rate: float | None = 70, when: str | None = None, **extra: Any) -> dict:
    row: dict[str, Any] = {"heart_rate": heart_rate, "measured_at": when or at(hours=1)}
    row.update(extra)
    return row


def raw_measurement(weight: float | None = 71.0, when: str | None = None, **extra: Any) -> dict:
    row: dict[str, Any] = {"weight": weight, "measured_at": when or at(hours=1)}
    row.update(extra)
    return row


@pytest.fixture
def now() -> datetime:
    return NOW


class FakeRecordStore:
    """RecordStore test double with per-category rows, failures, delays and crashes."""

    def __init__(
        self,
        rows: dict[Category, list[dict]] | None = None,
        failing: dict[Category, str] | None = None,
        delays: dict[Category, float] | None = None,
        crashing: set[Category] | None = None,
    ) -> None:
        self.rows = rows or {}
        self.failing = failing or {}
        self.delays = delays or {}
        self.crashing = crashing or set()
        self.fetch_calls: list[tuple[str, Category, Window | None]] = []
        self.inserted: list[tuple[str, Category, dict]] = []

    async def fetch_category(
        self, user_id: str, category: Category, window: Window | None = None
    ) -> Result[list[dict], CategoryUnavailable]:
        self.fetch_calls.append((user_id, category, window))
        if category in self.delays:
            await asyncio.sleep(self.delays[category])
        if category in self.crashing:
            raise ConnectionResetError("connection reset by peer")
        if category in self.failing:
            return Result.err(CategoryUnavailable(category, self.failing[category]))
        return Result.ok(list(self.rows.get(category, [])))

    async def insert_record(
        self, user_id: str, category: Category, payload: dict
    ) -> Result[str, CategoryUnavailable]:
        if category in self.failing:
            return Result.err(CategoryUnavailable(category, self.failing[category]))
        self.inserted.append((user_id, category, payload))
        return Result.ok(f"rec-{len(self.inserted)}")

    async def delete_record(
        self, user_id: str, category: Category, record_id: str
    ) -> Result[bool, CategoryUnavailable]:
        return Result.ok(record_id.startswith("rec-"))
