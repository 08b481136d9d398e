"""
In-memory record store.

Implements the RecordStore protocol over plain dictionaries, one table per
category, keyed the same way as the hosted tables (``activities``,
``nutrition_logs``, ...). Used for local runs, demos and tests.
"""

import asyncio
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import structlog

from healthboard.domain.errors import CategoryUnavailable, Unauthorized
from healthboard.domain.models import Category, Window
from healthboard.services.category_fetcher import RawRecord, Result

logger = structlog.get_logger(__name__)


def _parse_timestamp(raw: RawRecord, category: Category) -> datetime | None:
    value: Any = raw.get(category.timestamp_field, raw.get("timestamp"))
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class InMemoryRecordStore:
    """
    Dictionary-backed record store with optional simulated latency and outages.

    Rows whose timestamp cannot be read are still returned: judging them is
    the normalizer's job, not the store's.
    """

    def __init__(
        self,
        latency_seconds: float = 0.0,
        unavailable: Iterable[Category] = (),
    ) -> None:
        self.latency_seconds = latency_seconds
        self.unavailable: set[Category] = set(unavailable)
        self._tables: dict[str, dict[str, RawRecord]] = {
            category.table_name: {} for category in Category
        }
        self.logger = logger.bind(component="in_memory_record_store")

    def mark_unavailable(self, category: Category, unavailable: bool = True) -> None:
        if unavailable:
            self.unavailable.add(category)
        else:
            self.unavailable.discard(category)

    def _check_access(self, user_id: str, category: Category) -> CategoryUnavailable | None:
        if not user_id:
            return Unauthorized(category, "no authenticated user")
        if category in self.unavailable:
            return CategoryUnavailable(category, f"table {category.table_name} is unavailable")
        return None

    async def fetch_category(
        self, user_id: str, category: Category, window: Window | None = None
    ) -> Result[list[RawRecord], CategoryUnavailable]:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)

        error = self._check_access(user_id, category)
        if error is not None:
            return Result.err(error)

        rows = [
            dict(row)
            for row in self._tables[category.table_name].values()
            if row.get("user_id") == user_id
        ]
        if window is not None:
            # Only the lower bound is applied here, like a ``>= start`` query
            rows = [
                row
                for row in rows
                if (ts := _parse_timestamp(row, category)) is None or ts >= window.start
            ]

        parsed = [(row, _parse_timestamp(row, category)) for row in rows]
        ordered = sorted((p for p in parsed if p[1] is not None), key=lambda p: p[1])
        unreadable = [p for p in parsed if p[1] is None]

        self.logger.debug("rows_fetched", table=category.table_name, count=len(rows))
        return Result.ok([row for row, _ in ordered + unreadable])

    async def insert_record(
        self, user_id: str, category: Category, payload: RawRecord
    ) -> Result[str, CategoryUnavailable]:
        error = self._check_access(user_id, category)
        if error is not None:
            return Result.err(error)

        record_id = str(payload.get("id") or uuid.uuid4())
        self._tables[category.table_name][record_id] = {
            **payload,
            "id": record_id,
            "user_id": user_id,
            "created_at": datetime.now(UTC).isoformat(),
        }
        return Result.ok(record_id)

    async def delete_record(
        self, user_id: str, category: Category, record_id: str
    ) -> Result[bool, CategoryUnavailable]:
        error = self._check_access(user_id, category)
        if error is not None:
            return Result.err(error)

        table = self._tables[category.table_name]
        row = table.get(record_id)
        if row is None or row.get("user_id") != user_id:
            return Result.ok(False)
        del table[record_id]
        return Result.ok(True)

    def count(self, category: Category, user_id: str | None = None) -> int:
        rows = self._tables[category.table_name].values()
        return sum(1 for row in rows if user_id is None or row.get("user_id") == user_id)
