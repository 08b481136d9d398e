"""
Time-window filtering and per-day bucketing.

Buckets are zero-filled: a window of N days always produces N buckets in
ascending order, so charts keep their continuity on days without data.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from healthboard.domain.errors import InvalidWindow
from healthboard.domain.models import Bucket, Window

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_DAYS: tuple[int, ...] = (7, 30, 90)


@dataclass(frozen=True)
class FilterResult:
    records: list[Any]
    missing_timestamp: int = 0


@dataclass(frozen=True)
class WindowSlice:
    """Filtered records of one category together with their day buckets."""

    records: list[Any]
    buckets: list[Bucket]
    missing_timestamp: int = 0


def make_window(
    days: int,
    now: datetime | None = None,
    timezone: str = "UTC",
    allowed: Sequence[int] = DEFAULT_WINDOW_DAYS,
) -> Window:
    """
    Build the trailing window a caller asked for.

    Raises:
        InvalidWindow: ``days`` is not one of the allowed window lengths.
        ValueError: ``timezone`` is not a known IANA zone.
    """
    allowed = tuple(allowed)
    if isinstance(days, bool) or not isinstance(days, int) or days not in allowed:
        raise InvalidWindow(days, allowed)
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone '{timezone}'. Use IANA timezone identifiers.") from e

    return Window.trailing(days, now or datetime.now(UTC), timezone)


def _timestamp_of(record: Any) -> datetime | None:
    return getattr(record, "timestamp", None)


def filter_records(records: Iterable[Any], window: Window) -> FilterResult:
    """Keep records with ``start <= timestamp < end``, preserving input order."""
    kept: list[Any] = []
    missing = 0

    for record in records:
        timestamp = _timestamp_of(record)
        if timestamp is None:
            missing += 1
            continue
        if window.contains(timestamp):
            kept.append(record)

    if missing:
        logger.warning("records_without_timestamp_excluded", count=missing)
    return FilterResult(records=kept, missing_timestamp=missing)


def bucket_records(records: Iterable[Any], window: Window) -> list[Bucket]:
    """Group in-window records by local calendar day, one bucket per window day."""
    by_day: defaultdict[date, list[Any]] = defaultdict(list)
    for record in records:
        timestamp = _timestamp_of(record)
        if timestamp is None or not window.contains(timestamp):
            continue
        by_day[window.local_date(timestamp)].append(record)

    return [Bucket(day=day, records=tuple(by_day.get(day, ()))) for day in window.calendar_days()]


def slice_window(records: Iterable[Any], window: Window) -> WindowSlice:
    filtered = filter_records(records, window)
    return WindowSlice(
        records=filtered.records,
        buckets=bucket_records(filtered.records, window),
        missing_timestamp=filtered.missing_timestamp,
    )
