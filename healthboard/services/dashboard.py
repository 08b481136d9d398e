"""
Dashboard service combining fetch, normalization, windowing, aggregation and insights.

Pipeline for one request:
1. Validate the requested window (caller errors stop here, before any fetch)
2. Fetch all categories concurrently from the record store
3. Normalize each category, skipping malformed records
4. Filter to the window and bucket per day
5. Summarize each category and evaluate insight rules

Categories degrade independently: a category that could not be fetched is
summarized as empty and reported in ``unavailable_categories``.
"""

import time
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from healthboard.config import AppConfig, get_config
from healthboard.domain.errors import CategoryUnavailable, MalformedRecord
from healthboard.domain.models import CATEGORY_SPECS, Bucket, Category, HealthEntry, Window
from healthboard.domain.summaries import CategorySummary, DashboardResult, WindowSummaries
from healthboard.services.aggregator import summarize_category
from healthboard.services.category_fetcher import (
    CategoryFetcher,
    CategoryFetcherConfig,
    RecordStore,
    Result,
)
from healthboard.services.insights import InsightEngine
from healthboard.services.normalizer import normalize_batch, normalize_record
from healthboard.services.windowing import make_window, slice_window

logger = structlog.get_logger(__name__)


class DashboardService:
    """
    Computes dashboards for a user and passes entry writes through to the store.

    All request state (user, window, clock) is passed in explicitly; the
    service holds only its collaborators and configuration.
    """

    def __init__(
        self,
        store: RecordStore,
        config: AppConfig | None = None,
        engine: InsightEngine | None = None,
    ) -> None:
        self.config = config or get_config()
        self.store = store
        self.logger = logger.bind(component="dashboard_service")

        self.fetcher = CategoryFetcher(
            store,
            CategoryFetcherConfig(
                timeout_seconds=self.config.fetch.timeout_seconds,
                max_concurrent_fetches=self.config.fetch.max_concurrent_fetches,
            ),
        )
        self.engine = engine or InsightEngine(thresholds=self.config.insights)

    def window_for(self, window_days: int | None = None, now: datetime | None = None) -> Window:
        return make_window(
            window_days if window_days is not None else self.config.dashboard.default_window_days,
            now=now,
            timezone=self.config.dashboard.timezone,
            allowed=self.config.dashboard.allowed_window_days,
        )

    async def compute_dashboard(
        self,
        user_id: str,
        window_days: int | None = None,
        now: datetime | None = None,
    ) -> DashboardResult:
        """
        Build buckets, summaries and insights for the trailing window.

        Raises:
            InvalidWindow: ``window_days`` is not an allowed window length.
        """
        start_time = time.perf_counter()
        window = self.window_for(window_days, now)

        fetched = await self.fetcher.fetch_all(user_id, window)

        buckets: dict[Category, list[Bucket]] = {}
        summaries: dict[str, CategorySummary] = {}
        unavailable: dict[Category, str] = {}
        rejected_counts: dict[Category, int] = {}
        missing_counts: dict[Category, int] = {}

        for category in Category:
            result = fetched[category]
            records: list[HealthEntry] = []

            if result.is_err():
                error = result.unwrap_err()
                unavailable[category] = (
                    error.reason if isinstance(error, CategoryUnavailable) else str(error)
                )
            else:
                batch = normalize_batch(result.unwrap(), category)
                records = batch.records
                rejected_counts[category] = batch.rejected_count

            window_slice = slice_window(records, window)
            buckets[category] = window_slice.buckets
            missing_counts[category] = window_slice.missing_timestamp
            summaries[category.value] = summarize_category(category, window_slice.records)

        window_summaries = WindowSummaries(**summaries)
        insights = self.engine.evaluate(window_summaries)

        self.logger.info(
            "dashboard_computed",
            user_id=user_id,
            window_days=window.days,
            insights=len(insights),
            unavailable_categories=sorted(c.value for c in unavailable),
            rejected_records=sum(rejected_counts.values()),
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )

        return DashboardResult(
            user_id=user_id,
            window=window,
            buckets=buckets,
            summaries=window_summaries,
            insights=insights,
            unavailable_categories=frozenset(unavailable),
            unavailable_reasons=unavailable,
            rejected_counts=rejected_counts,
            missing_timestamp_counts=missing_counts,
        )

    async def log_entry(
        self,
        user_id: str,
        category: Category,
        payload: Mapping[str, Any],
        now: datetime | None = None,
    ) -> Result[str, MalformedRecord | CategoryUnavailable]:
        """
        Validate and store a new entry, stamping it with ``now`` when it has no timestamp.

        The payload is checked against the category schema before it reaches
        the store, so the store never receives a record the dashboard would reject.
        """
        data = dict(payload)
        data["user_id"] = user_id
        timestamp_field = category.timestamp_field
        if not any(key in data for key in CATEGORY_SPECS[category].timestamp_keys):
            data[timestamp_field] = (now or datetime.now(UTC)).isoformat()

        validated = normalize_record(data, category)
        if validated.is_err():
            self.logger.warning(
                "entry_rejected", category=category.value, error=str(validated.unwrap_err())
            )
            return Result.err(validated.unwrap_err())

        result = await self.store.insert_record(user_id, category, data)
        if result.is_ok():
            self.logger.info("entry_logged", category=category.value, record_id=result.unwrap())
        else:
            self.logger.warning(
                "entry_insert_failed", category=category.value, error=str(result.unwrap_err())
            )
        return result

    async def delete_entry(
        self, user_id: str, category: Category, record_id: str
    ) -> Result[bool, CategoryUnavailable]:
        result = await self.store.delete_record(user_id, category, record_id)
        if result.is_ok():
            self.logger.info(
                "entry_deleted",
                category=category.value,
                record_id=record_id,
                existed=result.unwrap(),
            )
        return result
