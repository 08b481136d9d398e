"""
Tests for the concurrent category fetcher.

Key patterns:
- Protocol test doubles instead of mocks
- One failing category never affects the others
- Timing assertions for the concurrent fan-out
"""

import asyncio

import pytest
from conftest import NOW, FakeRecordStore, raw_water

from healthboard.domain.errors import CategoryUnavailable, Unauthorized
from healthboard.domain.models import Category
from healthboard.services.category_fetcher import (
    CategoryFetcher,
    CategoryFetcherConfig,
    Result,
)
from healthboard.services.windowing import make_window


class TestResult:
    """Test the Result type used for expected failures."""

    def test_result_ok_creates_successful_result(self) -> None:
        result: Result[list[dict], CategoryUnavailable] = Result.ok([])

        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == []

    def test_result_error_creates_failed_result(self) -> None:
        error = CategoryUnavailable(Category.MOOD, "table offline")
        result: Result[bool, CategoryUnavailable] = Result.err(error)

        assert result.is_err()
        assert result.unwrap_err() is error
        assert result.unwrap_or(False) is False

    def test_unwrap_raises_on_error_result(self) -> None:
        result: Result[str, CategoryUnavailable] = Result.err(
            CategoryUnavailable(Category.WATER, "table offline")
        )

        with pytest.raises(CategoryUnavailable, match="table offline"):
            result.unwrap()

    def test_unwrap_err_on_ok_raises(self) -> None:
        with pytest.raises(ValueError):
            Result.ok("rec-1").unwrap_err()

    def test_result_needs_exactly_one_side(self) -> None:
        with pytest.raises(ValueError):
            Result()
        with pytest.raises(ValueError):
            Result(value=1, error=RuntimeError("both"))


class TestCategoryFetcherConfig:
    def test_defaults_cover_every_category(self) -> None:
        config = CategoryFetcherConfig()

        assert config.max_concurrent_fetches == len(Category)
        assert config.timeout_seconds == 10.0

    def test_invalid_config_raises_validation_error(self) -> None:
        with pytest.raises(ValueError):
            CategoryFetcherConfig(timeout_seconds=0)
        with pytest.raises(ValueError):
            CategoryFetcherConfig(max_concurrent_fetches=0)


class TestCategoryFetcher:
    async def test_fetches_every_category(self) -> None:
        store = FakeRecordStore(rows={Category.WATER: [raw_water(250), raw_water(750)]})

        results = await CategoryFetcher(store).fetch_all("user-1")

        assert set(results) == set(Category)
        assert all(result.is_ok() for result in results.values())
        assert len(results[Category.WATER].unwrap()) == 2
        assert results[Category.MOOD].unwrap() == []

    async def test_window_is_passed_to_the_store(self) -> None:
        store = FakeRecordStore()
        window = make_window(7, now=NOW)

        await CategoryFetcher(store).fetch_all("user-1", window, categories=[Category.MOOD])

        assert store.fetch_calls == [("user-1", Category.MOOD, window)]

    @pytest.mark.parametrize(
        "failing",
        [
            {Category.NUTRITION},
            {Category.ACTIVITY, Category.VITALS},
            set(Category),
        ],
    )
    async def test_failures_are_isolated_per_category(self, failing: set[Category]) -> None:
        store = FakeRecordStore(failing={category: "table offline" for category in failing})

        results = await CategoryFetcher(store).fetch_all("user-1")

        assert {c for c, r in results.items() if r.is_err()} == failing
        for category in failing:
            error = results[category].unwrap_err()
            assert error.category is category
            assert error.reason == "table offline"

    async def test_timeout_becomes_category_unavailable(self) -> None:
        store = FakeRecordStore(delays={Category.VITALS: 1.0})
        fetcher = CategoryFetcher(store, CategoryFetcherConfig(timeout_seconds=0.05))

        results = await fetcher.fetch_all("user-1")

        error = results[Category.VITALS].unwrap_err()
        assert isinstance(error, CategoryUnavailable)
        assert "timed out" in error.reason
        assert results[Category.WATER].is_ok()

    async def test_raising_store_becomes_category_unavailable(self) -> None:
        store = FakeRecordStore(crashing={Category.MEASUREMENT})

        results = await CategoryFetcher(store).fetch_all("user-1")

        error = results[Category.MEASUREMENT].unwrap_err()
        assert "connection reset" in error.reason
        assert sum(result.is_ok() for result in results.values()) == len(Category) - 1

    async def test_unauthorized_is_reported_as_unavailable(self) -> None:
        class LockedStore(FakeRecordStore):
            async def fetch_category(self, user_id, category, window=None):  # type: ignore
                return Result.err(Unauthorized(category, "session expired"))

        results = await CategoryFetcher(LockedStore()).fetch_all("user-1")

        assert all(isinstance(r.unwrap_err(), Unauthorized) for r in results.values())
        assert all(isinstance(r.unwrap_err(), CategoryUnavailable) for r in results.values())

    async def test_duplicate_categories_are_fetched_once(self) -> None:
        store = FakeRecordStore()

        results = await CategoryFetcher(store).fetch_all(
            "user-1", categories=[Category.MOOD, Category.MOOD]
        )

        assert list(results) == [Category.MOOD]
        assert len(store.fetch_calls) == 1


class TestPerformanceRegression:
    """Timing baselines for the concurrent fan-out."""

    @pytest.mark.performance
    async def test_fetches_run_concurrently(self) -> None:
        store = FakeRecordStore(delays={category: 0.1 for category in Category})

        start_time = asyncio.get_running_loop().time()
        results = await CategoryFetcher(store).fetch_all("user-1")
        duration = asyncio.get_running_loop().time() - start_time

        # Six sequential fetches would take at least 0.6s
        assert duration < 0.4, f"Expected concurrent execution, took {duration:.2f}s"
        assert all(result.is_ok() for result in results.values())

    @pytest.mark.performance
    async def test_concurrency_limit_is_respected(self) -> None:
        store = FakeRecordStore(delays={category: 0.1 for category in Category})
        fetcher = CategoryFetcher(store, CategoryFetcherConfig(max_concurrent_fetches=2))

        start_time = asyncio.get_running_loop().time()
        await fetcher.fetch_all("user-1")
        duration = asyncio.get_running_loop().time() - start_time

        # Three rounds of two fetches
        assert duration >= 0.29
