"""
Concurrent retrieval of raw records from the record store.

Key patterns:
- Protocol-based dependency injection for the record store
- Generic Result type for expected failures
- Structured concurrency with asyncio.TaskGroup (fan-out, then fan-in)
- Per-category error boundaries: one failing category never sinks the others
"""

import asyncio
import time
from collections.abc import Iterable
from typing import Any, Generic, Protocol, TypeVar

import structlog
from pydantic import BaseModel, Field

from healthboard.domain.errors import CategoryUnavailable
from healthboard.domain.models import Category, Window

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)

RawRecord = dict[str, Any]


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    A malformed record or an unreachable category is business as usual for a
    dashboard, so those paths return a Result instead of raising.
    """

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore

    def unwrap_or(self, default: ValueT) -> ValueT:
        return self._value if self._error is None else default  # type: ignore

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


class RecordStore(Protocol):
    """
    Where raw health records live (a hosted database in production).

    Expected failures (unreachable backend, refused access) come back as
    ``Result.err``; the fetcher also guards against implementations that raise.
    """

    async def fetch_category(
        self, user_id: str, category: Category, window: Window | None = None
    ) -> Result[list[RawRecord], CategoryUnavailable]:
        """Return the user's raw records for one category, optionally pre-filtered."""
        ...

    async def insert_record(
        self, user_id: str, category: Category, payload: RawRecord
    ) -> Result[str, CategoryUnavailable]:
        """Store one record and return its id."""
        ...

    async def delete_record(
        self, user_id: str, category: Category, record_id: str
    ) -> Result[bool, CategoryUnavailable]:
        """Delete one record; the value tells whether it existed."""
        ...


class CategoryFetcherConfig(BaseModel):
    """Limits applied to one round of category fetches."""

    timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Timeout for a single category fetch in seconds."
    )
    max_concurrent_fetches: int = Field(
        default=len(Category), gt=0, description="Max number of category fetches in flight."
    )


class CategoryFetcher:
    """
    Fans out one fetch per category and joins the results.

    Design principles:
    - Graceful degradation (a failed category is reported, not raised)
    - Bounded concurrency and per-fetch timeouts
    - Observable (structured logging for every failure)
    """

    def __init__(self, store: RecordStore, config: CategoryFetcherConfig | None = None) -> None:
        self.store = store
        self.config = config or CategoryFetcherConfig()
        self.logger = logger.bind(component="category_fetcher")

    async def fetch_all(
        self,
        user_id: str,
        window: Window | None = None,
        categories: Iterable[Category] = tuple(Category),
    ) -> dict[Category, Result[list[RawRecord], CategoryUnavailable]]:
        """Fetch every requested category concurrently; never raises for a single category."""
        start_time = time.perf_counter()
        semaphore = asyncio.Semaphore(self.config.max_concurrent_fetches)
        requested = list(dict.fromkeys(categories))

        async with asyncio.TaskGroup() as task_group:
            tasks = {
                category: task_group.create_task(
                    self._fetch_one(semaphore, user_id, category, window),
                    name=f"fetch-{category.value}",
                )
                for category in requested
            }

        results = {category: task.result() for category, task in tasks.items()}
        failed = sorted(c.value for c, r in results.items() if r.is_err())

        self.logger.info(
            "category_fetch_completed",
            user_id=user_id,
            successful_categories=len(results) - len(failed),
            failed_categories=failed,
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )
        return results

    async def _fetch_one(
        self,
        semaphore: asyncio.Semaphore,
        user_id: str,
        category: Category,
        window: Window | None,
    ) -> Result[list[RawRecord], CategoryUnavailable]:
        async with semaphore:
            try:
                result = await asyncio.wait_for(
                    self.store.fetch_category(user_id, category, window),
                    timeout=self.config.timeout_seconds,
                )
            except TimeoutError:
                self.logger.warning(
                    "category_fetch_timeout",
                    category=category.value,
                    timeout_seconds=self.config.timeout_seconds,
                )
                return Result.err(
                    CategoryUnavailable(
                        category, f"timed out after {self.config.timeout_seconds}s"
                    )
                )
            except Exception as e:
                self.logger.exception(
                    "unexpected_category_fetch_error", category=category.value, error=str(e)
                )
                return Result.err(CategoryUnavailable(category, str(e) or type(e).__name__))

        if result.is_err():
            self.logger.warning(
                "category_fetch_failed",
                category=category.value,
                error=str(result.unwrap_err()),
            )
            return result

        records = result.unwrap()
        self.logger.debug("category_fetched", category=category.value, count=len(records))
        return Result.ok(list(records))
