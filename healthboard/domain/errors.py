"""
Error taxonomy for the aggregation pipeline.

Only InvalidWindow is raised at callers. MalformedRecord and CategoryUnavailable
are expected failures and travel inside Result values so that one bad record or
one failing category never aborts a dashboard computation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from healthboard.domain.models import Category


class HealthDataError(Exception):
    """Base class for every error raised by the health data pipeline."""


class MalformedRecord(HealthDataError):
    """A raw record that could not be normalized."""

    def __init__(
        self,
        category: Category,
        reason: str,
        index: int | None = None,
        record_id: str | None = None,
    ) -> None:
        self.category = category
        self.reason = reason
        self.index = index
        self.record_id = record_id
        location = f" #{index}" if index is not None else ""
        super().__init__(f"Malformed {category.value} record{location}: {reason}")


class CategoryUnavailable(HealthDataError):
    """A category whose records could not be fetched."""

    def __init__(self, category: Category, reason: str) -> None:
        self.category = category
        self.reason = reason
        super().__init__(f"{category.value} records unavailable: {reason}")


class Unauthorized(CategoryUnavailable):
    """The record store refused access to a category for this user."""


class InvalidWindow(HealthDataError, ValueError):
    """Unsupported window length requested by the caller."""

    def __init__(self, days: int, allowed: tuple[int, ...]) -> None:
        self.days = days
        self.allowed = allowed
        choices = ", ".join(str(d) for d in allowed)
        super().__init__(f"Unsupported window of {days} days (allowed: {choices})")
