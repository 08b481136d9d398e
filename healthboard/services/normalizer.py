"""
Category normalizer: raw store rows to typed, timestamp-resolved records.

Each category keeps its timestamp under its own key; the schema models in
``healthboard.domain.models`` resolve it to one canonical UTC ``timestamp``.
Failures are reported per record so the rest of a batch still normalizes.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError

from healthboard.domain.errors import MalformedRecord
from healthboard.domain.models import CATEGORY_SPECS, Category, HealthEntry
from healthboard.services.category_fetcher import Result

logger = structlog.get_logger(__name__)


@dataclass
class NormalizedBatch:
    """Outcome of normalizing one category's raw records."""

    category: Category
    records: list[HealthEntry] = field(default_factory=list)
    rejected: list[MalformedRecord] = field(default_factory=list)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)


def _describe(error: ValidationError) -> str:
    problems = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "record"
        problems.append(f"{location}: {detail['msg']}")
    return "; ".join(problems)


def normalize_record(
    raw: Mapping[str, Any], category: Category, index: int | None = None
) -> Result[HealthEntry, MalformedRecord]:
    """Validate one raw record against its category schema."""
    if not isinstance(raw, Mapping):
        return Result.err(
            MalformedRecord(category, f"expected a mapping, got {type(raw).__name__}", index)
        )

    raw_id = raw.get("id", raw.get("record_id"))
    record_id = None if raw_id is None else str(raw_id)
    model = CATEGORY_SPECS[category].model
    try:
        return Result.ok(model.model_validate(dict(raw)))
    except ValidationError as e:
        return Result.err(MalformedRecord(category, _describe(e), index, record_id))


def normalize_batch(raws: Iterable[Mapping[str, Any]], category: Category) -> NormalizedBatch:
    """Normalize a whole category; bad records are collected, never raised."""
    batch = NormalizedBatch(category=category)

    for index, raw in enumerate(raws):
        result = normalize_record(raw, category, index)
        if result.is_ok():
            batch.records.append(result.unwrap())
        else:
            batch.rejected.append(result.unwrap_err())

    if batch.rejected:
        logger.warning(
            "records_rejected",
            category=category.value,
            rejected=batch.rejected_count,
            accepted=len(batch.records),
            reasons=[str(error) for error in batch.rejected[:5]],
        )
    return batch
