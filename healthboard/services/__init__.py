"""
Core services for the application.

This package contains the pipeline stages: concurrent category fetching,
normalization, windowing, aggregation and insight evaluation. The dashboard
service that wires them together lives in ``healthboard.services.dashboard``.
"""

from .aggregator import daily_series, summarize_category
from .category_fetcher import CategoryFetcher, CategoryFetcherConfig, RecordStore, Result
from .insights import DEFAULT_RULES, NO_INSIGHTS_MESSAGE, InsightEngine, InsightRule
from .normalizer import NormalizedBatch, normalize_batch, normalize_record
from .windowing import bucket_records, filter_records, make_window, slice_window

__all__ = [
    "CategoryFetcher",
    "CategoryFetcherConfig",
    "RecordStore",
    "Result",
    "NormalizedBatch",
    "normalize_batch",
    "normalize_record",
    "make_window",
    "filter_records",
    "bucket_records",
    "slice_window",
    "summarize_category",
    "daily_series",
    "InsightEngine",
    "InsightRule",
    "DEFAULT_RULES",
    "NO_INSIGHTS_MESSAGE",
]
