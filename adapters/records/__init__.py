"""Record store implementations and sample data."""

from .memory import InMemoryRecordStore
from .sample_data import seed_sample_data

__all__ = ["InMemoryRecordStore", "seed_sample_data"]
