"""Health metrics aggregation and insight engine.

This package contains the domain models and the services that turn raw health
records into per-day buckets, per-category summaries and rule-based insights,
isolated from storage and UI concerns for easy testing and reasoning.
"""
