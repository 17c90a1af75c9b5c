"""
Prometheus metrics for the ingestion pipeline.

Centralize metric definitions here to avoid scattered instrumentation
across adapters.
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    generate_latest,
)

registry = CollectorRegistry()

riot_api_requests_total = Counter(
    "jungle_coach_riot_api_requests_total",
    "Riot API requests by endpoint and status",
    labelnames=("endpoint", "status"),
    registry=registry,
)

cache_lookups_total = Counter(
    "jungle_coach_cache_lookups_total",
    "Cache lookups by endpoint and outcome (hit/miss)",
    labelnames=("endpoint", "outcome"),
    registry=registry,
)

scraped_matches_total = Counter(
    "jungle_coach_scraped_matches_total",
    "Matches processed by the scraper by outcome",
    labelnames=("outcome",),
    registry=registry,
)

sync_records_total = Counter(
    "jungle_coach_sync_records_total",
    "Store sync outcomes by operation and status",
    labelnames=("operation", "status"),
    registry=registry,
)


def mark_riot_request(endpoint: str, status: int | str) -> None:
    riot_api_requests_total.labels(endpoint=endpoint, status=str(status)).inc()


def mark_cache_lookup(endpoint: str, hit: bool) -> None:
    cache_lookups_total.labels(endpoint=endpoint, outcome="hit" if hit else "miss").inc()


def mark_scraped(outcome: str) -> None:
    scraped_matches_total.labels(outcome=outcome).inc()


def mark_sync(operation: str, status: str) -> None:
    sync_records_total.labels(operation=operation, status=status).inc()


def render_latest() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(registry), CONTENT_TYPE_LATEST
