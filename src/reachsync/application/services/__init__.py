"""Application services - the sync pipeline and chart queries."""

from reachsync.application.services.canonical_sync_service import CanonicalSyncService
from reachsync.application.services.chart_query_service import (
    ChartQueryService,
    resolve_window,
)
from reachsync.application.services.fetch_orchestrator import FetchOrchestrator
from reachsync.application.services.field_normalizer import (
    FieldNormalizer,
    LatestSeriesValue,
    PayloadPath,
)
from reachsync.application.services.metric_history_service import MetricHistoryService
from reachsync.application.services.sync_locks import KeyedLockRegistry
from reachsync.application.services.time_bucket_aggregator import aggregate, bucket_start

__all__ = [
    "CanonicalSyncService",
    "ChartQueryService",
    "FetchOrchestrator",
    "FieldNormalizer",
    "KeyedLockRegistry",
    "LatestSeriesValue",
    "MetricHistoryService",
    "PayloadPath",
    "aggregate",
    "bucket_start",
    "resolve_window",
]
