"""Application lifecycle: build the service graph on startup, tear it down on shutdown."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from reachsync.application.services.canonical_sync_service import CanonicalSyncService
from reachsync.application.services.chart_query_service import ChartQueryService
from reachsync.application.services.fetch_orchestrator import FetchOrchestrator
from reachsync.application.services.field_normalizer import FieldNormalizer
from reachsync.application.services.sync_locks import KeyedLockRegistry
from reachsync.config import Settings, get_settings
from reachsync.domain.exceptions import ConfigurationError
from reachsync.infrastructure.integrations.endpoint_catalog import default_catalog
from reachsync.infrastructure.integrations.provider_client import ProviderClient
from reachsync.infrastructure.observability import configure_logging
from reachsync.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


def _validate_sqlite_path(settings: Settings) -> None:
    """Make sure the SQLite file's directory exists and is writable."""
    db_path = settings._get_sqlite_db_path()
    if db_path is None:
        return

    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to write SQLite files in '{db_path.parent}': {exc}. "
            "Update DATABASE__URL or adjust directory permissions."
        ) from exc


# Hey future me, the FieldNormalizer is built HERE on purpose - its constructor validates
# the metric fallback table, so a broken table stops startup instead of zeroing every
# metric at runtime. One KeyedLockRegistry for the whole process: per-key sync locks only
# work if every request shares it.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    configure_logging(
        log_level=settings.observability.log_level,
        json_format=settings.observability.json_logs,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    _validate_sqlite_path(settings)
    db = Database(settings)
    provider = ProviderClient(settings.provider)
    try:
        if settings.database.auto_create_tables:
            await db.create_tables()
        if not settings.provider.is_configured:
            logger.warning(
                "Provider access key is not set; every sync will report the provider unavailable"
            )

        endpoints = default_catalog(settings.provider.tracks_limit)
        app.state.db = db
        app.state.provider_client = provider
        app.state.sync_service = CanonicalSyncService(
            database=db,
            orchestrator=FetchOrchestrator(provider, settings.provider.max_concurrency),
            normalizer=FieldNormalizer(endpoints),
            locks=KeyedLockRegistry(),
            endpoints=endpoints,
            history_days=settings.provider.history_days,
        )
        app.state.chart_service = ChartQueryService(db)
        logger.info("Database initialized: %s", settings.database.url)

        yield
    finally:
        logger.info("Shutting down application")
        await provider.close()
        await db.close()
