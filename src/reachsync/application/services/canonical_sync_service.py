"""Canonical sync: fetch, normalize and persist one artist for one account."""

import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from datetime import datetime, timedelta
from typing import Any, TypeAlias

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reachsync.application.services.fetch_orchestrator import FetchOrchestrator
from reachsync.application.services.field_normalizer import FieldNormalizer
from reachsync.application.services.metric_history_service import MetricHistoryService
from reachsync.application.services.sync_locks import KeyedLockRegistry, sync_lock_keys
from reachsync.domain.dtos import DateRange, NormalizedArtist, SyncResult
from reachsync.domain.entities import CanonicalArtist, SyncWarning, WarningCode
from reachsync.domain.exceptions import BindingConflictError, ValidationError
from reachsync.infrastructure.integrations.endpoint_catalog import Endpoint, default_catalog
from reachsync.infrastructure.observability.logger_template import log_operation
from reachsync.infrastructure.persistence.database import Database
from reachsync.infrastructure.persistence.models import utc_now
from reachsync.infrastructure.persistence.repositories import (
    ArtistRepository,
    FanbaseSnapshotRepository,
    RankEntryRepository,
    SocialLinkRepository,
    TrackRepository,
)

logger = logging.getLogger(__name__)

PERSIST_ERROR = "Failed to persist artist"

SnapshotRepository: TypeAlias = (
    SocialLinkRepository | TrackRepository | RankEntryRepository | FanbaseSnapshotRepository
)


class CanonicalSyncService:
    """Keeps one canonical artist per account in sync with the provider.

    Hey future me - the rules, in order:

    1. externalId bound to ANOTHER account -> BindingConflictError. Checked before any
       provider call and again inside the transaction (locks make the second check
       a formality, but it's cheap).
    2. Account bound to a DIFFERENT artist -> that artist is unbound and its derived rows
       are deleted. Its metric history stays.
    3. Upsert the artist by externalId, bump sync_generation.
    4. Replace every derived collection inside its own SAVEPOINT, with an empty set when
       its source endpoints failed. A failing collection is emptied and becomes a
       persistence_failure warning, so rows from two generations never mix.
    5. Record metric history (also in a savepoint).

    Steps 2-5 are one transaction. Syncs are serialized per account and per artist.
    Failed endpoints only degrade the data: a sync where nothing could be fetched still
    upserts the artist with defaults and reports provider_unavailable warnings.
    """

    def __init__(
        self,
        database: Database,
        orchestrator: FetchOrchestrator,
        normalizer: FieldNormalizer | None = None,
        locks: KeyedLockRegistry | None = None,
        endpoints: Sequence[Endpoint] | None = None,
        history_days: int = 30,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.database = database
        self.orchestrator = orchestrator
        self.endpoints = tuple(endpoints) if endpoints is not None else default_catalog()
        self.normalizer = normalizer or FieldNormalizer(self.endpoints)
        self.locks = locks or KeyedLockRegistry()
        self.history_days = history_days
        self.clock = clock

    async def sync(self, account_id: str, external_id: str) -> SyncResult:
        """Sync one external artist into the account's canonical record.

        Raises:
            ValidationError: Empty account or external id
            BindingConflictError: External artist is bound to another account
        """
        account_id = (account_id or "").strip()
        external_id = (external_id or "").strip()
        if not account_id or not external_id:
            raise ValidationError("accountId and externalId are required")

        keys = sync_lock_keys(account_id, external_id)
        if any(self.locks.is_locked(key) for key in keys):
            logger.debug(
                "Sync already running, waiting",
                extra={"account_id": account_id, "external_id": external_id},
            )
        async with self.locks.hold(keys):
            await self._check_binding(account_id, external_id)

            async with log_operation(
                logger, "artist_sync", account_id=account_id, external_id=external_id
            ) as outcome:
                now = self.clock()
                today = now.date()
                date_range = DateRange(today - timedelta(days=self.history_days), today)

                raw = await self.orchestrator.fetch_all(external_id, self.endpoints, date_range)
                endpoints_ok = sum(1 for r in raw.values() if r.ok)
                endpoints_failed = len(raw) - endpoints_ok
                normalized = self.normalizer.normalize(raw)
                if endpoints_ok == 0:
                    logger.warning(
                        "No endpoint succeeded, syncing defaults",
                        extra={"external_id": external_id, "endpoints_failed": endpoints_failed},
                    )

                result = await self._persist(account_id, external_id, normalized, now)
                result.endpoints_ok = endpoints_ok
                result.endpoints_failed = endpoints_failed
                outcome["success"] = result.success
                outcome["warnings"] = len(result.warnings)
                return result

    async def _check_binding(self, account_id: str, external_id: str) -> None:
        async with self.database.session_scope() as session:
            await self._assert_not_bound_elsewhere(
                ArtistRepository(session), account_id, external_id
            )

    @staticmethod
    async def _assert_not_bound_elsewhere(
        artists: ArtistRepository, account_id: str, external_id: str
    ) -> CanonicalArtist | None:
        existing = await artists.get_by_external_id(external_id)
        if existing is not None and existing.account_id not in (None, account_id):
            logger.info(
                "Binding conflict",
                extra={
                    "account_id": account_id,
                    "external_id": external_id,
                },
            )
            raise BindingConflictError(external_id, account_id, existing.account_id)
        return existing

    async def _persist(
        self,
        account_id: str,
        external_id: str,
        normalized: NormalizedArtist,
        now: datetime,
    ) -> SyncResult:
        warnings = list(normalized.warnings)
        try:
            async with self.database.session_scope() as session:
                artists = ArtistRepository(session)
                await self._assert_not_bound_elsewhere(artists, account_id, external_id)

                previous = await artists.get_by_account_id(account_id)
                if previous is not None and previous.external_id != external_id:
                    await self._release(session, previous)

                artist = await artists.upsert(
                    external_id, normalized.canonical_fields, account_id, fetched_at=now
                )

                # Every collection is rewritten on every sync, even with an empty set, so
                # no row from an older sync_generation survives next to the new one.
                for name, repo, writer in self._collection_writers(session, normalized, now):
                    warning = await self._in_savepoint(
                        session, name, lambda w=writer: w(artist.id, artist.sync_generation)
                    )
                    if warning:
                        warnings.append(warning)
                        await self._clear_collection(session, name, repo, artist.id)

                history = MetricHistoryService(session)
                warning = await self._in_savepoint(
                    session,
                    "metric_points",
                    lambda: history.record(artist.id, normalized, now.date()),
                )
                if warning:
                    warnings.append(warning)
        except SQLAlchemyError:
            logger.exception(
                "Canonical artist write failed",
                extra={"account_id": account_id, "external_id": external_id},
            )
            return SyncResult(success=False, warnings=warnings, error=PERSIST_ERROR)

        return SyncResult(success=True, artist=artist, warnings=warnings)

    async def _release(self, session: AsyncSession, previous: CanonicalArtist) -> None:
        """Unbind the account's old artist and drop its derived rows."""
        logger.info(
            "Rebinding account, releasing previous artist",
            extra={"artist_id": previous.id, "previous_external_id": previous.external_id},
        )
        await ArtistRepository(session).unbind(previous.id)
        for repo in (
            SocialLinkRepository(session),
            TrackRepository(session),
            RankEntryRepository(session),
            FanbaseSnapshotRepository(session),
        ):
            await repo.delete_for_artist(previous.id)

    def _collection_writers(
        self, session: AsyncSession, normalized: NormalizedArtist, now: datetime
    ) -> Iterable[tuple[str, SnapshotRepository, Callable[[str, int], Awaitable[None]]]]:
        """(collection name, repository, writer) per derived collection."""
        links = SocialLinkRepository(session)
        tracks = TrackRepository(session)
        ranks = RankEntryRepository(session)
        fanbase = FanbaseSnapshotRepository(session)
        snapshot = dataclasses.replace(normalized.fanbase, fetched_at=now)

        return (
            (
                "social_links",
                links,
                lambda aid, gen: links.replace_for_artist(aid, normalized.social_links, gen),
            ),
            (
                "tracks",
                tracks,
                lambda aid, gen: tracks.replace_for_artist(aid, normalized.tracks, gen),
            ),
            (
                "rank_entries",
                ranks,
                lambda aid, gen: ranks.replace_for_artist(aid, normalized.rank_entries, gen),
            ),
            (
                "fanbase_snapshot",
                fanbase,
                lambda aid, gen: fanbase.replace_for_artist(aid, snapshot, gen),
            ),
        )

    @staticmethod
    async def _clear_collection(
        session: AsyncSession, name: str, repo: SnapshotRepository, artist_id: str
    ) -> None:
        """Empty a collection whose write failed.

        If even the delete fails the error propagates and the whole sync rolls back,
        leaving the previous generation intact.
        """
        logger.info(f"Emptying {name} after failed write", extra={"artist_id": artist_id})
        async with session.begin_nested():
            await repo.delete_for_artist(artist_id)

    @staticmethod
    async def _in_savepoint(
        session: AsyncSession, name: str, write: Callable[[], Awaitable[Any]]
    ) -> SyncWarning | None:
        """Run one write in a SAVEPOINT; a database error becomes a warning."""
        try:
            async with session.begin_nested():
                await write()
        except SQLAlchemyError as e:
            logger.warning(
                f"Writing {name} failed",
                extra={"collection": name, "error_type": type(e).__name__},
                exc_info=True,
            )
            return SyncWarning(
                code=WarningCode.PERSISTENCE_FAILURE,
                subject=name,
                message=f"Failed to store {name}: {type(e).__name__}",
            )
        return None
