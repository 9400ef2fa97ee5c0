"""Repository implementations for data persistence."""

import json
import uuid
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reachsync.domain.dtos import CanonicalFields
from reachsync.domain.entities import (
    CanonicalArtist,
    FanbaseSnapshot,
    MetricPoint,
    MetricType,
    RankEntry,
    SocialLink,
    Track,
)
from reachsync.infrastructure.persistence.models import (
    ArtistModel,
    FanbaseSnapshotModel,
    MetricPointModel,
    RankEntryModel,
    SocialLinkModel,
    TrackModel,
    ensure_utc_aware,
    utc_now,
)

DEFAULT_DISPLAY_NAME = "Unknown Artist"


class ArtistRepository:
    """Canonical artist rows and the account binding."""

    # Hey future me, repos never commit! They stage changes on the injected session and the
    # caller's session_scope() commits or rolls back. The sync engine depends on that: the
    # whole sync is one transaction.
    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _model_to_entity(model: ArtistModel) -> CanonicalArtist:
        return CanonicalArtist(
            id=model.id,
            external_id=model.external_id,
            display_name=model.display_name,
            slug=model.slug or "",
            image_url=model.image_url,
            bio=model.bio,
            country=model.country,
            genre=model.genre,
            subgenres=json.loads(model.subgenres) if model.subgenres else [],
            rank=model.rank or 0,
            verified=bool(model.verified),
            account_id=model.account_id,
            last_fetched_at=(
                ensure_utc_aware(model.last_fetched_at) if model.last_fetched_at else None
            ),
            sync_generation=model.sync_generation,
        )

    async def _get_model_by_external_id(self, external_id: str) -> ArtistModel | None:
        stmt = select(ArtistModel).where(ArtistModel.external_id == external_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_external_id(self, external_id: str) -> CanonicalArtist | None:
        """Get artist by the provider's id."""
        model = await self._get_model_by_external_id(external_id)
        return self._model_to_entity(model) if model else None

    async def get_by_account_id(self, account_id: str) -> CanonicalArtist | None:
        """Get the artist bound to an account, if any."""
        stmt = select(ArtistModel).where(ArtistModel.account_id == account_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def list_by_ids(self, artist_ids: Iterable[str]) -> list[CanonicalArtist]:
        ids = list(artist_ids)
        if not ids:
            return []
        stmt = select(ArtistModel).where(ArtistModel.id.in_(ids)).order_by(ArtistModel.id)
        result = await self.session.execute(stmt)
        return [self._model_to_entity(m) for m in result.scalars().all()]

    # Listen future me, unbind is flushed right away. account_id is UNIQUE, and if the
    # unbind and the new bind were flushed in one batch the UPDATE order could make the
    # database see two rows with the same account for a moment.
    async def unbind(self, artist_id: str) -> None:
        """Clear the account binding of an artist. The row itself stays."""
        await self.session.execute(
            update(ArtistModel)
            .where(ArtistModel.id == artist_id)
            .values(account_id=None, updated_at=utc_now())
        )
        await self.session.flush()

    async def upsert(
        self,
        external_id: str,
        fields: CanonicalFields,
        account_id: str,
        fetched_at: datetime,
    ) -> CanonicalArtist:
        """Insert or update the artist by external id and bump its sync generation.

        Fields that are None (or an empty subgenre list) keep the stored value.
        A new row without a name gets "Unknown Artist".
        """
        model = await self._get_model_by_external_id(external_id)
        if model is None:
            model = ArtistModel(
                id=str(uuid.uuid4()),
                external_id=external_id,
                display_name=fields.display_name or DEFAULT_DISPLAY_NAME,
                slug=fields.slug or "",
                rank=0,
                verified=False,
                sync_generation=0,
            )
            self.session.add(model)

        if fields.display_name:
            model.display_name = fields.display_name
        if fields.slug is not None:
            model.slug = fields.slug
        if fields.image_url is not None:
            model.image_url = fields.image_url
        if fields.bio is not None:
            model.bio = fields.bio
        if fields.country is not None:
            model.country = fields.country
        if fields.genre is not None:
            model.genre = fields.genre
        if fields.subgenres:
            model.subgenres = json.dumps(fields.subgenres)
        if fields.rank is not None:
            model.rank = fields.rank
        if fields.verified is not None:
            model.verified = fields.verified

        model.account_id = account_id
        model.last_fetched_at = fetched_at
        model.sync_generation = (model.sync_generation or 0) + 1
        await self.session.flush()
        return self._model_to_entity(model)


class _ArtistSnapshotRepository:
    """Shared delete-by-artist for the derived snapshot tables."""

    model: Any

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def delete_for_artist(self, artist_id: str) -> None:
        await self.session.execute(delete(self.model).where(self.model.artist_id == artist_id))

    async def _list_models(self, artist_id: str, order_by: Any) -> Sequence[Any]:
        stmt = select(self.model).where(self.model.artist_id == artist_id).order_by(order_by)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def generations_for_artist(self, artist_id: str) -> set[int]:
        """Distinct sync generations present for an artist (normally exactly one)."""
        stmt = select(self.model.sync_generation).where(self.model.artist_id == artist_id)
        result = await self.session.execute(stmt)
        return set(result.scalars().all())


class SocialLinkRepository(_ArtistSnapshotRepository):
    """Resolved social links per artist."""

    model = SocialLinkModel

    async def replace_for_artist(
        self, artist_id: str, links: Sequence[SocialLink], generation: int
    ) -> None:
        """Delete the artist's links and insert the new set."""
        await self.delete_for_artist(artist_id)
        self.session.add_all(
            SocialLinkModel(
                artist_id=artist_id,
                platform=link.platform,
                url=link.url,
                sync_generation=generation,
            )
            for link in links
        )
        await self.session.flush()

    async def list_for_artist(self, artist_id: str) -> list[SocialLink]:
        models = await self._list_models(artist_id, SocialLinkModel.platform)
        return [SocialLink(platform=m.platform, url=m.url) for m in models]


class TrackRepository(_ArtistSnapshotRepository):
    """Provider tracks per artist."""

    model = TrackModel

    async def replace_for_artist(
        self, artist_id: str, tracks: Sequence[Track], generation: int
    ) -> None:
        """Delete the artist's tracks and insert the new set."""
        await self.delete_for_artist(artist_id)
        self.session.add_all(
            TrackModel(
                artist_id=artist_id,
                external_track_id=track.external_track_id,
                name=track.name,
                source=track.source,
                sync_generation=generation,
            )
            for track in tracks
        )
        await self.session.flush()

    async def list_for_artist(self, artist_id: str) -> list[Track]:
        models = await self._list_models(artist_id, TrackModel.external_track_id)
        return [
            Track(external_track_id=m.external_track_id, name=m.name, source=m.source)
            for m in models
        ]


class RankEntryRepository(_ArtistSnapshotRepository):
    """Rank entries per artist."""

    model = RankEntryModel

    async def replace_for_artist(
        self, artist_id: str, entries: Sequence[RankEntry], generation: int
    ) -> None:
        """Delete the artist's rank entries and insert the new set."""
        await self.delete_for_artist(artist_id)
        self.session.add_all(
            RankEntryModel(
                artist_id=artist_id,
                rank_type=entry.rank_type,
                current_value=entry.current_value,
                previous_value=entry.previous_value,
                sync_generation=generation,
            )
            for entry in entries
        )
        await self.session.flush()

    async def list_for_artist(self, artist_id: str) -> list[RankEntry]:
        models = await self._list_models(artist_id, RankEntryModel.rank_type)
        return [
            RankEntry(
                rank_type=m.rank_type,
                current_value=m.current_value,
                previous_value=m.previous_value,
            )
            for m in models
        ]


class FanbaseSnapshotRepository(_ArtistSnapshotRepository):
    """Single fanbase snapshot per artist."""

    model = FanbaseSnapshotModel

    async def replace_for_artist(
        self, artist_id: str, snapshot: FanbaseSnapshot, generation: int
    ) -> None:
        """Replace the artist's snapshot."""
        await self.delete_for_artist(artist_id)
        self.session.add(
            FanbaseSnapshotModel(
                artist_id=artist_id,
                total_fans=snapshot.total_fans,
                distribution=dict(snapshot.distribution),
                raw_payload=dict(snapshot.raw_payload),
                fetched_at=snapshot.fetched_at,
                sync_generation=generation,
            )
        )
        await self.session.flush()

    async def get_for_artist(self, artist_id: str) -> FanbaseSnapshot | None:
        models = await self._list_models(artist_id, FanbaseSnapshotModel.id)
        if not models:
            return None
        m = models[0]
        return FanbaseSnapshot(
            total_fans=m.total_fans,
            distribution=dict(m.distribution or {}),
            raw_payload=dict(m.raw_payload or {}),
            fetched_at=ensure_utc_aware(m.fetched_at) if m.fetched_at else None,
        )


class MetricPointRepository:
    """Append-only metric history."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _model_to_entity(model: MetricPointModel) -> MetricPoint:
        return MetricPoint(
            artist_id=model.artist_id,
            date=model.date,
            platform=model.platform,
            metric_type=MetricType(model.metric_type),
            value=model.value,
        )

    # Hey future me - this is a portable "upsert": load the rows that can collide, update
    # them in place, add the rest. Nothing is ever deleted. Duplicate keys in the input
    # collapse to the last value so the unique constraint can't trip inside one batch.
    async def upsert_many(self, points: Iterable[MetricPoint]) -> int:
        """Insert points, overwriting the value of existing (artist, date, platform, type) rows.

        Returns:
            Number of distinct points written
        """
        by_key: dict[tuple[str, date, str, str], MetricPoint] = {}
        for point in points:
            key = (point.artist_id, point.date, point.platform, point.metric_type.value)
            by_key[key] = point
        if not by_key:
            return 0

        artist_ids = {key[0] for key in by_key}
        dates = [key[1] for key in by_key]
        stmt = select(MetricPointModel).where(
            MetricPointModel.artist_id.in_(artist_ids),
            MetricPointModel.date >= min(dates),
            MetricPointModel.date <= max(dates),
        )
        result = await self.session.execute(stmt)
        existing = {
            (m.artist_id, m.date, m.platform, m.metric_type): m
            for m in result.scalars().all()
        }

        for key, point in by_key.items():
            model = existing.get(key)
            if model is not None:
                model.value = point.value
            else:
                self.session.add(
                    MetricPointModel(
                        artist_id=point.artist_id,
                        date=point.date,
                        platform=point.platform,
                        metric_type=point.metric_type.value,
                        value=point.value,
                    )
                )
        await self.session.flush()
        return len(by_key)

    async def list_for_artists(
        self,
        artist_ids: Iterable[str],
        start: date | None = None,
        end: date | None = None,
    ) -> list[MetricPoint]:
        """Points of the given artists, optionally limited to [start, end]."""
        ids = list(artist_ids)
        if not ids:
            return []
        stmt = select(MetricPointModel).where(MetricPointModel.artist_id.in_(ids))
        if start is not None:
            stmt = stmt.where(MetricPointModel.date >= start)
        if end is not None:
            stmt = stmt.where(MetricPointModel.date <= end)
        stmt = stmt.order_by(
            MetricPointModel.date,
            MetricPointModel.artist_id,
            MetricPointModel.platform,
            MetricPointModel.metric_type,
        )
        result = await self.session.execute(stmt)
        return [self._model_to_entity(m) for m in result.scalars().all()]
