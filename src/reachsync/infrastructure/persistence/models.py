"""SQLAlchemy ORM models for ReachSync."""

import uuid
from datetime import UTC, datetime
from datetime import date as date_type
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite drops tzinfo on the way back. Attach UTC to naive values
# before comparing with datetime.now(UTC).
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Listen up, ArtistModel is the canonical record everything else hangs off. external_id
# is the provider's id (natural key). account_id IS the account binding - unique and
# nullable, so one account owns at most one artist and vice versa. Unbinding sets it
# back to NULL, the row itself is never deleted (metric history keeps pointing at it).
class ArtistModel(Base):
    """Canonical artist reconciled from the provider's endpoints."""

    __tablename__ = "reachsync_artists"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    external_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )
    account_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    genre: Mapped[str | None] = mapped_column(String(128), nullable=True)
    # JSON text, e.g. '["trap", "drill"]' - serialized by the repository
    subgenres: Mapped[str | None] = mapped_column(Text, nullable=True)
    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    verified: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    sync_generation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_fetched_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ArtistModel(external_id={self.external_id!r}, account_id={self.account_id!r})>"


# Hey future me - the four derived tables below are snapshots. Every sync deletes the
# artist's rows and re-inserts the fresh set, tagged with the artist's new
# sync_generation. ON DELETE CASCADE only matters if an artist row is ever removed by hand.
class SocialLinkModel(Base):
    """Resolved profile URL per platform."""

    __tablename__ = "reachsync_social_links"
    __table_args__ = (
        UniqueConstraint("artist_id", "platform", name="uq_social_link_artist_platform"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    artist_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reachsync_artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    sync_generation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class TrackModel(Base):
    """Provider track listed for an artist."""

    __tablename__ = "reachsync_tracks"
    __table_args__ = (
        UniqueConstraint("artist_id", "external_track_id", name="uq_track_artist_external"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    artist_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reachsync_artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_track_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False, default="viberate")
    sync_generation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class RankEntryModel(Base):
    """Current and previous rank for one platform metric."""

    __tablename__ = "reachsync_rank_entries"
    __table_args__ = (
        UniqueConstraint("artist_id", "rank_type", name="uq_rank_entry_artist_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    artist_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reachsync_artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rank_type: Mapped[str] = mapped_column(String(128), nullable=False)
    current_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    previous_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sync_generation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class FanbaseSnapshotModel(Base):
    """Latest fan totals for an artist. One row per artist."""

    __tablename__ = "reachsync_fanbase_snapshots"
    __table_args__ = (UniqueConstraint("artist_id", name="uq_fanbase_snapshot_artist"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    artist_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reachsync_artists.id", ondelete="CASCADE"),
        nullable=False,
    )
    total_fans: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    distribution: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    raw_payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    fetched_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    sync_generation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# Yo, metric points are HISTORY - never deleted, not even on rebind. The unique key makes
# a same-day re-sync overwrite its own value instead of double counting in the charts.
class MetricPointModel(Base):
    """One dated metric value for an artist on a platform."""

    __tablename__ = "reachsync_metric_points"
    __table_args__ = (
        UniqueConstraint(
            "artist_id",
            "date",
            "platform",
            "metric_type",
            name="uq_metric_point_artist_date_platform_type",
        ),
        sa.Index("ix_metric_points_artist_date", "artist_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reachsync_artists.id"), nullable=False
    )
    date: Mapped[date_type] = mapped_column(sa.Date, nullable=False)
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    metric_type: Mapped[str] = mapped_column(String(32), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
