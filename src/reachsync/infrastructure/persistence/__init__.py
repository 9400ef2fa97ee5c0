"""Persistence layer."""

from reachsync.infrastructure.persistence.database import Database
from reachsync.infrastructure.persistence.models import Base
from reachsync.infrastructure.persistence.repositories import (
    ArtistRepository,
    FanbaseSnapshotRepository,
    MetricPointRepository,
    RankEntryRepository,
    SocialLinkRepository,
    TrackRepository,
)

__all__ = [
    "ArtistRepository",
    "Base",
    "Database",
    "FanbaseSnapshotRepository",
    "MetricPointRepository",
    "RankEntryRepository",
    "SocialLinkRepository",
    "TrackRepository",
]
