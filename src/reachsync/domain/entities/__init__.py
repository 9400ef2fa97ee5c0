"""Domain entities."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


# Hey future me - these are the ONLY metric types the chart aggregator understands.
# followers feed the per-platform breakdown + total reach, engagement and streams are
# summed together into the engagement series. Stored as plain strings in the DB.
class MetricType(str, Enum):
    """Kind of value stored in a metric point."""

    FOLLOWERS = "followers"
    ENGAGEMENT = "engagement"
    STREAMS = "streams"


class Granularity(str, Enum):
    """Bucketing unit for chart aggregation."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class TimeFilter(str, Enum):
    """Chart time window selected by the caller."""

    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    ALL = "all"


class WarningCode(str, Enum):
    """Non-fatal problems collected while syncing an artist."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    SCHEMA_MISMATCH = "schema_mismatch"
    PERSISTENCE_FAILURE = "persistence_failure"


# Platforms we resolve social links and follower counts for. Order matters only for
# output determinism - normalized maps are emitted in this order.
KNOWN_PLATFORMS: tuple[str, ...] = (
    "spotify",
    "instagram",
    "tiktok",
    "facebook",
    "twitter",
    "youtube",
    "soundcloud",
    "deezer",
    "apple_music",
)


@dataclass(frozen=True)
class SyncWarning:
    """A single non-fatal problem, e.g. a metric missing from every fallback."""

    code: WarningCode
    subject: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "subject": self.subject, "message": self.message}


@dataclass
class CanonicalArtist:
    """The reconciled artist record bound to (at most) one account.

    external_id is the provider's identifier and the natural key. account_id is
    the binding: unique across artists, None when no account owns the artist.
    sync_generation increases by one with every successful sync; derived rows
    carry the generation that wrote them.
    """

    id: str
    external_id: str
    display_name: str
    slug: str = ""
    image_url: str | None = None
    bio: str | None = None
    country: str | None = None
    genre: str | None = None
    subgenres: list[str] = field(default_factory=list)
    rank: int = 0
    verified: bool = False
    account_id: str | None = None
    last_fetched_at: datetime | None = None
    sync_generation: int = 0

    @property
    def is_bound(self) -> bool:
        return self.account_id is not None


@dataclass(frozen=True)
class SocialLink:
    """Resolved profile URL on one platform."""

    platform: str
    url: str


@dataclass(frozen=True)
class Track:
    """A provider track listed for the artist."""

    external_track_id: str
    name: str
    source: str = "viberate"


@dataclass(frozen=True)
class RankEntry:
    """Current/previous rank for one platform metric, e.g. spotify_streams_rank."""

    rank_type: str
    current_value: int | None
    previous_value: int | None


@dataclass
class FanbaseSnapshot:
    """Latest fan totals per platform. raw_payload keeps the provider body as-is."""

    total_fans: int
    distribution: dict[str, int] = field(default_factory=dict)
    raw_payload: dict[str, Any] = field(default_factory=dict)
    fetched_at: datetime | None = None


@dataclass(frozen=True)
class MetricPoint:
    """One historical value. artist_id refers to CanonicalArtist.id."""

    artist_id: str
    date: date
    platform: str
    metric_type: MetricType
    value: float


__all__ = [
    "KNOWN_PLATFORMS",
    "CanonicalArtist",
    "FanbaseSnapshot",
    "Granularity",
    "MetricPoint",
    "MetricType",
    "RankEntry",
    "SocialLink",
    "SyncWarning",
    "TimeFilter",
    "Track",
    "WarningCode",
]
