"""
Data Transfer Objects passed between the pipeline stages.

Hey future me - the flow is:
    Orchestrator -> dict[key, EndpointResult]
    Normalizer   -> NormalizedArtist
    Sync Engine  -> SyncResult
    Aggregator   -> AggregatedCharts

DTOs are dumb data carriers. Business rules live in the services.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from reachsync.domain.entities import (
    CanonicalArtist,
    FanbaseSnapshot,
    MetricType,
    RankEntry,
    SocialLink,
    SyncWarning,
    Track,
)


@dataclass(frozen=True)
class DateRange:
    """Inclusive date window."""

    start: date
    end: date

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class EndpointResult:
    """Outcome of one provider call.

    payload is the full decoded JSON body (envelope included) when ok is True,
    None otherwise. error holds a short reason like "timeout" or "http_503".
    """

    ok: bool
    payload: Any = None
    item_count: int = 0
    error: str | None = None

    @classmethod
    def failed(cls, reason: str) -> "EndpointResult":
        return cls(ok=False, error=reason)


@dataclass
class CanonicalFields:
    """Scalar artist fields. None means "provider did not tell us"."""

    display_name: str | None = None
    slug: str | None = None
    image_url: str | None = None
    bio: str | None = None
    country: str | None = None
    genre: str | None = None
    subgenres: list[str] = field(default_factory=list)
    rank: int | None = None
    verified: bool | None = None


@dataclass(frozen=True)
class HistoricalValue:
    """One dated value from a historical endpoint, not yet tied to an artist row."""

    platform: str
    metric_type: MetricType
    date: date
    value: float


@dataclass
class NormalizedArtist:
    """Flat canonical shape produced by the field normalizer."""

    canonical_fields: CanonicalFields
    platform_follower_map: dict[str, int]
    social_links: list[SocialLink]
    tracks: list[Track]
    rank_entries: list[RankEntry]
    fanbase: FanbaseSnapshot
    metric_series: list[HistoricalValue] = field(default_factory=list)
    spotify_monthly_listeners: int = 0
    warnings: list[SyncWarning] = field(default_factory=list)


@dataclass
class SyncResult:
    """Result of syncing one account with one external artist."""

    success: bool
    artist: CanonicalArtist | None = None
    warnings: list[SyncWarning] = field(default_factory=list)
    error: str | None = None
    endpoints_ok: int = 0
    endpoints_failed: int = 0

    def to_response(self) -> dict[str, Any]:
        """Shape returned by the sync trigger entry point."""
        body: dict[str, Any] = {
            "success": self.success,
            "warnings": [w.to_dict() for w in self.warnings],
        }
        if self.artist is not None:
            body["artist"] = {
                "externalId": self.artist.external_id,
                "name": self.artist.display_name,
                "imageUrl": self.artist.image_url,
            }
        if self.error:
            body["error"] = self.error
        return body


@dataclass(frozen=True)
class SeriesPoint:
    """One bucket of a single-value series (reach or engagement)."""

    date: date
    value: float
    artist_count: int


@dataclass(frozen=True)
class FollowerSeriesPoint:
    """One bucket of the per-platform follower breakdown."""

    date: date
    platforms: dict[str, float]
    total: float
    artist_count: int
    artist_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class AggregatedCharts:
    """The three chart series, each sorted ascending by bucket date."""

    followers_by_platform: list[FollowerSeriesPoint]
    total_reach: list[SeriesPoint]
    total_engagement: list[SeriesPoint]


@dataclass(frozen=True)
class ChartResponse:
    """Chart query output: the series plus window metadata."""

    charts: AggregatedCharts
    date_range: DateRange
    granularity: str
    time_filter: str
    artist_count: int
    total_data_points: int


__all__ = [
    "AggregatedCharts",
    "CanonicalFields",
    "ChartResponse",
    "DateRange",
    "EndpointResult",
    "FollowerSeriesPoint",
    "HistoricalValue",
    "NormalizedArtist",
    "SeriesPoint",
    "SyncResult",
]
