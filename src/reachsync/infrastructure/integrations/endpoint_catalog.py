"""Catalog of provider endpoints fetched for one artist sync.

Hey future me - the provider splits one artist over many narrow endpoints. Profile
endpoints return a snapshot (details, links, ranks ...). Historical endpoints return a
``{date: value}`` map for one platform and one metric and need a date window. Every
endpoint has a stable ``key`` - that key is what the orchestrator's result dict and the
normalizer's fallback table refer to.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from reachsync.domain.entities import MetricType


@dataclass(frozen=True)
class Endpoint:
    """One provider endpoint.

    ``path`` is relative to ``/artist/{external_id}`` and may carry a query string.
    """

    key: str
    path: str
    historical: bool = False
    platform: str | None = None
    metric_type: MetricType | None = None

    def url_for(self, external_id: str) -> str:
        """Relative URL (without date params) for one artist."""
        suffix = f"/{self.path}" if self.path else ""
        return f"/artist/{external_id}{suffix}"


def _historical(platform: str, datatype: str, metric_type: MetricType) -> Endpoint:
    return Endpoint(
        key=f"{platform}_{datatype}",
        path=f"{platform}/{datatype}-historical",
        historical=True,
        platform=platform,
        metric_type=metric_type,
    )


FOLLOWER_HISTORY_PLATFORMS: tuple[str, ...] = (
    "spotify",
    "facebook",
    "instagram",
    "youtube",
    "tiktok",
    "twitter",
    "soundcloud",
    "deezer",
)


def profile_endpoints(tracks_limit: int = 50) -> tuple[Endpoint, ...]:
    """Snapshot endpoints: details, links, bio, fanbase, ranks, tracks."""
    return (
        Endpoint(key="details", path="details"),
        Endpoint(key="links", path="links"),
        Endpoint(key="bio", path="viberate/bio"),
        Endpoint(key="fanbase_distribution", path="viberate/fanbase-distribution"),
        Endpoint(key="ranks", path="viberate/ranks"),
        Endpoint(key="tracks", path=f"viberate/tracks?limit={tracks_limit}&offset=0"),
    )


def historical_endpoints() -> tuple[Endpoint, ...]:
    """Dated series: follower history per platform plus engagement and streams."""
    followers = tuple(
        _historical(platform, "fanbase", MetricType.FOLLOWERS)
        for platform in FOLLOWER_HISTORY_PLATFORMS
    )
    engagement = (
        _historical("instagram", "likes", MetricType.ENGAGEMENT),
        _historical("tiktok", "likes", MetricType.ENGAGEMENT),
        _historical("twitter", "likes", MetricType.ENGAGEMENT),
        _historical("youtube", "views", MetricType.ENGAGEMENT),
    )
    streams = (
        _historical("spotify", "streams", MetricType.STREAMS),
        _historical("soundcloud", "plays", MetricType.STREAMS),
    )
    return followers + engagement + streams


def default_catalog(tracks_limit: int = 50) -> tuple[Endpoint, ...]:
    """Everything fetched by a full artist sync."""
    return profile_endpoints(tracks_limit) + historical_endpoints()


def catalog_keys(endpoints: Iterable[Endpoint]) -> frozenset[str]:
    return frozenset(e.key for e in endpoints)
