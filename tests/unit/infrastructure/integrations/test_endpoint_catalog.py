"""Tests for the provider endpoint catalog."""

from reachsync.domain.entities import MetricType
from reachsync.infrastructure.integrations.endpoint_catalog import (
    Endpoint,
    default_catalog,
    historical_endpoints,
    profile_endpoints,
)


class TestEndpointCatalog:
    def test_keys_are_unique(self) -> None:
        keys = [e.key for e in default_catalog()]
        assert len(keys) == len(set(keys))

    def test_profile_endpoints_are_not_historical(self) -> None:
        assert all(not e.historical for e in profile_endpoints())
        assert {e.key for e in profile_endpoints()} == {
            "details",
            "links",
            "bio",
            "fanbase_distribution",
            "ranks",
            "tracks",
        }

    def test_historical_endpoints_carry_platform_and_metric(self) -> None:
        for endpoint in historical_endpoints():
            assert endpoint.historical
            assert endpoint.platform
            assert isinstance(endpoint.metric_type, MetricType)
            assert endpoint.path.endswith("-historical")

    def test_follower_history_per_platform(self) -> None:
        by_key = {e.key: e for e in historical_endpoints()}
        spotify = by_key["spotify_fanbase"]
        assert spotify.path == "spotify/fanbase-historical"
        assert spotify.metric_type is MetricType.FOLLOWERS
        assert by_key["youtube_views"].metric_type is MetricType.ENGAGEMENT
        assert by_key["soundcloud_plays"].metric_type is MetricType.STREAMS

    def test_tracks_limit_in_path(self) -> None:
        tracks = next(e for e in default_catalog(tracks_limit=20) if e.key == "tracks")
        assert tracks.url_for("abc") == "/artist/abc/viberate/tracks?limit=20&offset=0"

    def test_url_for(self) -> None:
        assert Endpoint(key="details", path="details").url_for("x-1") == "/artist/x-1/details"
