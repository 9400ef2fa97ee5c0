"""Field reconciliation: raw provider payloads -> one canonical artist shape.

Hey future me - the provider reports the same number in different places depending
on endpoint and API mood: ``data["spotify-followers"]``, ``data.data["spotify-followers"]``,
``data.spotify.followers``, ``data.spotify_followers`` ... Instead of sprinkling
``if "x" in payload`` checks around, every metric has an ORDERED chain of typed
accessors in a declared table (MetricTable). The table is validated once when the
normalizer is built, so a typo in a path is a ConfigurationError at startup, not a
silent zero in production.

Resolution rule: walk the chain, the first present numeric NON-ZERO value wins.
Nothing found -> 0 plus a schema_mismatch warning. Never an artist-specific constant.

Everything here is pure: same input, same output. No clock, no randomness.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from reachsync.domain.dtos import (
    CanonicalFields,
    EndpointResult,
    HistoricalValue,
    NormalizedArtist,
)
from reachsync.domain.entities import (
    KNOWN_PLATFORMS,
    FanbaseSnapshot,
    RankEntry,
    SocialLink,
    SyncWarning,
    Track,
    WarningCode,
)
from reachsync.domain.exceptions import ConfigurationError
from reachsync.infrastructure.integrations.endpoint_catalog import (
    FOLLOWER_HISTORY_PLATFORMS,
    Endpoint,
    catalog_keys,
    default_catalog,
)

logger = logging.getLogger(__name__)

SPOTIFY_MONTHLY_LISTENERS = "spotify_monthly_listeners"


# =============================================================================
# VALUE HELPERS
# =============================================================================


def coerce_number(value: Any) -> float | None:
    """Return value as float if it is numeric (or a numeric string), else None.

    Booleans are not numbers here, even though Python says they are ints.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _coerce_int(value: Any) -> int | None:
    number = coerce_number(value)
    return int(number) if number is not None else None


def _data(payload: Any) -> Any:
    """Strip the {data: ...} envelope."""
    if isinstance(payload, dict):
        return payload.get("data")
    return None


def _profile_data(payload: Any) -> dict[str, Any]:
    """Object body of a profile endpoint, looking through a nested data.data."""
    data = _data(payload)
    if isinstance(data, dict):
        inner = data.get("data")
        if isinstance(inner, dict):
            return inner
        return data
    return {}


def _list_data(payload: Any) -> list[Any]:
    """List body of an endpoint: data as list, or data.data as list."""
    data = _data(payload)
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return data["data"]
    return []


def _series_map(payload: Any) -> dict[str, Any]:
    """{date: value} map of a historical endpoint (data.data, or data itself)."""
    data = _data(payload)
    if not isinstance(data, dict):
        return {}
    inner = data.get("data")
    if isinstance(inner, dict):
        return inner
    if isinstance(inner, list):
        return {
            str(item.get("date")): item.get("value")
            for item in inner
            if isinstance(item, dict) and item.get("date") is not None
        }
    return data


def _parse_date(raw: Any) -> date | None:
    if not isinstance(raw, str) or len(raw) < 10:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def _name_of(value: Any, *keys: str) -> str | None:
    """A display string from either a plain string or an object like {name: ...}."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        for key in keys:
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
    return None


def _platform_key(raw: Any) -> str | None:
    if not isinstance(raw, str):
        return None
    return raw.strip().lower().replace(" ", "_").replace("-", "_") or None


def _ok_payload(raw_results: Mapping[str, EndpointResult], endpoint: str) -> Any:
    result = raw_results.get(endpoint)
    if result is None or not result.ok:
        return None
    return result.payload


# =============================================================================
# ACCESSORS + METRIC TABLE
# =============================================================================


class PayloadPath:
    """Nested key path inside one endpoint's decoded body.

    Example:
        PayloadPath("fanbase_distribution", "data", "data", "spotify-followers")
    """

    __slots__ = ("endpoint", "keys")

    def __init__(self, endpoint: str, *keys: str) -> None:
        self.endpoint = endpoint
        self.keys = keys

    def resolve(self, raw_results: Mapping[str, EndpointResult]) -> Any:
        node = _ok_payload(raw_results, self.endpoint)
        for key in self.keys:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return node

    def problems(self) -> list[str]:
        if not self.keys:
            return ["path has no keys"]
        if not all(isinstance(k, str) and k for k in self.keys):
            return [f"path keys must be non-empty strings: {self.keys!r}"]
        return []

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PayloadPath):
            return NotImplemented
        return (self.endpoint, self.keys) == (other.endpoint, other.keys)

    def __hash__(self) -> int:
        return hash((self.endpoint, self.keys))

    def __repr__(self) -> str:
        return f"PayloadPath({self.endpoint!r}, {', '.join(repr(k) for k in self.keys)})"


class LatestSeriesValue:
    """Newest numeric value of a historical ``{date: value}`` series."""

    __slots__ = ("endpoint",)

    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint

    def resolve(self, raw_results: Mapping[str, EndpointResult]) -> Any:
        series = _series_map(_ok_payload(raw_results, self.endpoint))
        dated = [
            (day, value)
            for raw_day, value in series.items()
            if (day := _parse_date(raw_day)) is not None and coerce_number(value) is not None
        ]
        if not dated:
            return None
        return max(dated, key=lambda item: item[0])[1]

    def problems(self) -> list[str]:
        return []

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LatestSeriesValue):
            return NotImplemented
        return self.endpoint == other.endpoint

    def __hash__(self) -> int:
        return hash(self.endpoint)

    def __repr__(self) -> str:
        return f"LatestSeriesValue({self.endpoint!r})"


Accessor = PayloadPath | LatestSeriesValue
MetricTable = Mapping[str, tuple[Accessor, ...]]


def follower_metric(platform: str) -> str:
    return f"{platform}_followers"


def follower_chain(platform: str) -> tuple[Accessor, ...]:
    """Fallback order for one platform's follower count."""
    chain: list[Accessor] = [
        PayloadPath("fanbase_distribution", "data", f"{platform}-followers"),
        PayloadPath("fanbase_distribution", "data", "data", f"{platform}-followers"),
        PayloadPath("fanbase_distribution", "data", platform, "followers"),
        PayloadPath("details", "data", f"{platform}_followers"),
        PayloadPath("details", "data", "metrics", f"{platform}_followers"),
    ]
    if platform in FOLLOWER_HISTORY_PLATFORMS:
        chain.append(LatestSeriesValue(f"{platform}_fanbase"))
    return tuple(chain)


def default_metric_table() -> dict[str, tuple[Accessor, ...]]:
    table: dict[str, tuple[Accessor, ...]] = {
        follower_metric(platform): follower_chain(platform) for platform in KNOWN_PLATFORMS
    }
    table[SPOTIFY_MONTHLY_LISTENERS] = (
        PayloadPath("fanbase_distribution", "data", "spotify-listeners"),
        PayloadPath("fanbase_distribution", "data", "data", "spotify-listeners"),
        PayloadPath("details", "data", "spotify_monthly_listeners"),
        PayloadPath("details", "data", "metrics", "spotify_monthly_listeners"),
    )
    return table


def validate_metric_table(table: Any, endpoint_keys: Iterable[str]) -> None:
    """Raise ConfigurationError if the table is malformed.

    Checks that every metric has a non-empty chain of known accessor types and
    that every accessor points at an endpoint that is actually fetched.
    """
    known = set(endpoint_keys)
    if not isinstance(table, Mapping) or not table:
        raise ConfigurationError("Metric table must be a non-empty mapping")

    problems: list[str] = []
    for metric, chain in table.items():
        if not isinstance(metric, str) or not metric:
            problems.append(f"invalid metric name {metric!r}")
            continue
        if not isinstance(chain, tuple) or not chain:
            problems.append(f"{metric}: fallback chain must be a non-empty tuple")
            continue
        for accessor in chain:
            if not isinstance(accessor, PayloadPath | LatestSeriesValue):
                problems.append(f"{metric}: unsupported accessor {accessor!r}")
                continue
            if accessor.endpoint not in known:
                problems.append(f"{metric}: unknown endpoint {accessor.endpoint!r}")
            problems.extend(f"{metric}: {p}" for p in accessor.problems())

    if problems:
        raise ConfigurationError("Invalid metric table: " + "; ".join(problems))


# =============================================================================
# NORMALIZER
# =============================================================================


class FieldNormalizer:
    """Turns the orchestrator's per-endpoint results into a NormalizedArtist."""

    def __init__(
        self,
        endpoints: Iterable[Endpoint] | None = None,
        metric_table: MetricTable | None = None,
    ) -> None:
        self.endpoints = tuple(endpoints) if endpoints is not None else default_catalog()
        self.metric_table = dict(
            metric_table if metric_table is not None else default_metric_table()
        )
        validate_metric_table(self.metric_table, catalog_keys(self.endpoints))

    def resolve_metric(
        self, name: str, raw_results: Mapping[str, EndpointResult]
    ) -> float | None:
        """First present, numeric, non-zero value along the metric's chain."""
        for accessor in self.metric_table[name]:
            number = coerce_number(accessor.resolve(raw_results))
            if number:
                return number
        return None

    def normalize(self, raw_results: Mapping[str, EndpointResult]) -> NormalizedArtist:
        warnings: list[SyncWarning] = [
            SyncWarning(
                code=WarningCode.PROVIDER_UNAVAILABLE,
                subject=key,
                message=f"Endpoint {key} unavailable: {result.error or 'unknown'}",
            )
            for key, result in sorted(raw_results.items())
            if not result.ok
        ]

        metrics: dict[str, int] = {}
        for name in sorted(self.metric_table):
            value = self.resolve_metric(name, raw_results)
            if value is None:
                warnings.append(
                    SyncWarning(
                        code=WarningCode.SCHEMA_MISMATCH,
                        subject=name,
                        message=f"No value for {name} in any known location",
                    )
                )
                metrics[name] = 0
            else:
                metrics[name] = int(value)

        follower_map = {
            platform: metrics[follower_metric(platform)]
            for platform in KNOWN_PLATFORMS
            if follower_metric(platform) in metrics
        }
        distribution = {p: v for p, v in follower_map.items() if v}

        fanbase_payload = _ok_payload(raw_results, "fanbase_distribution")
        return NormalizedArtist(
            canonical_fields=self._canonical_fields(raw_results),
            platform_follower_map=follower_map,
            social_links=self._social_links(raw_results),
            tracks=self._tracks(raw_results),
            rank_entries=self._rank_entries(raw_results),
            fanbase=FanbaseSnapshot(
                total_fans=sum(distribution.values()),
                distribution=distribution,
                raw_payload=fanbase_payload if isinstance(fanbase_payload, dict) else {},
            ),
            metric_series=self._metric_series(raw_results),
            spotify_monthly_listeners=metrics.get(SPOTIFY_MONTHLY_LISTENERS, 0),
            warnings=warnings,
        )

    # Hey future me - scalar fields: absent stays None so the sync engine keeps the
    # stored value. Only the chart-relevant numbers go through the metric table.
    def _canonical_fields(self, raw_results: Mapping[str, EndpointResult]) -> CanonicalFields:
        details = _profile_data(_ok_payload(raw_results, "details"))
        bio_payload = _ok_payload(raw_results, "bio")
        ranks = _profile_data(_ok_payload(raw_results, "ranks"))

        bio = _name_of(_profile_data(bio_payload), "bio", "text")
        if bio is None and isinstance(_data(bio_payload), str):
            bio = _data(bio_payload).strip() or None
        if bio is None:
            bio = _name_of(details.get("bio"), "text")

        subgenres: list[str] = []
        raw_subgenres = details.get("subgenres")
        if isinstance(raw_subgenres, list):
            for item in raw_subgenres:
                name = _name_of(item, "name")
                if name and name not in subgenres:
                    subgenres.append(name)

        rank: int | None = None
        current = ranks.get("current")
        if isinstance(current, dict):
            rank = _coerce_int(current.get("global")) or None
        if rank is None:
            rank = _coerce_int(details.get("rank")) or None

        verified = details.get("verified")
        return CanonicalFields(
            display_name=_name_of(details.get("name")),
            slug=_name_of(details.get("slug")),
            image_url=_name_of(details.get("image"), "url", "src"),
            bio=bio,
            country=_name_of(details.get("country"), "name", "code"),
            genre=_name_of(details.get("genre"), "name"),
            subgenres=subgenres,
            rank=rank,
            verified=verified if isinstance(verified, bool) else None,
        )

    def _social_links(self, raw_results: Mapping[str, EndpointResult]) -> list[SocialLink]:
        entries = _list_data(_ok_payload(raw_results, "links"))
        if not entries:
            fallback = _profile_data(_ok_payload(raw_results, "details")).get("social_links")
            entries = fallback if isinstance(fallback, list) else []

        known = set(KNOWN_PLATFORMS)
        urls: dict[str, str] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            url = entry.get("url") or entry.get("link")
            if not isinstance(url, str) or not url.strip():
                continue
            for field_name in ("platform", "name", "channel"):
                platform = _platform_key(entry.get(field_name))
                if platform in known:
                    urls.setdefault(platform, url.strip())
                    break

        return [
            SocialLink(platform=platform, url=urls[platform])
            for platform in KNOWN_PLATFORMS
            if platform in urls
        ]

    def _tracks(self, raw_results: Mapping[str, EndpointResult]) -> list[Track]:
        tracks: dict[str, Track] = {}
        for item in _list_data(_ok_payload(raw_results, "tracks")):
            if not isinstance(item, dict):
                continue
            raw_id = item.get("uuid") or item.get("id")
            name = _name_of(item.get("name")) or _name_of(item.get("title"))
            if raw_id is None or isinstance(raw_id, bool) or not name:
                continue
            track_id = str(raw_id)
            if track_id not in tracks:
                tracks[track_id] = Track(external_track_id=track_id, name=name)
        return [tracks[k] for k in sorted(tracks)]

    def _rank_entries(self, raw_results: Mapping[str, EndpointResult]) -> list[RankEntry]:
        entries: dict[str, RankEntry] = {}

        def add(rank_type: str, current: Any, previous: Any) -> None:
            key = rank_type.strip().lower().replace("-", "_").replace(" ", "_")
            if not key.endswith("_rank"):
                key = f"{key}_rank"
            if key in entries:
                return
            current_value = _coerce_int(current)
            previous_value = _coerce_int(previous)
            if current_value is None and previous_value is None:
                return
            entries[key] = RankEntry(key, current_value, previous_value)

        payload = _ok_payload(raw_results, "ranks")
        listed = _list_data(payload)
        if listed:
            for item in listed:
                if not isinstance(item, dict):
                    continue
                platform = _platform_key(item.get("platform"))
                metric = _platform_key(item.get("metric") or item.get("type"))
                if not platform or not metric:
                    continue
                current = item.get("current", item.get("rank"))
                add(f"{platform}_{metric}", current, item.get("previous"))
            return [entries[k] for k in sorted(entries)]

        data = _profile_data(payload)
        current_block = data.get("current")
        if isinstance(current_block, dict):
            previous_block = data.get("previous")
            if not isinstance(previous_block, dict):
                previous_block = {}
            for scope, value in current_block.items():
                add(f"viberate_{scope}", value, previous_block.get(scope))
            return [entries[k] for k in sorted(entries)]

        for key, value in data.items():
            if not isinstance(value, dict):
                continue
            if "current" in value or "previous" in value:
                add(str(key), value.get("current"), value.get("previous"))
                continue
            for metric, nested in value.items():
                if isinstance(nested, dict) and ("current" in nested or "previous" in nested):
                    add(f"{key}_{metric}", nested.get("current"), nested.get("previous"))
        return [entries[k] for k in sorted(entries)]

    def _metric_series(
        self, raw_results: Mapping[str, EndpointResult]
    ) -> list[HistoricalValue]:
        values: list[HistoricalValue] = []
        for endpoint in self.endpoints:
            if not endpoint.historical or endpoint.platform is None or endpoint.metric_type is None:
                continue
            series = _series_map(_ok_payload(raw_results, endpoint.key))
            for raw_day, raw_value in series.items():
                day = _parse_date(raw_day)
                number = coerce_number(raw_value)
                if day is None or number is None:
                    continue
                values.append(
                    HistoricalValue(
                        platform=endpoint.platform,
                        metric_type=endpoint.metric_type,
                        date=day,
                        value=number,
                    )
                )
        values.sort(key=lambda v: (v.platform, v.metric_type.value, v.date))
        return values
