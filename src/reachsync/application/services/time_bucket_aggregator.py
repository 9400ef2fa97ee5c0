"""Calendar bucketing of metric points into chart series.

Pure functions only: no I/O, no module state. Safe to call from anywhere,
concurrently, as often as you like.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta

from reachsync.domain.dtos import AggregatedCharts, FollowerSeriesPoint, SeriesPoint
from reachsync.domain.entities import Granularity, MetricPoint, MetricType


def bucket_start(day: date, granularity: Granularity | str) -> date:
    """Date that labels the bucket containing ``day``.

    day -> itself, week -> Monday on or before (Sunday goes back six days),
    month -> first of the month.
    """
    granularity = Granularity(granularity)
    if granularity is Granularity.DAY:
        return day
    if granularity is Granularity.WEEK:
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def next_bucket(bucket: date, granularity: Granularity | str) -> date:
    granularity = Granularity(granularity)
    if granularity is Granularity.DAY:
        return bucket + timedelta(days=1)
    if granularity is Granularity.WEEK:
        return bucket + timedelta(days=7)
    if bucket.month == 12:
        return date(bucket.year + 1, 1, 1)
    return date(bucket.year, bucket.month + 1, 1)


def bucket_range(start: date, end: date, granularity: Granularity | str) -> list[date]:
    """Every bucket label from the one containing ``start`` to the one containing ``end``."""
    buckets: list[date] = []
    current = bucket_start(start, granularity)
    last = bucket_start(end, granularity)
    while current <= last:
        buckets.append(current)
        current = next_bucket(current, granularity)
    return buckets


@dataclass
class _Bucket:
    platforms: dict[str, float] = field(default_factory=dict)
    engagement: float = 0.0
    artists: set[str] = field(default_factory=set)

    @property
    def reach(self) -> float:
        return sum(self.platforms.values())


def aggregate(
    points: Iterable[MetricPoint],
    owned_artist_ids: Iterable[str],
    granularity: Granularity | str,
    *,
    artist_names: Mapping[str, str] | None = None,
    start: date | None = None,
    end: date | None = None,
) -> AggregatedCharts:
    """Bucket points and build the follower, reach and engagement series.

    Followers are summed per platform (and in total, which is the reach series).
    Engagement and streams are summed into the engagement series. Points of
    artists not in ``owned_artist_ids`` are ignored.

    With both ``start`` and ``end`` given, every bucket in between is emitted
    (zero-filled if empty) and points outside the window are dropped. Without
    them only buckets that received points appear.
    """
    granularity = Granularity(granularity)
    owned = set(owned_artist_ids)
    names = artist_names or {}

    buckets: dict[date, _Bucket] = {}
    window: tuple[date, date] | None = None
    if start is not None and end is not None:
        for label in bucket_range(start, end, granularity):
            buckets[label] = _Bucket()
        window = (start, end)

    for point in points:
        if point.artist_id not in owned:
            continue
        if window is not None and not window[0] <= point.date <= window[1]:
            continue
        bucket = buckets.setdefault(bucket_start(point.date, granularity), _Bucket())
        bucket.artists.add(point.artist_id)
        if point.metric_type == MetricType.FOLLOWERS:
            bucket.platforms[point.platform] = (
                bucket.platforms.get(point.platform, 0.0) + point.value
            )
        else:
            bucket.engagement += point.value

    followers: list[FollowerSeriesPoint] = []
    reach: list[SeriesPoint] = []
    engagement: list[SeriesPoint] = []
    for label in sorted(buckets):
        bucket = buckets[label]
        count = len(bucket.artists)
        followers.append(
            FollowerSeriesPoint(
                date=label,
                platforms=dict(sorted(bucket.platforms.items())),
                total=bucket.reach,
                artist_count=count,
                artist_names=tuple(sorted({names.get(a, a) for a in bucket.artists})),
            )
        )
        reach.append(SeriesPoint(date=label, value=bucket.reach, artist_count=count))
        engagement.append(SeriesPoint(date=label, value=bucket.engagement, artist_count=count))

    return AggregatedCharts(
        followers_by_platform=followers,
        total_reach=reach,
        total_engagement=engagement,
    )
