"""Tests for calendar bucketing and chart series."""

from datetime import date

import pytest

from reachsync.application.services.time_bucket_aggregator import (
    aggregate,
    bucket_range,
    bucket_start,
)
from reachsync.domain.entities import Granularity, MetricPoint, MetricType


def followers(artist: str, day: date, platform: str, value: float) -> MetricPoint:
    return MetricPoint(artist, day, platform, MetricType.FOLLOWERS, value)


class TestBucketStart:
    @pytest.mark.parametrize("day", range(1, 8))
    def test_week_of_2024_01_01(self, day: int) -> None:
        """2024-01-01 is a Monday; the whole week lands on it, Sunday included."""
        assert bucket_start(date(2024, 1, day), Granularity.WEEK) == date(2024, 1, 1)

    def test_next_monday_starts_new_week(self) -> None:
        assert bucket_start(date(2024, 1, 8), "week") == date(2024, 1, 8)

    def test_month(self) -> None:
        assert bucket_start(date(2024, 2, 15), Granularity.MONTH) == date(2024, 2, 1)

    def test_day(self) -> None:
        assert bucket_start(date(2024, 2, 15), "day") == date(2024, 2, 15)

    def test_unknown_granularity(self) -> None:
        with pytest.raises(ValueError):
            bucket_start(date(2024, 2, 15), "year")


class TestBucketRange:
    def test_month_range_crosses_year(self) -> None:
        assert bucket_range(date(2023, 11, 20), date(2024, 1, 3), "month") == [
            date(2023, 11, 1),
            date(2023, 12, 1),
            date(2024, 1, 1),
        ]

    def test_week_range(self) -> None:
        assert bucket_range(date(2024, 1, 3), date(2024, 1, 15), "week") == [
            date(2024, 1, 1),
            date(2024, 1, 8),
            date(2024, 1, 15),
        ]


class TestAggregate:
    def test_followers_summed_per_platform_and_reach(self) -> None:
        points = [
            followers("a", date(2024, 1, 1), "spotify", 100),
            followers("b", date(2024, 1, 2), "spotify", 50),
            followers("a", date(2024, 1, 3), "instagram", 20),
        ]

        charts = aggregate(points, ["a", "b"], Granularity.WEEK)

        assert len(charts.followers_by_platform) == 1
        bucket = charts.followers_by_platform[0]
        assert bucket.date == date(2024, 1, 1)
        assert bucket.platforms == {"instagram": 20, "spotify": 150}
        assert bucket.total == 170
        assert bucket.artist_count == 2
        assert charts.total_reach[0].value == 170

    def test_engagement_and_streams_go_to_engagement(self) -> None:
        points = [
            MetricPoint("a", date(2024, 2, 3), "instagram", MetricType.ENGAGEMENT, 10),
            MetricPoint("a", date(2024, 2, 20), "spotify", MetricType.STREAMS, 5),
            followers("a", date(2024, 2, 10), "spotify", 100),
        ]

        charts = aggregate(points, ["a"], "month")

        assert charts.total_engagement[0].value == 15
        assert charts.total_reach[0].value == 100
        assert charts.followers_by_platform[0].platforms == {"spotify": 100}

    def test_string_metric_type_is_accepted(self) -> None:
        point = MetricPoint("a", date(2024, 2, 3), "spotify", "followers", 7)  # type: ignore[arg-type]

        charts = aggregate([point], ["a"], "day")

        assert charts.total_reach[0].value == 7

    def test_points_of_unowned_artists_are_ignored(self) -> None:
        points = [
            followers("mine", date(2024, 1, 1), "spotify", 10),
            followers("theirs", date(2024, 1, 1), "spotify", 999),
        ]

        charts = aggregate(points, ["mine"], "day")

        assert charts.total_reach[0].value == 10
        assert charts.total_reach[0].artist_count == 1

    def test_buckets_sorted_ascending(self) -> None:
        points = [
            followers("a", date(2024, 3, 5), "spotify", 3),
            followers("a", date(2024, 1, 5), "spotify", 1),
            followers("a", date(2024, 2, 5), "spotify", 2),
        ]

        charts = aggregate(points, ["a"], "month")

        assert [p.date for p in charts.total_reach] == [
            date(2024, 1, 1),
            date(2024, 2, 1),
            date(2024, 3, 1),
        ]
        assert [p.value for p in charts.total_reach] == [1, 2, 3]

    def test_artist_names(self) -> None:
        points = [
            followers("a", date(2024, 1, 1), "spotify", 1),
            followers("b", date(2024, 1, 1), "spotify", 1),
        ]

        charts = aggregate(points, ["a", "b"], "day", artist_names={"a": "Zed", "b": "Amy"})

        assert charts.followers_by_platform[0].artist_names == ("Amy", "Zed")

    def test_window_zero_fills_and_drops_outside(self) -> None:
        points = [
            followers("a", date(2024, 1, 2), "spotify", 5),
            followers("a", date(2023, 12, 31), "spotify", 100),
        ]

        charts = aggregate(
            points, ["a"], "day", start=date(2024, 1, 1), end=date(2024, 1, 3)
        )

        assert [(p.date, p.value, p.artist_count) for p in charts.total_reach] == [
            (date(2024, 1, 1), 0.0, 0),
            (date(2024, 1, 2), 5.0, 1),
            (date(2024, 1, 3), 0.0, 0),
        ]
        assert charts.total_engagement[1].value == 0.0

    def test_no_points_no_window_is_empty(self) -> None:
        charts = aggregate([], ["a"], "week")

        assert charts.followers_by_platform == []
        assert charts.total_reach == []
        assert charts.total_engagement == []

    def test_series_share_dates(self) -> None:
        points = [
            followers("a", date(2024, 1, 1), "spotify", 1),
            MetricPoint("a", date(2024, 1, 9), "tiktok", MetricType.ENGAGEMENT, 4),
        ]

        charts = aggregate(points, ["a"], "week")

        dates = [p.date for p in charts.followers_by_platform]
        assert dates == [p.date for p in charts.total_reach]
        assert dates == [p.date for p in charts.total_engagement]
