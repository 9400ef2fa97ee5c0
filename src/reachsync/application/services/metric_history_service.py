"""Turns normalized artist data into dated metric points and stores them."""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from reachsync.domain.dtos import NormalizedArtist
from reachsync.domain.entities import MetricPoint, MetricType
from reachsync.infrastructure.persistence.repositories import MetricPointRepository

logger = logging.getLogger(__name__)


class MetricHistoryService:
    """Writes the chart history of one artist.

    Two sources feed it: the historical series the provider returned, and a
    snapshot of today's values (current followers per platform, Spotify monthly
    listeners as streams). Zero snapshot values are skipped, a zero usually means
    "not reported" and would drag chart totals down for the day.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.repository = MetricPointRepository(session)

    @staticmethod
    def build_points(
        artist_id: str, normalized: NormalizedArtist, today: date
    ) -> list[MetricPoint]:
        points = [
            MetricPoint(
                artist_id=artist_id,
                date=value.date,
                platform=value.platform,
                metric_type=value.metric_type,
                value=value.value,
            )
            for value in normalized.metric_series
        ]
        # Snapshot goes last: for today it overrides a same-day historical value
        for platform, followers in normalized.platform_follower_map.items():
            if followers:
                points.append(
                    MetricPoint(artist_id, today, platform, MetricType.FOLLOWERS, float(followers))
                )
        if normalized.spotify_monthly_listeners:
            points.append(
                MetricPoint(
                    artist_id,
                    today,
                    "spotify",
                    MetricType.STREAMS,
                    float(normalized.spotify_monthly_listeners),
                )
            )
        return points

    async def record(self, artist_id: str, normalized: NormalizedArtist, today: date) -> int:
        """Upsert the artist's points. Returns the number of points written."""
        points = self.build_points(artist_id, normalized, today)
        written = await self.repository.upsert_many(points)
        logger.debug(
            f"Recorded {written} metric points",
            extra={"artist_id": artist_id, "points": written},
        )
        return written
