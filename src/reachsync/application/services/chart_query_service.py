"""Chart query: time filter -> window + granularity -> aggregated series."""

import calendar
import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime

from reachsync.application.services.time_bucket_aggregator import aggregate
from reachsync.domain.dtos import ChartResponse, DateRange
from reachsync.domain.entities import Granularity, TimeFilter
from reachsync.domain.exceptions import ValidationError
from reachsync.infrastructure.persistence.database import Database
from reachsync.infrastructure.persistence.models import utc_now
from reachsync.infrastructure.persistence.repositories import (
    ArtistRepository,
    MetricPointRepository,
)

logger = logging.getLogger(__name__)

# time filter -> (months back, bucket size)
TIME_FILTER_WINDOWS: dict[TimeFilter, tuple[int, Granularity]] = {
    TimeFilter.ONE_MONTH: (1, Granularity.DAY),
    TimeFilter.THREE_MONTHS: (3, Granularity.WEEK),
    TimeFilter.SIX_MONTHS: (6, Granularity.MONTH),
    TimeFilter.ALL: (24, Granularity.MONTH),
}


def subtract_months(day: date, months: int) -> date:
    """Same day ``months`` calendar months earlier, clamped to the month's end.

    2024-03-31 minus 1 month is 2024-02-29.
    """
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def parse_time_filter(raw: str | TimeFilter) -> TimeFilter:
    try:
        return TimeFilter(raw)
    except ValueError as e:
        allowed = ", ".join(f.value for f in TimeFilter)
        raise ValidationError(f"Unknown time filter {raw!r}, expected one of: {allowed}") from e


def resolve_window(time_filter: str | TimeFilter, today: date) -> tuple[DateRange, Granularity]:
    """Date window and granularity for a time filter, ending today."""
    months, granularity = TIME_FILTER_WINDOWS[parse_time_filter(time_filter)]
    return DateRange(start=subtract_months(today, months), end=today), granularity


class ChartQueryService:
    """Reads metric history and hands it to the aggregator."""

    def __init__(self, database: Database, clock: Callable[[], datetime] = utc_now) -> None:
        self.database = database
        self.clock = clock

    async def query(
        self,
        account_id: str,
        time_filter: str | TimeFilter,
        today: date | None = None,
    ) -> ChartResponse:
        """Charts for the artist currently bound to ``account_id``.

        An account without an artist gets well-formed all-zero series.
        """
        async with self.database.session_scope() as session:
            artist = await ArtistRepository(session).get_by_account_id(account_id)
        artist_ids = [artist.id] if artist is not None else []
        return await self.query_for_artists(artist_ids, time_filter, today=today)

    async def query_for_artists(
        self,
        artist_ids: Iterable[str],
        time_filter: str | TimeFilter,
        today: date | None = None,
    ) -> ChartResponse:
        """Charts summed over several artists (agency rollup)."""
        selected = parse_time_filter(time_filter)
        date_range, granularity = resolve_window(selected, today or self.clock().date())
        ids = sorted(set(artist_ids))

        async with self.database.session_scope() as session:
            artists = await ArtistRepository(session).list_by_ids(ids)
            points = await MetricPointRepository(session).list_for_artists(
                ids, date_range.start, date_range.end
            )

        charts = aggregate(
            points,
            ids,
            granularity,
            artist_names={a.id: a.display_name for a in artists},
            start=date_range.start,
            end=date_range.end,
        )
        logger.debug(
            f"Chart query {selected.value}: {len(points)} points, {len(ids)} artists",
            extra={"time_filter": selected.value, "granularity": granularity.value},
        )
        return ChartResponse(
            charts=charts,
            date_range=date_range,
            granularity=granularity.value,
            time_filter=selected.value,
            artist_count=len(artists),
            total_data_points=len(points),
        )
