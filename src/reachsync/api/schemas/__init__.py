"""API request/response schemas (camelCase on the wire)."""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reachsync.domain.dtos import ChartResponse, SyncResult


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncRequest(CamelModel):
    """Request schema for syncing an account with an external artist."""

    account_id: str = Field(..., min_length=1, description="Owning account")
    external_id: str = Field(..., min_length=1, description="Provider artist id")


class WarningSchema(CamelModel):
    code: str
    subject: str
    message: str


class SyncedArtist(CamelModel):
    external_id: str
    name: str
    image_url: str | None = None


class SyncResponse(CamelModel):
    """Response schema for a sync: always well-shaped, even when it failed."""

    success: bool
    artist: SyncedArtist | None = None
    warnings: list[WarningSchema] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncResponse":
        return cls.model_validate(result.to_response())


class DateRangeSchema(CamelModel):
    start: date
    end: date


class SeriesPointSchema(CamelModel):
    date: date
    value: float
    artist_count: int


class FollowerSeriesPointSchema(CamelModel):
    date: date
    platforms: dict[str, float]
    total: float
    artist_count: int
    artist_names: list[str] = Field(default_factory=list)


class ChartSeries(CamelModel):
    followers_by_platform: list[FollowerSeriesPointSchema]
    total_reach: list[SeriesPointSchema]
    total_engagement: list[SeriesPointSchema]


class ChartsResponse(CamelModel):
    """Response schema for the chart query."""

    charts: ChartSeries
    date_range: DateRangeSchema
    granularity: str
    time_filter: str
    artist_count: int
    total_data_points: int

    @classmethod
    def from_response(cls, response: ChartResponse) -> "ChartsResponse":
        charts = response.charts
        payload: dict[str, Any] = {
            "charts": {
                "followers_by_platform": [
                    {
                        "date": p.date,
                        "platforms": p.platforms,
                        "total": p.total,
                        "artist_count": p.artist_count,
                        "artist_names": list(p.artist_names),
                    }
                    for p in charts.followers_by_platform
                ],
                "total_reach": [
                    {"date": p.date, "value": p.value, "artist_count": p.artist_count}
                    for p in charts.total_reach
                ],
                "total_engagement": [
                    {"date": p.date, "value": p.value, "artist_count": p.artist_count}
                    for p in charts.total_engagement
                ],
            },
            "date_range": {"start": response.date_range.start, "end": response.date_range.end},
            "granularity": response.granularity,
            "time_filter": response.time_filter,
            "artist_count": response.artist_count,
            "total_data_points": response.total_data_points,
        }
        return cls.model_validate(payload)


__all__ = [
    "ChartsResponse",
    "SyncRequest",
    "SyncResponse",
]
