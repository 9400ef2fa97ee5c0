"""Chart query endpoint."""

from fastapi import APIRouter, Depends, Query

from reachsync.api.dependencies import get_chart_service
from reachsync.api.schemas import ChartsResponse
from reachsync.application.services.chart_query_service import ChartQueryService
from reachsync.domain.entities import TimeFilter

router = APIRouter()


@router.get("/charts", response_model=ChartsResponse)
async def get_charts(
    account_id: str = Query(..., alias="accountId", min_length=1),
    time_filter: TimeFilter = Query(TimeFilter.ONE_MONTH, alias="timeFilter"),
    service: ChartQueryService = Depends(get_chart_service),
) -> ChartsResponse:
    """Follower, reach and engagement series for the account's artist.

    1m = daily over the last month, 3m = weekly, 6m = monthly,
    all = monthly over two years.
    """
    response = await service.query(account_id, time_filter)
    return ChartsResponse.from_response(response)
