"""FastAPI dependencies.

Services are built once in the lifespan and stored on app.state; these
helpers hand them to the routers.
"""

from fastapi import Request

from reachsync.application.services.canonical_sync_service import CanonicalSyncService
from reachsync.application.services.chart_query_service import ChartQueryService
from reachsync.infrastructure.persistence.database import Database


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_sync_service(request: Request) -> CanonicalSyncService:
    return request.app.state.sync_service


def get_chart_service(request: Request) -> ChartQueryService:
    return request.app.state.chart_service
