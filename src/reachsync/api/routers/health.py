"""Health check endpoint."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from reachsync.api.dependencies import get_database
from reachsync.infrastructure.persistence.database import Database

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: str = Field(description="healthy or unhealthy")
    timestamp: str = Field(description="ISO timestamp of health check")
    database: bool = Field(description="Database connection OK")
    provider_configured: bool = Field(description="Provider access key present")


@router.get("/health", response_model=HealthStatus)
async def health(database: Database = Depends(get_database)) -> JSONResponse:
    """Returns 200 when the database answers, 503 otherwise."""
    db_ok = True
    try:
        async with database.session_scope() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check: database unreachable", exc_info=True)
        db_ok = False

    body = HealthStatus(
        status="healthy" if db_ok else "unhealthy",
        timestamp=datetime.now(UTC).isoformat(),
        database=db_ok,
        provider_configured=database.settings.provider.is_configured,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )
