"""API router initialization."""

from fastapi import APIRouter

from reachsync.api.routers import charts, health, sync

# Mounted under settings.api_prefix ("/api") in main.py. health is mounted at the root.
api_router = APIRouter()
api_router.include_router(sync.router, tags=["Sync"])
api_router.include_router(charts.router, tags=["Charts"])

__all__ = ["api_router", "charts", "health", "sync"]
