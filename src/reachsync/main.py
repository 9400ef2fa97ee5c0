"""FastAPI application entry point."""

from fastapi import FastAPI

from reachsync.api.exception_handlers import register_exception_handlers
from reachsync.api.routers import api_router, health
from reachsync.config import Settings, get_settings
from reachsync.infrastructure.lifecycle import lifespan
from reachsync.infrastructure.observability import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Tests pass their own settings."""
    settings = settings or get_settings()

    app = FastAPI(
        title="ReachSync",
        description="Artist statistics reconciliation and chart aggregation",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


def run() -> None:
    """Console entry point: serve with uvicorn."""
    import uvicorn

    uvicorn.run("reachsync.main:create_app", factory=True, host="0.0.0.0", port=8000)
