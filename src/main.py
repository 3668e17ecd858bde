"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.errors import register_exception_handlers
from src.api.health import router as health_router
from src.api.llama_server import router as llama_server_router
from src.config import get_settings
from src.infrastructure.observability import (
    configure_logging,
    init_observability,
    shutdown_observability,
)
from src.modules.rag.routes import router as rag_router
from src.state import AppState

logger = structlog.get_logger()
settings = get_settings()

configure_logging(settings.log_level, json_logs=settings.log_json)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Create the shared state on startup; stop llama-server on shutdown."""
    app_state = AppState.from_settings(settings)
    app.state.app_state = app_state
    logger.info(
        "app_started",
        app=settings.app_name,
        version=settings.app_version,
        llama_server_url=settings.llama_server_url,
    )

    yield

    await app_state.shutdown()
    app.state.app_state = None
    shutdown_observability()
    logger.info("app_stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

init_observability(
    settings.app_name,
    settings.app_version,
    otlp_endpoint=settings.otlp_endpoint,
    console_export=settings.trace_console_export,
    enabled=settings.tracing_enabled,
    app=app,
)

register_exception_handlers(app)

# Register routers
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(llama_server_router)
app.include_router(rag_router)


def run() -> None:
    """Serve the sidecar on the configured host and port."""
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
