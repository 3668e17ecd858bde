"""Health check endpoints."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.dependencies import get_app_state
from src.config import Settings, get_settings
from src.infrastructure.llama_server import ServerState
from src.state import AppState

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["healthy"]
    version: str
    llama_server: ServerState
    indexed_chunks: int


@router.get("", response_model=HealthResponse)
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
    app_state: Annotated[AppState, Depends(get_app_state)],
) -> HealthResponse:
    """Report sidecar liveness plus backend state and index size.

    The sidecar is healthy even while llama-server is stopped; the UI uses
    the llama_server field to decide whether to start it.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        llama_server=app_state.supervisor.state,
        indexed_chunks=app_state.rag.count(),
    )
