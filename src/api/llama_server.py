"""Commands that start, stop and inspect the llama-server backend."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.api.dependencies import get_app_state
from src.config import Settings, get_settings
from src.infrastructure.llama_server import (
    LlamaServerConfig,
    LlamaServerStatus,
    ServerState,
)
from src.state import AppState

logger = structlog.get_logger()

router = APIRouter(prefix="/llama-server", tags=["llama-server"])


class StartRequest(LlamaServerConfig):
    """Launch options plus whether to wait for the model to load."""

    wait_for_ready: bool = Field(default=False, alias="waitForReady")


class StatusResponse(BaseModel):
    """Snapshot of the backend process."""

    state: ServerState
    pid: int | None
    returncode: int | None
    args: list[str]
    ready: bool | None = None

    @classmethod
    def from_status(
        cls, status: LlamaServerStatus, *, ready: bool | None = None
    ) -> "StatusResponse":
        """Create from a supervisor status snapshot."""
        return cls(
            state=status.state,
            pid=status.pid,
            returncode=status.returncode,
            args=status.args,
            ready=ready,
        )


class CommandResponse(BaseModel):
    """Message plus the resulting backend status."""

    message: str
    status: StatusResponse


@router.post("/start", response_model=CommandResponse)
async def start_llama_server(
    data: StartRequest,
    app_state: Annotated[AppState, Depends(get_app_state)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CommandResponse:
    """Start llama-server, replacing any running instance."""
    config = LlamaServerConfig.model_validate(
        data.model_dump(exclude={"wait_for_ready"})
    )
    status = await app_state.supervisor.start(config)

    ready: bool | None = None
    if data.wait_for_ready:
        ready = await app_state.supervisor.wait_until_ready(
            timeout_seconds=settings.llama_server_ready_timeout_seconds,
            interval_seconds=settings.llama_server_ready_interval_seconds,
        )

    return CommandResponse(
        message="llama-server start command issued.",
        status=StatusResponse.from_status(status, ready=ready),
    )


@router.post("/stop", response_model=CommandResponse)
async def stop_llama_server(
    app_state: Annotated[AppState, Depends(get_app_state)],
) -> CommandResponse:
    """Stop llama-server; succeeds when nothing is running."""
    stopped = await app_state.supervisor.stop()
    message = "llama-server stopped." if stopped else "llama-server was not running."
    return CommandResponse(
        message=message,
        status=StatusResponse.from_status(app_state.supervisor.status()),
    )


@router.get("/status", response_model=StatusResponse)
async def llama_server_status(
    app_state: Annotated[AppState, Depends(get_app_state)],
) -> StatusResponse:
    """Report the state of the backend process."""
    return StatusResponse.from_status(app_state.supervisor.status())


@router.get("/ready", response_model=StatusResponse)
async def llama_server_ready(
    app_state: Annotated[AppState, Depends(get_app_state)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> StatusResponse:
    """Block until the backend reports healthy or the ready timeout elapses."""
    ready = await app_state.supervisor.wait_until_ready(
        timeout_seconds=settings.llama_server_ready_timeout_seconds,
        interval_seconds=settings.llama_server_ready_interval_seconds,
    )
    if not ready:
        logger.warning("llama_server_ready_poll_failed")
    return StatusResponse.from_status(app_state.supervisor.status(), ready=ready)
