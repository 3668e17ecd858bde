"""Map infrastructure errors to single-string JSON error responses."""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.infrastructure.embeddings import (
    EmbeddingConnectionError,
    EmbeddingProviderError,
    EmbeddingResponseError,
    EmbeddingStatusError,
    EmbeddingTimeoutError,
)
from src.infrastructure.llama_server import (
    LlamaServerError,
    LlamaServerSpawnError,
    LlamaServerStopError,
)

logger = structlog.get_logger()

# Most specific classes first; the first isinstance match wins
ERROR_RESPONSES: list[tuple[type[Exception], int, str]] = [
    (EmbeddingTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "embedding_timeout"),
    (EmbeddingConnectionError, status.HTTP_503_SERVICE_UNAVAILABLE, "embedding_unavailable"),
    (EmbeddingStatusError, status.HTTP_502_BAD_GATEWAY, "embedding_upstream_error"),
    (EmbeddingResponseError, status.HTTP_502_BAD_GATEWAY, "embedding_malformed_response"),
    (EmbeddingProviderError, status.HTTP_502_BAD_GATEWAY, "embedding_error"),
    (LlamaServerSpawnError, status.HTTP_500_INTERNAL_SERVER_ERROR, "llama_server_spawn_failed"),
    (LlamaServerStopError, status.HTTP_500_INTERNAL_SERVER_ERROR, "llama_server_stop_failed"),
    (LlamaServerError, status.HTTP_500_INTERNAL_SERVER_ERROR, "llama_server_error"),
]  # fmt: skip


def error_response(exc: Exception) -> JSONResponse:
    """Build the JSON error response for a command failure."""
    for error_type, status_code, kind in ERROR_RESPONSES:
        if isinstance(exc, error_type):
            return JSONResponse(
                status_code=status_code,
                content={"error": kind, "details": str(exc)},
            )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "details": str(exc)},
    )


async def command_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report a failed command to the UI as one error string."""
    response = error_response(exc)
    logger.warning(
        "command_failed",
        path=request.url.path,
        status_code=response.status_code,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Install command_error_handler for every infrastructure error family."""
    app.add_exception_handler(EmbeddingProviderError, command_error_handler)
    app.add_exception_handler(LlamaServerError, command_error_handler)
