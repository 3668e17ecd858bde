"""Supervision of the llama-server inference backend process."""

from src.infrastructure.llama_server.arguments import (
    EMBEDDING_FLAGS,
    LlamaServerConfig,
    build_server_args,
)
from src.infrastructure.llama_server.exceptions import (
    LlamaServerError,
    LlamaServerSpawnError,
    LlamaServerStopError,
)
from src.infrastructure.llama_server.health import LlamaServerHealthChecker
from src.infrastructure.llama_server.supervisor import (
    LlamaServerStatus,
    LlamaServerSupervisor,
    ServerState,
)

__all__ = [
    "EMBEDDING_FLAGS",
    "LlamaServerConfig",
    "LlamaServerError",
    "LlamaServerHealthChecker",
    "LlamaServerSpawnError",
    "LlamaServerStatus",
    "LlamaServerStopError",
    "LlamaServerSupervisor",
    "ServerState",
    "build_server_args",
]
