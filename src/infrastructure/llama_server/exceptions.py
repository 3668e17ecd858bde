"""Exceptions for the llama-server process supervisor."""


class LlamaServerError(Exception):
    """Base exception for llama-server process management errors."""

    def __init__(self, message: str, *, binary: str = "llama-server") -> None:
        self.binary = binary
        super().__init__(message)


class LlamaServerSpawnError(LlamaServerError):
    """Raised when the llama-server process cannot be started."""


class LlamaServerStopError(LlamaServerError):
    """Raised when the tracked llama-server process cannot be killed."""
