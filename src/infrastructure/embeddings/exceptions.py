"""Exceptions for embedding providers."""


class EmbeddingProviderError(Exception):
    """Base exception for embedding provider errors."""

    def __init__(self, message: str, *, provider: str = "unknown") -> None:
        self.provider = provider
        super().__init__(message)


class EmbeddingConnectionError(EmbeddingProviderError):
    """Raised when the embedding endpoint cannot be reached."""


class EmbeddingTimeoutError(EmbeddingProviderError):
    """Raised when an embedding request times out."""


class EmbeddingStatusError(EmbeddingProviderError):
    """Raised when the embedding endpoint answers with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: str,
        provider: str = "unknown",
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message, provider=provider)


class EmbeddingResponseError(EmbeddingProviderError):
    """Raised when the response cannot be decoded or holds no vector."""
