"""Embedding provider infrastructure.

Embeddings come from the locally spawned llama-server; the Protocol keeps
the RAG service independent of that backend.
"""

from src.infrastructure.embeddings.exceptions import (
    EmbeddingConnectionError,
    EmbeddingProviderError,
    EmbeddingResponseError,
    EmbeddingStatusError,
    EmbeddingTimeoutError,
)
from src.infrastructure.embeddings.llama_server import LlamaServerEmbeddingProvider
from src.infrastructure.embeddings.protocol import EmbeddingProvider

__all__ = [
    "EmbeddingConnectionError",
    "EmbeddingProvider",
    "EmbeddingProviderError",
    "EmbeddingResponseError",
    "EmbeddingStatusError",
    "EmbeddingTimeoutError",
    "LlamaServerEmbeddingProvider",
]
