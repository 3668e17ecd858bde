"""Vector store infrastructure.

This module provides a Protocol-based abstraction for vector stores and
the in-memory implementation used by the sidecar.
"""

from src.infrastructure.vectordb.exceptions import VectorStoreError
from src.infrastructure.vectordb.memory import InMemoryVectorStore
from src.infrastructure.vectordb.protocol import (
    DocumentChunk,
    RetrievalResult,
    VectorStore,
)
from src.infrastructure.vectordb.similarity import cosine_similarity

__all__ = [
    "DocumentChunk",
    "InMemoryVectorStore",
    "RetrievalResult",
    "VectorStore",
    "VectorStoreError",
    "cosine_similarity",
]
