"""Protocol definition for vector store providers."""

from dataclasses import dataclass
from typing import Protocol

from src.infrastructure.vectordb.exceptions import VectorStoreError


@dataclass(frozen=True)
class DocumentChunk:
    """A slice of document text together with its embedding."""

    content: str
    embedding: list[float]

    def __post_init__(self) -> None:
        """Reject chunks that carry no embedding."""
        if not self.embedding:
            raise VectorStoreError(
                "Cannot store a chunk without an embedding",
                provider="memory",
            )


@dataclass
class RetrievalResult:
    """Result from a vector similarity search."""

    content: str
    score: float  # Cosine similarity, higher is better
    position: int  # Insertion index in the store


class VectorStore(Protocol):
    """Protocol for vector store implementations.

    This allows swapping between different vector store backends
    without changing business logic.
    """

    async def add_chunks(self, chunks: list[DocumentChunk]) -> None:
        """Append chunks to the store in a single step.

        Args:
            chunks: Chunks with embeddings, in document order.
        """
        ...

    async def query(
        self,
        embedding: list[float],
        *,
        top_k: int = 3,
    ) -> list[RetrievalResult]:
        """Return the top_k chunks most similar to the embedding.

        Args:
            embedding: Query embedding vector.
            top_k: Number of results to return.

        Returns:
            Results sorted by descending similarity.
        """
        ...

    async def clear(self) -> None:
        """Remove every chunk from the store."""
        ...

    def count(self) -> int:
        """Return the number of chunks in the store."""
        ...
