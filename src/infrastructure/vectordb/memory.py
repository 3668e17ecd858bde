"""In-memory vector store with linear-scan cosine ranking."""

import asyncio
import math

import structlog

from src.infrastructure.observability import get_tracer
from src.infrastructure.vectordb.protocol import DocumentChunk, RetrievalResult
from src.infrastructure.vectordb.similarity import cosine_similarity

logger = structlog.get_logger()
tracer = get_tracer(__name__)


def _score(query: list[float], embedding: list[float]) -> float:
    """Cosine score, with anything non-finite ranked as unrelated."""
    score = cosine_similarity(query, embedding)
    return score if math.isfinite(score) else 0.0


class InMemoryVectorStore:
    """Vector store holding chunks in a list for the lifetime of the process.

    Every operation takes the store lock for a single read or write only.
    Nothing is persisted; the index is rebuilt by re-indexing after a
    restart.
    """

    PROVIDER_NAME = "memory"

    def __init__(self) -> None:
        self._chunks: list[DocumentChunk] = []
        self._lock = asyncio.Lock()

    async def add_chunks(self, chunks: list[DocumentChunk]) -> None:
        """Append chunks to the store under one lock acquisition.

        Args:
            chunks: Chunks with embeddings, in document order.
        """
        if not chunks:
            return

        async with self._lock:
            self._chunks.extend(chunks)
            total_count = len(self._chunks)

        logger.debug(
            "memory_chunks_added",
            provider=self.PROVIDER_NAME,
            count=len(chunks),
            total_count=total_count,
        )

    async def query(
        self,
        embedding: list[float],
        *,
        top_k: int = 3,
    ) -> list[RetrievalResult]:
        """Rank every stored chunk by cosine similarity to the embedding.

        Ties keep insertion order because the sort is stable.

        Args:
            embedding: Query embedding vector.
            top_k: Number of results to return.

        Returns:
            At most top_k results, most similar first.
        """
        with tracer.start_as_current_span("vectordb.query") as span:
            span.set_attribute("vectordb.provider", self.PROVIDER_NAME)
            span.set_attribute("vectordb.top_k", top_k)

            async with self._lock:
                snapshot = list(self._chunks)

            span.set_attribute("vectordb.collection_size", len(snapshot))
            if top_k <= 0 or not snapshot:
                return []

            scored = [
                RetrievalResult(
                    content=chunk.content,
                    score=_score(embedding, chunk.embedding),
                    position=position,
                )
                for position, chunk in enumerate(snapshot)
            ]
            scored.sort(key=lambda result: result.score, reverse=True)
            results = scored[:top_k]

            span.set_attribute("vectordb.results_count", len(results))
            span.set_attribute("vectordb.top_score", results[0].score)

            logger.debug(
                "memory_query_success",
                provider=self.PROVIDER_NAME,
                top_k=top_k,
                results_count=len(results),
            )
            return results

    async def clear(self) -> None:
        """Remove every chunk from the store."""
        async with self._lock:
            removed = len(self._chunks)
            self._chunks.clear()

        logger.info("memory_cleared", provider=self.PROVIDER_NAME, removed=removed)

    def count(self) -> int:
        """Return the number of chunks in the store."""
        return len(self._chunks)

    def snapshot(self) -> list[DocumentChunk]:
        """Return a copy of the stored chunks in insertion order."""
        return list(self._chunks)
