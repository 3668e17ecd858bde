"""Protocol definition for embedding providers."""

from typing import Protocol


class EmbeddingProvider(Protocol):
    """Protocol for embedding provider implementations.

    The RAG service only depends on this interface, so tests and other
    local backends can stand in for llama-server.
    """

    async def embed(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector as a non-empty list of floats.

        Raises:
            EmbeddingProviderError: If embedding generation fails.
        """
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for multiple texts, in input order.

        Raises:
            EmbeddingProviderError: On the first text that fails.
        """
        ...

    async def close(self) -> None:
        """Release any underlying connections."""
        ...
