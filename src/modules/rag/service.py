"""RAG service: index documents and retrieve context for queries."""

import structlog

from src.infrastructure.embeddings import EmbeddingProvider
from src.infrastructure.observability import get_tracer
from src.infrastructure.vectordb import DocumentChunk, VectorStore
from src.modules.rag.chunker import ChunkingConfig, chunk_text
from src.modules.rag.prompts import build_rag_prompt
from src.modules.rag.schemas import IndexingResult, RAGPrompt

logger = structlog.get_logger()
tracer = get_tracer(__name__)

# Separator between chunk contents in a context string
CONTEXT_DELIMITER = "\n\n---\n\n"


class RAGService:
    """Orchestrates indexing and retrieval over the vector store.

    Indexing is all-or-nothing per call: chunks are embedded one by one into
    a local buffer and only merged into the store once every chunk has an
    embedding. The store lock is never held while waiting on the backend.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        *,
        top_k: int = 3,
        chunk_size: int = 512,
        chunk_overlap: int = 50,
    ) -> None:
        """Initialize the RAG service.

        Args:
            embedding_provider: Provider for generating embeddings.
            vector_store: Store for document chunks.
            top_k: Default number of chunks per retrieval.
            chunk_size: Maximum chunk size in characters.
            chunk_overlap: Overlap between chunks in characters.

        Raises:
            ValueError: If chunk_overlap is not smaller than chunk_size.
        """
        self._embeddings = embedding_provider
        self._store = vector_store
        self._top_k = top_k
        self._chunking_config = ChunkingConfig(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
        )

    async def index_text(self, text: str) -> IndexingResult:
        """Chunk, embed and store a document.

        Args:
            text: Raw document text.

        Returns:
            IndexingResult with the number of chunks added.

        Raises:
            EmbeddingProviderError: If any chunk fails to embed. Nothing from
                this call is stored in that case.
        """
        if not text.strip():
            logger.info("rag_index_skipped_blank", content_length=len(text))
            return IndexingResult(chunks_indexed=0, total_chunks=self._store.count())

        with tracer.start_as_current_span("rag.index_text") as span:
            pieces = chunk_text(text, self._chunking_config)
            span.set_attribute("rag.content_length", len(text))
            span.set_attribute("rag.chunk_count", len(pieces))

            staged: list[DocumentChunk] = []
            for position, piece in enumerate(pieces):
                try:
                    embedding = await self._embeddings.embed(piece)
                except Exception:
                    logger.error(
                        "rag_index_aborted",
                        failed_chunk=position,
                        chunk_count=len(pieces),
                        discarded=len(staged),
                    )
                    raise
                staged.append(DocumentChunk(content=piece, embedding=embedding))

            await self._store.add_chunks(staged)
            total = self._store.count()

        logger.info(
            "rag_indexed",
            content_length=len(text),
            chunks_indexed=len(staged),
            total_chunks=total,
        )
        return IndexingResult(chunks_indexed=len(staged), total_chunks=total)

    async def retrieve_context(self, query: str, *, top_k: int | None = None) -> str:
        """Return the best matching chunk contents for a query.

        Args:
            query: The user's query.
            top_k: Number of chunks to include (defaults to the service top_k).

        Returns:
            Contents of the top chunks joined by CONTEXT_DELIMITER, or an
            empty string when nothing is indexed.

        Raises:
            EmbeddingProviderError: If the query cannot be embedded.
        """
        k = top_k if top_k is not None else self._top_k

        with tracer.start_as_current_span("rag.retrieve_context") as span:
            span.set_attribute("rag.query_length", len(query))
            span.set_attribute("rag.top_k", k)

            query_embedding = await self._embeddings.embed(query)

            if self._store.count() == 0:
                logger.info("rag_no_documents", query_length=len(query))
                return ""

            results = await self._store.query(query_embedding, top_k=k)
            span.set_attribute("rag.results_count", len(results))

        logger.info(
            "rag_context_retrieved",
            query_length=len(query),
            results_count=len(results),
            top_score=results[0].score if results else None,
        )
        return CONTEXT_DELIMITER.join(result.content for result in results)

    async def build_prompt(self, query: str, *, top_k: int | None = None) -> RAGPrompt:
        """Retrieve context for a query and wrap it in a system prompt.

        Raises:
            EmbeddingProviderError: If the query cannot be embedded.
        """
        context = await self.retrieve_context(query, top_k=top_k)
        return RAGPrompt(
            query=query,
            context=context,
            system_prompt=build_rag_prompt(context),
        )

    async def clear(self) -> None:
        """Remove every indexed chunk."""
        await self._store.clear()
        logger.info("rag_context_cleared")

    def count(self) -> int:
        """Return the number of indexed chunks."""
        return self._store.count()
