"""Process-wide application state shared by all commands."""

import structlog

from src.config import Settings
from src.infrastructure.embeddings import (
    EmbeddingProvider,
    LlamaServerEmbeddingProvider,
)
from src.infrastructure.llama_server import (
    LlamaServerError,
    LlamaServerHealthChecker,
    LlamaServerSupervisor,
)
from src.infrastructure.vectordb import InMemoryVectorStore
from src.modules.rag.service import RAGService

logger = structlog.get_logger()


class AppState:
    """Owns the vector store and the llama-server supervisor.

    Each resource guards itself with its own lock; commands reach them only
    through ``rag`` and ``supervisor``. Created when the application starts
    and shut down when it exits.
    """

    def __init__(
        self,
        *,
        rag: RAGService,
        supervisor: LlamaServerSupervisor,
        embedding_provider: EmbeddingProvider,
    ) -> None:
        self.rag = rag
        self.supervisor = supervisor
        self._embeddings = embedding_provider

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppState":
        """Build the state and its collaborators from settings."""
        embedding_provider = LlamaServerEmbeddingProvider(
            base_url=settings.llama_server_url,
            timeout_seconds=settings.embedding_timeout_seconds,
        )
        rag = RAGService(
            embedding_provider,
            InMemoryVectorStore(),
            top_k=settings.rag_top_k,
            chunk_size=settings.rag_chunk_size,
            chunk_overlap=settings.rag_chunk_overlap,
        )
        supervisor = LlamaServerSupervisor(
            binary=settings.llama_server_binary,
            stop_timeout_seconds=settings.llama_server_stop_timeout_seconds,
            health_checker=LlamaServerHealthChecker(base_url=settings.llama_server_url),
        )
        return cls(
            rag=rag,
            supervisor=supervisor,
            embedding_provider=embedding_provider,
        )

    async def shutdown(self) -> None:
        """Stop the backend and close clients.

        Best effort: a failure to stop llama-server is logged and never
        interrupts shutdown.
        """
        logger.info("app_state_shutdown", llama_server_pid=self.supervisor.pid)
        try:
            await self.supervisor.close()
        except LlamaServerError as e:
            logger.error("llama_server_stop_on_exit_failed", error=str(e))
        else:
            logger.info("llama_server_stopped_on_exit")

        await self._embeddings.close()
