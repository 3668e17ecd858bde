"""RAG (Retrieval-Augmented Generation) module.

Chunking, indexing and context retrieval over the in-memory vector store.
"""

from src.modules.rag.chunker import ChunkingConfig, chunk_text
from src.modules.rag.prompts import build_rag_prompt
from src.modules.rag.schemas import IndexingResult, RAGPrompt
from src.modules.rag.service import CONTEXT_DELIMITER, RAGService

__all__ = [
    "CONTEXT_DELIMITER",
    "ChunkingConfig",
    "IndexingResult",
    "RAGPrompt",
    "RAGService",
    "build_rag_prompt",
    "chunk_text",
]
