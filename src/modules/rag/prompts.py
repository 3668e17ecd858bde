"""Prompts that wrap retrieved context for the chat model."""

RAG_SYSTEM_PROMPT = """You are a helpful assistant that answers questions using the user's documents.
Use the following context to answer the user's question.
If the information is not in the context, say so instead of guessing.

Context:
{context}"""

# Used when nothing has been indexed or nothing was retrieved
FALLBACK_SYSTEM_PROMPT = """You are a helpful assistant.
No documents have been loaded for this conversation, so answer from general knowledge
and tell the user that they can upload documents to ground your answers."""


def build_rag_prompt(context: str) -> str:
    """Build the system prompt for a retrieved context string.

    Args:
        context: Chunk contents already joined by the retrieval step.

    Returns:
        The system prompt, or the fallback prompt when context is blank.
    """
    if not context.strip():
        return FALLBACK_SYSTEM_PROMPT
    return RAG_SYSTEM_PROMPT.format(context=context)
