"""Schemas for the RAG module."""

from dataclasses import dataclass

from pydantic import BaseModel, Field


@dataclass
class IndexingResult:
    """Result of indexing one document."""

    chunks_indexed: int
    total_chunks: int


@dataclass
class RAGPrompt:
    """Retrieved context and the system prompt built from it."""

    query: str
    context: str
    system_prompt: str


# API request/response models


class IndexRequest(BaseModel):
    """Raw document text to add to the index."""

    content: str


class IndexResponse(BaseModel):
    """Outcome of an indexing command."""

    chunks_indexed: int
    total_chunks: int


class RetrieveRequest(BaseModel):
    """Query to retrieve context for."""

    query: str
    top_k: int | None = Field(default=None, ge=1)


class RetrieveResponse(BaseModel):
    """Top-ranked chunk contents joined into one string (empty if none)."""

    context: str


class PromptResponse(BaseModel):
    """Context plus a ready-to-send system prompt."""

    context: str
    system_prompt: str


class ClearResponse(BaseModel):
    """Acknowledgement of a clear command."""

    cleared: bool = True
