"""RAG command routes: index, retrieve, prompt, clear."""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.dependencies import get_app_state
from src.modules.rag.schemas import (
    ClearResponse,
    IndexRequest,
    IndexResponse,
    PromptResponse,
    RetrieveRequest,
    RetrieveResponse,
)
from src.state import AppState

router = APIRouter(prefix="/rag", tags=["rag"])


@router.post("/index", response_model=IndexResponse)
async def index_document(
    data: IndexRequest,
    app_state: Annotated[AppState, Depends(get_app_state)],
) -> IndexResponse:
    """Chunk, embed and add a document to the in-memory index."""
    result = await app_state.rag.index_text(data.content)
    return IndexResponse(
        chunks_indexed=result.chunks_indexed,
        total_chunks=result.total_chunks,
    )


@router.post("/retrieve", response_model=RetrieveResponse)
async def retrieve_context(
    data: RetrieveRequest,
    app_state: Annotated[AppState, Depends(get_app_state)],
) -> RetrieveResponse:
    """Return the best matching chunks for a query as one string."""
    context = await app_state.rag.retrieve_context(data.query, top_k=data.top_k)
    return RetrieveResponse(context=context)


@router.post("/prompt", response_model=PromptResponse)
async def build_prompt(
    data: RetrieveRequest,
    app_state: Annotated[AppState, Depends(get_app_state)],
) -> PromptResponse:
    """Return retrieved context wrapped in a system prompt."""
    prompt = await app_state.rag.build_prompt(data.query, top_k=data.top_k)
    return PromptResponse(context=prompt.context, system_prompt=prompt.system_prompt)


@router.post("/clear", response_model=ClearResponse)
async def clear_context(
    app_state: Annotated[AppState, Depends(get_app_state)],
) -> ClearResponse:
    """Drop every indexed chunk."""
    await app_state.rag.clear()
    return ClearResponse()
