"""Fixed-size text chunking with overlap.

Documents are cut into windows of ``chunk_size`` characters, each window
starting ``chunk_size - chunk_overlap`` characters after the previous one.
Windows are measured in code points, so a multi-byte character is never
split.
"""

from dataclasses import dataclass

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class ChunkingConfig:
    """Configuration for text chunking."""

    chunk_size: int = 512  # Characters per chunk
    chunk_overlap: int = 50  # Characters shared by consecutive chunks

    def __post_init__(self) -> None:
        """Reject settings whose window step would not advance."""
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0:
            raise ValueError(
                f"chunk_overlap must not be negative, got {self.chunk_overlap}"
            )
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )

    @property
    def step(self) -> int:
        """Distance between the starts of consecutive chunks."""
        return self.chunk_size - self.chunk_overlap


def chunk_text(text: str, config: ChunkingConfig | None = None) -> list[str]:
    """Split text into overlapping fixed-size chunks.

    Args:
        text: The text to split.
        config: Chunking configuration (uses defaults if not provided).

    Returns:
        Chunks in document order. Text no longer than one chunk comes back
        whole as a single chunk; the last chunk may be shorter than
        chunk_size.
    """
    config = config or ChunkingConfig()

    if len(text) <= config.chunk_size:
        return [text]

    chunks: list[str] = []
    start = 0
    while True:
        end = min(start + config.chunk_size, len(text))
        chunks.append(text[start:end])
        if end == len(text):
            break
        start += config.step

    logger.debug(
        "text_chunked",
        content_length=len(text),
        chunk_size=config.chunk_size,
        chunk_overlap=config.chunk_overlap,
        chunks_created=len(chunks),
    )
    return chunks
