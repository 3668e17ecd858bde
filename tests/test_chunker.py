"""Tests for fixed-size text chunking."""

import pytest

from src.modules.rag.chunker import ChunkingConfig, chunk_text


def _reassemble(chunks: list[str], overlap: int) -> str:
    """Join chunks back together, dropping the overlap of each follower."""
    return chunks[0] + "".join(chunk[overlap:] for chunk in chunks[1:])


class TestChunkText:
    """Tests for chunk_text function."""

    def test_example_from_window_walkthrough(self):
        """Step of size - overlap should produce the expected windows."""
        config = ChunkingConfig(chunk_size=4, chunk_overlap=1)

        result = chunk_text("abcdefghij", config)

        assert result == ["abcd", "defg", "ghij"]

    def test_short_text_returns_single_chunk(self):
        """Text shorter than chunk_size should come back whole."""
        result = chunk_text("short text", ChunkingConfig(chunk_size=100, chunk_overlap=10))

        assert result == ["short text"]

    def test_text_equal_to_chunk_size_returns_single_chunk(self):
        """Text exactly chunk_size long should yield one chunk."""
        text = "x" * 512

        result = chunk_text(text)

        assert result == [text]

    def test_last_chunk_may_be_shorter(self):
        """The final window should stop at the end of the text."""
        config = ChunkingConfig(chunk_size=4, chunk_overlap=1)

        result = chunk_text("abcdefgh", config)

        assert result == ["abcd", "defg", "gh"]

    def test_no_chunk_is_empty(self):
        """Every chunk of a long text should have content."""
        config = ChunkingConfig(chunk_size=7, chunk_overlap=3)

        result = chunk_text("The quick brown fox jumps over the lazy dog", config)

        assert all(result)

    def test_default_config_uses_512_and_50(self):
        """Default windows should be 512 long and advance by 462."""
        text = "".join(chr(ord("a") + i % 26) for i in range(1200))

        result = chunk_text(text)

        assert [len(c) for c in result] == [512, 512, 276]
        assert result[1] == text[462:974]

    def test_multibyte_characters_are_never_split(self):
        """Windows should be counted in characters, not bytes."""
        text = "héllo wörld ✓ ünïcode 日本語テキスト"
        config = ChunkingConfig(chunk_size=5, chunk_overlap=2)

        result = chunk_text(text, config)

        assert all(len(chunk) <= 5 for chunk in result)
        assert _reassemble(result, 2) == text


class TestChunkCoverage:
    """Property-style checks over several sizes."""

    @pytest.mark.parametrize(
        ("chunk_size", "chunk_overlap"),
        [(4, 0), (4, 1), (4, 3), (10, 5), (33, 7)],
    )
    def test_chunks_cover_text_with_exact_overlap(self, chunk_size, chunk_overlap):
        """Chunks should overlap exactly and rebuild the original text."""
        text = "Lorem ipsum dolor sit amet, consectetur adipiscing elit. " * 3
        config = ChunkingConfig(chunk_size=chunk_size, chunk_overlap=chunk_overlap)

        result = chunk_text(text, config)

        assert all(len(chunk) <= chunk_size for chunk in result)
        for previous, current in zip(result, result[1:], strict=False):
            if chunk_overlap:
                assert previous[-chunk_overlap:] == current[:chunk_overlap]
        assert result[0].startswith(text[:chunk_size])
        assert text.endswith(result[-1])
        assert _reassemble(result, chunk_overlap) == text


class TestChunkingConfig:
    """Tests for ChunkingConfig."""

    def test_default_config_values(self):
        """Default config should have expected values."""
        config = ChunkingConfig()

        assert config.chunk_size == 512
        assert config.chunk_overlap == 50
        assert config.step == 462

    def test_overlap_equal_to_size_is_rejected(self):
        """An overlap as large as the chunk would never advance."""
        with pytest.raises(ValueError, match="must be smaller"):
            ChunkingConfig(chunk_size=10, chunk_overlap=10)

    def test_overlap_larger_than_size_is_rejected(self):
        """A negative step should fail fast instead of looping."""
        with pytest.raises(ValueError, match="must be smaller"):
            ChunkingConfig(chunk_size=10, chunk_overlap=20)

    def test_negative_overlap_is_rejected(self):
        """Negative overlap should be rejected."""
        with pytest.raises(ValueError, match="must not be negative"):
            ChunkingConfig(chunk_size=10, chunk_overlap=-1)

    def test_non_positive_size_is_rejected(self):
        """A chunk size of zero should be rejected."""
        with pytest.raises(ValueError, match="must be positive"):
            ChunkingConfig(chunk_size=0, chunk_overlap=0)
