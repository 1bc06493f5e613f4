"""Unit tests for the chunker module."""

import pytest

from vault_rag.errors import EmptyInputError
from vault_rag.ingestion.chunker import Chunker, chunk_text


def _assert_tiles(text: str, chunks) -> None:
    """Chunks are ordered, non-overlapping and cover *text* exactly."""
    cursor = 0
    for c in chunks:
        assert c.start == cursor
        assert c.end >= c.start
        assert text[c.start : c.end] == c.text
        cursor = c.end
    assert cursor == len(text)


def test_chunk_splits_long_text() -> None:
    """A document longer than chunk_size should be split."""
    long_text = "word " * 500  # ~2500 chars
    chunks = Chunker(chunk_size=256).chunk(long_text, "long.txt")
    assert len(chunks) > 1
    assert all(len(c.text) <= 256 for c in chunks)
    _assert_tiles(long_text, chunks)


def test_chunk_short_text_is_single_chunk() -> None:
    text = "a" * 500
    chunks = Chunker(chunk_size=1000).chunk(text, "short.txt")
    assert len(chunks) == 1
    assert chunks[0].start == 0
    assert chunks[0].end == 500
    assert chunks[0].title == "short.txt"


def test_chunk_prefers_paragraph_breaks() -> None:
    para_a = "Alpha sentence one. Alpha sentence two."
    para_b = "Beta sentence one. Beta sentence two."
    text = f"{para_a}\n\n{para_b}"
    chunks = Chunker(chunk_size=len(para_a) + 5).chunk(text, "doc.txt")
    assert chunks[0].text.startswith("Alpha")
    assert chunks[-1].text.startswith("Beta")
    _assert_tiles(text, chunks)


def test_chunk_unbroken_text_is_hard_cut() -> None:
    text = "x" * 2500
    chunks = Chunker(chunk_size=1000).chunk(text, "blob.txt")
    assert [len(c.text) for c in chunks] == [1000, 1000, 500]
    _assert_tiles(text, chunks)


def test_chunk_mixed_whitespace_keeps_offsets() -> None:
    text = "Intro line.\n\n\n  Indented paragraph with several words here.\nAnother line\n\nEnd."
    chunks = Chunker(chunk_size=20).chunk(text, "ws.txt")
    assert all(len(c.text) <= 20 for c in chunks)
    _assert_tiles(text, chunks)


def test_chunk_is_deterministic() -> None:
    text = "The quick brown fox. " * 80
    first = Chunker(chunk_size=100).chunk(text, "fox.txt")
    second = Chunker(chunk_size=100).chunk(text, "fox.txt")
    assert first == second


@pytest.mark.parametrize("blank", ["", "   ", "\n\n\t"])
def test_chunk_blank_input_raises(blank: str) -> None:
    with pytest.raises(EmptyInputError):
        Chunker().chunk(blank, "empty.txt")


def test_invalid_chunk_size_rejected() -> None:
    with pytest.raises(ValueError, match="chunk_size"):
        Chunker(chunk_size=0)


def test_chunk_text_wrapper() -> None:
    chunks = chunk_text("hello world", "hi.txt", chunk_size=5)
    assert "".join(c.text for c in chunks) == "hello world"
