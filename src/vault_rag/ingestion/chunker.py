"""Text chunking strategies."""

from __future__ import annotations

import logging

from langchain_text_splitters import RecursiveCharacterTextSplitter

from vault_rag.errors import EmptyInputError
from vault_rag.models import Chunk

logger = logging.getLogger(__name__)

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


class Chunker:
    """Split raw document text into ordered, non-overlapping chunks.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per chunk.
    separators:
        Split boundaries in priority order; the final ``""`` guarantees
        that an unbroken run of text is still cut at ``chunk_size``.
    """

    def __init__(self, chunk_size: int = 1000, separators: list[str] | None = None) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size
        # Zero overlap and no stripping: consecutive pieces tile the source.
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=0,
            length_function=len,
            separators=separators or DEFAULT_SEPARATORS,
            keep_separator="end",
            strip_whitespace=False,
        )

    def chunk(self, text: str, title: str) -> list[Chunk]:
        """Split *text* (from document *title*) into :class:`Chunk` objects.

        Raises
        ------
        EmptyInputError
            If *text* is empty or whitespace only.
        """
        if not text or not text.strip():
            raise EmptyInputError(f"No text to chunk in {title!r}")

        chunks: list[Chunk] = []
        cursor = 0
        for piece in self._splitter.split_text(text):
            start = text.find(piece, cursor)
            if start < 0:
                start = cursor
            end = start + len(piece)
            chunks.append(Chunk(text=piece, title=title, start=start, end=end))
            cursor = end

        logger.info("Chunked %r into %d chunks (chunk_size=%d)", title, len(chunks), self.chunk_size)
        return chunks


def chunk_text(text: str, title: str, chunk_size: int = 1000) -> list[Chunk]:
    """Convenience wrapper around :meth:`Chunker.chunk`."""
    return Chunker(chunk_size=chunk_size).chunk(text, title)
