"""Text chunking strategies."""

from __future__ import annotations

from typing import Any

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from docrag.config import settings

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


class Chunker:
    """Split normalised text into overlapping, bounded segments.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.
    separators:
        Split boundaries in priority order; the empty string is the
        arbitrary-cut fallback.
    """

    def __init__(
        self,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        separators: list[str] | None = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be >= 0 and < chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=separators or DEFAULT_SEPARATORS,
            add_start_index=True,
        )

    def split(self, text: str, base_metadata: dict[str, Any] | None = None) -> list[Document]:
        """Split *text* into chunks, each carrying a copy of *base_metadata*.

        Returns
        -------
        list[Document]
            Chunks in document order; ``metadata`` additionally holds the
            ``start_index`` character offset of the chunk.  Empty or
            whitespace-only text yields an empty list.
        """
        if not text or not text.strip():
            return []
        return self._splitter.create_documents([text], [dict(base_metadata or {})])
