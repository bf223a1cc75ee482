"""Read-only listing of the documents stored in a collection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from pydantic import BaseModel, Field

from docrag.config import settings

if TYPE_CHECKING:
    from docrag.retrieval.base import VectorStoreBase
    from docrag.retrieval.models import StoredChunk


class ChunkPreview(BaseModel):
    index: int | None = None
    preview: str


class SourceSummary(BaseModel):
    """All stored chunks of one source, ordered by ``chunk_index``."""

    source: str
    total_chunks: int | None = None
    chunks: list[ChunkPreview] = Field(default_factory=list)


def summarize(
    records: Iterable[StoredChunk],
    preview_chars: int = settings.preview_chars,
) -> list[SourceSummary]:
    """Group *records* by their ``source`` metadata."""
    by_source: dict[str, SourceSummary] = {}
    for rec in records:
        source = rec.metadata.get("source", "unknown")
        summary = by_source.setdefault(
            source, SourceSummary(source=source, total_chunks=rec.metadata.get("total_chunks"))
        )
        summary.chunks.append(
            ChunkPreview(index=rec.metadata.get("chunk_index"), preview=rec.document[:preview_chars])
        )

    for summary in by_source.values():
        summary.chunks.sort(key=lambda c: (c.index is None, c.index or 0))
    return list(by_source.values())


def format_listing(summaries: list[SourceSummary]) -> str:
    """Render summaries the way ``docrag list`` prints them."""
    lines = ["", "=== Stored Documents ==="]
    if not summaries:
        lines.append("No documents found in the collection")
        return "\n".join(lines)

    for summary in summaries:
        total = summary.total_chunks if summary.total_chunks is not None else len(summary.chunks)
        lines.append("")
        lines.append(f"Document Source: {summary.source}")
        lines.append(f"Total Chunks: {total}")
        for chunk in summary.chunks:
            number = chunk.index + 1 if chunk.index is not None else "?"
            lines.append("")
            lines.append(f"Chunk {number}/{total}:")
            lines.append(f"Preview: {chunk.preview}...")
    return "\n".join(lines)


def list_documents(store: VectorStoreBase) -> list[SourceSummary]:
    """Summaries of every source currently stored behind *store*."""
    store.get_or_create()
    return summarize(store.get())
