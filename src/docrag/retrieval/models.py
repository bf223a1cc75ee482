"""Domain models for stored chunks, query hits and citation tracking."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MetadataFilter(BaseModel):
    """Declarative metadata filter for vector-store operations.

    Attributes
    ----------
    field:
        The metadata key to filter on (e.g. ``"source"``, ``"chunk_index"``).
    operator:
        Comparison operator, a key of the gateway's operator map
        (``eq``, ``ne``, ``gt``, ``gte``, ``lt``, ``lte``, ``in``, ``nin``).
    value:
        Right-hand side of the comparison; a list for ``in`` and ``nin``.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def at_least(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="gte", value=value)


class StoredChunk(BaseModel):
    """One persisted record as returned by ``VectorStoreBase.get``."""

    id: str
    document: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueryHit(StoredChunk):
    """A nearest-neighbour result; lower ``distance`` means more similar."""

    distance: float


class Citation(BaseModel):
    """Where a retrieved chunk came from.

    Attributes
    ----------
    document_id:
        Record id, ``"{source}_chunk_{index}"`` for ingested chunks.
    source:
        Source locator — URL or file path.
    chunk_index:
        0-based ``chunk_index`` within the source.
    distance:
        Distance to the query embedding reported by the vector store.
    metadata:
        Everything else stored alongside the chunk.
    """

    document_id: str | None = None
    source: str = "unknown"
    chunk_index: int | None = None
    distance: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def short_ref(self) -> str:
        """``[source§chunk_index]``, as printed under an answer's sources."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.source}§{chunk}]"


class RetrievalResult(BaseModel):
    """Chunk text placed into the prompt context, with its citation."""

    content: str
    citation: Citation

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} {self.content[:120]}…"
