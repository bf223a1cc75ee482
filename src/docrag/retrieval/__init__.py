"""
Retrieval — vector-store gateway, similarity search and citations.

This module wraps the vector store behind a clean interface so that
the pipelines never need to know which DB is backing retrieval.

Public surface
--------------
- :class:`SemanticRetriever` — embed-then-query with citations.
- :class:`VectorStoreBase` — abstract gateway (subclass for other backends).
- :class:`ChromaVectorStore` — default Chroma gateway.
- :class:`Citation`, :class:`RetrievalResult`, :class:`QueryHit`,
  :class:`StoredChunk`, :class:`MetadataFilter` — data models.
"""

from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.models import (
    Citation,
    MetadataFilter,
    QueryHit,
    RetrievalResult,
    StoredChunk,
)
from docrag.retrieval.retriever import SemanticRetriever

__all__ = [
    "Citation",
    "ChromaVectorStore",
    "MetadataFilter",
    "QueryHit",
    "RetrievalResult",
    "SemanticRetriever",
    "StoredChunk",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from docrag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
