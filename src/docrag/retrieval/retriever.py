"""Semantic retriever — embed a query and fetch the nearest chunks.

Usage::

    from docrag.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever(store, embedder)
    results   = retriever.search("How do I call the OpenAI API?", k=5)
    for r in results:
        print(r.citation.short_ref(), r.content[:80])
"""

from __future__ import annotations

import logging

from docrag.config import settings
from docrag.ingestion.embedder import EmbeddingClient
from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.models import Citation, QueryHit, RetrievalResult

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """Retriever that wraps any :class:`VectorStoreBase`.

    Parameters
    ----------
    store:
        A concrete vector-store gateway.
    embedder:
        Embedding client producing vectors of the store's dimensionality.
    default_k:
        Default number of results returned by :meth:`search`.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingClient,
        *,
        default_k: int = settings.retrieval_k,
    ) -> None:
        self.store = store
        self._embedder = embedder
        self.default_k = default_k

    def search(self, query: str, *, k: int | None = None) -> list[RetrievalResult]:
        """Embed *query* and return the nearest chunks, nearest first."""
        embedding = self._embedder.embed(query)
        return self.search_by_embedding(embedding, k=k)

    def search_by_embedding(
        self, embedding: list[float], *, k: int | None = None
    ) -> list[RetrievalResult]:
        """Same as :meth:`search` but accepts a pre-computed embedding."""
        k = k or self.default_k
        hits = self.store.query(embedding, k=k)
        logger.debug("retrieved %d / %d hits from %r", len(hits), k, self.store.collection_name)
        return [self._to_result(hit) for hit in hits]

    @staticmethod
    def _to_result(hit: QueryHit) -> RetrievalResult:
        meta = hit.metadata
        citation = Citation(
            document_id=hit.id,
            source=meta.get("source", "unknown"),
            chunk_index=meta.get("chunk_index"),
            distance=hit.distance,
            metadata=meta,
        )
        return RetrievalResult(content=hit.document, citation=citation)
