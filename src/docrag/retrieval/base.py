"""Abstract base class for vector-store gateways.

A gateway owns one named collection.  Adding a new backend only requires
subclassing :class:`VectorStoreBase` and implementing the abstract methods;
batch validation for :meth:`~VectorStoreBase.upsert` and result ordering for
:meth:`~VectorStoreBase.query` are shared so every backend rejects the same
inputs before touching storage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from docrag.config import CollectionConfig
from docrag.errors import StoreQueryError, StoreWriteError
from docrag.retrieval.models import QueryHit, StoredChunk


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    config:
        Configuration the collection's embeddings are produced under;
        ``config.embedding_dimensions`` is enforced on every write and query.
    """

    def __init__(self, collection_name: str, config: CollectionConfig | None = None) -> None:
        self.collection_name = collection_name
        self.config = config or CollectionConfig()

    @property
    def dimensions(self) -> int:
        return self.config.embedding_dimensions

    # -- public API -----------------------------------------------------------

    def upsert(
        self,
        ids: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        documents: Sequence[str],
        metadatas: Sequence[dict[str, Any]],
    ) -> None:
        """Insert or replace ``(id, embedding, document, metadata)`` tuples.

        Raises
        ------
        StoreWriteError
            If the four sequences differ in length, an id repeats, an
            embedding has the wrong dimensionality, or the backend fails.
            Nothing is written when validation fails.
        """
        lengths = {
            "ids": len(ids),
            "embeddings": len(embeddings),
            "documents": len(documents),
            "metadatas": len(metadatas),
        }
        if len(set(lengths.values())) != 1:
            raise StoreWriteError(f"Upsert arrays differ in length: {lengths}")
        if len(set(ids)) != len(ids):
            raise StoreWriteError("Upsert batch contains duplicate ids")
        for chunk_id, emb in zip(ids, embeddings):
            if len(emb) != self.dimensions:
                raise StoreWriteError(
                    f"Embedding for {chunk_id!r} has {len(emb)} dimensions, "
                    f"collection {self.collection_name!r} expects {self.dimensions}"
                )
        if not ids:
            return
        self._upsert(list(ids), [list(e) for e in embeddings], list(documents), list(metadatas))

    def query(self, query_embedding: Sequence[float], k: int = 5) -> list[QueryHit]:
        """Return up to *k* hits ordered nearest first.

        An empty collection yields an empty list.
        """
        if k <= 0:
            raise StoreQueryError(f"k must be positive, got {k}")
        if len(query_embedding) != self.dimensions:
            raise StoreQueryError(
                f"Query embedding has {len(query_embedding)} dimensions, "
                f"collection {self.collection_name!r} expects {self.dimensions}"
            )
        hits = self._query(list(query_embedding), k)
        return sorted(hits, key=lambda h: h.distance)[:k]

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def get_or_create(self, name: str | None = None) -> Any:
        """Return the collection handle, creating it on first access.

        Must be idempotent; never fails because the collection exists.
        """
        ...

    @abstractmethod
    def get(self) -> list[StoredChunk]:
        """Return every stored record (order unspecified)."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of records in the collection."""
        ...

    @abstractmethod
    def delete_stale(self, source: str, keep: int) -> None:
        """Delete records of *source* whose ``chunk_index`` is ``>= keep``."""
        ...

    @abstractmethod
    def _upsert(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]],
    ) -> None:
        """Write a validated, non-empty batch."""
        ...

    @abstractmethod
    def _query(self, query_embedding: list[float], k: int) -> list[QueryHit]:
        """Return the *k* nearest hits (any order)."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True
