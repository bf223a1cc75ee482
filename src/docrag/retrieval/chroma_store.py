"""Chroma implementation of the vector-store gateway."""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from docrag.config import CollectionConfig, settings
from docrag.errors import CollectionConfigError, StoreError, StoreQueryError, StoreWriteError
from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.models import MetadataFilter, QueryHit, StoredChunk

logger = logging.getLogger(__name__)

_OP_MAP = {
    "eq": "$eq",
    "ne": "$ne",
    "gt": "$gt",
    "gte": "$gte",
    "lt": "$lt",
    "lte": "$lte",
    "in": "$in",
    "nin": "$nin",
}


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _flatten_metadata(meta: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    return {k: v for k, v in meta.items() if isinstance(v, (str, int, float, bool))}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    config:
        Collection configuration; defaults to the global settings.
    client:
        A ready ``chromadb`` client (e.g. ``chromadb.EphemeralClient()``).
        When *None*, an ``HttpClient`` for *host* / *port* is created on
        first use.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        config: CollectionConfig | None = None,
        *,
        client: Any | None = None,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
    ) -> None:
        super().__init__(collection_name, config or settings.collection_config())
        self._host = host
        self._port = port
        self._client = client
        self._collection: Any | None = None

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = chromadb.HttpClient(host=self._host, port=self._port)
            except Exception as exc:
                raise StoreError(
                    f"Cannot reach Chroma at {self._host}:{self._port}: {exc}"
                ) from exc
        return self._client

    # -- VectorStoreBase overrides --------------------------------------------

    def get_or_create(self, name: str | None = None) -> Any:
        if name is not None and name != self.collection_name:
            return self._open(name)
        if self._collection is None:
            self._collection = self._open(self.collection_name)
        return self._collection

    def get(self) -> list[StoredChunk]:
        collection = self._collection_or(StoreQueryError)
        try:
            result = collection.get(include=["documents", "metadatas"])
        except Exception as exc:
            raise StoreQueryError(f"Reading {self.collection_name!r} failed: {exc}") from exc

        ids = result.get("ids") or []
        docs = result.get("documents") or [None] * len(ids)
        metas = result.get("metadatas") or [None] * len(ids)
        return [
            StoredChunk(id=chunk_id, document=doc or "", metadata=meta or {})
            for chunk_id, doc, meta in zip(ids, docs, metas)
        ]

    def count(self) -> int:
        collection = self._collection_or(StoreQueryError)
        try:
            return collection.count()
        except Exception as exc:
            raise StoreQueryError(f"Counting {self.collection_name!r} failed: {exc}") from exc

    def delete_stale(self, source: str, keep: int) -> None:
        where = _build_chroma_where(
            [MetadataFilter.equals("source", source), MetadataFilter.at_least("chunk_index", keep)]
        )
        collection = self._collection_or(StoreWriteError)
        try:
            collection.delete(where=where)
        except Exception as exc:
            raise StoreWriteError(f"Pruning chunks of {source!r} failed: {exc}") from exc

    def _upsert(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]],
    ) -> None:
        collection = self._collection_or(StoreWriteError)
        try:
            collection.upsert(
                ids=ids,
                embeddings=embeddings,
                documents=documents,
                metadatas=[_flatten_metadata(m) for m in metadatas],
            )
        except Exception as exc:
            raise StoreWriteError(
                f"Upsert of {len(ids)} records into {self.collection_name!r} failed: {exc}"
            ) from exc

    def _query(self, query_embedding: list[float], k: int) -> list[QueryHit]:
        collection = self._collection_or(StoreQueryError)
        try:
            available = collection.count()
            if available == 0:
                return []
            results = collection.query(
                query_embeddings=[query_embedding],
                n_results=min(k, available),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StoreQueryError(f"Query against {self.collection_name!r} failed: {exc}") from exc

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        return [
            QueryHit(id=doc_id, document=content or "", metadata=meta or {}, distance=float(dist))
            for doc_id, content, meta, dist in zip(ids, docs, metas, distances)
        ]

    def health_check(self) -> bool:
        try:
            self.client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _collection_or(self, error: type[StoreError]) -> Any:
        """Open the collection, reporting an unreachable server as *error*.

        A configuration mismatch is not a transport failure and propagates
        as :class:`CollectionConfigError`.
        """
        try:
            return self.get_or_create()
        except CollectionConfigError:
            raise
        except StoreError as exc:
            raise error(str(exc)) from exc

    def _open(self, name: str) -> Any:
        try:
            collection = self.client.get_or_create_collection(
                name=name,
                metadata=self.config.to_metadata(),
                embedding_function=None,
            )
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"Cannot open collection {name!r}: {exc}") from exc

        mismatches = self.config.mismatches(collection.metadata)
        if mismatches:
            detail = ", ".join(f"{k}: stored={s!r} expected={e!r}" for k, (s, e) in mismatches.items())
            raise CollectionConfigError(
                f"Collection {name!r} was created with a different configuration ({detail})"
            )
        logger.info("Collection %r ready", name)
        return collection
