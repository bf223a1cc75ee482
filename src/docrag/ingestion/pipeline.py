"""Ingestion pipeline — source → chunks → embeddings → vector store.

:meth:`IngestionPipeline.ingest` raises on any failure; the batch entry
points :meth:`~IngestionPipeline.add_document` and
:meth:`~IngestionPipeline.add_documents` log the failure and report it as an
:class:`IngestionResult` so one bad document never aborts a batch.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterable, Iterator

from pydantic import BaseModel

from docrag.config import settings

if TYPE_CHECKING:
    from docrag.ingestion.chunker import Chunker
    from docrag.ingestion.embedder import EmbeddingClient
    from docrag.ingestion.loader import DocumentSource
    from docrag.retrieval.base import VectorStoreBase
    from docrag.tokens import TokenCounter

logger = logging.getLogger(__name__)


def chunk_id(source_id: str, index: int) -> str:
    """Deterministic id of chunk *index* of *source_id* (the upsert key)."""
    return f"{source_id}_chunk_{index}"


class SourceLocks:
    """Per-source mutexes shared by every pipeline in the process.

    An entry exists only while some thread holds or waits for it, so the
    registry does not grow with the number of distinct sources seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[tuple[str, str], list] = {}  # key -> [lock, users]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, collection: str, source_id: str) -> Iterator[None]:
        key = (collection, source_id)
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]


source_locks = SourceLocks()


class IngestionResult(BaseModel):
    """Outcome of ingesting one document."""

    source: str
    chunk_count: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IngestionPipeline:
    """Compose chunker, embedder and vector store to add documents.

    Parameters
    ----------
    store:
        Gateway of the target collection.
    embedder:
        Embedding client whose dimensionality matches the collection.
    chunker:
        Text splitter.
    source:
        Document source used by :meth:`add_document`; only needed when
        documents are fetched by identifier.
    token_counter:
        Optional counter used to log the token spend of each ingestion.
    prune_stale_chunks:
        Delete chunks left over from a longer previous ingestion of the
        same source once the new chunks are written.
    locks:
        Registry serializing ingestions of one source; defaults to the
        process-wide :data:`source_locks` so separately built pipelines
        still exclude each other.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingClient,
        chunker: Chunker,
        *,
        source: DocumentSource | None = None,
        token_counter: TokenCounter | None = None,
        prune_stale_chunks: bool = settings.prune_stale_chunks,
        locks: SourceLocks | None = None,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.chunker = chunker
        self.source = source
        self.token_counter = token_counter
        self.prune_stale_chunks = prune_stale_chunks
        self._locks = locks if locks is not None else source_locks

    # -- public API -----------------------------------------------------------

    def ingest(self, source_id: str, raw_text: str) -> int:
        """Chunk, embed and upsert *raw_text* under *source_id*.

        Returns
        -------
        int
            Number of chunks written.

        Raises
        ------
        DocRagError
            Any embedding or store failure.  Embedding happens before the
            single upsert, so a failed embedding writes nothing.
        """
        with self._locks.hold(self.store.collection_name, source_id):
            try:
                return self._ingest(source_id, raw_text)
            except Exception:
                logger.exception("Error adding document %s", source_id)
                raise

    def add_document(self, source_id: str) -> IngestionResult:
        """Fetch *source_id* through the document source and ingest it.

        Fetch and ingestion failures are logged and returned as the
        result's ``error``.  A pipeline built without a document source is
        a configuration error and raises :class:`RuntimeError`.
        """
        if self.source is None:
            raise RuntimeError("add_document() requires a document source")
        try:
            text = self.source.fetch(source_id)
            count = self.ingest(source_id, text)
        except Exception as exc:
            logger.error("Skipping %s: %s", source_id, exc)
            return IngestionResult(source=source_id, error=f"{type(exc).__name__}: {exc}")
        return IngestionResult(source=source_id, chunk_count=count)

    def add_documents(self, source_ids: Iterable[str]) -> list[IngestionResult]:
        """Ingest every source in turn; failures do not stop the batch."""
        results = [self.add_document(s) for s in source_ids]
        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Ingested %d documents (%d chunks, %d errors)",
            len(results) - failed,
            sum(r.chunk_count for r in results),
            failed,
        )
        return results

    # -- internals ------------------------------------------------------------

    def _ingest(self, source_id: str, raw_text: str) -> int:
        self.store.get_or_create()

        chunks = self.chunker.split(raw_text, {"source": source_id})
        total = len(chunks)
        if not chunks:
            logger.warning("Document %s produced no chunks", source_id)
            return 0

        texts = [c.page_content for c in chunks]
        embeddings = self.embedder.embed_many(texts)

        ids: list[str] = []
        metadatas: list[dict] = []
        for index, chunk in enumerate(chunks):
            ids.append(chunk_id(source_id, index))
            metadatas.append(
                {
                    **chunk.metadata,
                    "source": source_id,
                    "chunk_index": index,
                    "total_chunks": total,
                }
            )

        self.store.upsert(ids=ids, embeddings=embeddings, documents=texts, metadatas=metadatas)
        if self.prune_stale_chunks:
            self.store.delete_stale(source_id, keep=total)

        if self.token_counter is not None:
            tokens = sum(self.token_counter.count(t) for t in texts)
            logger.info("- Tokens embedded for %s: %d", source_id, tokens)
        logger.info("Document added for %s (split into %d chunks)", source_id, total)
        return total
