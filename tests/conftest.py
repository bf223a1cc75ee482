"""Shared pytest configuration and fixtures.

Every external provider is replaced by an in-process fake so the unit suite
runs without Chroma, OpenAI, or network access.
"""

from __future__ import annotations

import math
import re
import threading
import time
from typing import Any
from unittest.mock import MagicMock

import pytest
from langchain_core.embeddings import Embeddings
from langchain_core.messages import AIMessage

from docrag.config import CollectionConfig
from docrag.generation.llm import GenerationClient
from docrag.generation.pipeline import QueryPipeline
from docrag.ingestion.chunker import Chunker
from docrag.ingestion.embedder import EmbeddingClient
from docrag.ingestion.pipeline import IngestionPipeline
from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.models import QueryHit, StoredChunk
from docrag.retrieval.retriever import SemanticRetriever

DIMS = 4


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class KeywordEmbeddings(Embeddings):
    """Deterministic 4-d embeddings: food words, vehicle words, other words, bias."""

    FOOD = {"apple", "pie", "bake", "baking", "recipe", "cake"}
    VEHICLE = {"car", "engine", "repair", "wheel"}

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0, 0.0, 0.0, 0.1]
        for word in re.findall(r"[a-z]+", text.lower()):
            if word in self.FOOD:
                vec[0] += 1.0
            elif word in self.VEHICLE:
                vec[1] += 1.0
            else:
                vec[2] += 1.0
        return vec

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append([text])
        return self._vector(text)


class SlowEmbeddings(KeywordEmbeddings):
    """Keyword embeddings that block briefly and record peak concurrency."""

    def __init__(self, delay: float = 0.05) -> None:
        super().__init__()
        self.delay = delay
        self.active = 0
        self.peak = 0
        self._guard = threading.Lock()

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        with self._guard:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(self.delay)
            return super().embed_documents(texts)
        finally:
            with self._guard:
                self.active -= 1


class FailingEmbeddings(Embeddings):
    """Provider that always errors."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise RuntimeError("provider unavailable")

    def embed_query(self, text: str) -> list[float]:
        raise RuntimeError("provider unavailable")


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed gateway using cosine distance."""

    def __init__(self, dimensions: int = DIMS) -> None:
        super().__init__(
            "test-collection",
            CollectionConfig(embedding_model="fake", embedding_dimensions=dimensions),
        )
        self.records: dict[str, tuple[list[float], str, dict[str, Any]]] = {}
        self.upsert_calls = 0
        self.opened = 0

    def get_or_create(self, name: str | None = None) -> Any:
        self.opened += 1
        return self.records

    def get(self) -> list[StoredChunk]:
        return [
            StoredChunk(id=i, document=doc, metadata=dict(meta))
            for i, (_, doc, meta) in self.records.items()
        ]

    def count(self) -> int:
        return len(self.records)

    def delete_stale(self, source: str, keep: int) -> None:
        for rid, (_, _, meta) in list(self.records.items()):
            if meta.get("source") == source and meta.get("chunk_index", -1) >= keep:
                del self.records[rid]

    def _upsert(self, ids, embeddings, documents, metadatas) -> None:
        self.upsert_calls += 1
        for rid, emb, doc, meta in zip(ids, embeddings, documents, metadatas):
            self.records[rid] = (list(emb), doc, dict(meta))

    def _query(self, query_embedding: list[float], k: int) -> list[QueryHit]:
        hits = [
            QueryHit(id=rid, document=doc, metadata=dict(meta), distance=_cosine_distance(query_embedding, emb))
            for rid, (emb, doc, meta) in self.records.items()
        ]
        return sorted(hits, key=lambda h: h.distance)[:k]


def _cosine_distance(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return 1.0 - dot / norm if norm else 1.0


class WordCounter:
    """Token counter stand-in: one token per whitespace-separated word."""

    def count(self, text: str) -> int:
        return len(text.split())


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def keyword_embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture()
def embedder(keyword_embeddings: KeywordEmbeddings) -> EmbeddingClient:
    return EmbeddingClient(keyword_embeddings, dimensions=DIMS, batch_size=8)


@pytest.fixture()
def failing_embedder() -> EmbeddingClient:
    return EmbeddingClient(FailingEmbeddings(), dimensions=DIMS)


@pytest.fixture()
def chunker() -> Chunker:
    return Chunker(chunk_size=100, chunk_overlap=20)


@pytest.fixture()
def ingestion_pipeline(
    memory_store: InMemoryVectorStore, embedder: EmbeddingClient, chunker: Chunker
) -> IngestionPipeline:
    return IngestionPipeline(memory_store, embedder, chunker, token_counter=WordCounter())


@pytest.fixture()
def chat_model() -> MagicMock:
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="Preheat the oven.")
    return llm


@pytest.fixture()
def query_pipeline(
    memory_store: InMemoryVectorStore, embedder: EmbeddingClient, chat_model: MagicMock
) -> QueryPipeline:
    retriever = SemanticRetriever(memory_store, embedder, default_k=5)
    return QueryPipeline(retriever, GenerationClient(chat_model), WordCounter())
