"""Unit tests for the serving layer."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import SlowEmbeddings, WordCounter
from docrag.generation.llm import GenerationClient
from docrag.generation.pipeline import QueryPipeline
from docrag.ingestion.embedder import EmbeddingClient
from docrag.ingestion.pipeline import IngestionPipeline, source_locks
from docrag.retrieval.retriever import SemanticRetriever
from docrag.serving.app import app, get_ingestion_pipeline, get_query_pipeline, get_store


@pytest.fixture()
def client(memory_store, embedder, chunker, query_pipeline):
    def fetch(source_id: str) -> str:
        if source_id != "https://a":
            raise RuntimeError("unreachable")
        return "apple pie recipe"

    source = MagicMock()
    source.fetch.side_effect = fetch
    ingestion = IngestionPipeline(memory_store, embedder, chunker, source=source)

    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_ingestion_pipeline] = lambda: ingestion
    app.dependency_overrides[get_query_pipeline] = lambda: query_pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_endpoint(client: TestClient) -> None:
    """GET /health should return 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_reports_unreachable_store(client: TestClient, memory_store) -> None:
    memory_store.health_check = MagicMock(return_value=False)
    response = client.get("/health")
    assert response.status_code == 503
    assert "unreachable" in response.json()["detail"]


def test_ingest_reports_per_source_results(client: TestClient) -> None:
    response = client.post("/documents", json={"sources": ["https://a", "https://b"]})
    assert response.status_code == 200
    results = response.json()["results"]
    assert results[0] == {"source": "https://a", "chunk_count": 1, "error": None}
    assert results[1]["source"] == "https://b"
    assert "unreachable" in results[1]["error"]


def test_ingest_requires_sources(client: TestClient) -> None:
    assert client.post("/documents", json={"sources": []}).status_code == 422


def test_list_documents(client: TestClient) -> None:
    client.post("/documents", json={"sources": ["https://a"]})
    response = client.get("/documents")
    assert response.status_code == 200
    body = response.json()
    assert body[0]["source"] == "https://a"
    assert body[0]["chunks"] == [{"index": 0, "preview": "apple pie recipe"}]


def test_query_returns_answer_and_sources(client: TestClient) -> None:
    client.post("/documents", json={"sources": ["https://a"]})
    response = client.post("/query", json={"query": "how to bake?"})
    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == "Preheat the oven."
    assert body["sources"][0]["source"] == "https://a"
    assert body["usage"]["total"] == body["usage"]["context_tokens"] + body["usage"]["query_tokens"] + body["usage"]["response_tokens"]


def test_query_failure_maps_to_502(memory_store, embedder) -> None:
    llm = MagicMock()
    llm.invoke.side_effect = RuntimeError("down")
    failing = QueryPipeline(SemanticRetriever(memory_store, embedder), GenerationClient(llm), WordCounter())
    app.dependency_overrides[get_query_pipeline] = lambda: failing
    try:
        response = TestClient(app).post("/query", json={"query": "q"})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 502
    assert "down" in response.json()["detail"]


def test_concurrent_ingestion_of_one_source_is_serialized(memory_store, chunker) -> None:
    slow = SlowEmbeddings()
    embedder = EmbeddingClient(slow, dimensions=4, batch_size=8)
    source = MagicMock()
    source.fetch.return_value = "apple pie recipe"
    # a fresh pipeline per request, like the default dependency
    app.dependency_overrides[get_ingestion_pipeline] = lambda: IngestionPipeline(
        memory_store, embedder, chunker, source=source
    )
    http = TestClient(app)
    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            responses = list(
                pool.map(lambda _: http.post("/documents", json={"sources": ["https://a"]}), range(2))
            )
    finally:
        app.dependency_overrides.clear()

    assert [r.status_code for r in responses] == [200, 200]
    assert len(slow.calls) == 2
    assert slow.peak == 1
    assert len(source_locks) == 0
