"""FastAPI application exposing ingestion and question answering over HTTP."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from docrag import services
from docrag.errors import DocRagError
from docrag.generation.pipeline import QueryPipeline, TokenUsage
from docrag.ingestion.pipeline import IngestionPipeline, IngestionResult
from docrag.listing import SourceSummary, list_documents
from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.models import Citation

app = FastAPI(
    title="docrag API",
    version="0.1.0",
    description="Ingest documents into a vector store and answer questions from them.",
)


# ── Dependencies (overridden in tests) ────────────────────────────────
@lru_cache(maxsize=1)
def get_store() -> VectorStoreBase:
    return services.build_store()


def get_ingestion_pipeline(store: VectorStoreBase = Depends(get_store)) -> IngestionPipeline:
    return services.build_ingestion_pipeline(store=store)


def get_query_pipeline(store: VectorStoreBase = Depends(get_store)) -> QueryPipeline:
    return services.build_query_pipeline(store=store)


# ── Request / Response schemas ────────────────────────────────────────
class IngestRequest(BaseModel):
    """Sources to fetch and ingest."""

    sources: list[str] = Field(min_length=1)


class IngestResponse(BaseModel):
    results: list[IngestionResult]


class QueryRequest(BaseModel):
    """Incoming question from the user."""

    query: str = Field(min_length=1)


class QueryResponse(BaseModel):
    """Generated answer with the chunks it was grounded on."""

    answer: str
    sources: list[Citation] = []
    usage: TokenUsage


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
def health(store: VectorStoreBase = Depends(get_store)) -> dict[str, str]:
    """Health check; 503 while the vector store does not answer."""
    if not store.health_check():
        raise HTTPException(status_code=503, detail="Vector store unreachable")
    return {"status": "ok"}


@app.post("/documents", response_model=IngestResponse)
def ingest_documents(
    request: IngestRequest,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> IngestResponse:
    """Ingest every source; per-source failures are reported, not raised."""
    return IngestResponse(results=pipeline.add_documents(request.sources))


@app.get("/documents", response_model=list[SourceSummary])
def stored_documents(store: VectorStoreBase = Depends(get_store)) -> list[SourceSummary]:
    """Per-source listing of the stored chunks."""
    try:
        return list_documents(store)
    except DocRagError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.post("/query", response_model=QueryResponse)
def query(
    request: QueryRequest,
    pipeline: QueryPipeline = Depends(get_query_pipeline),
) -> QueryResponse:
    """Answer a question from the stored documents."""
    try:
        result = pipeline.run(request.query)
    except DocRagError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return QueryResponse(answer=result.answer, sources=result.sources, usage=result.usage)
