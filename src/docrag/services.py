"""Construct the default pipelines from the global settings.

Gateways are built here and passed into the pipelines explicitly; nothing
below caches a process-wide collection handle.
"""

from __future__ import annotations

from docrag.config import Settings, settings
from docrag.generation.llm import GenerationClient, get_llm
from docrag.generation.pipeline import QueryPipeline
from docrag.ingestion.chunker import Chunker
from docrag.ingestion.embedder import EmbeddingClient, get_embedding_function
from docrag.ingestion.loader import get_document_source
from docrag.ingestion.pipeline import IngestionPipeline
from docrag.retrieval.base import VectorStoreBase
from docrag.retrieval.retriever import SemanticRetriever
from docrag.tokens import TokenCounter


def build_store(cfg: Settings = settings) -> VectorStoreBase:
    from docrag.retrieval.chroma_store import ChromaVectorStore

    return ChromaVectorStore(
        cfg.chroma_collection,
        cfg.collection_config(),
        host=cfg.chroma_host,
        port=cfg.chroma_port,
    )


def build_embedder(cfg: Settings = settings) -> EmbeddingClient:
    return EmbeddingClient(
        get_embedding_function(cfg.embedding_model, cfg.embedding_dimensions),
        dimensions=cfg.embedding_dimensions,
        batch_size=cfg.embedding_batch_size,
    )


def build_ingestion_pipeline(
    cfg: Settings = settings,
    *,
    store: VectorStoreBase | None = None,
    source_type: str | None = None,
) -> IngestionPipeline:
    return IngestionPipeline(
        store or build_store(cfg),
        build_embedder(cfg),
        Chunker(cfg.chunk_size, cfg.chunk_overlap),
        source=get_document_source(source_type or cfg.document_source),
        token_counter=TokenCounter(cfg.llm_model_name),
        prune_stale_chunks=cfg.prune_stale_chunks,
    )


def build_query_pipeline(
    cfg: Settings = settings,
    *,
    store: VectorStoreBase | None = None,
) -> QueryPipeline:
    retriever = SemanticRetriever(
        store or build_store(cfg), build_embedder(cfg), default_k=cfg.retrieval_k
    )
    generator = GenerationClient(get_llm(cfg.llm_temperature, cfg.llm_max_tokens))
    return QueryPipeline(retriever, generator, TokenCounter(cfg.llm_model_name), top_k=cfg.retrieval_k)
