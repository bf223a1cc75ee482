"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

_META_PREFIX = "docrag_"


class CollectionConfig(BaseModel):
    """Parameters a collection's embeddings were produced under.

    Stored in the collection metadata when the collection is created so a
    collection never silently mixes vectors from different models,
    dimensionalities or chunking settings.  Bump ``schema_version`` whenever
    the chunk id / metadata scheme changes.
    """

    model_config = ConfigDict(frozen=True)

    schema_version: int = 1
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = Field(default=1536, gt=0)
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    distance: Literal["cosine", "l2", "ip"] = "cosine"

    def to_metadata(self) -> dict[str, Any]:
        """Flatten into collection metadata (Chroma accepts scalars only)."""
        meta: dict[str, Any] = {"hnsw:space": self.distance}
        for key, value in self.model_dump().items():
            meta[f"{_META_PREFIX}{key}"] = value
        return meta

    def mismatches(self, metadata: dict[str, Any] | None) -> dict[str, tuple[Any, Any]]:
        """Return ``{field: (stored, expected)}`` for every differing field.

        Collections created without a stored configuration (e.g. by an older
        tool) are accepted as-is.
        """
        metadata = metadata or {}
        stored = {
            key[len(_META_PREFIX):]: value
            for key, value in metadata.items()
            if key.startswith(_META_PREFIX)
        }
        if not stored:
            return {}
        expected = self.model_dump()
        return {
            key: (stored.get(key), value)
            for key, value in expected.items()
            if stored.get(key) != value
        }


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_base_url: str = Field(
        default="",
        description="Base URL of an OpenAI-compatible API. Leave empty to use OpenAI cloud.",
    )
    llm_model_name: str = Field(default="gpt-4o-mini", description="Chat model identifier")
    llm_temperature: float = 0.7
    llm_max_tokens: int = 500

    # Embedding
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_batch_size: int = 100

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "my_collection"
    distance_metric: Literal["cosine", "l2", "ip"] = "cosine"

    # Chunking / retrieval
    chunk_size: int = 1000
    chunk_overlap: int = 200
    retrieval_k: int = 5
    prune_stale_chunks: bool = True

    # Document sources
    document_source: Literal["markdown_service", "html", "file"] = "markdown_service"
    markdown_service_url: str = "https://urltomarkdown.herokuapp.com/"
    request_timeout: float = 60.0

    # Listing / logging
    preview_chars: int = 200
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def collection_config(self) -> CollectionConfig:
        """Build the versioned configuration of the target collection."""
        return CollectionConfig(
            embedding_model=self.embedding_model,
            embedding_dimensions=self.embedding_dimensions,
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            distance=self.distance_metric,
        )


# Singleton: import `settings` wherever needed.
settings = Settings()
