"""Embedding client — text → fixed-dimension vector."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from docrag.config import settings
from docrag.errors import EmbeddingProviderError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(
    model: str = settings.embedding_model,
    dimensions: int = settings.embedding_dimensions,
) -> Embeddings:
    """Return the configured OpenAI embedding function."""
    from langchain_openai import OpenAIEmbeddings

    kwargs: dict = {"model": model, "dimensions": dimensions}
    if settings.openai_api_key:
        kwargs["api_key"] = settings.openai_api_key
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return OpenAIEmbeddings(**kwargs)


class EmbeddingClient:
    """Wraps an embedding provider behind a strict dimensionality contract.

    Every returned vector has exactly ``dimensions`` floats; anything else
    is reported as :class:`EmbeddingProviderError` rather than patched up.

    Parameters
    ----------
    embeddings:
        A LangChain ``Embeddings`` implementation.  When *None*, the OpenAI
        embedding function from the global settings is used.
    dimensions:
        Expected vector length.
    batch_size:
        Maximum number of texts sent per provider request in
        :meth:`embed_many`.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        dimensions: int = settings.embedding_dimensions,
        batch_size: int = settings.embedding_batch_size,
    ) -> None:
        self._embeddings = embeddings or get_embedding_function(dimensions=dimensions)
        self.dimensions = dimensions
        self.batch_size = batch_size

    def embed(self, text: str) -> list[float]:
        """Embed a single text (one provider request)."""
        try:
            vector = self._embeddings.embed_query(text)
        except Exception as exc:
            raise EmbeddingProviderError(
                f"Embedding request failed: {type(exc).__name__}: {exc}"
            ) from exc
        return self._validate(vector, 0)

    def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed *texts* in batches; output order matches input order."""
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            try:
                result = self._embeddings.embed_documents(batch)
            except Exception as exc:
                raise EmbeddingProviderError(
                    f"Embedding request failed for batch at {start} "
                    f"(size={len(batch)}): {type(exc).__name__}: {exc}"
                ) from exc
            if result is None or len(result) != len(batch):
                got = 0 if result is None else len(result)
                raise EmbeddingProviderError(
                    f"Provider returned {got} vectors for {len(batch)} inputs"
                )
            vectors.extend(self._validate(v, start + i) for i, v in enumerate(result))
            logger.debug("embedded %d / %d", len(vectors), len(texts))
        return vectors

    def _validate(self, vector: Sequence[float] | None, index: int) -> list[float]:
        if not vector:
            raise EmbeddingProviderError(f"No embedding data received for input {index}")
        if not all(isinstance(x, (float, int)) for x in vector):
            raise EmbeddingProviderError(f"Invalid embedding vector at index {index}")
        if len(vector) != self.dimensions:
            raise EmbeddingProviderError(
                f"Embedding at index {index} has {len(vector)} dimensions, "
                f"expected {self.dimensions}"
            )
        return [float(x) for x in vector]
