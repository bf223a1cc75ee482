"""Error taxonomy shared by every pipeline component.

Components raise these immediately and chain the underlying provider
exception; only the batch ingestion entry point turns them into logged
results instead of propagating them.
"""

from __future__ import annotations


class DocRagError(Exception):
    """Base class for all errors raised by docrag."""


class FetchError(DocRagError):
    """A document source could not be read or answered with a non-success status."""


class EmbeddingProviderError(DocRagError):
    """The embedding call failed or returned an empty / malformed vector."""


class StoreError(DocRagError):
    """Base class for vector-store failures."""


class StoreWriteError(StoreError):
    """An upsert or delete was rejected or the store was unreachable."""


class StoreQueryError(StoreError):
    """A similarity query or read was rejected or the store was unreachable."""


class CollectionConfigError(StoreError):
    """An existing collection was created under a different configuration."""


class GenerationError(DocRagError):
    """The completion call failed or returned no text."""
