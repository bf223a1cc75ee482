"""docrag — ingest documents into a vector store and answer questions from them."""

__version__ = "0.1.0"
