"""
Ingestion — document loading, chunking, and embedding into the vector store.

This module is responsible for the pipeline that converts a source
identifier (URL or file path) into embedded chunks stored in a vector
database.
"""
