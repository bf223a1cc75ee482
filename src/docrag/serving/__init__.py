"""
Serving — FastAPI application for ingestion and question answering.

Run with any ASGI server, e.g. ``uvicorn docrag.serving.app:app``.
"""
