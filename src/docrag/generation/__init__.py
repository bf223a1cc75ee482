"""
Generation — prompt assembly and the query pipeline.

Public API
----------
- :class:`QueryPipeline` — embed → retrieve → assemble context → generate.
- :class:`GenerationClient` / :func:`get_llm` — chat-model wrapper.
- :class:`Answer`, :class:`TokenUsage` — query results.
"""

from docrag.generation.llm import GenerationClient, get_llm
from docrag.generation.pipeline import Answer, QueryPipeline, TokenUsage

__all__ = [
    "Answer",
    "GenerationClient",
    "QueryPipeline",
    "TokenUsage",
    "get_llm",
]
