"""Query pipeline — embed, retrieve, assemble context, generate.

Unlike ingestion, nothing here is swallowed: a partial or ungrounded answer
is worse than an error, so every failure reaches the caller after being
logged with the query text.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, computed_field

from docrag.generation.prompts import assemble_context, build_rag_prompt
from docrag.retrieval.models import Citation

if TYPE_CHECKING:
    from docrag.generation.llm import GenerationClient
    from docrag.retrieval.retriever import SemanticRetriever
    from docrag.tokens import TokenCounter

logger = logging.getLogger(__name__)


class TokenUsage(BaseModel):
    """Token spend of one query, for observability only."""

    context_tokens: int = 0
    query_tokens: int = 0
    response_tokens: int = 0

    @computed_field
    @property
    def total(self) -> int:
        return self.context_tokens + self.query_tokens + self.response_tokens


class Answer(BaseModel):
    """A generated answer together with the chunks it was grounded on."""

    query: str
    answer: str
    sources: list[Citation] = Field(default_factory=list)
    usage: TokenUsage = Field(default_factory=TokenUsage)


class QueryPipeline:
    """Answer questions from the chunks stored in one collection.

    Parameters
    ----------
    retriever:
        Embeds the query and fetches the nearest chunks.
    generator:
        Completion client (temperature and output bound are configured on
        its chat model).
    token_counter:
        Counter used to log token spend.
    top_k:
        Number of chunks retrieved as context.
    """

    def __init__(
        self,
        retriever: SemanticRetriever,
        generator: GenerationClient,
        token_counter: TokenCounter,
        *,
        top_k: int | None = None,
    ) -> None:
        self.retriever = retriever
        self.generator = generator
        self.token_counter = token_counter
        self.top_k = top_k or retriever.default_k

    def answer(self, query: str) -> str:
        """Return the generated answer text for *query*."""
        return self.run(query).answer

    def run(self, query: str) -> Answer:
        """Answer *query* and report the sources and token usage."""
        try:
            return self._run(query)
        except Exception:
            logger.exception("Error in query %r", query)
            raise

    def _run(self, query: str) -> Answer:
        self.retriever.store.get_or_create()
        results = self.retriever.search(query, k=self.top_k)
        context = assemble_context(results)

        usage = TokenUsage(
            context_tokens=self.token_counter.count(context),
            query_tokens=self.token_counter.count(query),
        )
        logger.info("- Prompt tokens (context + query): %d", usage.context_tokens + usage.query_tokens)

        text = self.generator.generate(build_rag_prompt(query, context))

        usage.response_tokens = self.token_counter.count(text)
        logger.info("- Response tokens: %d", usage.response_tokens)
        logger.info("- Total tokens used: %d", usage.total)

        return Answer(
            query=query,
            answer=text,
            sources=[r.citation for r in results],
            usage=usage,
        )
