"""Prompt templates for retrieval-augmented answering.

Keeping prompts in one place makes them easy to audit and version.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from docrag.retrieval.models import RetrievalResult

SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the provided context to answer questions "
    "accurately. If you're not sure about something, say so."
)

USER_TEMPLATE = "Context: {context}\n\nQuestion: {query}"

CONTEXT_SEPARATOR = "\n\n"


def assemble_context(results: Iterable[RetrievalResult]) -> str:
    """Join retrieved chunk texts in ranked order, separated by a blank line."""
    return CONTEXT_SEPARATOR.join(r.content for r in results)


def build_rag_prompt(query: str, context: str) -> list[BaseMessage]:
    """Assemble the two-message prompt for a retrieval-augmented answer.

    An empty *context* is allowed; the model then answers without grounding.
    """
    return [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=USER_TEMPLATE.format(context=context, query=query)),
    ]
