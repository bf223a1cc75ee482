"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``OPENAI_BASE_URL`` (vLLM, a proxy,
   …); ``ChatOpenAI`` works unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docrag.config import settings
from docrag.errors import GenerationError

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.messages import BaseMessage

logger = logging.getLogger(__name__)


def get_llm(
    temperature: float = settings.llm_temperature,
    max_tokens: int = settings.llm_max_tokens,
) -> BaseChatModel:
    """Return the configured chat model.

    When ``settings.openai_base_url`` is set the client is pointed at that
    endpoint instead of the OpenAI cloud API.
    """
    from langchain_openai import ChatOpenAI

    kwargs: dict[str, Any] = {
        "model": settings.llm_model_name,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if settings.openai_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.openai_base_url)
        kwargs["base_url"] = settings.openai_base_url
        # Local servers don't need a real key; the client requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    elif settings.openai_api_key:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)


class GenerationClient:
    """Turns a prompt into completion text, raising :class:`GenerationError`.

    Parameters
    ----------
    llm:
        Any LangChain chat model.  When *None*, :func:`get_llm` is used.
    """

    def __init__(self, llm: BaseChatModel | None = None) -> None:
        self._llm = llm or get_llm()

    def generate(self, messages: list[BaseMessage]) -> str:
        try:
            response = self._llm.invoke(messages)
        except Exception as exc:
            raise GenerationError(f"Completion request failed: {type(exc).__name__}: {exc}") from exc

        content = getattr(response, "content", None)
        if not isinstance(content, str):
            raise GenerationError(f"Completion returned no text (got {type(content).__name__})")
        return content
