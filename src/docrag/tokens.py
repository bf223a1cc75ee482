"""Token accounting for observability of model spend."""

from __future__ import annotations

import logging
from functools import cached_property

import tiktoken

from docrag.config import settings

logger = logging.getLogger(__name__)

_FALLBACK_ENCODING = "o200k_base"


class TokenCounter:
    """Count tokens with the tokenizer of the configured chat model.

    The counter only reports; callers must never throttle or truncate on
    its result.

    Parameters
    ----------
    model:
        Model name used to pick the ``tiktoken`` encoding.  Unknown names
        fall back to ``o200k_base`` (the ``gpt-4o`` family vocabulary).
    """

    def __init__(self, model: str = settings.llm_model_name) -> None:
        self.model = model

    @cached_property
    def encoding(self) -> tiktoken.Encoding:
        try:
            return tiktoken.encoding_for_model(self.model)
        except KeyError:
            logger.info("No tokenizer registered for %r, using %s", self.model, _FALLBACK_ENCODING)
            return tiktoken.get_encoding(_FALLBACK_ENCODING)

    def count(self, text: str) -> int:
        """Return the number of tokens in *text* (``0`` for ``""``)."""
        if not isinstance(text, str):
            raise TypeError(f"count() expects str, got {type(text).__name__}")
        if not text:
            return 0
        # Special-token markers inside documents are counted as plain text.
        return len(self.encoding.encode(text, disallowed_special=()))
