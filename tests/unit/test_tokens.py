"""Unit tests for token accounting."""

from __future__ import annotations

import pytest

from docrag.tokens import TokenCounter


@pytest.fixture(scope="module")
def counter() -> TokenCounter:
    """Skip if the tiktoken vocabulary can't be loaded (offline sandbox)."""
    tc = TokenCounter("gpt-4o-mini")
    try:
        tc.encoding
    except Exception:
        pytest.skip("tiktoken encoding not available in this environment")
    return tc


def test_empty_string_is_zero_tokens() -> None:
    assert TokenCounter().count("") == 0


def test_non_string_rejected() -> None:
    with pytest.raises(TypeError):
        TokenCounter().count(None)  # type: ignore[arg-type]


def test_counts_tokens(counter: TokenCounter) -> None:
    assert counter.count("hello world") > 0


def test_monotonic_when_appending_words(counter: TokenCounter) -> None:
    text = ""
    previous = counter.count(text)
    for word in "the quick brown fox jumps over the lazy dog".split():
        text = f"{text} {word}" if text else word
        current = counter.count(text)
        assert current >= previous
        previous = current


def test_special_tokens_counted_as_text(counter: TokenCounter) -> None:
    assert counter.count("<|endoftext|>") > 0


def test_unknown_model_falls_back(counter: TokenCounter) -> None:
    fallback = TokenCounter("not-a-real-model")
    assert fallback.encoding.name == "o200k_base"
