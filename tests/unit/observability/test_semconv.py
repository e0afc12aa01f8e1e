"""
Tests for span attribute helpers.
"""

import pytest

from banking_agent.observability.semconv import (
    TRUNCATION_MARKER,
    normalize_provider,
    prompt_hash,
    truncate_content,
)


class TestNormalizeProvider:
    @pytest.mark.parametrize(
        "provider,expected",
        [
            ("openai", "openai"),
            ("OpenAI", "openai"),
            ("gemini", "google"),
            ("ollama", "ollama"),
            ("Mistral", "mistral"),
            ("", "unknown"),
            (None, "unknown"),
        ],
    )
    def test_mapping(self, provider, expected):
        assert normalize_provider(provider) == expected


class TestTruncateContent:
    def test_short_text_unchanged(self):
        assert truncate_content("hello", 10) == "hello"

    def test_long_text_truncated_with_marker(self):
        result = truncate_content("x" * 50, 10)

        assert result == "x" * 10 + TRUNCATION_MARKER

    def test_empty(self):
        assert truncate_content(None, 10) == ""


class TestPromptHash:
    def test_stable_and_short(self):
        assert prompt_hash("What is my balance?") == prompt_hash("What is my balance?")
        assert len(prompt_hash("What is my balance?")) == 16

    def test_differs_per_prompt(self):
        assert prompt_hash("a") != prompt_hash("b")
