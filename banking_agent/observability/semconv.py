"""
Span attribute vocabulary for LLM and banking spans.

Attribute names follow the OpenTelemetry GenAI semantic conventions
(https://opentelemetry.io/docs/specs/semconv/gen-ai/) where one exists, with
``llm.*`` and ``banking.*`` extensions for estimates and domain tags.
"""

import hashlib
from typing import Optional


# =============================================================================
# Span Names
# =============================================================================

LLM_CALL_SPAN = "gen_ai.chat.completions"
BUSINESS_SPAN = "banking.process_request"
CORRECTNESS_SPAN = "llm.correctness_evaluation"
BUSINESS_EVENT_SPAN = "banking.business_event"

TRUNCATION_MARKER = "... [truncated]"


class GenAIAttributes:
    """OpenTelemetry GenAI semantic convention attribute names."""

    SYSTEM = "gen_ai.system"
    OPERATION_NAME = "gen_ai.operation.name"

    REQUEST_MODEL = "gen_ai.request.model"
    REQUEST_TEMPERATURE = "gen_ai.request.temperature"
    REQUEST_MAX_TOKENS = "gen_ai.request.max_tokens"

    RESPONSE_MODEL = "gen_ai.response.model"
    RESPONSE_FINISH_REASONS = "gen_ai.response.finish_reasons"

    USAGE_INPUT_TOKENS = "gen_ai.usage.input_tokens"
    USAGE_OUTPUT_TOKENS = "gen_ai.usage.output_tokens"
    USAGE_TOTAL_TOKENS = "gen_ai.usage.total_tokens"

    # Only set when content capture is enabled
    PROMPT = "gen_ai.prompt"
    COMPLETION = "gen_ai.completion"


class LLMAttributes:
    """Estimate and timing attributes attached to LLM call spans."""

    REQUEST_TYPE = "llm.request.type"

    PROMPT_LENGTH = "llm.prompt.length"
    PROMPT_HASH = "llm.prompt.hash"
    PROMPT_TOKENS = "llm.prompt.tokens"

    RESPONSE_LENGTH = "llm.response.length"
    COMPLETION_TOKENS = "llm.completion.tokens"
    TOTAL_TOKENS = "llm.total.tokens"

    LATENCY_MS = "llm.latency.ms"
    COST_USD = "llm.cost.usd"

    # Provider-reported usage, when the provider returns it
    REPORTED_PROMPT_TOKENS = "llm.usage.reported.prompt_tokens"
    REPORTED_COMPLETION_TOKENS = "llm.usage.reported.completion_tokens"
    REPORTED_TOTAL_TOKENS = "llm.usage.reported.total_tokens"

    # Correctness evaluation span
    PROVIDER = "llm.provider"
    INTENT = "llm.intent"
    CORRECTNESS_SCORE = "llm.correctness_score"
    FEEDBACK = "feedback"


class BankingAttributes:
    """Domain attributes on LLM call spans and the request span."""

    INTENT = "banking.intent"
    ACCOUNT = "banking.account"

    PROVIDER = "banking.provider"
    ACCOUNT_NUMBER = "banking.account_number"
    OPERATION_TYPE = "banking.operation_type"
    USER_QUERY = "banking.user.query"
    RESPONSE_STATUS = "banking.response.status"


class DbAttributes:
    """Attributes on repository call spans."""

    SYSTEM = "db.system"
    OPERATION = "db.operation"
    OPERATION_TYPE = "db.operation.type"
    QUERY_KEY = "db.query.key"
    QUERY_VALUE = "db.query.value"
    RESULT_COUNT = "db.result.count"
    RESULT_PRESENT = "db.result.present"

    REPOSITORY_CLASS = "repository.class"
    REPOSITORY_METHOD = "repository.method"


ERROR_TYPE = "error.type"
EVENT_TYPE = "event.type"


# =============================================================================
# Provider Name Normalization
# =============================================================================

# Internal provider keys -> gen_ai.system values
_PROVIDER_SYSTEMS = {
    "openai": "openai",
    "gemini": "google",
    "ollama": "ollama",
}


def normalize_provider(provider: Optional[str]) -> str:
    """
    Map an internal provider key to the ``gen_ai.system`` vocabulary.

    Unrecognized keys pass through lower-cased.

    Examples:
        >>> normalize_provider("Gemini")
        'google'
        >>> normalize_provider("Mistral")
        'mistral'
    """
    if not provider:
        return "unknown"
    key = provider.strip().lower()
    return _PROVIDER_SYSTEMS.get(key, key)


# =============================================================================
# Content Helpers
# =============================================================================


def truncate_content(text: Optional[str], max_length: int) -> str:
    """Truncate span content to ``max_length`` characters plus a marker."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def prompt_hash(text: str) -> str:
    """Short stable fingerprint of a prompt (first 16 hex chars of SHA-256)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
