"""
Token and Cost Estimator

Pure functions that turn text into a token estimate and token counts into a
dollar cost. No I/O and no state beyond the price table.

Token counting is a rough approximation of about four characters per token.
It is NOT a tokenizer and must not be reported as an exact count; real
provider usage, when a provider returns it, is recorded separately.

Pattern: Value objects via Pydantic (frozen)
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field


CHARS_PER_TOKEN = 4
_PER_TOKENS = Decimal("1000")


# =============================================================================
# CostEstimate Model
# =============================================================================


class CostEstimate(BaseModel):
    """
    Estimated cost of one LLM call in USD.

    Attributes:
        prompt_cost_usd: Cost of the prompt tokens
        completion_cost_usd: Cost of the completion tokens
        total_cost_usd: Sum of both (derived)
    """

    prompt_cost_usd: Decimal = Field(default=Decimal("0"), ge=0)
    completion_cost_usd: Decimal = Field(default=Decimal("0"), ge=0)

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_cost_usd(self) -> Decimal:
        return self.prompt_cost_usd + self.completion_cost_usd


ZERO_COST = CostEstimate()


# =============================================================================
# Provider Pricing
# Prices per 1K tokens (prompt/completion)
# =============================================================================


DEFAULT_PRICING: dict[str, dict[str, Decimal]] = {
    # GPT-4 class pricing
    "openai": {
        "prompt": Decimal("0.03"),
        "completion": Decimal("0.06"),
    },
    "gemini": {
        "prompt": Decimal("0.00025"),
        "completion": Decimal("0.0005"),
    },
    # Self-hosted
    "ollama": {
        "prompt": Decimal("0"),
        "completion": Decimal("0"),
    },
}


# =============================================================================
# Token Estimation
# =============================================================================


def estimate_tokens(text: Optional[str]) -> int:
    """
    Estimate the token count of ``text`` as ``len(text) // 4``.

    Returns 0 for None or empty text. Monotonic non-decreasing in length.

    Examples:
        >>> estimate_tokens("")
        0
        >>> estimate_tokens("What is my balance?")
        4
    """
    if not text:
        return 0
    return len(text) // CHARS_PER_TOKEN


# =============================================================================
# CostEstimator
# =============================================================================


class CostEstimator:
    """
    Cost estimation against a per-provider price table.

    Provider lookup is case-insensitive. Providers missing from the table
    cost nothing.

    Attributes:
        pricing: Provider -> {"prompt", "completion"} price per 1K tokens
    """

    def __init__(
        self,
        pricing: Optional[dict[str, dict[str, Decimal]]] = None,
    ) -> None:
        """
        Initialize CostEstimator.

        Args:
            pricing: Optional custom pricing (defaults to DEFAULT_PRICING)
        """
        source = pricing if pricing is not None else DEFAULT_PRICING
        self._pricing = {name.lower(): rates for name, rates in source.items()}

    @property
    def pricing(self) -> dict[str, dict[str, Decimal]]:
        """Get pricing configuration."""
        return self._pricing

    def estimate_cost(
        self,
        provider: Optional[str],
        prompt_tokens: int,
        completion_tokens: int,
    ) -> CostEstimate:
        """
        Estimate the cost of a call.

        Args:
            provider: Provider key (ollama, openai, gemini)
            prompt_tokens: Number of prompt tokens (>= 0)
            completion_tokens: Number of completion tokens (>= 0)

        Returns:
            CostEstimate, zero for unknown or self-hosted providers

        Raises:
            ValueError: If a token count is negative
        """
        if prompt_tokens < 0 or completion_tokens < 0:
            raise ValueError("Token counts must be non-negative")

        rates = self._pricing.get((provider or "").strip().lower())
        if rates is None:
            return ZERO_COST

        prompt_cost = Decimal(prompt_tokens) / _PER_TOKENS * rates["prompt"]
        completion_cost = Decimal(completion_tokens) / _PER_TOKENS * rates["completion"]
        return CostEstimate(
            prompt_cost_usd=prompt_cost,
            completion_cost_usd=completion_cost,
        )


_default_estimator = CostEstimator()


def estimate_cost(
    provider: Optional[str],
    prompt_tokens: int,
    completion_tokens: int,
) -> CostEstimate:
    """Estimate cost with the default price table."""
    return _default_estimator.estimate_cost(provider, prompt_tokens, completion_tokens)
