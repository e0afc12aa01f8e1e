"""
Tests for token and cost estimation.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from banking_agent.services.cost_estimator import (
    DEFAULT_PRICING,
    ZERO_COST,
    CostEstimate,
    CostEstimator,
    estimate_cost,
    estimate_tokens,
)


class TestEstimateTokens:
    def test_empty_is_zero(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens(None) == 0

    @pytest.mark.parametrize(
        "text,expected",
        [("abc", 0), ("abcd", 1), ("What is my balance?", 4), ("x" * 400, 100)],
    )
    def test_four_chars_per_token(self, text, expected):
        assert estimate_tokens(text) == expected

    def test_monotonic_in_length(self):
        estimates = [estimate_tokens("x" * n) for n in range(0, 200)]

        assert estimates == sorted(estimates)


class TestCostEstimator:
    def test_ollama_is_free(self):
        for prompt_tokens, completion_tokens in [(0, 0), (10, 10), (100_000, 50_000)]:
            assert estimate_cost("ollama", prompt_tokens, completion_tokens).total_cost_usd == 0

    def test_openai_pricing(self):
        cost = estimate_cost("openai", 1000, 500)

        assert cost.prompt_cost_usd == Decimal("0.03")
        assert cost.completion_cost_usd == Decimal("0.03")
        assert cost.total_cost_usd == Decimal("0.06")

    def test_gemini_pricing(self):
        cost = estimate_cost("Gemini", 2000, 1000)

        assert cost.total_cost_usd == Decimal("0.001")

    def test_unknown_provider_costs_nothing(self):
        assert estimate_cost("mystery", 1000, 1000) == ZERO_COST

    def test_negative_tokens_rejected(self):
        with pytest.raises(ValueError):
            estimate_cost("openai", -1, 0)

    def test_custom_pricing(self):
        estimator = CostEstimator(
            pricing={"Local": {"prompt": Decimal("1"), "completion": Decimal("2")}}
        )

        assert estimator.estimate_cost("local", 1000, 1000).total_cost_usd == Decimal("3")
        assert "local" in estimator.pricing

    def test_default_pricing_covers_known_providers(self):
        assert set(DEFAULT_PRICING) == {"openai", "gemini", "ollama"}


class TestCostEstimate:
    def test_frozen(self):
        with pytest.raises(ValidationError):
            ZERO_COST.prompt_cost_usd = Decimal("1")

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            CostEstimate(prompt_cost_usd=Decimal("-0.01"))

    def test_total_in_dump(self):
        dumped = CostEstimate(prompt_cost_usd=Decimal("0.01")).model_dump()

        assert dumped["total_cost_usd"] == Decimal("0.01")
