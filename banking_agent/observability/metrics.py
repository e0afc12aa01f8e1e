"""
Prometheus Metrics Module

This module defines the Prometheus metrics emitted for LLM calls, banking
requests and user feedback.

All metrics live on a ``CollectorRegistry`` owned by a ``BankingMetrics``
instance. The instance is created once by the composition root and passed to
every component that records metrics; tests construct their own with a fresh
registry and read values back with ``registry.get_sample_value``.

Label sets are limited to provider, model and intent plus small fixed
enumerations (token type, response status, event type) to keep cardinality
bounded.

Metrics:
- llm_requests_total{provider,model}
- llm_errors_total{provider,model}
- llm_requests_in_progress{provider,model}
- llm_tokens_total{provider,model,type}
- llm_response_time_seconds{provider,model}
- llm_request_cost_dollars{provider,model}
- llm_correctness_evaluations_total{provider,intent}
- llm_correctness_score{provider,intent}
- user_satisfaction_submissions_total{provider,intent}
- user_satisfaction_score{provider,intent}
- banking_requests_total{provider,intent,status}
- banking_business_events_total{event_type}
"""

from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


RESPONSE_TIME_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)
COST_BUCKETS = (0.0001, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0)


class BankingMetrics:
    """
    Container for every Prometheus metric the agent records.

    Thread-safe: prometheus_client metrics synchronize their own updates, so
    one instance may be shared by concurrent requests.

    Args:
        registry: Registry to register the metrics on (default: a new one)

    Example:
        >>> metrics = BankingMetrics()
        >>> metrics.record_request("ollama", "llama3.2")
        >>> metrics.registry.get_sample_value(
        ...     "llm_requests_total", {"provider": "ollama", "model": "llama3.2"}
        ... )
        1.0
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        # =====================================================================
        # LLM call metrics
        # =====================================================================
        self.llm_requests_total = Counter(
            name="llm_requests_total",
            documentation="Total number of LLM completion calls",
            labelnames=["provider", "model"],
            registry=self.registry,
        )
        self.llm_errors_total = Counter(
            name="llm_errors_total",
            documentation="Total number of failed LLM completion calls",
            labelnames=["provider", "model"],
            registry=self.registry,
        )
        self.llm_requests_in_progress = Gauge(
            name="llm_requests_in_progress",
            documentation="Number of LLM completion calls currently open",
            labelnames=["provider", "model"],
            registry=self.registry,
        )
        self.llm_tokens_total = Counter(
            name="llm_tokens_total",
            documentation="Estimated tokens used by successful LLM calls",
            labelnames=["provider", "model", "type"],
            registry=self.registry,
        )
        self.llm_response_time_seconds = Histogram(
            name="llm_response_time_seconds",
            documentation="LLM completion call duration in seconds",
            labelnames=["provider", "model"],
            buckets=RESPONSE_TIME_BUCKETS,
            registry=self.registry,
        )
        self.llm_request_cost_dollars = Histogram(
            name="llm_request_cost_dollars",
            documentation="Estimated LLM call cost in dollars",
            labelnames=["provider", "model"],
            buckets=COST_BUCKETS,
            registry=self.registry,
        )

        # =====================================================================
        # Correctness and satisfaction metrics
        # =====================================================================
        self.correctness_evaluations_total = Counter(
            name="llm_correctness_evaluations_total",
            documentation="Total number of correctness evaluations recorded",
            labelnames=["provider", "intent"],
            registry=self.registry,
        )
        self.correctness_score = Gauge(
            name="llm_correctness_score",
            documentation="Most recent correctness score in [0, 1]",
            labelnames=["provider", "intent"],
            registry=self.registry,
        )
        self.satisfaction_submissions_total = Counter(
            name="user_satisfaction_submissions_total",
            documentation="Total number of satisfaction surveys submitted",
            labelnames=["provider", "intent"],
            registry=self.registry,
        )
        self.satisfaction_score = Gauge(
            name="user_satisfaction_score",
            documentation="Most recent satisfaction score on the 1-5 scale",
            labelnames=["provider", "intent"],
            registry=self.registry,
        )

        # =====================================================================
        # Business metrics
        # =====================================================================
        self.banking_requests_total = Counter(
            name="banking_requests_total",
            documentation="Total number of banking requests processed",
            labelnames=["provider", "intent", "status"],
            registry=self.registry,
        )
        self.business_events_total = Counter(
            name="banking_business_events_total",
            documentation="Total number of business events emitted",
            labelnames=["event_type"],
            registry=self.registry,
        )

    # =========================================================================
    # LLM call helpers
    # =========================================================================

    def record_request(self, provider: str, model: str) -> None:
        """Count the start of one LLM call and mark it in progress."""
        self.llm_requests_total.labels(provider=provider, model=model).inc()
        self.llm_requests_in_progress.labels(provider=provider, model=model).inc()

    def record_call_finished(self, provider: str, model: str, duration_seconds: float) -> None:
        """Observe call duration and clear the in-progress mark."""
        self.llm_response_time_seconds.labels(provider=provider, model=model).observe(
            duration_seconds
        )
        self.llm_requests_in_progress.labels(provider=provider, model=model).dec()

    def record_error(self, provider: str, model: str) -> None:
        """Count one failed LLM call."""
        self.llm_errors_total.labels(provider=provider, model=model).inc()

    def record_token_usage(
        self,
        provider: str,
        model: str,
        token_type: str,
        count: int,
    ) -> None:
        """
        Add tokens to the running total.

        Args:
            provider: LLM provider (ollama, openai, gemini)
            model: Model name
            token_type: "prompt" or "completion"
            count: Number of tokens
        """
        if count <= 0:
            return
        self.llm_tokens_total.labels(provider=provider, model=model, type=token_type).inc(count)

    def record_cost(self, provider: str, model: str, cost: float) -> None:
        """Observe the estimated cost of one call in dollars."""
        self.llm_request_cost_dollars.labels(provider=provider, model=model).observe(cost)

    # =========================================================================
    # Correctness and satisfaction helpers
    # =========================================================================

    def record_correctness(self, provider: str, intent: str, score: float) -> None:
        """Count one evaluation and publish its score."""
        self.correctness_evaluations_total.labels(provider=provider, intent=intent).inc()
        self.correctness_score.labels(provider=provider, intent=intent).set(score)

    def record_satisfaction(self, provider: str, intent: str, score: float) -> None:
        """Count one survey and publish its raw 1-5 score."""
        self.satisfaction_submissions_total.labels(provider=provider, intent=intent).inc()
        self.satisfaction_score.labels(provider=provider, intent=intent).set(score)

    # =========================================================================
    # Business helpers
    # =========================================================================

    def record_banking_request(self, provider: str, intent: str, status: str) -> None:
        self.banking_requests_total.labels(provider=provider, intent=intent, status=status).inc()

    def record_business_event(self, event_type: str) -> None:
        self.business_events_total.labels(event_type=event_type).inc()


def generate_metrics(registry: CollectorRegistry) -> str:
    """
    Generate Prometheus metrics text format.

    Returns:
        Prometheus exposition format text
    """
    return generate_latest(registry).decode("utf-8")
