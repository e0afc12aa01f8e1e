"""
Observability Package

Structured logging (structlog), Prometheus metrics and OpenTelemetry tracing,
plus the LLM call instrumentation built on them:

- logging: JSON logs with correlation ids
- metrics: BankingMetrics on an owned CollectorRegistry
- tracing: TracerProvider setup and trace context helpers
- semconv: span names and attribute keys
- instrumentation: per-call span and metric lifecycle (import directly)
- emitter: correctness samples and business events (import directly)
- bridge: provider observation callbacks mapped to spans (import directly)
"""

from banking_agent.observability.logging import (
    clear_correlation_id,
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from banking_agent.observability.metrics import BankingMetrics, generate_metrics
from banking_agent.observability.tracing import (
    create_span,
    extract_trace_context,
    get_current_span_id,
    get_current_trace_id,
    get_tracer,
    inject_trace_context,
    setup_tracing,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Metrics
    "BankingMetrics",
    "generate_metrics",
    # Tracing
    "setup_tracing",
    "get_tracer",
    "get_current_trace_id",
    "get_current_span_id",
    "inject_trace_context",
    "extract_trace_context",
    "create_span",
]
