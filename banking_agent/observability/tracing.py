"""
OpenTelemetry Tracing Module

This module configures the OpenTelemetry SDK and provides the small helpers the
rest of the agent builds spans with.

The TracerProvider is returned to the caller and injected downward rather than
read back from the global API, so tests can run against an in-memory exporter
without touching process-wide state.

Spans produced by the agent:
- banking.process_request      one per customer query (INTERNAL)
- gen_ai.chat.completions      one per completion call (CLIENT)
- llm.correctness_evaluation   one per feedback submission
- banking.business_event       standalone business events
- chat.<model>                 observation bridge spans (opt-in)
"""

import sys
from contextlib import contextmanager
from typing import Any, Generator, Optional, TextIO

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.propagate import extract, inject
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.trace import Span, SpanKind, Tracer

from banking_agent.observability.logging import get_logger

logger = get_logger(__name__)

SERVICE_VERSION_VALUE = "0.1.0"


# =============================================================================
# TracerProvider Configuration
# =============================================================================


def setup_tracing(
    service_name: str = "banking-agent",
    otlp_endpoint: Optional[str] = None,
    environment: str = "development",
    exporter: Optional[SpanExporter] = None,
    set_global: bool = False,
    console_stream: Optional[TextIO] = None,
) -> TracerProvider:
    """
    Configure an OpenTelemetry TracerProvider.

    Exporter selection:
    - an explicit ``exporter`` wins (tests pass an InMemorySpanExporter)
    - OTLP/gRPC when ``otlp_endpoint`` is set and the exporter package is installed
    - console otherwise

    Args:
        service_name: Name of the service for resource identification
        otlp_endpoint: Optional OTLP exporter endpoint (http://localhost:4317)
        environment: Deployment environment recorded on the resource
        exporter: Explicit span exporter
        set_global: Also install the provider as the global tracer provider
        console_stream: Where the console exporter writes (default: sys.stdout)

    Returns:
        Configured TracerProvider
    """
    resource = Resource.create(
        {
            SERVICE_NAME: service_name,
            SERVICE_VERSION: SERVICE_VERSION_VALUE,
            DEPLOYMENT_ENVIRONMENT: environment,
        }
    )
    provider = TracerProvider(resource=resource)

    if exporter is None:
        exporter = _default_exporter(otlp_endpoint, console_stream)

    provider.add_span_processor(BatchSpanProcessor(exporter))

    if set_global:
        trace.set_tracer_provider(provider)

    logger.info(
        "tracing_configured",
        service_name=service_name,
        exporter=type(exporter).__name__,
    )
    return provider


def _default_exporter(
    otlp_endpoint: Optional[str], console_stream: Optional[TextIO] = None
) -> SpanExporter:
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError:
            logger.warning(
                "otlp_exporter_unavailable",
                endpoint=otlp_endpoint,
                fallback="console",
            )
        else:
            return OTLPSpanExporter(endpoint=otlp_endpoint)
    return ConsoleSpanExporter(out=console_stream or sys.stdout)


def get_tracer(name: str = __name__, provider: Optional[TracerProvider] = None) -> Tracer:
    """
    Get a named tracer, from ``provider`` when given, else from the global API.

    Args:
        name: Name for the tracer (typically module name)
        provider: Tracer provider to draw from

    Returns:
        Tracer instance
    """
    if provider is not None:
        return provider.get_tracer(name, SERVICE_VERSION_VALUE)
    return trace.get_tracer(name)


# =============================================================================
# Trace ID and Span ID Functions
# =============================================================================


def get_current_trace_id() -> Optional[str]:
    """
    Get the current trace ID as hex string.

    Returns:
        32-character hex string or None if no active span
    """
    span_context = trace.get_current_span().get_span_context()
    if span_context.trace_id == 0:
        return None
    return format(span_context.trace_id, "032x")


def get_current_span_id() -> Optional[str]:
    """
    Get the current span ID as hex string.

    Returns:
        16-character hex string or None if no active span
    """
    span_context = trace.get_current_span().get_span_context()
    if span_context.span_id == 0:
        return None
    return format(span_context.span_id, "016x")


# =============================================================================
# Context Propagation
# =============================================================================


def inject_trace_context(headers: Optional[dict[str, str]] = None) -> dict[str, str]:
    """
    Inject trace context into headers for outbound provider requests.

    Args:
        headers: Existing headers dict to inject into (optional)

    Returns:
        Headers dict with trace context injected
    """
    carrier = headers if headers is not None else {}
    inject(carrier)
    return carrier


def extract_trace_context(headers: dict[str, Any]) -> Context:
    """Extract trace context from incoming headers."""
    return extract(headers)


# =============================================================================
# Span Creation Helpers
# =============================================================================


@contextmanager
def create_span(
    tracer: Tracer,
    name: str,
    attributes: Optional[dict[str, Any]] = None,
    kind: SpanKind = SpanKind.INTERNAL,
) -> Generator[Span, None, None]:
    """
    Context manager for creating a current span with initial attributes.

    Exceptions raised inside the block are recorded on the span and the
    status is set to ERROR by the SDK before they propagate.

    Args:
        tracer: Tracer to start the span with
        name: Span name
        attributes: Optional span attributes (None values are skipped)
        kind: Span kind

    Yields:
        Active span
    """
    with tracer.start_as_current_span(name, kind=kind) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span
