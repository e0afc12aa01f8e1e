"""
Telemetry Emitter - correctness samples and business events.

Both operations are observational taps: they write spans and metrics and
never raise. Internal failures are logged and dropped.
"""

from typing import Any, Mapping, Optional

from opentelemetry.trace import Span, Tracer
from opentelemetry.util.types import AttributeValue

from banking_agent.observability.logging import get_logger
from banking_agent.observability.metrics import BankingMetrics
from banking_agent.observability.semconv import (
    BUSINESS_EVENT_SPAN,
    CORRECTNESS_SPAN,
    EVENT_TYPE,
    LLMAttributes,
)
from banking_agent.observability.tracing import create_span

logger = get_logger(__name__)


def to_attribute_value(value: Any) -> AttributeValue:
    """Coerce a value into something a span attribute accepts."""
    if isinstance(value, (str, bool, int, float)):
        return value
    return str(value)


class TelemetryEmitter:
    """
    Emits correctness evaluations and business events.

    Args:
        tracer: Tracer for standalone spans
        metrics: Metrics container
    """

    def __init__(self, tracer: Tracer, metrics: BankingMetrics) -> None:
        self._tracer = tracer
        self._metrics = metrics

    def record_correctness(
        self,
        provider: str,
        intent: str,
        score: float,
        feedback: Optional[str] = None,
    ) -> None:
        """
        Record a correctness sample in [0, 1].

        Opens an ``llm.correctness_evaluation`` span and updates the
        correctness counter and gauge labelled (provider, intent).
        """
        try:
            with create_span(
                self._tracer,
                CORRECTNESS_SPAN,
                {
                    LLMAttributes.PROVIDER: provider,
                    LLMAttributes.INTENT: intent,
                    LLMAttributes.CORRECTNESS_SCORE: score,
                    LLMAttributes.FEEDBACK: feedback,
                },
            ):
                self._metrics.record_correctness(provider, intent, score)
        except Exception as e:
            logger.warning(
                "correctness_recording_failed",
                provider=provider,
                intent=intent,
                error=str(e),
            )
            return

        logger.info("correctness_recorded", provider=provider, intent=intent, score=score)

    def record_business_event(
        self,
        event_type: str,
        attributes: Mapping[str, Any],
        span: Optional[Span] = None,
    ) -> None:
        """
        Emit a business event.

        With ``span`` the event is added to it as a span event. Without one a
        standalone ``banking.business_event`` span is created carrying
        ``event.type`` and one ``event.<key>`` attribute per entry.
        None values are skipped.
        """
        try:
            values = {
                key: to_attribute_value(value)
                for key, value in attributes.items()
                if value is not None
            }
            if span is not None and span.is_recording():
                span.add_event(event_type, values)
            else:
                event_attributes: dict[str, Any] = {EVENT_TYPE: event_type}
                event_attributes.update(
                    {f"event.{key}": value for key, value in values.items()}
                )
                with create_span(self._tracer, BUSINESS_EVENT_SPAN, event_attributes):
                    pass
            self._metrics.record_business_event(event_type)
        except Exception as e:
            logger.warning("business_event_failed", event_type=event_type, error=str(e))
            return

        logger.info("business_event_recorded", event_type=event_type)
