"""
Observation Bridge

Providers announce each completion call through an ``ObservationRegistry``
(start, stop, error). Handlers registered on it turn those callbacks into
telemetry. ``OtelObservationHandler`` opens a ``chat.<model>`` CLIENT span per
call and attaches the usage the provider itself reported, which complements
the estimates on the ``gen_ai.chat.completions`` span.

Span state is kept on the ObservationContext of the call, so concurrent
calls on different tasks never see each other's spans.

Callback order: on_start, then on_error (failures only), then on_stop.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Optional

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Tracer

from banking_agent.observability.logging import get_logger
from banking_agent.observability.semconv import ERROR_TYPE, GenAIAttributes, normalize_provider

if TYPE_CHECKING:
    from banking_agent.models.responses import ChatCompletion

logger = get_logger(__name__)


@dataclass
class ObservationContext:
    """
    One observed completion call.

    Attributes:
        provider: Provider key
        model: Requested model
        operation: Operation name ("chat")
        completion: Provider result, set before on_stop on success
        error: Exception raised by the provider, set before on_error
        state: Per-handler scratch space keyed by handler
    """

    provider: str
    model: str
    operation: str = "chat"
    completion: Optional["ChatCompletion"] = None
    error: Optional[BaseException] = None
    state: dict[Any, Any] = field(default_factory=dict)


class ObservationHandler(ABC):
    """Receives lifecycle callbacks for observed completion calls."""

    def supports(self, context: ObservationContext) -> bool:
        return True

    @abstractmethod
    def on_start(self, context: ObservationContext) -> None:
        ...

    @abstractmethod
    def on_stop(self, context: ObservationContext) -> None:
        ...

    def on_error(self, context: ObservationContext) -> None:
        pass


class ObservationRegistry:
    """
    Ordered collection of observation handlers.

    A failing handler is logged and skipped; it never affects the provider
    call or the other handlers.
    """

    def __init__(self, handlers: Optional[list[ObservationHandler]] = None) -> None:
        self._handlers: list[ObservationHandler] = list(handlers or [])

    @property
    def handlers(self) -> list[ObservationHandler]:
        return list(self._handlers)

    def add_handler(self, handler: ObservationHandler) -> None:
        self._handlers.append(handler)
        logger.info("observation_handler_registered", handler=type(handler).__name__)

    @asynccontextmanager
    async def observe(self, context: ObservationContext) -> AsyncIterator[ObservationContext]:
        """Drive handler callbacks around the body of one completion call."""
        active = [h for h in self._handlers if self._supports(h, context)]
        for handler in active:
            self._dispatch("on_start", handler.on_start, context)
        try:
            yield context
        except Exception as e:
            context.error = e
            for handler in active:
                self._dispatch("on_error", handler.on_error, context)
            raise
        finally:
            for handler in reversed(active):
                self._dispatch("on_stop", handler.on_stop, context)

    @staticmethod
    def _supports(handler: ObservationHandler, context: ObservationContext) -> bool:
        try:
            return handler.supports(context)
        except Exception as e:
            logger.warning(
                "observation_handler_failed",
                handler=type(handler).__name__,
                callback="supports",
                error=str(e),
            )
            return False

    @staticmethod
    def _dispatch(
        name: str,
        callback: Callable[[ObservationContext], None],
        context: ObservationContext,
    ) -> None:
        try:
            callback(context)
        except Exception as e:
            logger.warning(
                "observation_handler_failed",
                callback=name,
                provider=context.provider,
                error=str(e),
            )


class OtelObservationHandler(ObservationHandler):
    """
    Bridges observation callbacks into OpenTelemetry CLIENT spans.

    Args:
        tracer: Tracer for the ``chat.<model>`` spans
    """

    def __init__(self, tracer: Tracer) -> None:
        self._tracer = tracer

    def on_start(self, context: ObservationContext) -> None:
        model = context.model or "unknown"
        span = self._tracer.start_span(
            f"chat.{model}",
            kind=SpanKind.CLIENT,
            attributes={
                GenAIAttributes.OPERATION_NAME: context.operation,
                GenAIAttributes.REQUEST_MODEL: model,
                GenAIAttributes.SYSTEM: normalize_provider(context.provider),
            },
        )
        token = otel_context.attach(trace.set_span_in_context(span))
        context.state[self] = (span, token)

    def on_error(self, context: ObservationContext) -> None:
        entry = context.state.get(self)
        if entry is None or context.error is None:
            return
        span, _ = entry
        span.record_exception(context.error)
        span.set_attribute("error", True)
        span.set_attribute(ERROR_TYPE, type(context.error).__name__)

    def on_stop(self, context: ObservationContext) -> None:
        entry = context.state.pop(self, None)
        if entry is None:
            return
        span, token = entry
        try:
            completion = context.completion
            if completion is not None:
                if completion.usage is not None:
                    span.set_attribute(GenAIAttributes.USAGE_INPUT_TOKENS, completion.usage.prompt_tokens)
                    span.set_attribute(GenAIAttributes.USAGE_OUTPUT_TOKENS, completion.usage.completion_tokens)
                    span.set_attribute(GenAIAttributes.USAGE_TOTAL_TOKENS, completion.usage.total_tokens)
                if completion.model:
                    span.set_attribute(GenAIAttributes.RESPONSE_MODEL, completion.model)
        finally:
            otel_context.detach(token)
            span.end()
