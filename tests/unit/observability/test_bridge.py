"""
Tests for the observation bridge (provider callbacks -> OpenTelemetry spans).
"""

import pytest
from opentelemetry import trace
from opentelemetry.trace import SpanKind

from banking_agent.core.exceptions import ProviderConnectionError
from banking_agent.models.responses import ChatCompletion, Usage
from banking_agent.observability.bridge import (
    ObservationContext,
    ObservationHandler,
    ObservationRegistry,
    OtelObservationHandler,
)
from banking_agent.providers.fake import FakeProvider


class RecordingHandler(ObservationHandler):
    def __init__(self, name, log):
        self.name = name
        self.log = log

    def on_start(self, context):
        self.log.append(f"{self.name}.start")

    def on_stop(self, context):
        self.log.append(f"{self.name}.stop")

    def on_error(self, context):
        self.log.append(f"{self.name}.error")


class BrokenHandler(ObservationHandler):
    def on_start(self, context):
        raise RuntimeError("broken on start")

    def on_stop(self, context):
        raise RuntimeError("broken on stop")


class TestObservationRegistry:
    @pytest.mark.asyncio
    async def test_callback_order(self):
        log = []
        registry = ObservationRegistry([RecordingHandler("a", log), RecordingHandler("b", log)])

        async with registry.observe(ObservationContext(provider="ollama", model="llama3.2")):
            log.append("body")

        assert log == ["a.start", "b.start", "body", "b.stop", "a.stop"]

    @pytest.mark.asyncio
    async def test_error_callbacks_and_propagation(self):
        log = []
        registry = ObservationRegistry([RecordingHandler("a", log)])
        context = ObservationContext(provider="ollama", model="llama3.2")
        error = ProviderConnectionError("refused", provider="ollama")

        with pytest.raises(ProviderConnectionError):
            async with registry.observe(context):
                raise error

        assert context.error is error
        assert log == ["a.start", "a.error", "a.stop"]

    @pytest.mark.asyncio
    async def test_broken_handler_is_isolated(self):
        log = []
        registry = ObservationRegistry([BrokenHandler(), RecordingHandler("ok", log)])

        async with registry.observe(ObservationContext(provider="ollama", model="llama3.2")):
            pass

        assert log == ["ok.start", "ok.stop"]

    def test_add_handler(self):
        registry = ObservationRegistry()
        handler = RecordingHandler("a", [])

        registry.add_handler(handler)

        assert registry.handlers == [handler]


class TestOtelObservationHandler:
    @pytest.mark.asyncio
    async def test_span_with_reported_usage(self, tracer, span_exporter):
        registry = ObservationRegistry([OtelObservationHandler(tracer)])
        context = ObservationContext(provider="gemini", model="gemini-pro")

        async with registry.observe(context):
            assert trace.get_current_span().is_recording()
            context.completion = ChatCompletion(
                content="hi",
                model="gemini-pro-001",
                usage=Usage(prompt_tokens=7, completion_tokens=3, total_tokens=10),
            )

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "chat.gemini-pro"
        assert span.kind == SpanKind.CLIENT
        assert span.attributes["gen_ai.system"] == "google"
        assert span.attributes["gen_ai.usage.input_tokens"] == 7
        assert span.attributes["gen_ai.usage.output_tokens"] == 3
        assert span.attributes["gen_ai.response.model"] == "gemini-pro-001"
        assert not trace.get_current_span().is_recording()

    @pytest.mark.asyncio
    async def test_error_recorded(self, tracer, span_exporter):
        registry = ObservationRegistry([OtelObservationHandler(tracer)])

        with pytest.raises(ProviderConnectionError):
            async with registry.observe(ObservationContext(provider="ollama", model="llama3.2")):
                raise ProviderConnectionError("refused", provider="ollama")

        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["error"] is True
        assert span.attributes["error.type"] == "ProviderConnectionError"
        assert any(event.name == "exception" for event in span.events)

    @pytest.mark.asyncio
    async def test_provider_drives_registry(self, tracer, span_exporter):
        registry = ObservationRegistry([OtelObservationHandler(tracer)])
        provider = FakeProvider(name="ollama", model="llama3.2", observations=registry)

        await provider.complete("hello")

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "chat.llama3.2"
        assert span.attributes["gen_ai.response.model"] == "llama3.2"
