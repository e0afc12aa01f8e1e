"""
Tests for LLM call instrumentation.

Spans are read from an InMemorySpanExporter; metrics from a fresh registry.
"""

import asyncio

import pytest
from opentelemetry.trace import SpanKind, StatusCode

from banking_agent.core.exceptions import ProviderTimeoutError
from banking_agent.models.responses import ChatCompletion, Usage
from banking_agent.observability.instrumentation import LlmInstrumentation
from banking_agent.observability.semconv import LLM_CALL_SPAN, TRUNCATION_MARKER
from banking_agent.providers.fake import FakeProvider

LLM_LABELS = {"provider": "ollama", "model": "llama3.2"}


def llm_spans(span_exporter):
    return [s for s in span_exporter.get_finished_spans() if s.name == LLM_CALL_SPAN]


class TestCallLifecycle:
    """start_call -> record_* -> finish."""

    def test_start_call_opens_client_span_and_counts_request(
        self, instrumentation, span_exporter, metrics_registry
    ):
        ctx = instrumentation.start_call("Ollama", "llama3.2", "classify_intent")

        assert ctx.provider == "ollama"
        assert ctx.closed is False
        assert metrics_registry.get_sample_value("llm_requests_total", LLM_LABELS) == 1.0
        assert metrics_registry.get_sample_value("llm_requests_in_progress", LLM_LABELS) == 1.0
        assert span_exporter.get_finished_spans() == ()

        instrumentation.finish(ctx)

        (span,) = llm_spans(span_exporter)
        assert span.kind == SpanKind.CLIENT
        assert span.attributes["gen_ai.system"] == "ollama"
        assert span.attributes["gen_ai.request.model"] == "llama3.2"
        assert span.attributes["gen_ai.operation.name"] == "chat"
        assert span.attributes["llm.request.type"] == "classify_intent"
        assert metrics_registry.get_sample_value("llm_requests_in_progress", LLM_LABELS) == 0.0

    def test_successful_call_attributes(self, instrumentation, span_exporter):
        ctx = instrumentation.start_call("ollama", "llama3.2", "generate_response")
        instrumentation.record_domain_context(ctx, intent="CHECK_BALANCE", account_ref="ACC001")
        instrumentation.record_prompt(ctx, "x" * 400, temperature=0.7)
        instrumentation.record_completion(ctx, "y" * 80, "stop")
        instrumentation.finish(ctx)

        (span,) = llm_spans(span_exporter)
        attributes = span.attributes
        assert span.status.status_code == StatusCode.OK
        assert attributes["llm.prompt.length"] == 400
        assert attributes["llm.prompt.tokens"] == 100
        assert attributes["llm.completion.tokens"] == 20
        assert attributes["llm.total.tokens"] == 120
        assert attributes["gen_ai.usage.input_tokens"] == 100
        assert attributes["gen_ai.usage.output_tokens"] == 20
        assert attributes["gen_ai.request.temperature"] == 0.7
        assert attributes["gen_ai.response.finish_reasons"] == ("stop",)
        assert attributes["banking.intent"] == "CHECK_BALANCE"
        assert attributes["banking.account"] == "ACC001"
        assert "llm.latency.ms" in attributes
        # ollama is free, so no cost attribute
        assert "llm.cost.usd" not in attributes

    def test_token_metrics_recorded_on_success(self, instrumentation, metrics_registry):
        ctx = instrumentation.start_call("ollama", "llama3.2", "generate_response")
        instrumentation.record_prompt(ctx, "x" * 400)
        instrumentation.record_completion(ctx, "y" * 80)
        instrumentation.finish(ctx)

        assert metrics_registry.get_sample_value(
            "llm_tokens_total", {**LLM_LABELS, "type": "prompt"}
        ) == 100.0
        assert metrics_registry.get_sample_value(
            "llm_tokens_total", {**LLM_LABELS, "type": "completion"}
        ) == 20.0
        assert metrics_registry.get_sample_value("llm_response_time_seconds_count", LLM_LABELS) == 1.0

    def test_paid_provider_records_cost(self, instrumentation, span_exporter, metrics_registry):
        ctx = instrumentation.start_call("openai", "gpt-4", "generate_response")
        instrumentation.record_prompt(ctx, "x" * 4000)
        instrumentation.record_completion(ctx, "y" * 2000)
        instrumentation.finish(ctx)

        (span,) = llm_spans(span_exporter)
        # 1000 prompt tokens * 0.03/1K + 500 completion tokens * 0.06/1K
        assert span.attributes["llm.cost.usd"] == pytest.approx(0.06)
        assert ctx.cost.total_cost_usd > 0
        assert metrics_registry.get_sample_value(
            "llm_request_cost_dollars_sum", {"provider": "openai", "model": "gpt-4"}
        ) == pytest.approx(0.06)

    def test_prompt_recorded_once(self, instrumentation, span_exporter):
        ctx = instrumentation.start_call("ollama", "llama3.2", "chat")
        instrumentation.record_prompt(ctx, "x" * 40)
        instrumentation.record_prompt(ctx, "x" * 400)
        instrumentation.finish(ctx)

        assert ctx.prompt_tokens == 10
        (span,) = llm_spans(span_exporter)
        assert span.attributes["llm.prompt.length"] == 40

    def test_reported_usage_attached_separately(self, instrumentation, span_exporter):
        ctx = instrumentation.start_call("ollama", "llama3.2", "chat")
        instrumentation.record_prompt(ctx, "x" * 40)
        instrumentation.record_completion(
            ctx,
            "y" * 40,
            usage=Usage(prompt_tokens=12, completion_tokens=9, total_tokens=21),
            response_model="llama3.2:latest",
        )
        instrumentation.finish(ctx)

        (span,) = llm_spans(span_exporter)
        assert span.attributes["llm.usage.reported.prompt_tokens"] == 12
        assert span.attributes["llm.usage.reported.total_tokens"] == 21
        assert span.attributes["gen_ai.response.model"] == "llama3.2:latest"
        # the estimate stays the counted value
        assert span.attributes["llm.prompt.tokens"] == 10

    def test_content_truncated(self, tracer, metrics, span_exporter):
        instrumentation = LlmInstrumentation(tracer, metrics, max_content_length=20)
        ctx = instrumentation.start_call("ollama", "llama3.2", "chat")
        instrumentation.record_prompt(ctx, "p" * 100)
        instrumentation.finish(ctx)

        (span,) = llm_spans(span_exporter)
        assert span.attributes["gen_ai.prompt"] == "p" * 20 + TRUNCATION_MARKER

    def test_content_capture_disabled(self, tracer, metrics, span_exporter):
        instrumentation = LlmInstrumentation(tracer, metrics, capture_content=False)
        ctx = instrumentation.start_call("ollama", "llama3.2", "chat")
        instrumentation.record_prompt(ctx, "secret prompt")
        instrumentation.record_completion(ctx, "secret answer")
        instrumentation.finish(ctx)

        (span,) = llm_spans(span_exporter)
        assert "gen_ai.prompt" not in span.attributes
        assert "gen_ai.completion" not in span.attributes


class TestFinish:
    """finish() error path and idempotence."""

    def test_error_path(self, instrumentation, span_exporter, metrics_registry):
        ctx = instrumentation.start_call("ollama", "llama3.2", "classify_intent")
        instrumentation.record_prompt(ctx, "x" * 40)
        instrumentation.finish(ctx, ProviderTimeoutError("timed out", provider="ollama"))

        (span,) = llm_spans(span_exporter)
        assert span.status.status_code == StatusCode.ERROR
        assert span.attributes["error.type"] == "ProviderTimeoutError"
        assert "llm.latency.ms" in span.attributes
        assert any(event.name == "exception" for event in span.events)
        assert metrics_registry.get_sample_value("llm_errors_total", LLM_LABELS) == 1.0
        assert metrics_registry.get_sample_value("llm_requests_in_progress", LLM_LABELS) == 0.0
        assert metrics_registry.get_sample_value(
            "llm_tokens_total", {**LLM_LABELS, "type": "prompt"}
        ) is None

    def test_second_finish_is_ignored(self, instrumentation, span_exporter, metrics_registry):
        ctx = instrumentation.start_call("ollama", "llama3.2", "chat")
        instrumentation.finish(ctx)
        instrumentation.finish(ctx)

        assert ctx.closed is True
        assert len(llm_spans(span_exporter)) == 1
        assert metrics_registry.get_sample_value("llm_requests_in_progress", LLM_LABELS) == 0.0
        assert metrics_registry.get_sample_value("llm_response_time_seconds_count", LLM_LABELS) == 1.0


class TestInstrumentedCall:
    """The async context manager and call_model."""

    @pytest.mark.asyncio
    async def test_span_is_current_inside_block(self, instrumentation, tracer, span_exporter):
        async with instrumentation.instrumented_call("ollama", "llama3.2", "chat"):
            with tracer.start_as_current_span("outbound.http"):
                pass

        spans = {s.name: s for s in span_exporter.get_finished_spans()}
        child = spans["outbound.http"]
        parent = spans[LLM_CALL_SPAN]
        assert child.parent.span_id == parent.context.span_id

    @pytest.mark.asyncio
    async def test_exception_finishes_and_propagates(self, instrumentation, span_exporter):
        with pytest.raises(ProviderTimeoutError):
            async with instrumentation.instrumented_call("ollama", "llama3.2", "chat"):
                raise ProviderTimeoutError("timed out", provider="ollama")

        (span,) = llm_spans(span_exporter)
        assert span.status.status_code == StatusCode.ERROR

    @pytest.mark.asyncio
    async def test_call_model(self, instrumentation, span_exporter):
        provider = FakeProvider(name="ollama", model="llama3.2", responses=["CHECK_BALANCE"])

        completion = await instrumentation.call_model(
            provider,
            "What is my balance?",
            "classify_intent",
            temperature=0.7,
            intent="DETERMINE_INTENT",
            account_ref="ACC001",
        )

        assert completion.content == "CHECK_BALANCE"
        assert provider.temperatures == [0.7]
        (span,) = llm_spans(span_exporter)
        assert span.attributes["llm.request.type"] == "classify_intent"
        assert span.attributes["banking.intent"] == "DETERMINE_INTENT"
        assert span.attributes["gen_ai.completion"] == "CHECK_BALANCE"

    @pytest.mark.asyncio
    async def test_call_model_provider_error(self, instrumentation, span_exporter, metrics_registry):
        provider = FakeProvider(
            name="ollama",
            model="llama3.2",
            error_on_complete=ProviderTimeoutError("timed out", provider="ollama"),
        )

        with pytest.raises(ProviderTimeoutError):
            await instrumentation.call_model(provider, "hello", "generate_response")

        (span,) = llm_spans(span_exporter)
        assert span.attributes["error.type"] == "ProviderTimeoutError"
        assert metrics_registry.get_sample_value("llm_errors_total", LLM_LABELS) == 1.0

    @pytest.mark.asyncio
    async def test_concurrent_calls_end_every_span(self, instrumentation, span_exporter, metrics_registry):
        n_calls = 25
        failing = ProviderTimeoutError("timed out", provider="ollama")
        provider = FakeProvider(
            name="ollama",
            model="llama3.2",
            responses=[
                failing if i % 5 == 0 else ChatCompletion(content=f"answer {i}", model="llama3.2")
                for i in range(n_calls)
            ],
        )

        results = await asyncio.gather(
            *(
                instrumentation.call_model(provider, f"prompt {i}", "generate_response")
                for i in range(n_calls)
            ),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, ProviderTimeoutError)]
        assert len(errors) == 5
        assert len(llm_spans(span_exporter)) == n_calls
        assert metrics_registry.get_sample_value("llm_requests_total", LLM_LABELS) == n_calls
        assert metrics_registry.get_sample_value("llm_errors_total", LLM_LABELS) == 5
        assert metrics_registry.get_sample_value("llm_requests_in_progress", LLM_LABELS) == 0.0
        # sibling calls never nest under each other
        assert all(span.parent is None for span in llm_spans(span_exporter))
