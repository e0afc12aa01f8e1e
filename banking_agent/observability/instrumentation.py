"""
LLM Call Instrumentation

One ``CallContext`` is created per completion call. It opens a CLIENT span
named ``gen_ai.chat.completions``, accumulates prompt/completion estimates
and domain tags as the call progresses, and is finished exactly once.

Lifecycle:
    ctx = instrumentation.start_call("ollama", "llama3.2", "classify_intent")
    instrumentation.record_prompt(ctx, prompt, temperature=0.7)
    instrumentation.record_completion(ctx, completion.content, "stop")
    instrumentation.finish(ctx)            # or finish(ctx, error)

``instrumented_call`` wraps that lifecycle in an async context manager so the
finish step runs on every path, and ``call_model`` composes it with a
provider call.

Recording is best-effort: a failure inside ``record_*`` or in the metric part
of ``finish`` is logged and dropped, never raised into the call path. Ending
the span in ``finish`` always happens.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, AsyncIterator, Optional

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

from banking_agent.core.exceptions import InstrumentationError
from banking_agent.observability.logging import get_logger
from banking_agent.observability.metrics import BankingMetrics
from banking_agent.observability.semconv import (
    ERROR_TYPE,
    LLM_CALL_SPAN,
    BankingAttributes,
    GenAIAttributes,
    LLMAttributes,
    normalize_provider,
    prompt_hash,
    truncate_content,
)
from banking_agent.services.cost_estimator import (
    ZERO_COST,
    CostEstimate,
    CostEstimator,
    estimate_tokens,
)

if TYPE_CHECKING:
    from banking_agent.models.responses import ChatCompletion, Usage
    from banking_agent.providers.base import ChatProvider

logger = get_logger(__name__)


# =============================================================================
# CallContext
# =============================================================================


@dataclass
class CallContext:
    """
    State of one in-flight completion call.

    Owned by the request path that created it; never shared between tasks.

    Attributes:
        provider: Provider key, lower-cased (metric label)
        model: Model name (metric label)
        operation_type: What the call is for ("classify_intent", ...)
        span: The open ``gen_ai.chat.completions`` span
        start_time: Wall-clock start (UTC)
        prompt_tokens: Estimated prompt tokens, set once by record_prompt
        completion_tokens: Estimated completion tokens, set once by record_completion
        intent: Banking intent tag
        account_ref: Account number tag
        cost: Estimated cost, set by record_completion
        closed: True once finish has run
    """

    provider: str
    model: str
    operation_type: str
    span: Span
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    prompt_tokens: int = 0
    completion_tokens: int = 0
    intent: Optional[str] = None
    account_ref: Optional[str] = None
    cost: CostEstimate = ZERO_COST
    closed: bool = False
    _started: float = field(default_factory=time.perf_counter, repr=False)
    _prompt_recorded: bool = field(default=False, repr=False)
    _completion_recorded: bool = field(default=False, repr=False)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def elapsed_seconds(self) -> float:
        """Monotonic time since start_call."""
        return time.perf_counter() - self._started


# =============================================================================
# LlmInstrumentation
# =============================================================================


class LlmInstrumentation:
    """
    Opens, annotates and closes LLM call spans and updates LLM metrics.

    Args:
        tracer: Tracer used for ``gen_ai.chat.completions`` spans
        metrics: Metrics container
        estimator: Cost estimator (default price table when omitted)
        capture_content: Attach prompt and completion text to spans
        max_content_length: Characters of text kept before truncation
    """

    def __init__(
        self,
        tracer: Tracer,
        metrics: BankingMetrics,
        estimator: Optional[CostEstimator] = None,
        capture_content: bool = True,
        max_content_length: int = 2000,
    ) -> None:
        self._tracer = tracer
        self._metrics = metrics
        self._estimator = estimator or CostEstimator()
        self._capture_content = capture_content
        self._max_content_length = max_content_length

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start_call(self, provider: str, model: str, operation_type: str) -> CallContext:
        """
        Open the span for one completion call and count the request.

        Args:
            provider: Provider key (ollama, openai, gemini)
            model: Model name
            operation_type: Purpose of the call, recorded as ``llm.request.type``

        Returns:
            A new CallContext owning the open span
        """
        provider_key = (provider or "unknown").strip().lower()
        span = self._tracer.start_span(
            LLM_CALL_SPAN,
            kind=SpanKind.CLIENT,
            attributes={
                GenAIAttributes.SYSTEM: normalize_provider(provider_key),
                GenAIAttributes.REQUEST_MODEL: model,
                GenAIAttributes.OPERATION_NAME: "chat",
                LLMAttributes.REQUEST_TYPE: operation_type,
            },
        )
        ctx = CallContext(
            provider=provider_key,
            model=model,
            operation_type=operation_type,
            span=span,
        )
        try:
            self._metrics.record_request(provider_key, model)
        except Exception as e:
            self._log_failure("start_call", ctx, e)
        return ctx

    def record_prompt(
        self,
        ctx: CallContext,
        text: Optional[str],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> None:
        """Estimate prompt tokens and attach prompt attributes to the span."""
        if ctx._prompt_recorded:
            logger.warning(
                "prompt_already_recorded",
                provider=ctx.provider,
                operation_type=ctx.operation_type,
            )
            return
        try:
            text = text or ""
            ctx.prompt_tokens = estimate_tokens(text)
            ctx._prompt_recorded = True

            span = ctx.span
            span.set_attribute(LLMAttributes.PROMPT_LENGTH, len(text))
            span.set_attribute(LLMAttributes.PROMPT_HASH, prompt_hash(text))
            span.set_attribute(LLMAttributes.PROMPT_TOKENS, ctx.prompt_tokens)
            if temperature is not None:
                span.set_attribute(GenAIAttributes.REQUEST_TEMPERATURE, temperature)
            if max_tokens is not None:
                span.set_attribute(GenAIAttributes.REQUEST_MAX_TOKENS, max_tokens)
            if self._capture_content:
                span.set_attribute(
                    GenAIAttributes.PROMPT,
                    truncate_content(text, self._max_content_length),
                )
        except Exception as e:
            self._log_failure("record_prompt", ctx, e)

    def record_completion(
        self,
        ctx: CallContext,
        text: Optional[str],
        finish_reason: Optional[str] = "stop",
        usage: Optional["Usage"] = None,
        response_model: Optional[str] = None,
    ) -> None:
        """
        Estimate completion tokens, latency and cost and attach them to the span.

        Provider-reported ``usage`` is attached for comparison; the estimates
        remain the counted values.
        """
        if ctx._completion_recorded:
            logger.warning(
                "completion_already_recorded",
                provider=ctx.provider,
                operation_type=ctx.operation_type,
            )
            return
        try:
            text = text or ""
            ctx.completion_tokens = estimate_tokens(text)
            ctx._completion_recorded = True
            latency_ms = int(ctx.elapsed_seconds() * 1000)
            ctx.cost = self._estimator.estimate_cost(
                ctx.provider, ctx.prompt_tokens, ctx.completion_tokens
            )

            span = ctx.span
            span.set_attribute(LLMAttributes.RESPONSE_LENGTH, len(text))
            span.set_attribute(LLMAttributes.COMPLETION_TOKENS, ctx.completion_tokens)
            span.set_attribute(LLMAttributes.TOTAL_TOKENS, ctx.total_tokens)
            span.set_attribute(GenAIAttributes.USAGE_INPUT_TOKENS, ctx.prompt_tokens)
            span.set_attribute(GenAIAttributes.USAGE_OUTPUT_TOKENS, ctx.completion_tokens)
            span.set_attribute(GenAIAttributes.RESPONSE_MODEL, response_model or ctx.model)
            if finish_reason:
                span.set_attribute(GenAIAttributes.RESPONSE_FINISH_REASONS, [finish_reason])
            span.set_attribute(LLMAttributes.LATENCY_MS, latency_ms)

            total_cost = ctx.cost.total_cost_usd
            if total_cost > 0:
                span.set_attribute(LLMAttributes.COST_USD, float(total_cost))

            if usage is not None:
                span.set_attribute(LLMAttributes.REPORTED_PROMPT_TOKENS, usage.prompt_tokens)
                span.set_attribute(LLMAttributes.REPORTED_COMPLETION_TOKENS, usage.completion_tokens)
                span.set_attribute(LLMAttributes.REPORTED_TOTAL_TOKENS, usage.total_tokens)

            if self._capture_content:
                span.set_attribute(
                    GenAIAttributes.COMPLETION,
                    truncate_content(text, self._max_content_length),
                )
        except Exception as e:
            self._log_failure("record_completion", ctx, e)

    def record_domain_context(
        self,
        ctx: CallContext,
        intent: Optional[str] = None,
        account_ref: Optional[str] = None,
    ) -> None:
        """Tag the span with the banking intent and account reference."""
        try:
            if intent:
                ctx.intent = intent
                ctx.span.set_attribute(BankingAttributes.INTENT, intent)
            if account_ref:
                ctx.account_ref = account_ref
                ctx.span.set_attribute(BankingAttributes.ACCOUNT, account_ref)
        except Exception as e:
            self._log_failure("record_domain_context", ctx, e)

    def finish(self, ctx: CallContext, error: Optional[BaseException] = None) -> None:
        """
        Close the call: set status, update metrics and end the span.

        On success adds the token estimates to the token counter and observes
        the cost. On error records the exception on the span, sets ``error.type``
        and counts the error. Both paths observe the response time.

        A second finish on the same context is logged and ignored.
        """
        if ctx.closed:
            logger.warning(
                "call_context_already_finished",
                provider=ctx.provider,
                model=ctx.model,
                operation_type=ctx.operation_type,
            )
            return
        ctx.closed = True

        try:
            duration = ctx.elapsed_seconds()
            span = ctx.span
            if error is None:
                span.set_status(Status(StatusCode.OK))
                self._metrics.record_token_usage(
                    ctx.provider, ctx.model, "prompt", ctx.prompt_tokens
                )
                self._metrics.record_token_usage(
                    ctx.provider, ctx.model, "completion", ctx.completion_tokens
                )
                self._metrics.record_cost(
                    ctx.provider, ctx.model, float(ctx.cost.total_cost_usd)
                )
            else:
                span.record_exception(error)
                span.set_status(Status(StatusCode.ERROR, str(error)))
                span.set_attribute(ERROR_TYPE, type(error).__name__)
                if not ctx._completion_recorded:
                    span.set_attribute(LLMAttributes.LATENCY_MS, int(duration * 1000))
                self._metrics.record_error(ctx.provider, ctx.model)

            self._metrics.record_call_finished(ctx.provider, ctx.model, duration)

            logger.info(
                "llm_call_finished",
                provider=ctx.provider,
                model=ctx.model,
                operation_type=ctx.operation_type,
                success=error is None,
                latency_ms=int(duration * 1000),
                total_tokens=ctx.total_tokens,
            )
        except Exception as e:
            self._log_failure("finish", ctx, e)
        finally:
            ctx.span.end()

    # =========================================================================
    # Composition helpers
    # =========================================================================

    @asynccontextmanager
    async def instrumented_call(
        self,
        provider: str,
        model: str,
        operation_type: str,
    ) -> AsyncIterator[CallContext]:
        """
        Run a block as one instrumented completion call.

        The call span is current inside the block, so outbound requests and
        nested spans attach to it. ``finish`` runs on every exit path and the
        original exception is re-raised.

        Example:
            >>> async with instrumentation.instrumented_call("ollama", "llama3.2", "chat") as ctx:
            ...     instrumentation.record_prompt(ctx, prompt)
            ...     completion = await provider.complete(prompt)
            ...     instrumentation.record_completion(ctx, completion.content)
        """
        ctx = self.start_call(provider, model, operation_type)
        error: Optional[BaseException] = None
        try:
            with trace.use_span(
                ctx.span,
                end_on_exit=False,
                record_exception=False,
                set_status_on_exception=False,
            ):
                yield ctx
        except BaseException as e:
            error = e
            raise
        finally:
            self.finish(ctx, error)

    async def call_model(
        self,
        provider: "ChatProvider",
        prompt: str,
        operation_type: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        intent: Optional[str] = None,
        account_ref: Optional[str] = None,
    ) -> "ChatCompletion":
        """
        Send ``prompt`` to ``provider`` inside an instrumented call.

        Returns:
            The provider's ChatCompletion

        Raises:
            ProviderError: Propagated from the provider after being recorded
        """
        async with self.instrumented_call(provider.name, provider.model, operation_type) as ctx:
            self.record_domain_context(ctx, intent, account_ref)
            self.record_prompt(ctx, prompt, temperature, max_tokens)
            completion = await provider.complete(
                prompt, temperature=temperature, max_tokens=max_tokens
            )
            self.record_completion(
                ctx,
                completion.content,
                completion.finish_reason,
                usage=completion.usage,
                response_model=completion.model,
            )
            return completion

    # =========================================================================
    # Internals
    # =========================================================================

    def _log_failure(self, stage: str, ctx: CallContext, error: Exception) -> None:
        failure = InstrumentationError(f"{stage} failed: {error}", stage=stage)
        logger.warning(
            "instrumentation_error",
            stage=failure.stage,
            error_code=failure.error_code,
            error=failure.message,
            error_type=type(error).__name__,
            provider=ctx.provider,
            operation_type=ctx.operation_type,
        )
