"""
Banking Agent - Composition Root

Builds every component from Settings and wires them together:

    Settings -> logging, tracing, metrics
             -> provider registry (optionally reporting to the observation bridge)
             -> repositories (seeded with demo accounts)
             -> instrumentation, emitter
             -> BankingAgent, FeedbackRecorder

There is no HTTP surface. ``python -m banking_agent.main "What is my balance?"
--account ACC001`` runs one query against the configured provider.

Pattern: Explicit construction, no module-level singletons besides settings
"""

import argparse
import asyncio
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional, TextIO

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Tracer
from prometheus_client import CollectorRegistry

from banking_agent.agent.dispatcher import BankingAgent
from banking_agent.core.config import Settings, get_settings
from banking_agent.models.requests import BankingRequest
from banking_agent.models.responses import BankingResponse
from banking_agent.observability.bridge import ObservationRegistry, OtelObservationHandler
from banking_agent.observability.emitter import TelemetryEmitter
from banking_agent.observability.instrumentation import LlmInstrumentation
from banking_agent.observability.logging import configure_logging, get_logger
from banking_agent.observability.metrics import BankingMetrics, generate_metrics
from banking_agent.observability.tracing import get_tracer, setup_tracing
from banking_agent.providers.registry import ProviderRegistry, create_provider_registry
from banking_agent.repositories.memory import (
    InMemoryAccountRepository,
    InMemoryTransactionRepository,
    seed_demo_accounts,
)
from banking_agent.repositories.traced import TracedAccountRepository, TracedTransactionRepository
from banking_agent.services.feedback import FeedbackRecorder

logger = get_logger(__name__)

APP_NAME = "Banking Agent"
TRACER_NAME = "banking_agent"


@dataclass
class BankingApplication:
    """Every wired component of one application instance."""

    settings: Settings
    tracer_provider: TracerProvider
    tracer: Tracer
    metrics: BankingMetrics
    observations: Optional[ObservationRegistry]
    providers: ProviderRegistry
    accounts: InMemoryAccountRepository
    transactions: InMemoryTransactionRepository
    instrumentation: LlmInstrumentation
    emitter: TelemetryEmitter
    agent: BankingAgent
    feedback: FeedbackRecorder
    started: bool = False

    async def startup(self) -> None:
        """Seed demo data (when enabled). Safe to call more than once."""
        if self.started:
            return
        if self.settings.seed_demo_data:
            await seed_demo_accounts(self.accounts, currency=self.settings.currency)
        self.started = True
        logger.info(
            "application_started",
            app=APP_NAME,
            environment=self.settings.environment,
            providers=sorted(self.providers.providers),
        )

    async def shutdown(self) -> None:
        """Flush and stop span export."""
        self.tracer_provider.force_flush()
        self.tracer_provider.shutdown()
        self.started = False
        logger.info("application_stopped", app=APP_NAME)

    async def process_request(self, request: BankingRequest, llm_provider: Optional[str] = None) -> BankingResponse:
        return await self.agent.process_request(
            request, llm_provider or self.settings.default_provider
        )

    def metrics_text(self) -> str:
        return generate_metrics(self.metrics.registry)


def create_application(
    settings: Optional[Settings] = None,
    tracer_provider: Optional[TracerProvider] = None,
    registry: Optional[CollectorRegistry] = None,
    log_stream: Optional[TextIO] = None,
) -> BankingApplication:
    """
    Build a fully wired application.

    Args:
        settings: Application settings (default: get_settings())
        tracer_provider: Tracer provider (default: setup_tracing from settings)
        registry: Prometheus registry (default: a new one)
        log_stream: Stream for log lines and console spans (default: sys.stdout)

    Returns:
        BankingApplication; call ``startup()`` before serving requests
    """
    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        stream=log_stream,
        service_name=settings.service_name,
        force=True,
    )

    if tracer_provider is None:
        tracer_provider = setup_tracing(
            service_name=settings.service_name,
            otlp_endpoint=settings.otlp_endpoint,
            environment=settings.environment,
            console_stream=log_stream,
        )
    tracer = get_tracer(TRACER_NAME, tracer_provider)
    metrics = BankingMetrics(registry)

    observations: Optional[ObservationRegistry] = None
    if settings.observation_bridge_enabled:
        observations = ObservationRegistry([OtelObservationHandler(tracer)])

    providers = create_provider_registry(settings, observations)
    accounts = InMemoryAccountRepository()
    transactions = InMemoryTransactionRepository()

    instrumentation = LlmInstrumentation(
        tracer,
        metrics,
        capture_content=settings.capture_content,
        max_content_length=settings.max_content_length,
    )
    emitter = TelemetryEmitter(tracer, metrics)

    agent = BankingAgent(
        registry=providers,
        accounts=TracedAccountRepository(accounts, tracer),
        transactions=TracedTransactionRepository(transactions, tracer),
        instrumentation=instrumentation,
        emitter=emitter,
        metrics=metrics,
        tracer=tracer,
        temperature=settings.llm_temperature,
    )

    return BankingApplication(
        settings=settings,
        tracer_provider=tracer_provider,
        tracer=tracer,
        metrics=metrics,
        observations=observations,
        providers=providers,
        accounts=accounts,
        transactions=transactions,
        instrumentation=instrumentation,
        emitter=emitter,
        agent=agent,
        feedback=FeedbackRecorder(emitter, metrics),
    )


@asynccontextmanager
async def application_lifespan(
    application: BankingApplication,
) -> AsyncIterator[BankingApplication]:
    """Run startup before the block and shutdown after it."""
    await application.startup()
    try:
        yield application
    finally:
        await application.shutdown()


# =============================================================================
# Command Line
# =============================================================================


async def _run_query(args: argparse.Namespace) -> BankingResponse:
    # stdout carries only the JSON response
    application = create_application(log_stream=sys.stderr)
    async with application_lifespan(application):
        return await application.process_request(
            BankingRequest(account_number=args.account, query=args.query),
            args.provider,
        )


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Ask the banking agent one question.")
    parser.add_argument("query", help="Customer query")
    parser.add_argument("--account", default=None, help="Account number (e.g. ACC001)")
    parser.add_argument("--provider", default=None, help="ollama, openai or gemini")
    args = parser.parse_args(argv)

    response = asyncio.run(_run_query(args))
    print(response.model_dump_json(indent=2))
    return 0 if response.status.value == "SUCCESS" else 1


if __name__ == "__main__":
    sys.exit(main())
