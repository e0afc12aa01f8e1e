"""
Pytest configuration and shared fixtures.

Telemetry is never global in tests: every test gets its own TracerProvider
writing to an InMemorySpanExporter and its own CollectorRegistry, so span and
metric assertions only see what the test itself produced.

Fixtures:
- span_exporter / tracer_provider / tracer: in-memory OpenTelemetry pipeline
- metrics_registry / metrics: fresh Prometheus registry and BankingMetrics
- instrumentation / emitter: wired to the fixtures above
- fake_provider / provider_registry: scripted provider, no network
- account_repository / transaction_repository: seeded with the demo accounts
- banking_agent: BankingAgent wired to everything above
- test_settings: Settings with safe defaults
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import CollectorRegistry


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for service interactions")
    config.addinivalue_line("markers", "e2e: End-to-end workflow tests")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def test_settings():
    """
    Settings for testing: no API keys, no OTLP endpoint, development mode.
    """
    from banking_agent.core.config import Settings

    return Settings(
        service_name="banking-agent-test",
        environment="development",
        log_level="DEBUG",
        default_provider="ollama",
        ollama_url="http://localhost:11434",
        openai_api_key="",
        gemini_api_key="",
        otlp_endpoint=None,
    )


# =============================================================================
# Telemetry
# =============================================================================


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter):
    """TracerProvider exporting synchronously to the in-memory exporter."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def tracer(tracer_provider):
    return tracer_provider.get_tracer("banking_agent.tests")


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(metrics_registry):
    from banking_agent.observability.metrics import BankingMetrics

    return BankingMetrics(metrics_registry)


@pytest.fixture
def instrumentation(tracer, metrics):
    from banking_agent.observability.instrumentation import LlmInstrumentation

    return LlmInstrumentation(tracer, metrics)


@pytest.fixture
def emitter(tracer, metrics):
    from banking_agent.observability.emitter import TelemetryEmitter

    return TelemetryEmitter(tracer, metrics)


# =============================================================================
# Providers
# =============================================================================


@pytest.fixture
def fake_provider():
    """
    Scripted provider registered as "ollama" so cost estimates are zero and
    metric labels match the default provider.
    """
    from banking_agent.providers.fake import FakeProvider

    return FakeProvider(name="ollama", model="llama3.2")


@pytest.fixture
def provider_registry(fake_provider):
    from banking_agent.providers.registry import ProviderRegistry

    return ProviderRegistry({"ollama": fake_provider}, default_provider="ollama")


# =============================================================================
# Repositories
# =============================================================================


@pytest_asyncio.fixture
async def account_repository():
    """Account repository seeded with ACC001..ACC005."""
    from banking_agent.repositories.memory import InMemoryAccountRepository, seed_demo_accounts

    repository = InMemoryAccountRepository()
    await seed_demo_accounts(repository)
    return repository


@pytest.fixture
def transaction_repository():
    from banking_agent.repositories.memory import InMemoryTransactionRepository

    return InMemoryTransactionRepository()


@pytest.fixture
def make_transaction():
    """Factory for transactions dated ``minutes_ago`` before a fixed instant."""
    from banking_agent.models.domain import Transaction, TransactionType

    base = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def _make(
        account_number: str = "ACC001",
        amount: str = "100.00",
        transaction_type: TransactionType = TransactionType.DEPOSIT,
        description: str = "Test transaction",
        minutes_ago: int = 0,
    ) -> Transaction:
        return Transaction(
            account_number=account_number,
            type=transaction_type,
            amount=Decimal(amount),
            currency="USD",
            description=description,
            transaction_date=base - timedelta(minutes=minutes_ago),
        )

    return _make


# =============================================================================
# Agent
# =============================================================================


@pytest.fixture
def banking_agent(
    provider_registry,
    account_repository,
    transaction_repository,
    instrumentation,
    emitter,
    metrics,
    tracer,
):
    from banking_agent.agent.dispatcher import BankingAgent

    return BankingAgent(
        registry=provider_registry,
        accounts=account_repository,
        transactions=transaction_repository,
        instrumentation=instrumentation,
        emitter=emitter,
        metrics=metrics,
        tracer=tracer,
    )
