"""
Tests for the provider registry and its factory.
"""

import logging

import pytest

from banking_agent.core.config import Settings
from banking_agent.core.exceptions import NoProviderError
from banking_agent.observability.bridge import ObservationRegistry
from banking_agent.providers.fake import FakeProvider
from banking_agent.providers.ollama import OllamaProvider
from banking_agent.providers.registry import ProviderRegistry, create_provider_registry


@pytest.fixture
def ollama():
    return FakeProvider(name="ollama", model="llama3.2")


@pytest.fixture
def openai_fake():
    return FakeProvider(name="openai", model="gpt-4")


class TestGetProvider:
    def test_case_insensitive_lookup(self, ollama, openai_fake):
        registry = ProviderRegistry({"ollama": ollama, "openai": openai_fake}, default_provider="ollama")

        assert registry.get_provider("OpenAI") is openai_fake
        assert registry.get_provider(" ollama ") is ollama

    def test_unknown_falls_back_to_default(self, ollama, openai_fake, caplog):
        registry = ProviderRegistry({"openai": openai_fake, "ollama": ollama}, default_provider="ollama")

        with caplog.at_level(logging.WARNING, logger="banking_agent.providers.registry"):
            provider = registry.get_provider("anthropic")

        assert provider is ollama
        assert "not available" in caplog.text

    def test_unknown_default_falls_back_to_first(self, ollama, openai_fake):
        registry = ProviderRegistry({"openai": openai_fake, "ollama": ollama}, default_provider="gemini")

        assert registry.get_provider("anthropic") is openai_fake

    def test_none_selector_uses_default(self, ollama):
        registry = ProviderRegistry({"ollama": ollama}, default_provider="ollama")

        assert registry.get_provider(None) is ollama

    def test_empty_registry_raises(self):
        registry = ProviderRegistry()

        with pytest.raises(NoProviderError, match="No LLM providers available"):
            registry.get_provider("ollama")
        with pytest.raises(NoProviderError):
            registry.get_default_provider()


class TestRegistration:
    def test_register_and_unregister(self, ollama, openai_fake):
        registry = ProviderRegistry({"ollama": ollama}, default_provider="ollama")

        registry.register("OpenAI", openai_fake)
        assert registry.is_available("openai")
        assert registry.get_provider("openai") is openai_fake

        registry.unregister("openai")
        assert not registry.is_available("openai")
        assert registry.get_provider("openai") is ollama

    def test_providers_view_is_read_only(self, ollama):
        registry = ProviderRegistry({"ollama": ollama})

        with pytest.raises(TypeError):
            registry.providers["openai"] = ollama

    def test_available_providers(self, ollama):
        registry = ProviderRegistry({"ollama": ollama, "fake": FakeProvider()})

        assert registry.available_providers() == {
            "openai": False,
            "gemini": False,
            "ollama": True,
            "fake": True,
        }


class TestCreateProviderRegistry:
    def test_ollama_only_without_keys(self, test_settings):
        registry = create_provider_registry(test_settings)

        assert set(registry.providers) == {"ollama"}
        assert isinstance(registry.get_provider("ollama"), OllamaProvider)
        assert registry.default_provider == "ollama"

    def test_keys_enable_cloud_providers(self):
        settings = Settings(openai_api_key="sk-test", gemini_api_key="g-test", llm_timeout_seconds=10)

        registry = create_provider_registry(settings)

        assert set(registry.providers) == {"ollama", "openai", "gemini"}
        assert registry.get_provider("gemini").model == "gemini-pro"
        assert registry.get_provider("ollama")._timeout == 10

    def test_observations_attached(self, test_settings):
        observations = ObservationRegistry()

        registry = create_provider_registry(test_settings, observations)

        assert registry.get_provider("ollama")._observations is observations
