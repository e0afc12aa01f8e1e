"""Provider Registry - resolves a provider selector string to a ChatProvider.

Lookup is case-insensitive. An unknown name logs a warning and falls back to
the configured default provider, then to the first registered provider.
Only an empty registry is an error.

Registration is serialized by a lock; lookups read an immutable snapshot of
the provider map, so concurrent requests never observe a half-updated map.
"""

import logging
import threading
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Optional

from banking_agent.core.exceptions import NoProviderError
from banking_agent.providers.base import ChatProvider

if TYPE_CHECKING:
    from banking_agent.core.config import Settings
    from banking_agent.observability.bridge import ObservationRegistry

logger = logging.getLogger(__name__)

KNOWN_PROVIDERS = ("openai", "gemini", "ollama")


class ProviderRegistry:
    """Holds the available chat providers keyed by provider name.

    Attributes:
        providers: Read-only view of the registered providers.
        default_provider: Name used when an unknown provider is requested.

    Example:
        >>> registry = ProviderRegistry({"ollama": ollama_provider}, default_provider="ollama")
        >>> registry.get_provider("OLLAMA") is ollama_provider
        True
        >>> registry.get_provider("anthropic") is ollama_provider  # fallback
        True
    """

    def __init__(
        self,
        providers: Optional[dict[str, ChatProvider]] = None,
        default_provider: Optional[str] = None,
    ) -> None:
        """Initialize the provider registry.

        Args:
            providers: Dictionary mapping provider names to provider instances.
            default_provider: Name of the default provider to use as fallback.
        """
        self._lock = threading.Lock()
        self._providers: Mapping[str, ChatProvider] = MappingProxyType(
            {name.lower(): provider for name, provider in (providers or {}).items()}
        )
        self._default_provider = default_provider.lower() if default_provider else None

    @property
    def providers(self) -> Mapping[str, ChatProvider]:
        """Get the registered providers."""
        return self._providers

    @property
    def default_provider(self) -> Optional[str]:
        """Get the default provider name."""
        return self._default_provider

    def get_provider(self, name: Optional[str]) -> ChatProvider:
        """Get the provider registered under ``name``.

        Args:
            name: Provider selector (e.g. "ollama", "OpenAI").

        Returns:
            The matching provider, or the fallback for unknown names.

        Raises:
            NoProviderError: If no provider is registered.
        """
        providers = self._providers
        if not providers:
            raise NoProviderError(
                "No LLM providers available. Please configure at least one provider."
            )

        key = (name or "").strip().lower()
        provider = providers.get(key)
        if provider is not None:
            return provider

        fallback = self._fallback(providers)
        logger.warning(
            "Provider %r not available, using default: %s", name, fallback.name
        )
        return fallback

    def get_default_provider(self) -> ChatProvider:
        """Get the default provider (or the first registered one)."""
        providers = self._providers
        if not providers:
            raise NoProviderError(
                "No LLM providers available. Please configure at least one provider."
            )
        return self._fallback(providers)

    def is_available(self, name: str) -> bool:
        """Check if a provider is registered under ``name``."""
        return name.strip().lower() in self._providers

    def available_providers(self) -> dict[str, bool]:
        """Availability of the known providers plus any other registered ones."""
        providers = self._providers
        availability = {name: name in providers for name in KNOWN_PROVIDERS}
        for name in providers:
            availability[name] = True
        return availability

    def register(self, name: str, provider: ChatProvider) -> None:
        """Register a provider under ``name`` (replacing any existing one)."""
        with self._lock:
            updated = dict(self._providers)
            updated[name.lower()] = provider
            self._providers = MappingProxyType(updated)
        logger.info("%s provider registered (model=%s)", name, provider.model)

    def unregister(self, name: str) -> None:
        """Remove the provider registered under ``name``, if any."""
        with self._lock:
            updated = dict(self._providers)
            updated.pop(name.lower(), None)
            self._providers = MappingProxyType(updated)

    def _fallback(self, providers: Mapping[str, ChatProvider]) -> ChatProvider:
        if self._default_provider and self._default_provider in providers:
            return providers[self._default_provider]
        return next(iter(providers.values()))


def create_provider_registry(
    settings: "Settings",
    observations: Optional["ObservationRegistry"] = None,
) -> ProviderRegistry:
    """Create a provider registry from settings.

    Ollama is always registered. OpenAI and Gemini are registered when their
    API keys are set.

    Args:
        settings: Application settings containing API keys and defaults.
        observations: Observation registry every provider reports to.

    Returns:
        Configured ProviderRegistry instance.
    """
    from banking_agent.providers.ollama import OllamaProvider

    timeout = settings.llm_timeout_seconds
    providers: dict[str, ChatProvider] = {
        "ollama": OllamaProvider(
            base_url=settings.ollama_url,
            model=settings.ollama_model,
            timeout=timeout,
            system_prompt=settings.system_prompt,
            observations=observations,
        )
    }

    openai_key = settings.openai_api_key.get_secret_value()
    if openai_key:
        from banking_agent.providers.openai import OpenAIProvider

        providers["openai"] = OpenAIProvider(
            api_key=openai_key,
            model=settings.openai_model,
            timeout=timeout,
            system_prompt=settings.system_prompt,
            observations=observations,
        )
        logger.info("OpenAI provider registered")

    gemini_key = settings.gemini_api_key.get_secret_value()
    if gemini_key:
        from banking_agent.providers.gemini import GeminiProvider

        providers["gemini"] = GeminiProvider(
            api_key=gemini_key,
            model=settings.gemini_model,
            timeout=timeout,
            system_prompt=settings.system_prompt,
            observations=observations,
        )
        logger.info("Gemini provider registered")

    logger.info(f"Provider registry initialized with: {list(providers)}")

    return ProviderRegistry(
        providers=providers,
        default_provider=settings.default_provider,
    )
