"""
Chat provider adapters and the provider registry.

Concrete adapters (ollama, openai, gemini) are imported lazily by
create_provider_registry so an unused SDK is never loaded.
"""

from banking_agent.providers.base import ChatProvider
from banking_agent.providers.fake import FakeProvider
from banking_agent.providers.registry import ProviderRegistry, create_provider_registry

__all__ = [
    "ChatProvider",
    "FakeProvider",
    "ProviderRegistry",
    "create_provider_registry",
]
