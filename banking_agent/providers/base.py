"""
Provider Base Interface

This module defines the abstract base class for all chat-completion provider
adapters. A provider takes one prompt string and returns one ChatCompletion,
or raises a ProviderError subclass.

Design Pattern:
- Ports and Adapters (Hexagonal Architecture)
- ChatProvider serves as the "port" (interface)
- Concrete providers (ollama.py, openai.py, gemini.py, fake.py) serve as "adapters"
- Template method: complete() wraps the adapter-specific _send() with
  observation callbacks when an ObservationRegistry is attached
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from banking_agent.core.config import DEFAULT_SYSTEM_PROMPT
from banking_agent.core.exceptions import AuthenticationError, ProviderError, RateLimitError
from banking_agent.models.responses import ChatCompletion
from banking_agent.observability.bridge import ObservationContext, ObservationRegistry

logger = logging.getLogger(__name__)


class ChatProvider(ABC):
    """
    Abstract base class for chat-completion provider adapters.

    Attributes:
        name: Provider key used for registry lookup and metric labels.
        model: Model the provider sends requests to.
        system_prompt: System message sent with every prompt.

    Example:
        >>> class EchoProvider(ChatProvider):
        ...     async def _send(self, prompt, temperature, max_tokens):
        ...         return ChatCompletion(content=prompt, model=self.model)
        >>> provider = EchoProvider(name="echo", model="echo-1")
        >>> completion = await provider.complete("hello")
    """

    def __init__(
        self,
        name: str,
        model: str,
        system_prompt: Optional[str] = None,
        observations: Optional[ObservationRegistry] = None,
    ) -> None:
        self._name = name.lower()
        self._model = model
        self._system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self._observations = observations

    @property
    def name(self) -> str:
        return self._name

    @property
    def model(self) -> str:
        return self._model

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def attach_observations(self, observations: Optional[ObservationRegistry]) -> None:
        """Route future calls through ``observations`` (None detaches)."""
        self._observations = observations

    async def complete(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatCompletion:
        """
        Generate a completion for ``prompt``.

        Args:
            prompt: The user prompt.
            temperature: Sampling temperature hint.
            max_tokens: Maximum completion tokens hint.

        Returns:
            ChatCompletion with the generated text.

        Raises:
            ProviderError: If the provider call fails or times out.
        """
        if self._observations is None:
            return await self._send(prompt, temperature, max_tokens)

        context = ObservationContext(provider=self._name, model=self._model)
        async with self._observations.observe(context):
            completion = await self._send(prompt, temperature, max_tokens)
            context.completion = completion
        return completion

    @abstractmethod
    async def _send(
        self,
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> ChatCompletion:
        """Adapter-specific completion call."""
        ...

    def _messages(self, prompt: str) -> list[dict[str, str]]:
        """System + user messages in the OpenAI/Ollama chat format."""
        return [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": prompt},
        ]


def http_status_error(provider: str, error: httpx.HTTPStatusError) -> ProviderError:
    """Map an HTTP error status from a provider API to a ProviderError subclass."""
    status = error.response.status_code
    message = f"{provider} API error: HTTP {status}"
    if status in (401, 403):
        return AuthenticationError(message, provider=provider, status_code=status)
    if status == 429:
        retry_after = error.response.headers.get("retry-after")
        return RateLimitError(
            message,
            provider=provider,
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        )
    logger.warning("%s returned HTTP %s", provider, status)
    return ProviderError(message, provider=provider, status_code=status)
