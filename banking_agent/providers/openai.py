"""
OpenAI Provider - GPT chat completions via the official SDK.

The client is created with a bounded timeout and ``max_retries=0``: a slow or
failing call surfaces as a ProviderError on the first attempt.

Pattern: Ports and Adapters (Hexagonal Architecture)
"""

import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from banking_agent.core.exceptions import (
    AuthenticationError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
)
from banking_agent.models.responses import ChatCompletion, Usage
from banking_agent.observability.bridge import ObservationRegistry
from banking_agent.providers.base import ChatProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(ChatProvider):
    """
    OpenAI GPT provider adapter.

    Args:
        api_key: OpenAI API key.
        model: Chat model (default: gpt-4).
        base_url: Optional custom endpoint URL (for Azure OpenAI or proxies).
        timeout: Request timeout in seconds (default: 60.0).
        system_prompt: System message for every call.
        observations: Observation registry to report calls to.
        client: Pre-built AsyncOpenAI client (tests).

    Example:
        >>> provider = OpenAIProvider(api_key="sk-...")
        >>> completion = await provider.complete("Summarize my last transactions")
    """

    DEFAULT_MODEL = "gpt-4"
    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        system_prompt: Optional[str] = None,
        observations: Optional[ObservationRegistry] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        super().__init__(
            name="openai",
            model=model or self.DEFAULT_MODEL,
            system_prompt=system_prompt,
            observations=observations,
        )
        self._timeout = timeout or self.DEFAULT_TIMEOUT

        if client is None:
            client_kwargs: dict[str, Any] = {
                "api_key": api_key,
                "timeout": self._timeout,
                "max_retries": 0,
            }
            if base_url:
                client_kwargs["base_url"] = base_url
            client = AsyncOpenAI(**client_kwargs)
        self._client = client

    async def _send(
        self,
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> ChatCompletion:
        """
        Send one chat completion request.

        Raises:
            ProviderTimeoutError: When the request exceeds the timeout.
            ProviderConnectionError: When the API cannot be reached.
            AuthenticationError: On invalid credentials.
            RateLimitError: On rate limit errors.
            ProviderError: On other API errors.
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(prompt),
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        try:
            response = await self._client.chat.completions.create(**kwargs)
        # APITimeoutError subclasses APIConnectionError, so it goes first
        except openai.APITimeoutError as e:
            raise ProviderTimeoutError(
                f"Request to OpenAI timed out after {self._timeout}s", provider=self.name
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderConnectionError(
                f"Failed to connect to OpenAI: {e}", provider=self.name
            ) from e
        except openai.AuthenticationError as e:
            raise AuthenticationError(str(e), provider=self.name, status_code=401) from e
        except openai.RateLimitError as e:
            raise RateLimitError(str(e), provider=self.name) from e
        except openai.APIStatusError as e:
            raise ProviderError(str(e), provider=self.name, status_code=e.status_code) from e
        except openai.OpenAIError as e:
            raise ProviderError(str(e), provider=self.name) from e

        return self._transform_response(response)

    def _transform_response(self, response: Any) -> ChatCompletion:
        if not response.choices:
            logger.warning("OpenAI returned no choices for model %s", self.model)
            return ChatCompletion(content="", model=response.model or self.model, finish_reason="unknown")

        choice = response.choices[0]
        usage = None
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return ChatCompletion(
            content=choice.message.content or "",
            model=response.model or self.model,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
        )
