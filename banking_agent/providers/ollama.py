"""
Ollama Provider - local model adapter.

Ollama runs locally and serves open models such as Llama and Mistral. Calls
go to ``POST /api/chat`` with streaming disabled. Ollama is self-hosted, so
its estimated cost is always zero.

Design Patterns:
- Ports and Adapters: OllamaProvider implements the ChatProvider interface
- HTTP Client: httpx.AsyncClient with a bounded timeout, no retry

Ollama API Reference:
- Base URL: http://localhost:11434 (default)
- Chat endpoint: POST /api/chat
"""

import logging
from typing import Any, Optional

import httpx

from banking_agent.core.exceptions import (
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
)
from banking_agent.models.responses import ChatCompletion, Usage
from banking_agent.observability.bridge import ObservationRegistry
from banking_agent.observability.tracing import inject_trace_context
from banking_agent.providers.base import ChatProvider, http_status_error

logger = logging.getLogger(__name__)


class OllamaProvider(ChatProvider):
    """
    Ollama local model provider adapter.

    Pattern: HTTP Client with timeout

    Args:
        base_url: URL of the Ollama instance (default: http://localhost:11434).
        model: Model to run (default: llama3.2).
        timeout: Request timeout in seconds (default: 60.0).
        system_prompt: System message for every call.
        observations: Observation registry to report calls to.

    Example:
        >>> provider = OllamaProvider(model="llama3.2")
        >>> completion = await provider.complete("What is my balance?")
    """

    DEFAULT_URL = "http://localhost:11434"
    DEFAULT_MODEL = "llama3.2"
    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        system_prompt: Optional[str] = None,
        observations: Optional[ObservationRegistry] = None,
    ) -> None:
        super().__init__(
            name="ollama",
            model=model or self.DEFAULT_MODEL,
            system_prompt=system_prompt,
            observations=observations,
        )
        self._base_url = (base_url or self.DEFAULT_URL).rstrip("/")
        self._timeout = timeout or self.DEFAULT_TIMEOUT

    async def _send(
        self,
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> ChatCompletion:
        """
        Send one non-streaming chat request to Ollama.

        Raises:
            ProviderConnectionError: When Ollama is not reachable.
            ProviderTimeoutError: When the request exceeds the timeout.
            ProviderError: On other API errors.
        """
        payload = self._build_request(prompt, temperature, max_tokens)
        logger.debug("Ollama chat request: model=%s url=%s", self.model, self._base_url)
        headers = inject_trace_context({})

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    f"{self._base_url}/api/chat",
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.ConnectError as e:
            raise ProviderConnectionError(
                f"Failed to connect to Ollama: {e}", provider=self.name
            ) from e
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Request to Ollama timed out after {self._timeout}s", provider=self.name
            ) from e
        except httpx.HTTPStatusError as e:
            raise http_status_error(self.name, e) from e
        except httpx.TransportError as e:
            raise ProviderError(
                f"Ollama transport error: {type(e).__name__}: {e}", provider=self.name
            ) from e
        except ValueError as e:
            raise ProviderError(
                f"Ollama returned an invalid JSON body: {e}", provider=self.name
            ) from e

        return self._transform_response(data)

    def _build_request(
        self,
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(prompt),
            "stream": False,
        }

        options: dict[str, Any] = {}
        if temperature is not None:
            options["temperature"] = temperature
        if max_tokens is not None:
            options["num_predict"] = max_tokens  # Ollama uses num_predict
        if options:
            request["options"] = options

        return request

    def _transform_response(self, data: dict[str, Any]) -> ChatCompletion:
        message = data.get("message") or {}
        prompt_tokens = data.get("prompt_eval_count") or 0
        completion_tokens = data.get("eval_count") or 0

        finish_reason = data.get("done_reason")
        if not finish_reason:
            finish_reason = "stop" if data.get("done", False) else "unknown"

        return ChatCompletion(
            content=message.get("content", ""),
            model=data.get("model") or self.model,
            finish_reason=finish_reason,
            usage=Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )
