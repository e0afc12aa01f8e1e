"""
Gemini Provider - Google Gemini via the Generative Language REST API.

Calls ``POST {api_base}/models/{model}:generateContent`` with httpx. The API
key travels in the ``x-goog-api-key`` header rather than the query string so
it never appears in logged URLs.

Gemini API Reference:
- Base URL: https://generativelanguage.googleapis.com/v1beta
- Request: contents[].parts[].text, systemInstruction, generationConfig
- Response: candidates[0].content.parts[].text, finishReason, usageMetadata
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

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

# Gemini finishReason -> OpenAI-style finish_reason
_FINISH_REASONS = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
    "OTHER": "stop",
}


class GeminiProvider(ChatProvider):
    """
    Google Gemini provider adapter.

    Args:
        api_key: Google API key.
        model: Gemini model (default: gemini-pro).
        api_base: Base URL for the Gemini API.
        timeout: Request timeout in seconds (default: 60.0).
        system_prompt: System instruction for every call.
        observations: Observation registry to report calls to.
    """

    DEFAULT_MODEL = "gemini-pro"
    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        system_prompt: Optional[str] = None,
        observations: Optional[ObservationRegistry] = None,
    ) -> None:
        super().__init__(
            name="gemini",
            model=model or self.DEFAULT_MODEL,
            system_prompt=system_prompt,
            observations=observations,
        )
        self._api_key = api_key
        self._api_base = (api_base or GEMINI_API_BASE).rstrip("/")
        self._timeout = timeout or self.DEFAULT_TIMEOUT

    async def _send(
        self,
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> ChatCompletion:
        """
        Send one generateContent request.

        Raises:
            ProviderConnectionError: When the API cannot be reached.
            ProviderTimeoutError: When the request exceeds the timeout.
            ProviderError: On other API errors.
        """
        url = f"{self._api_base}/models/{self.model}:generateContent"
        headers = inject_trace_context({"x-goog-api-key": self._api_key})

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    url,
                    json=self._build_request(prompt, temperature, max_tokens),
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.ConnectError as e:
            raise ProviderConnectionError(
                f"Failed to connect to Gemini: {e}", provider=self.name
            ) from e
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Request to Gemini timed out after {self._timeout}s", provider=self.name
            ) from e
        except httpx.HTTPStatusError as e:
            raise http_status_error(self.name, e) from e
        except httpx.TransportError as e:
            raise ProviderError(
                f"Gemini transport error: {type(e).__name__}: {e}", provider=self.name
            ) from e
        except ValueError as e:
            raise ProviderError(
                f"Gemini returned an invalid JSON body: {e}", provider=self.name
            ) from e

        return self._transform_response(data)

    def _build_request(
        self,
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": self.system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        generation_config: dict[str, Any] = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if max_tokens is not None:
            generation_config["maxOutputTokens"] = max_tokens
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    def _transform_response(self, data: dict[str, Any]) -> ChatCompletion:
        candidates = data.get("candidates") or []
        text = ""
        finish_reason = "stop"
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            text = "".join(part.get("text", "") for part in parts)
            finish_reason = _FINISH_REASONS.get(candidates[0].get("finishReason", "STOP"), "stop")
        else:
            logger.warning("Gemini returned no candidates for model %s", self.model)

        usage = None
        metadata = data.get("usageMetadata")
        if metadata:
            prompt_tokens = metadata.get("promptTokenCount", 0)
            completion_tokens = metadata.get("candidatesTokenCount", 0)
            usage = Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=metadata.get("totalTokenCount", prompt_tokens + completion_tokens),
            )

        return ChatCompletion(
            content=text,
            model=data.get("modelVersion") or self.model,
            finish_reason=finish_reason,
            usage=usage,
        )
