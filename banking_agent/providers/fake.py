"""
Fake Chat Provider - Test Double Implementation

A ChatProvider that never touches the network. Responses are scripted: each
call pops the next entry from ``responses`` and falls back to
``default_response`` once the script is exhausted. An entry may be an
exception instance, which is raised instead of returned.

This is NOT mocking - it's a proper implementation of the interface, usable
for local development without a model server and for integration tests.
"""

from collections import deque
from typing import Optional, Union

from banking_agent.models.responses import ChatCompletion
from banking_agent.observability.bridge import ObservationRegistry
from banking_agent.providers.base import ChatProvider

ScriptedResponse = Union[str, ChatCompletion, BaseException]


class FakeProvider(ChatProvider):
    """
    Fake chat provider for testing and local development.

    Attributes:
        prompts: Every prompt received, in order
        calls: Number of complete() calls made

    Example:
        >>> provider = FakeProvider(responses=["CHECK_BALANCE", "Your balance is $5,000.00."])
        >>> (await provider.complete("...")).content
        'CHECK_BALANCE'

        # For error testing:
        >>> from banking_agent.core.exceptions import ProviderTimeoutError
        >>> provider = FakeProvider(error_on_complete=ProviderTimeoutError("slow", provider="fake"))
    """

    def __init__(
        self,
        name: str = "fake",
        model: str = "fake-model",
        responses: Optional[list[ScriptedResponse]] = None,
        default_response: str = "Fake response for testing",
        error_on_complete: Optional[BaseException] = None,
        observations: Optional[ObservationRegistry] = None,
    ) -> None:
        super().__init__(name=name, model=model, observations=observations)
        self._responses: deque[ScriptedResponse] = deque(responses or [])
        self.default_response = default_response
        self.error_on_complete = error_on_complete

        # Track calls for test assertions
        self.prompts: list[str] = []
        self.temperatures: list[Optional[float]] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def queue(self, *responses: ScriptedResponse) -> None:
        """Append responses to the script."""
        self._responses.extend(responses)

    async def _send(
        self,
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> ChatCompletion:
        self.prompts.append(prompt)
        self.temperatures.append(temperature)

        if self.error_on_complete is not None:
            raise self.error_on_complete

        scripted = self._responses.popleft() if self._responses else self.default_response
        if isinstance(scripted, BaseException):
            raise scripted
        if isinstance(scripted, ChatCompletion):
            return scripted
        return ChatCompletion(content=scripted, model=self.model, finish_reason="stop")
