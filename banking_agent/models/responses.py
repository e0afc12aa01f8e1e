"""
Response Models - agent responses and provider completions.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from banking_agent.models.domain import Account, Transaction


# =============================================================================
# Provider Completion
# =============================================================================


class Usage(BaseModel):
    """
    Token usage statistics reported by a provider.

    Attributes:
        prompt_tokens: Number of tokens in the prompt
        completion_tokens: Number of tokens in the completion
        total_tokens: Total tokens used
    """

    prompt_tokens: int = Field(..., ge=0, description="Tokens in prompt")
    completion_tokens: int = Field(..., ge=0, description="Tokens in completion")
    total_tokens: int = Field(..., ge=0, description="Total tokens")


class ChatCompletion(BaseModel):
    """
    Result of one completion call.

    Attributes:
        content: Generated text.
        model: Model that produced the text, as reported by the provider.
        finish_reason: Why generation stopped ("stop", "length", ...).
        usage: Provider-reported token usage, when available.
    """

    content: str = Field(default="", description="Generated text")
    model: str = Field(..., description="Model identifier")
    finish_reason: str = Field(default="stop", description="Stop reason")
    usage: Optional[Usage] = Field(default=None, description="Reported token usage")


# =============================================================================
# Banking Response
# =============================================================================


class ResponseStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    PENDING = "PENDING"


class BankingResponse(BaseModel):
    """
    The agent's answer to a BankingRequest.

    Attributes:
        message: Human-readable answer or error explanation.
        data: Structured payload (the account, or its transaction history).
        status: SUCCESS, ERROR or PENDING.
        llm_provider: Provider key the request was served with.
    """

    message: str
    data: Union[Account, list[Transaction], None] = None
    status: ResponseStatus
    llm_provider: str

    @classmethod
    def success(
        cls,
        message: str,
        llm_provider: str,
        data: Union[Account, list[Transaction], None] = None,
    ) -> "BankingResponse":
        return cls(message=message, data=data, status=ResponseStatus.SUCCESS, llm_provider=llm_provider)

    @classmethod
    def error(cls, message: str, llm_provider: str) -> "BankingResponse":
        return cls(message=message, status=ResponseStatus.ERROR, llm_provider=llm_provider)


# =============================================================================
# Feedback Acknowledgement
# =============================================================================


class FeedbackAck(BaseModel):
    """Acknowledgement returned for every feedback submission."""

    status: str = "success"
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
