"""
Request Models - inbound banking queries and user feedback.

Feedback shapes are flat: every field is a scalar so they can be filled
straight from form or query parameters.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Banking Request
# =============================================================================


class BankingRequest(BaseModel):
    """
    A natural-language customer query.

    Attributes:
        account_number: Account the query is about (optional).
        operation_type: Caller-supplied hint, recorded on the request span only.
        query: The customer's question. Blank queries get a guidance response.
        context: Extra free-text context passed to the model.

    Example:
        >>> request = BankingRequest(account_number="ACC001", query="What is my balance?")
    """

    account_number: Optional[str] = Field(default=None, description="Account reference")
    operation_type: Optional[str] = Field(default=None, description="Operation hint")
    query: str = Field(default="", description="Customer query")
    context: Optional[str] = Field(default=None, description="Additional context")


# =============================================================================
# Feedback Records
# =============================================================================


class SatisfactionFeedback(BaseModel):
    """
    A completed satisfaction survey.

    Immutable once created; recorded as telemetry only.

    Attributes:
        session_id: Client session the feedback belongs to.
        account_number: Account the conversation was about (optional).
        llm_provider: Provider that produced the rated response.
        intent: Intent the rated response was classified as.
        satisfaction_score: Rating on the 1-5 scale.
        feedback: Free-text comment.
        was_helpful: Whether the response helped.
        was_accurate: Whether the response was accurate.
        timestamp: Submission time (UTC).
    """

    session_id: str = Field(..., min_length=1)
    account_number: Optional[str] = None
    llm_provider: str = Field(..., min_length=1)
    intent: str = Field(..., min_length=1)
    satisfaction_score: float = Field(..., ge=1, le=5, description="Rating on the 1-5 scale")
    feedback: Optional[str] = None
    was_helpful: Optional[bool] = None
    was_accurate: Optional[bool] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}


class QuickFeedback(BaseModel):
    """Thumbs up / thumbs down on a single response."""

    session_id: str = Field(..., min_length=1)
    llm_provider: str = Field(..., min_length=1)
    intent: str = Field(..., min_length=1)
    helpful: bool

    model_config = {"frozen": True}


class IssueReport(BaseModel):
    """A user-reported problem with a response (e.g. "incorrect_balance")."""

    session_id: str = Field(..., min_length=1)
    llm_provider: str = Field(..., min_length=1)
    intent: str = Field(..., min_length=1)
    issue_type: str = Field(..., min_length=1)
    description: Optional[str] = None

    model_config = {"frozen": True}
