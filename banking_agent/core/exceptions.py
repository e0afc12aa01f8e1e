"""
Custom exceptions for the Banking Agent.

This module provides a hierarchy of custom exceptions for the agent.
All exceptions inherit from BankingAgentException and include error codes for
consistent error handling and log output.

Propagation:
- RequestValidationError, AccountNotFoundError and ProviderError are turned
  into ERROR-status BankingResponse values by the dispatcher.
- InstrumentationError never leaves the observability layer; it only wraps
  internal telemetry faults so they can be logged with context.
"""

from enum import Enum
from typing import Any, Optional


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for Banking Agent exceptions.

    These codes provide a consistent way to identify error types
    in responses and in logging.
    """

    AGENT_ERROR = "AGENT_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    INSTRUMENTATION_ERROR = "INSTRUMENTATION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class BankingAgentException(Exception):
    """
    Base exception for all Banking Agent errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.AGENT_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        # Set any additional attributes from kwargs
        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(BankingAgentException):
    """
    Exception for LLM provider issues.

    Raised when communication with an LLM provider fails,
    including API errors, timeouts, and authentication issues.

    Attributes:
        provider: Name of the provider (e.g., "ollama", "openai").
        status_code: HTTP status code from the provider API (if applicable).
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        error_code: str = ErrorCode.PROVIDER_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the provider error.

        Args:
            message: Human-readable error message.
            provider: Name of the LLM provider.
            status_code: HTTP status code from provider (optional).
            error_code: Machine-readable error code.
            **kwargs: Additional attributes.
        """
        super().__init__(message, error_code, **kwargs)
        self.provider = provider
        self.status_code = status_code


class ProviderTimeoutError(ProviderError):
    """
    Raised when a completion call exceeds the configured timeout.

    NOTE: Named ProviderTimeoutError to avoid shadowing Python's
    builtin TimeoutError exception.
    """


class ProviderConnectionError(ProviderError):
    """
    Raised when the provider endpoint cannot be reached.

    NOTE: Named ProviderConnectionError to avoid shadowing Python's
    builtin ConnectionError exception.
    """


class AuthenticationError(ProviderError):
    """Raised when the provider rejects the configured credentials."""


class RateLimitError(ProviderError):
    """
    Raised when the provider reports that its rate limit was exceeded.

    Attributes:
        retry_after: Seconds until the rate limit resets (if reported).
    """

    def __init__(
        self,
        message: str,
        provider: str,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            provider,
            status_code=429,
            error_code=ErrorCode.RATE_LIMIT_ERROR,
            **kwargs,
        )
        self.retry_after = retry_after


class NoProviderError(ProviderError):
    """Raised when no provider is registered to serve a request."""

    def __init__(self, message: str = "No LLM providers available") -> None:
        super().__init__(message, provider="none")


# =============================================================================
# Business Errors
# =============================================================================


class AccountNotFoundError(BankingAgentException):
    """
    Exception for a referenced account that does not exist.

    Attributes:
        account_number: The account number that was looked up.
    """

    def __init__(
        self,
        account_number: str,
        message: str = "Account not found. Please verify your account number.",
        error_code: str = ErrorCode.NOT_FOUND,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.account_number = account_number


class RequestValidationError(BankingAgentException):
    """
    Exception for a request missing a field the operation needs.

    Note: Named RequestValidationError to avoid conflict with
    pydantic.ValidationError.

    Attributes:
        field: Name of the field that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: str = ErrorCode.VALIDATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.field = field


# =============================================================================
# Instrumentation Errors
# =============================================================================


class InstrumentationError(BankingAgentException):
    """
    Internal fault in the estimator or a telemetry emitter.

    Never propagated to callers of the agent; logged and dropped.

    Attributes:
        stage: Instrumentation step that failed (e.g. "record_prompt").
    """

    def __init__(
        self,
        message: str,
        stage: str,
        error_code: str = ErrorCode.INSTRUMENTATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.stage = stage
