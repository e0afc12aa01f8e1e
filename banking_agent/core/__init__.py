"""
Core module for the Banking Agent.

This module contains configuration, exceptions, and shared utilities.
"""

from banking_agent.core.config import Settings, get_settings
from banking_agent.core.exceptions import (
    AccountNotFoundError,
    AuthenticationError,
    BankingAgentException,
    ErrorCode,
    InstrumentationError,
    NoProviderError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    RequestValidationError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "BankingAgentException",
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderConnectionError",
    "AuthenticationError",
    "RateLimitError",
    "NoProviderError",
    "AccountNotFoundError",
    "RequestValidationError",
    "InstrumentationError",
]
