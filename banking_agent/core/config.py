"""
Core configuration module for the Banking Agent.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the BANKING_AGENT_ prefix.

Pattern: Pydantic BaseSettings with a cached accessor
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful banking assistant with expertise in financial services."
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the BANKING_AGENT_ prefix for environment variables.
    Example: BANKING_AGENT_DEFAULT_PROVIDER=openai
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="banking-agent",
        description="Name of the service for logging, tracing and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # =========================================================================
    # Provider Configuration
    # Pattern: SecretStr for sensitive values
    # SecretStr masks values in logs/repr, use .get_secret_value() to access
    # =========================================================================
    default_provider: str = Field(
        default="ollama",
        description="Provider used when an unknown provider is requested",
    )
    ollama_url: str = Field(
        default="http://localhost:11434",
        description="URL of the local Ollama instance",
    )
    ollama_model: str = Field(
        default="llama3.2",
        description="Model served by the local Ollama instance",
    )
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key for GPT models",
    )
    openai_model: str = Field(
        default="gpt-4",
        description="OpenAI chat model",
    )
    gemini_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Google API key for Gemini models",
    )
    gemini_model: str = Field(
        default="gemini-pro",
        description="Gemini chat model",
    )
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="System prompt sent with every completion call",
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for intent classification and responses",
    )

    # =========================================================================
    # Timeout Configuration
    # A completion call that exceeds this bound fails with ProviderTimeoutError.
    # There is no retry.
    # =========================================================================
    llm_timeout_seconds: float = Field(
        default=60.0,
        ge=1.0,
        le=600.0,
        description="Timeout in seconds for a single completion call",
    )

    # =========================================================================
    # Tracing Configuration
    # =========================================================================
    otlp_endpoint: Optional[str] = Field(
        default=None,
        description="OTLP collector endpoint (console exporter when unset)",
    )
    capture_content: bool = Field(
        default=True,
        description="Attach prompt and completion text to LLM spans",
    )
    max_content_length: int = Field(
        default=2000,
        ge=1,
        description="Maximum characters of prompt/completion text kept on a span",
    )
    observation_bridge_enabled: bool = Field(
        default=False,
        description="Bridge provider observation callbacks into OpenTelemetry spans",
    )

    # =========================================================================
    # Demo Data
    # =========================================================================
    currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency of the seeded demo accounts",
    )
    seed_demo_data: bool = Field(
        default=True,
        description="Seed the in-memory repositories with demo accounts",
    )

    # =========================================================================
    # Environment Prefix Configuration
    # =========================================================================
    model_config = {
        "env_prefix": "BANKING_AGENT_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("ollama_url")
    @classmethod
    def validate_ollama_url(cls, v: str) -> str:
        """Validate Ollama URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Ollama URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("default_provider")
    @classmethod
    def normalize_default_provider(cls, v: str) -> str:
        """Provider keys are matched case-insensitively."""
        return v.strip().lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.
    This provides singleton behavior without global state.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
