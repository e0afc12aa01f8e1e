"""Banking Agent - instrumented LLM banking assistant.

Every model call made on behalf of a customer query is wrapped in an
OpenTelemetry span and counted in Prometheus metrics, with token and
cost estimates attached.

Note: Import `create_application` directly from `banking_agent.main` to
avoid circular imports.
"""

__all__ = ["main", "agent", "core", "models", "observability", "providers", "services"]
