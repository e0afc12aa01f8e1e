"""Intent classification and dispatch."""

from banking_agent.agent.dispatcher import BankingAgent
from banking_agent.agent.intents import Intent

__all__ = ["BankingAgent", "Intent"]
