"""Account and transaction repositories."""

from banking_agent.repositories.base import AccountRepository, TransactionRepository
from banking_agent.repositories.memory import (
    InMemoryAccountRepository,
    InMemoryTransactionRepository,
    seed_demo_accounts,
)
from banking_agent.repositories.traced import TracedAccountRepository, TracedTransactionRepository

__all__ = [
    "AccountRepository",
    "TransactionRepository",
    "InMemoryAccountRepository",
    "InMemoryTransactionRepository",
    "TracedAccountRepository",
    "TracedTransactionRepository",
    "seed_demo_accounts",
]
