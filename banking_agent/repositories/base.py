"""
Repository ports for account and transaction data.

The agent only reads through these interfaces. Storage is an external
concern; ``memory.py`` provides the in-process adapters used by the demo
application and the tests.

Pattern: Repository pattern (ABC port, swappable adapters)
"""

from abc import ABC, abstractmethod
from typing import Optional

from banking_agent.models.domain import Account, Transaction


class AccountRepository(ABC):
    """Port for account lookups."""

    @abstractmethod
    async def find_by_account_number(self, account_number: str) -> Optional[Account]:
        """Return the account, or None when it does not exist."""
        ...

    @abstractmethod
    async def find_all(self) -> list[Account]:
        ...

    @abstractmethod
    async def save(self, account: Account) -> Account:
        ...

    async def exists(self, account_number: str) -> bool:
        return await self.find_by_account_number(account_number) is not None


class TransactionRepository(ABC):
    """Port for transaction history."""

    @abstractmethod
    async def get_history(self, account_number: str) -> list[Transaction]:
        """Return the account's transactions, newest first."""
        ...

    @abstractmethod
    async def save(self, transaction: Transaction) -> Transaction:
        ...
