"""
In-memory repository adapters and demo seed data.

Both repositories guard their maps with an ``asyncio.Lock`` so concurrent
requests on one event loop see consistent snapshots.
"""

import asyncio
from decimal import Decimal
from typing import Optional

from banking_agent.models.domain import Account, AccountStatus, AccountType, Transaction
from banking_agent.observability.logging import get_logger
from banking_agent.repositories.base import AccountRepository, TransactionRepository

logger = get_logger(__name__)


class InMemoryAccountRepository(AccountRepository):
    """Accounts keyed by account number."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = asyncio.Lock()

    async def find_by_account_number(self, account_number: str) -> Optional[Account]:
        async with self._lock:
            return self._accounts.get(account_number)

    async def find_all(self) -> list[Account]:
        async with self._lock:
            return list(self._accounts.values())

    async def save(self, account: Account) -> Account:
        async with self._lock:
            self._accounts[account.account_number] = account
        return account

    async def count(self) -> int:
        async with self._lock:
            return len(self._accounts)


class InMemoryTransactionRepository(TransactionRepository):
    """Transactions grouped by account number, ids assigned on save."""

    def __init__(self) -> None:
        self._transactions: dict[str, list[Transaction]] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def get_history(self, account_number: str) -> list[Transaction]:
        async with self._lock:
            history = list(self._transactions.get(account_number, []))
        return sorted(history, key=lambda t: t.transaction_date, reverse=True)

    async def save(self, transaction: Transaction) -> Transaction:
        async with self._lock:
            if transaction.id is None:
                transaction = transaction.model_copy(update={"id": self._next_id})
                self._next_id += 1
            self._transactions.setdefault(transaction.account_number, []).append(transaction)
        return transaction


# =============================================================================
# Demo Seed Data
# =============================================================================

DEMO_ACCOUNTS = (
    ("ACC001", "John Doe", "john.doe@example.com", AccountType.CHECKING, "5000.00"),
    ("ACC002", "Jane Smith", "jane.smith@example.com", AccountType.SAVINGS, "15000.00"),
    ("ACC003", "Bob Johnson", "bob.johnson@example.com", AccountType.CHECKING, "3500.50"),
    ("ACC004", "Alice Williams", "alice.williams@example.com", AccountType.INVESTMENT, "25000.00"),
    ("ACC005", "Charlie Brown", "charlie.brown@example.com", AccountType.SAVINGS, "8750.25"),
)


async def seed_demo_accounts(repository: AccountRepository, currency: str = "USD") -> int:
    """
    Create the five demo accounts (ACC001..ACC005), all ACTIVE.

    Returns:
        Number of accounts created
    """
    logger.info("seeding_demo_accounts")
    for number, name, email, account_type, balance in DEMO_ACCOUNTS:
        await repository.save(
            Account(
                account_number=number,
                customer_name=name,
                email=email,
                account_type=account_type,
                balance=Decimal(balance),
                currency=currency,
                status=AccountStatus.ACTIVE,
            )
        )
    logger.info("demo_accounts_seeded", count=len(DEMO_ACCOUNTS))
    return len(DEMO_ACCOUNTS)
