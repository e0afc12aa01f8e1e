"""
Domain Models - Accounts and Transactions

Plain records read by the agent's response handlers. The agent never changes
balances; these are stand-ins for an external account system.

Pattern: Pydantic models as domain records
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Enumerations
# =============================================================================


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    INVESTMENT = "INVESTMENT"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    CLOSED = "CLOSED"


class TransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER = "TRANSFER"
    PAYMENT = "PAYMENT"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


# =============================================================================
# Account
# =============================================================================


class Account(BaseModel):
    """
    A customer bank account.

    Attributes:
        account_number: Unique account identifier (e.g. "ACC001").
        customer_name: Account holder name.
        email: Contact email.
        account_type: CHECKING, SAVINGS or INVESTMENT.
        balance: Current balance.
        currency: ISO 4217 currency code.
        status: ACTIVE, SUSPENDED or CLOSED.
        created_at: Account opening time (UTC).
        updated_at: Last modification time (UTC).
    """

    account_number: str = Field(..., min_length=1, description="Unique account identifier")
    customer_name: str = Field(..., description="Account holder name")
    email: Optional[str] = Field(default=None, description="Contact email")
    account_type: AccountType = Field(..., description="Account type")
    balance: Decimal = Field(default=Decimal("0.00"), description="Current balance")
    currency: str = Field(default="USD", description="ISO 4217 currency code")
    status: AccountStatus = Field(default=AccountStatus.ACTIVE, description="Account status")
    created_at: datetime = Field(default_factory=_utcnow, description="Opening time")
    updated_at: datetime = Field(default_factory=_utcnow, description="Last update time")


# =============================================================================
# Transaction
# =============================================================================


class Transaction(BaseModel):
    """
    One movement of money on an account.

    Attributes:
        id: Repository-assigned identifier (None until saved).
        account_number: Account the transaction belongs to.
        type: DEPOSIT, WITHDRAWAL, TRANSFER or PAYMENT.
        amount: Absolute amount moved.
        currency: ISO 4217 currency code.
        destination_account: Target account for transfers.
        description: Free-text description.
        status: Processing status.
        transaction_date: When the transaction happened (UTC).
        balance_after: Account balance once the transaction settled.
    """

    id: Optional[int] = Field(default=None, description="Repository identifier")
    account_number: str = Field(..., min_length=1)
    type: TransactionType
    amount: Decimal = Field(..., ge=0)
    currency: str = Field(default="USD")
    destination_account: Optional[str] = None
    description: Optional[str] = None
    status: TransactionStatus = Field(default=TransactionStatus.COMPLETED)
    transaction_date: datetime = Field(default_factory=_utcnow)
    balance_after: Optional[Decimal] = None
