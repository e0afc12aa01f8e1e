"""Customer intents recognised by the agent."""

from enum import Enum
from typing import Optional


class Intent(str, Enum):
    """
    Closed set of intents the classifier may answer with.

    Any other label resolves to GENERAL_INQUIRY through ``from_label``.
    """

    CHECK_BALANCE = "CHECK_BALANCE"
    VIEW_TRANSACTIONS = "VIEW_TRANSACTIONS"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER = "TRANSFER"
    ACCOUNT_INFO = "ACCOUNT_INFO"
    GENERAL_INQUIRY = "GENERAL_INQUIRY"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Intent":
        """
        Resolve a classifier label (trimmed, upper-cased) to an Intent.

        Examples:
            >>> Intent.from_label("  check_balance \\n")
            <Intent.CHECK_BALANCE: 'CHECK_BALANCE'>
            >>> Intent.from_label("UNKNOWN_FOO")
            <Intent.GENERAL_INQUIRY: 'GENERAL_INQUIRY'>
        """
        normalized = normalize_label(label)
        try:
            return cls(normalized)
        except ValueError:
            return cls.GENERAL_INQUIRY


def normalize_label(label: Optional[str]) -> str:
    return (label or "").strip().upper()
