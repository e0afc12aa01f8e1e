"""Request, response and domain models."""

from banking_agent.models.domain import (
    Account,
    AccountStatus,
    AccountType,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from banking_agent.models.requests import (
    BankingRequest,
    IssueReport,
    QuickFeedback,
    SatisfactionFeedback,
)
from banking_agent.models.responses import (
    BankingResponse,
    ChatCompletion,
    FeedbackAck,
    ResponseStatus,
    Usage,
)

__all__ = [
    "Account",
    "AccountStatus",
    "AccountType",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "BankingRequest",
    "IssueReport",
    "QuickFeedback",
    "SatisfactionFeedback",
    "BankingResponse",
    "ChatCompletion",
    "FeedbackAck",
    "ResponseStatus",
    "Usage",
]
