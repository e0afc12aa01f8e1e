"""
Prompt templates for intent classification and response generation.

Every template is fixed; only the embedded request and account data vary.
Transaction summaries carry at most MAX_TRANSACTIONS_IN_SUMMARY lines no
matter how long the history is.
"""

from typing import Sequence

from banking_agent.models.domain import Account, Transaction
from banking_agent.models.requests import BankingRequest

MAX_TRANSACTIONS_IN_SUMMARY = 10

INTENT_LABELS = (
    "CHECK_BALANCE, VIEW_TRANSACTIONS, DEPOSIT, WITHDRAWAL, TRANSFER, "
    "ACCOUNT_INFO, GENERAL_INQUIRY"
)

_INTENT_TEMPLATE = """Analyze the following customer query and determine their intent.
Respond with ONLY ONE of these intents: {labels}

Customer Query: {query}
Account Number: {account_number}
Context: {context}

Intent:"""

_BALANCE_TEMPLATE = """Generate a friendly, natural response for a customer balance inquiry.

Account Number: {account_number}
Account Type: {account_type}
Current Balance: {balance} {currency}
Account Status: {status}

Provide a helpful response that includes the balance information in a conversational way.
"""

_TRANSACTIONS_TEMPLATE = """Generate a friendly summary of the customer's recent transactions.

Account Number: {account_number}
Total Transactions: {total}
Recent Transactions (last {limit}):
{lines}

Provide a helpful summary in a conversational way.
"""

_ACCOUNT_INFO_TEMPLATE = """Generate a comprehensive summary of the customer's account information.

Account Number: {account_number}
Customer Name: {customer_name}
Account Type: {account_type}
Balance: {balance} {currency}
Status: {status}
Created: {created}

Provide a helpful summary in a conversational, professional manner.
"""

_GENERAL_TEMPLATE = """You are a helpful banking assistant. Answer the following customer question:

Question: {query}
Context: {context}

Provide a helpful, accurate, and professional response about banking services, policies, or general information.
If the question requires account-specific information, politely ask for the account number.
"""


def intent_prompt(request: BankingRequest) -> str:
    return _INTENT_TEMPLATE.format(
        labels=INTENT_LABELS,
        query=request.query,
        account_number=request.account_number or "Not provided",
        context=request.context or "None",
    )


def balance_prompt(account: Account) -> str:
    return _BALANCE_TEMPLATE.format(
        account_number=account.account_number,
        account_type=account.account_type.value,
        balance=account.balance,
        currency=account.currency,
        status=account.status.value,
    )


def transaction_line(transaction: Transaction) -> str:
    """One summary line, e.g. ``- DEPOSIT: 250.00 USD (Payroll) on 2024-05-01 09:30``."""
    description = f"({transaction.description})" if transaction.description else ""
    return "- {type}: {amount} {currency} {description} on {date}".format(
        type=transaction.type.value,
        amount=transaction.amount,
        currency=transaction.currency,
        description=description,
        date=transaction.transaction_date.strftime("%Y-%m-%d %H:%M"),
    )


def transactions_prompt(account_number: str, transactions: Sequence[Transaction]) -> str:
    """Summary prompt for a newest-first history, truncated to the first ten entries."""
    recent = transactions[:MAX_TRANSACTIONS_IN_SUMMARY]
    return _TRANSACTIONS_TEMPLATE.format(
        account_number=account_number,
        total=len(transactions),
        limit=MAX_TRANSACTIONS_IN_SUMMARY,
        lines="\n".join(transaction_line(t) for t in recent),
    )


def account_info_prompt(account: Account) -> str:
    return _ACCOUNT_INFO_TEMPLATE.format(
        account_number=account.account_number,
        customer_name=account.customer_name,
        account_type=account.account_type.value,
        balance=account.balance,
        currency=account.currency,
        status=account.status.value,
        created=account.created_at.strftime("%Y-%m-%d"),
    )


def general_inquiry_prompt(request: BankingRequest) -> str:
    return _GENERAL_TEMPLATE.format(
        query=request.query,
        context=request.context or "General banking inquiry",
    )
