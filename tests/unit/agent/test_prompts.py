"""
Tests for prompt templates.
"""

from decimal import Decimal

from banking_agent.agent import prompts
from banking_agent.models.domain import Account, AccountType
from banking_agent.models.requests import BankingRequest


def account():
    return Account(
        account_number="ACC001",
        customer_name="John Doe",
        account_type=AccountType.CHECKING,
        balance=Decimal("5000.00"),
    )


class TestIntentPrompt:
    def test_embeds_query_and_defaults(self):
        prompt = prompts.intent_prompt(BankingRequest(query="What is my balance?"))

        assert "Customer Query: What is my balance?" in prompt
        assert "Account Number: Not provided" in prompt
        assert "Context: None" in prompt
        assert prompts.INTENT_LABELS in prompt

    def test_embeds_account(self):
        prompt = prompts.intent_prompt(
            BankingRequest(account_number="ACC001", query="hi", context="mobile app")
        )

        assert "Account Number: ACC001" in prompt
        assert "Context: mobile app" in prompt


class TestResponsePrompts:
    def test_balance_prompt(self):
        prompt = prompts.balance_prompt(account())

        assert "Current Balance: 5000.00 USD" in prompt
        assert "Account Type: CHECKING" in prompt
        assert "Account Status: ACTIVE" in prompt

    def test_account_info_prompt(self):
        prompt = prompts.account_info_prompt(account())

        assert "Customer Name: John Doe" in prompt
        assert "Balance: 5000.00 USD" in prompt

    def test_general_inquiry_prompt(self):
        prompt = prompts.general_inquiry_prompt(BankingRequest(query="What are your hours?"))

        assert "Question: What are your hours?" in prompt
        assert "Context: General banking inquiry" in prompt


class TestTransactionsPrompt:
    def test_line_format(self, make_transaction):
        line = prompts.transaction_line(make_transaction(amount="250.00", description="Payroll"))

        assert line == "- DEPOSIT: 250.00 USD (Payroll) on 2024-05-01 12:00"

    def test_at_most_ten_lines(self, make_transaction):
        history = [
            make_transaction(description=f"tx-{i}", minutes_ago=i) for i in range(15)
        ]

        prompt = prompts.transactions_prompt("ACC001", history)

        lines = [line for line in prompt.splitlines() if line.startswith("- ")]
        assert len(lines) == prompts.MAX_TRANSACTIONS_IN_SUMMARY == 10
        assert "Total Transactions: 15" in prompt
        assert "(tx-0)" in prompt
        assert "(tx-9)" in prompt
        assert "(tx-10)" not in prompt

    def test_short_history_kept_whole(self, make_transaction):
        prompt = prompts.transactions_prompt("ACC001", [make_transaction(), make_transaction()])

        assert len([line for line in prompt.splitlines() if line.startswith("- ")]) == 2
