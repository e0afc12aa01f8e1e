"""
Tests for intent label resolution.
"""

import pytest

from banking_agent.agent.intents import Intent, normalize_label


class TestFromLabel:
    @pytest.mark.parametrize("intent", list(Intent))
    def test_every_intent_resolves_to_itself(self, intent):
        assert Intent.from_label(intent.value) is intent

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("  check_balance\n", Intent.CHECK_BALANCE),
            ("View_Transactions", Intent.VIEW_TRANSACTIONS),
            ("UNKNOWN_FOO", Intent.GENERAL_INQUIRY),
            ("CHECK_BALANCE.", Intent.GENERAL_INQUIRY),
            ("", Intent.GENERAL_INQUIRY),
            (None, Intent.GENERAL_INQUIRY),
        ],
    )
    def test_resolution(self, label, expected):
        assert Intent.from_label(label) is expected


def test_normalize_label():
    assert normalize_label("  deposit ") == "DEPOSIT"
    assert normalize_label(None) == ""
