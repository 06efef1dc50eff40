import logging
from decimal import Decimal

import pytest

from wholesale.services.credit_ledger import (
    LEDGER_SIGNS,
    LedgerEntryType,
    UnknownLedgerEntryType,
    compute_amount_due,
    compute_max_applicable_credit,
    compute_projected_amount_due,
    compute_vendor_credit_balance,
    ledger_sign,
)


def test_every_entry_type_has_a_sign():
    assert set(LEDGER_SIGNS) == set(LedgerEntryType)


def test_balance_is_signed_sum():
    entries = [
        {"type": "credit_add", "amount": 50},
        {"type": "credit_deduct", "amount": 20},
        {"type": "credit_apply", "amount": 10},
        {"type": "credit_reversal", "amount": 5},
    ]
    assert compute_vendor_credit_balance(entries) == Decimal("25.00")


def test_empty_ledger_has_zero_balance():
    assert compute_vendor_credit_balance([]) == Decimal("0.00")


def test_unknown_entry_type_has_no_sign():
    with pytest.raises(UnknownLedgerEntryType):
        ledger_sign("credit_gift")


def test_unknown_entry_type_is_left_out_of_balance(monkeypatch, caplog):
    monkeypatch.setenv("WHOLESALE_ENV", "development")
    caplog.set_level(logging.WARNING, logger="wholesale.credits")

    entries = [
        {"id": 1, "type": "credit_add", "amount": 40},
        {"id": 2, "type": "bonus", "amount": 5},
        {"id": 3, "type": "credit_apply", "amount": 15},
    ]
    assert compute_vendor_credit_balance(entries) == Decimal("25.00")
    assert "bonus" in caplog.text


class TestAmountDue:
    def test_amount_due_subtracts_credit(self):
        assert compute_amount_due("31.08", "5.00") == Decimal("26.08")

    def test_amount_due_never_goes_negative(self):
        assert compute_amount_due(30, 45) == Decimal("0.00")

    def test_out_of_range_amounts_degrade_instead_of_raising(self):
        assert compute_amount_due("1e30", 0) == Decimal("0.00")
        assert compute_amount_due(30, "1e30") == Decimal("30.00")

    def test_projected_amount_due_ignores_bad_input(self):
        assert compute_projected_amount_due(30, "abc") == Decimal("30.00")
        assert compute_projected_amount_due(30, -10) == Decimal("30.00")
        assert compute_projected_amount_due(30, "12.5") == Decimal("17.50")


class TestMaxApplicable:
    def test_capped_by_order_total(self):
        assert compute_max_applicable_credit(30, 100, 0) == Decimal("30.00")

    def test_capped_by_balance_plus_current(self):
        # 10 already applied to this order is available to re-apply
        assert compute_max_applicable_credit(100, 15, 10) == Decimal("25.00")

    def test_never_negative(self):
        assert compute_max_applicable_credit(-5, 0, 0) == Decimal("0.00")
