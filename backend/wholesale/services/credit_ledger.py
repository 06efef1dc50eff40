# Overview: Vendor credit balance and amount-due math over the append-only credit ledger.

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Any

from ..config import is_production
from .money import ZERO, round_money, to_money
from .price_resolver import read_field

"""
Credit ledger invariants (authoritative)

- Entries are append-only; a reversal is a new entry, never an edit.
- Sign comes from the entry type; amounts are stored non-negative.
- Balance is always the signed sum over every entry, never a stored counter.
- A row whose type is outside the closed set contributes nothing to the
  balance and is logged outside production.
"""

logger = logging.getLogger("wholesale.credits")


class LedgerEntryType(str, Enum):
    CREDIT_ADD = "credit_add"
    CREDIT_DEDUCT = "credit_deduct"
    CREDIT_APPLY = "credit_apply"
    CREDIT_REVERSAL = "credit_reversal"


LEDGER_SIGNS = {
    LedgerEntryType.CREDIT_ADD: 1,
    LedgerEntryType.CREDIT_REVERSAL: 1,
    LedgerEntryType.CREDIT_DEDUCT: -1,
    LedgerEntryType.CREDIT_APPLY: -1,
}

# A new entry type must be given a sign before this module will import
if set(LEDGER_SIGNS) != set(LedgerEntryType):
    raise RuntimeError("LEDGER_SIGNS must cover every LedgerEntryType")


class UnknownLedgerEntryType(ValueError):
    """A ledger row carried a type outside the closed set."""


def ledger_sign(entry_type: Any) -> int:
    try:
        return LEDGER_SIGNS[LedgerEntryType(entry_type)]
    except ValueError:
        raise UnknownLedgerEntryType(f"Unknown credit ledger type: {entry_type!r}") from None


def signed_amount(entry: Any) -> Decimal:
    return ledger_sign(read_field(entry, "type")) * to_money(read_field(entry, "amount"))


def compute_vendor_credit_balance(entries: Iterable[Any]) -> Decimal:
    """Signed sum of every known entry; an empty ledger has balance 0.00."""
    balance = ZERO
    for entry in entries:
        try:
            balance += signed_amount(entry)
        except UnknownLedgerEntryType as exc:
            if not is_production():
                logger.warning("Skipping credit ledger row %r: %s", read_field(entry, "id"), exc)
    return round_money(balance)


def compute_amount_due(total: Any, credit_applied: Any) -> Decimal:
    """total - credit applied, clamped at 0; over-application is not an error here."""
    return round_money(max(to_money(total) - to_money(credit_applied), ZERO))


def compute_max_applicable_credit(order_total: Any, available_balance: Any, currently_applied: Any) -> Decimal:
    """Most credit an order can carry: its total, or what the vendor could cover."""
    ceiling = min(to_money(order_total), to_money(available_balance) + to_money(currently_applied))
    return round_money(max(ceiling, ZERO))


def compute_projected_amount_due(order_total: Any, raw_input: Any) -> Decimal:
    """Amount-due preview for a credit input box; invalid or negative input counts as 0."""
    amount = to_money(raw_input)
    if amount < 0:
        amount = round_money(ZERO)
    return compute_amount_due(order_total, amount)
