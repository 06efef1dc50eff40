# Overview: Vendor credit ledger writes and reads; balance is always derived from ledger rows.

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import Order, OrderCreditApplication, VendorCreditLedgerEntry
from .concurrency import lock_for_update, run_with_retry
from .credit_ledger import (
    LedgerEntryType,
    compute_max_applicable_credit,
    compute_vendor_credit_balance,
)
from .money import ZERO, round_money, to_decimal
from .order_service import OrderNotFoundError, compute_order_totals

"""
Credit write invariants (authoritative)

- Every balance change is one appended ledger row; rows are never updated.
- Applying credit to an order records the delta against what is already
  applied (credit_apply for more, credit_reversal for less).
- A deduction or application can never push the balance below zero.
"""

logger = logging.getLogger("wholesale.credits")


class CreditError(Exception):
    """Raised for credit operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _parse_amount(raw) -> Decimal:
    amount = to_decimal(raw)
    if amount is None or amount <= 0:
        raise CreditError("Enter an amount greater than 0.")
    return round_money(amount)


def _ledger_query(distributor_id: int, vendor_id: int):
    return db.session.query(VendorCreditLedgerEntry).filter_by(
        distributor_id=distributor_id, vendor_id=vendor_id
    )


def get_vendor_credit_balance(distributor_id: int, vendor_id: int) -> Decimal:
    return compute_vendor_credit_balance(_ledger_query(distributor_id, vendor_id).all())


def list_ledger(distributor_id: int, vendor_id: int, limit: int = 100) -> list[VendorCreditLedgerEntry]:
    return (
        _ledger_query(distributor_id, vendor_id)
        .order_by(VendorCreditLedgerEntry.created_at.desc(), VendorCreditLedgerEntry.id.desc())
        .limit(limit)
        .all()
    )


def _append(
    *,
    distributor_id: int,
    vendor_id: int,
    entry_type: LedgerEntryType,
    amount: Decimal,
    order_id: int | None = None,
    invoice_id: int | None = None,
    note: str | None = None,
    user_id: int | None = None,
) -> VendorCreditLedgerEntry:
    entry = VendorCreditLedgerEntry(
        distributor_id=distributor_id,
        vendor_id=vendor_id,
        type=entry_type.value,
        amount=amount,
        order_id=order_id,
        invoice_id=invoice_id,
        note=note,
        created_by=user_id,
    )
    db.session.add(entry)
    logger.info(
        "Credit ledger %s %s for vendor %s (distributor %s, order %s)",
        entry_type.value, amount, vendor_id, distributor_id, order_id,
    )
    return entry


def add_vendor_credit(
    distributor_id: int,
    vendor_id: int,
    amount,
    note: str | None = None,
    user_id: int | None = None,
) -> VendorCreditLedgerEntry:
    value = _parse_amount(amount)

    def _op():
        entry = _append(
            distributor_id=distributor_id,
            vendor_id=vendor_id,
            entry_type=LedgerEntryType.CREDIT_ADD,
            amount=value,
            note=note,
            user_id=user_id,
        )
        db.session.commit()
        return entry

    return run_with_retry(_op)


def deduct_vendor_credit(
    distributor_id: int,
    vendor_id: int,
    amount,
    note: str | None = None,
    user_id: int | None = None,
) -> VendorCreditLedgerEntry:
    value = _parse_amount(amount)

    def _op():
        balance = get_vendor_credit_balance(distributor_id, vendor_id)
        if value > balance:
            raise CreditError(
                "Deduction exceeds available credit",
                details={"available": float(balance), "requested": float(value)},
            )
        entry = _append(
            distributor_id=distributor_id,
            vendor_id=vendor_id,
            entry_type=LedgerEntryType.CREDIT_DEDUCT,
            amount=value,
            note=note,
            user_id=user_id,
        )
        db.session.commit()
        return entry

    return run_with_retry(_op)


def get_order_credit_applied(order_id: int) -> Decimal:
    application = db.session.query(OrderCreditApplication).filter_by(order_id=order_id).first()
    if application is None:
        return round_money(ZERO)
    return round_money(application.applied_amount)


def apply_vendor_credit_to_order(
    order_id: int,
    amount,
    note: str | None = None,
    user_id: int | None = None,
) -> OrderCreditApplication:
    """
    Set the total credit applied to an order.

    `amount` is the new absolute applied amount (0 clears it). The amount is
    capped by compute_max_applicable_credit against the order total and the
    vendor balance plus what the order already holds.
    """
    target = to_decimal(amount)
    if target is None or target < 0:
        raise CreditError("Enter an amount of 0 or more.")
    target = round_money(target)

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise OrderNotFoundError("Order not found", details={"order_id": order_id})
        if order.status == "cancelled":
            raise CreditError("Cannot apply credit to a cancelled order")

        application = (
            lock_for_update(db.session.query(OrderCreditApplication).filter_by(order_id=order.id)).first()
        )
        current = round_money(application.applied_amount) if application else round_money(ZERO)

        order_total = compute_order_totals(order)["total"]
        balance = get_vendor_credit_balance(order.distributor_id, order.vendor_id)
        max_applicable = compute_max_applicable_credit(order_total, balance, current)
        if target > max_applicable:
            raise CreditError(
                f"Credit cannot exceed {max_applicable:.2f}",
                details={"max_applicable": float(max_applicable), "requested": float(target)},
            )

        invoice_id = order.invoice.id if order.invoice else None
        if application is None:
            application = OrderCreditApplication(
                distributor_id=order.distributor_id,
                vendor_id=order.vendor_id,
                order_id=order.id,
                applied_amount=ZERO,
            )
            db.session.add(application)

        delta = target - current
        if delta > 0:
            _append(
                distributor_id=order.distributor_id,
                vendor_id=order.vendor_id,
                entry_type=LedgerEntryType.CREDIT_APPLY,
                amount=delta,
                order_id=order.id,
                invoice_id=invoice_id,
                note=note,
                user_id=user_id,
            )
        elif delta < 0:
            _append(
                distributor_id=order.distributor_id,
                vendor_id=order.vendor_id,
                entry_type=LedgerEntryType.CREDIT_REVERSAL,
                amount=-delta,
                order_id=order.id,
                invoice_id=invoice_id,
                note=note,
                user_id=user_id,
            )

        application.applied_amount = target
        application.invoice_id = invoice_id
        application.note = note
        application.created_by = user_id
        db.session.commit()
        return application

    return run_with_retry(_op)
