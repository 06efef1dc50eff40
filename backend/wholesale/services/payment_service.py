# Overview: Payments received against orders, and the paid/due summary shown beside totals.

"""
Order Payment Service

DESIGN PRINCIPLES:
- Payments are separate from orders (many-to-one relationship)
- Partial payments: a payment can be less than the balance due
- Immutable rows: a payment is never edited; amount paid is their sum
- amount_due stays total - credit applied; balance_due also takes off payments
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import Order, OrderPayment
from .bulk_price_targets import parse_numeric_input
from .concurrency import lock_for_update, run_with_retry
from .credit_ledger import compute_amount_due
from .credit_service import get_order_credit_applied
from .money import ZERO, money_to_json, round_money, to_money
from .order_service import OrderNotFoundError, compute_order_totals

logger = logging.getLogger("wholesale.payments")


class PaymentError(Exception):
    """Raised for payment operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _normalize_text(raw) -> str | None:
    value = str(raw if raw is not None else "").strip()
    return value or None


def get_order_amount_paid(order_id: int) -> Decimal:
    total = ZERO
    for payment in db.session.query(OrderPayment).filter_by(order_id=order_id):
        total += to_money(payment.amount)
    return round_money(total)


def list_order_payments(order_id: int) -> list[OrderPayment]:
    return (
        db.session.query(OrderPayment)
        .filter_by(order_id=order_id)
        .order_by(OrderPayment.paid_at.desc(), OrderPayment.id.desc())
        .all()
    )


def payment_summary(order: Order) -> dict:
    """Total, credit applied, amount due, amount paid and what is still owed."""
    total = compute_order_totals(order)["total"]
    credit_applied = get_order_credit_applied(order.id)
    amount_due = compute_amount_due(total, credit_applied)
    amount_paid = get_order_amount_paid(order.id)
    return {
        "total_amount": total,
        "credit_applied": credit_applied,
        "amount_due": amount_due,
        "amount_paid": amount_paid,
        "balance_due": compute_amount_due(amount_due, amount_paid),
    }


def record_order_payment(
    order_id: int,
    amount,
    method: str | None = None,
    note: str | None = None,
    user_id: int | None = None,
) -> tuple[OrderPayment, dict]:
    """
    Record a payment against an order.

    Returns the payment and the refreshed summary (summary values are
    Decimal). A payment larger than the balance still due is rejected.
    """
    parsed = parse_numeric_input(amount, "amount")
    if not parsed.ok or parsed.value <= 0:
        raise PaymentError("Enter an amount greater than 0.")
    value = parsed.value
    method = _normalize_text(method)
    note = _normalize_text(note)

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise OrderNotFoundError("Order not found", details={"order_id": order_id})
        if order.status == "cancelled":
            raise PaymentError("Cannot record a payment on a cancelled order", details={"status": order.status})

        balance_due = payment_summary(order)["balance_due"]
        if value > balance_due:
            raise PaymentError(
                "Payment exceeds balance due",
                details={"balance_due": money_to_json(balance_due), "requested": money_to_json(value)},
            )

        payment = OrderPayment(
            order_id=order.id,
            distributor_id=order.distributor_id,
            vendor_id=order.vendor_id,
            amount=value,
            method=method,
            note=note,
            created_by=user_id,
        )
        db.session.add(payment)
        db.session.commit()
        logger.info("Payment %s recorded on order %s (method %s)", value, order.id, method)
        return payment, payment_summary(order)

    return run_with_retry(_op)


def summary_to_json(summary: dict) -> dict:
    return {key: money_to_json(value) for key, value in summary.items()}
