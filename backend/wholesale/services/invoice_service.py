# Overview: One-time invoice generation that freezes normalized order lines into snapshots.

from __future__ import annotations

import logging

from flask import current_app

from ..extensions import db
from ..models import Invoice, InvoiceItem, InvoiceTax, Order, OrderCreditApplication
from .concurrency import lock_for_update, run_with_retry
from .credit_ledger import compute_amount_due
from .line_normalizer import compute_subtotal, normalize_line, normalize_lines
from .money import money_to_json, to_money
from .order_service import active_items, order_line_record
from .order_totals import TAX_TYPE_PERCENT, compute_order_total, compute_tax_total
from .payment_service import get_order_amount_paid

"""
Invoice invariants (authoritative)

- At most one invoice per order (unique order_id; a second call is rejected).
- Every line is normalized once and its snapshot fields are written
  verbatim; the invoice subtotal is the sum of those line_total_snapshots.
- After generation the order is "invoiced" and its lines are locked.
- Invoice reads never consult products, overrides, or order_items.
"""

logger = logging.getLogger("wholesale.invoices")


class InvoiceError(Exception):
    """Raised for invoice operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InvoiceAlreadyGeneratedError(InvoiceError):
    pass


class InvoiceNotFoundError(InvoiceError):
    pass


def format_invoice_number(invoice_id: int) -> str:
    prefix = current_app.config.get("INVOICE_NUMBER_PREFIX", "INV")
    return f"{prefix}-{invoice_id:06d}"


def generate_invoice(order_id: int) -> Invoice:
    """
    Freeze an order into an invoice.

    The normalized line (as_snapshot) is the only source for the stored
    snapshot columns, so a later read of the invoice reproduces exactly the
    numbers that were shown when it was generated.
    """
    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise InvoiceNotFoundError("Order not found", details={"order_id": order_id})

        existing = db.session.query(Invoice).filter_by(order_id=order.id).first()
        if existing is not None or order.status == "invoiced":
            raise InvoiceAlreadyGeneratedError(
                "Invoice already generated for this order",
                details={"order_id": order.id, "invoice_id": existing.id if existing else None},
            )
        if order.status == "cancelled":
            raise InvoiceError("Cannot invoice a cancelled order", details={"status": order.status})

        items = active_items(order)
        if not items:
            raise InvoiceError("Cannot invoice an order with no lines", details={"order_id": order.id})

        invoice = Invoice(
            order_id=order.id,
            distributor_id=order.distributor_id,
            vendor_id=order.vendor_id,
            subtotal=0,
            adjustment_total=to_money(order.adjustment_total),
            tax_total=0,
            total=0,
        )
        db.session.add(invoice)
        db.session.flush()

        snapshots = []
        for item in items:
            line = normalize_line(order_line_record(item))
            snapshot = line.as_snapshot()
            snapshots.append(snapshot)
            db.session.add(InvoiceItem(
                invoice_id=invoice.id,
                product_id=item.product_id,
                is_manual=line.is_manual,
                item_code=line.item_code,
                product_name=line.name,
                category_label=line.category,
                order_unit=line.mode.value,
                qty=line.quantity,
                unit_price=line.applicable_price,
                ext_amount=line.line_total,
                product_name_snapshot=snapshot["product_name_snapshot"],
                category_name_snapshot=snapshot["category_name_snapshot"],
                order_mode=snapshot["order_mode"],
                quantity_snapshot=snapshot["quantity_snapshot"],
                unit_price_snapshot=snapshot["unit_price_snapshot"],
                case_price_snapshot=snapshot["case_price_snapshot"],
                units_per_case_snapshot=snapshot["units_per_case_snapshot"],
                line_total_snapshot=snapshot["line_total_snapshot"],
            ))

        subtotal = compute_subtotal(snapshots)
        taxable_base = subtotal + invoice.adjustment_total
        for tax in order.taxes:
            db.session.add(InvoiceTax(
                invoice_id=invoice.id,
                name=tax.name,
                type=tax.type or TAX_TYPE_PERCENT,
                rate_percent=tax.rate_percent,
                amount=compute_tax_total([tax], taxable_base),
            ))

        invoice.subtotal = subtotal
        invoice.tax_total = compute_tax_total(order.taxes, taxable_base)
        invoice.total = compute_order_total(subtotal, invoice.adjustment_total, order.taxes)
        invoice.invoice_number = format_invoice_number(invoice.id)

        application = db.session.query(OrderCreditApplication).filter_by(order_id=order.id).first()
        if application is not None:
            application.invoice_id = invoice.id

        order.status = "invoiced"
        db.session.commit()

        logger.info(
            "Generated invoice %s for order %s: %d lines, total %s",
            invoice.invoice_number, order.id, len(snapshots), invoice.total,
        )
        return invoice

    return run_with_retry(_op)


def get_invoice(invoice_id: int, distributor_id: int | None = None) -> Invoice:
    q = db.session.query(Invoice).filter_by(id=invoice_id)
    if distributor_id is not None:
        q = q.filter_by(distributor_id=distributor_id)
    invoice = q.first()
    if not invoice:
        raise InvoiceNotFoundError("Invoice not found", details={"invoice_id": invoice_id})
    return invoice


def get_invoice_view(invoice_id: int, distributor_id: int | None = None) -> dict:
    """Invoice as rendered: snapshot lines, stored totals, credit applied, amount due and paid."""
    invoice = get_invoice(invoice_id, distributor_id)
    lines = normalize_lines(invoice.items)

    application = db.session.query(OrderCreditApplication).filter_by(order_id=invoice.order_id).first()
    credit_applied = to_money(application.applied_amount) if application else to_money(None)
    amount_due = compute_amount_due(invoice.total, credit_applied)
    amount_paid = get_order_amount_paid(invoice.order_id)

    return {
        "invoice": invoice.to_dict(),
        "lines": [line.to_dict() for line in lines],
        "taxes": [tax.to_dict() for tax in invoice.taxes],
        "subtotal": money_to_json(invoice.subtotal),
        "tax_total": money_to_json(invoice.tax_total),
        "total": money_to_json(invoice.total),
        "credit_applied": money_to_json(credit_applied),
        "amount_due": money_to_json(amount_due),
        "amount_paid": money_to_json(amount_paid),
        "balance_due": money_to_json(compute_amount_due(amount_due, amount_paid)),
    }
