"""
Order Service - order lines priced at order time, editable until invoiced

Prices are fixed through the required resolver when a line is added. Reads
always go through line_normalizer so every historical line shape totals the
same way.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import Invoice, Order, OrderItem, OrderTax
from ..time_utils import utcnow
from .bulk_price_targets import parse_numeric_input
from .catalog_pricing_service import get_product, get_required_price
from .concurrency import lock_for_update, run_with_retry
from .line_normalizer import compute_subtotal, normalize_lines
from .money import money_to_json, to_decimal, to_money
from .order_totals import compute_order_total, compute_tax_total
from .price_resolver import UnitType, coerce_unit_type, product_units_per_case

logger = logging.getLogger("wholesale.orders")

EDITABLE_STATUSES = ("pending", "accepted")


class OrderError(Exception):
    """Raised for order operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class OrderNotFoundError(OrderError):
    pass


def get_order(order_id: int, distributor_id: int | None = None) -> Order:
    q = db.session.query(Order).filter_by(id=order_id)
    if distributor_id is not None:
        q = q.filter_by(distributor_id=distributor_id)
    order = q.first()
    if not order:
        raise OrderNotFoundError("Order not found", details={"order_id": order_id})
    return order


def _locked_order(order_id: int) -> Order:
    order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
    if not order:
        raise OrderNotFoundError("Order not found", details={"order_id": order_id})
    return order


def _require_editable(order: Order) -> None:
    if order.status == "invoiced":
        raise OrderError("Order is invoiced; its lines are locked", details={"status": order.status})
    if order.status not in EDITABLE_STATUSES:
        raise OrderError(f"Cannot edit order with status {order.status}", details={"status": order.status})


def _positive_quantity(raw, label: str = "qty") -> Decimal:
    qty = to_decimal(raw)
    if qty is None or qty <= 0:
        raise OrderError(f"{label} must be greater than 0")
    return qty


def create_order(distributor_id: int, vendor_id: int) -> Order:
    order = Order(distributor_id=distributor_id, vendor_id=vendor_id, status="pending")
    db.session.add(order)
    db.session.commit()
    return order


def add_order_item(order_id: int, product_id: int, order_unit: str, qty) -> OrderItem:
    """
    Add a priced product line.

    Raises MissingEffectivePriceError (unit-specific message) when neither an
    override nor the product supplies a price for the requested unit.
    """
    unit = coerce_unit_type(order_unit)
    if unit is None:
        raise OrderError('order_unit must be "piece" or "case"')
    quantity = _positive_quantity(qty)

    def _op():
        order = _locked_order(order_id)
        _require_editable(order)

        product = get_product(order.distributor_id, product_id)
        allowed = product.allow_case if unit is UnitType.CASE else product.allow_piece
        if not allowed:
            raise OrderError(
                f"{product.name} cannot be ordered by {unit.value}",
                details={"product_id": product.id, "order_unit": unit.value},
            )

        resolution = get_required_price(
            distributor_id=order.distributor_id,
            vendor_id=order.vendor_id,
            product=product,
            unit_type=unit,
        )

        item = OrderItem(
            order_id=order.id,
            product_id=product.id,
            product_name=product.name,
            order_unit=unit.value,
            qty=quantity,
            cases_qty=quantity if unit is UnitType.CASE else None,
            pieces_qty=quantity if unit is UnitType.PIECE else None,
            # per case for case lines, per piece otherwise
            unit_price=resolution.price,
            units_per_case=product.units_per_case,
            units_per_case_snapshot=product_units_per_case(product),
            price_source=resolution.source.value,
        )
        db.session.add(item)
        db.session.commit()
        return item

    return run_with_retry(_op)


def add_manual_item(order_id: int, name: str, unit_price, qty) -> OrderItem:
    """Free-form line with no product link; only name, price and qty matter."""
    if not name or not str(name).strip():
        raise OrderError("name is required")
    price = parse_numeric_input(unit_price, "unit_price")
    if not price.ok:
        raise OrderError(price.error)
    quantity = _positive_quantity(qty)

    def _op():
        order = _locked_order(order_id)
        _require_editable(order)
        item = OrderItem(
            order_id=order.id,
            product_id=None,
            product_name=str(name).strip(),
            order_unit=UnitType.PIECE.value,
            is_manual=True,
            qty=quantity,
            pieces_qty=quantity,
            unit_price=price.value,
        )
        db.session.add(item)
        db.session.commit()
        return item

    return run_with_retry(_op)


def edit_order_item(
    order_id: int,
    item_id: int,
    *,
    edited_qty=None,
    edited_unit_price=None,
    edited_name: str | None = None,
    user_id: int | None = None,
) -> OrderItem:
    """Record a pre-invoice edit. Original columns are kept; edits win on read."""
    changes = {}
    if edited_qty is not None:
        changes["edited_qty"] = _positive_quantity(edited_qty, "edited_qty")
    if edited_unit_price is not None:
        price = parse_numeric_input(edited_unit_price, "edited_unit_price")
        if not price.ok:
            raise OrderError(price.error)
        changes["edited_unit_price"] = price.value
    if edited_name is not None:
        if not str(edited_name).strip():
            raise OrderError("edited_name cannot be blank")
        changes["edited_name"] = str(edited_name).strip()
    if not changes:
        raise OrderError("Nothing to edit")

    def _op():
        order = _locked_order(order_id)
        _require_editable(order)
        item = db.session.query(OrderItem).filter_by(id=item_id, order_id=order.id).first()
        if not item or item.removed:
            raise OrderNotFoundError("Order item not found", details={"item_id": item_id})

        for key, value in changes.items():
            setattr(item, key, value)
        item.edited_by = user_id
        item.edited_at = utcnow()
        db.session.commit()
        logger.info("Order %s line %s edited (%s) by %s", order.id, item.id, ", ".join(sorted(changes)), user_id)
        return item

    return run_with_retry(_op)


def remove_order_item(order_id: int, item_id: int) -> OrderItem:
    def _op():
        order = _locked_order(order_id)
        _require_editable(order)
        item = db.session.query(OrderItem).filter_by(id=item_id, order_id=order.id).first()
        if not item:
            raise OrderNotFoundError("Order item not found", details={"item_id": item_id})
        item.removed = True
        db.session.commit()
        return item

    return run_with_retry(_op)


def set_order_taxes(order_id: int, taxes: list[dict]) -> list[OrderTax]:
    parsed = []
    for index, tax in enumerate(taxes):
        if not isinstance(tax, dict):
            raise OrderError(f"taxes[{index}] must be an object", details={"index": index})
        rate = parse_numeric_input(tax.get("rate_percent"), "rate_percent", round_to_places=4)
        if not rate.ok:
            raise OrderError(rate.error, details={"index": index})
        parsed.append((str(tax.get("name") or "Tax"), str(tax.get("type") or "percent"), rate.value))

    def _op():
        order = _locked_order(order_id)
        _require_editable(order)
        db.session.query(OrderTax).filter_by(order_id=order.id).delete()
        rows = []
        for name, tax_type, rate_percent in parsed:
            row = OrderTax(order_id=order.id, name=name, type=tax_type, rate_percent=rate_percent)
            db.session.add(row)
            rows.append(row)
        db.session.commit()
        return rows

    return run_with_retry(_op)


def order_line_record(item: OrderItem) -> dict:
    """Plain dict of a stored line plus the product join the normalizer reads."""
    record = {column.key: getattr(item, column.key) for column in OrderItem.__table__.columns}
    product = item.product
    if product is not None:
        record["item_code"] = product.item_code
        record["products"] = {
            "name": product.name,
            "categories": {"name": product.category.name} if product.category else None,
        }
    return record


def active_items(order: Order) -> list[OrderItem]:
    return [item for item in order.items if not item.removed]


def compute_order_totals(order: Order) -> dict:
    """
    Money totals for an order.

    Once invoiced the invoice's stored totals are returned; live order lines
    are never re-totaled for an invoiced order.
    """
    invoice = db.session.query(Invoice).filter_by(order_id=order.id).first()
    if invoice is not None:
        return {
            "subtotal": invoice.subtotal,
            "adjustment_total": invoice.adjustment_total,
            "tax_total": invoice.tax_total,
            "total": invoice.total,
        }

    records = [order_line_record(item) for item in active_items(order)]
    subtotal = compute_subtotal(records)
    adjustment_total = to_money(order.adjustment_total)
    return {
        "subtotal": subtotal,
        "adjustment_total": adjustment_total,
        "tax_total": compute_tax_total(order.taxes, subtotal + adjustment_total),
        "total": compute_order_total(subtotal, adjustment_total, order.taxes),
    }


def get_order_view(order_id: int, distributor_id: int | None = None) -> dict:
    from .payment_service import list_order_payments, payment_summary

    order = get_order(order_id, distributor_id)
    lines = normalize_lines(order_line_record(item) for item in active_items(order))
    totals = compute_order_totals(order)
    summary = payment_summary(order)
    invoice = db.session.query(Invoice).filter_by(order_id=order.id).first()

    return {
        "order": order.to_dict(),
        "lines": [line.to_dict() for line in lines],
        "taxes": [tax.to_dict() for tax in order.taxes],
        **{key: money_to_json(value) for key, value in totals.items()},
        "credit_applied": money_to_json(summary["credit_applied"]),
        "amount_due": money_to_json(summary["amount_due"]),
        "amount_paid": money_to_json(summary["amount_paid"]),
        "balance_due": money_to_json(summary["balance_due"]),
        "payments": [payment.to_dict() for payment in list_order_payments(order.id)],
        "invoice_id": invoice.id if invoice else None,
    }
