from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..services.money import money_to_json

ORDER_STATUSES = ("pending", "accepted", "invoiced", "cancelled")


class Order(db.Model):
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_distributor_vendor", "distributor_id", "vendor_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, nullable=False, index=True)
    vendor_id = db.Column(db.Integer, nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    adjustment_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "OrderItem", backref="order", lazy=True, order_by="OrderItem.id"
    )
    taxes = db.relationship("OrderTax", backref="order", lazy=True, order_by="OrderTax.id")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "vendor_id": self.vendor_id,
            "status": self.status,
            "adjustment_total": money_to_json(self.adjustment_total),
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }


class OrderItem(db.Model):
    """
    Order line as written by every schema generation.

    LEGACY SHAPES:
    - qty + unit_price (oldest; unit_price held the case price for case lines)
    - cases_qty / pieces_qty split quantities
    - edited_* columns written by pre-invoice manual edits
    Prices are frozen only when the invoice is generated (InvoiceItem), so
    edits stay visible until then. Read lines through line_normalizer.
    For case lines unit_price is the price per case.
    """
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    product_name = db.Column(db.String(255), nullable=True)
    order_unit = db.Column(db.String(16), nullable=False, default="piece")
    is_manual = db.Column(db.Boolean, nullable=False, default=False)
    removed = db.Column(db.Boolean, nullable=False, default=False)

    qty = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    cases_qty = db.Column(db.Numeric(12, 3), nullable=True)
    pieces_qty = db.Column(db.Numeric(12, 3), nullable=True)
    unit_price = db.Column(db.Numeric(12, 4), nullable=True)
    units_per_case = db.Column(db.Integer, nullable=True)

    units_per_case_snapshot = db.Column(db.Integer, nullable=True)
    price_source = db.Column(db.String(32), nullable=True)

    edited_name = db.Column(db.String(255), nullable=True)
    edited_qty = db.Column(db.Numeric(12, 3), nullable=True)
    edited_unit_price = db.Column(db.Numeric(12, 4), nullable=True)
    edited_by = db.Column(db.Integer, nullable=True)
    edited_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")


class OrderTax(db.Model):
    __tablename__ = "order_taxes"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    # "percent" taxes the subtotal; anything else is a flat amount in rate_percent
    type = db.Column(db.String(16), nullable=False, default="percent")
    rate_percent = db.Column(db.Numeric(12, 4), nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "rate_percent": money_to_json(self.rate_percent),
        }


class Invoice(db.Model):
    """
    Immutable invoice generated once per order.

    Lines and taxes are copied at generation time. Nothing re-derives them
    from live product or order data afterwards.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_invoices_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    distributor_id = db.Column(db.Integer, nullable=False, index=True)
    vendor_id = db.Column(db.Integer, nullable=False, index=True)
    invoice_number = db.Column(db.String(64), nullable=True, unique=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    adjustment_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_total = db.Column(db.Numeric(12, 2), nullable=False)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("invoice", uselist=False))
    items = db.relationship("InvoiceItem", backref="invoice", lazy=True, order_by="InvoiceItem.id")
    taxes = db.relationship("InvoiceTax", backref="invoice", lazy=True, order_by="InvoiceTax.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "distributor_id": self.distributor_id,
            "vendor_id": self.vendor_id,
            "invoice_number": self.invoice_number,
            "subtotal": money_to_json(self.subtotal),
            "adjustment_total": money_to_json(self.adjustment_total),
            "tax_total": money_to_json(self.tax_total),
            "total": money_to_json(self.total),
            "created_at": to_utc_z(self.created_at),
        }


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=True, index=True)
    is_manual = db.Column(db.Boolean, nullable=False, default=False)
    item_code = db.Column(db.String(64), nullable=True)

    # Legacy columns kept for rows written before snapshots existed
    product_name = db.Column(db.String(255), nullable=True)
    category_label = db.Column(db.String(255), nullable=True)
    order_unit = db.Column(db.String(16), nullable=False, default="piece")
    qty = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    unit_price = db.Column(db.Numeric(12, 4), nullable=True)
    ext_amount = db.Column(db.Numeric(12, 2), nullable=True)

    # Frozen at generation
    product_name_snapshot = db.Column(db.String(255), nullable=True)
    category_name_snapshot = db.Column(db.String(255), nullable=True)
    order_mode = db.Column(db.String(16), nullable=True)
    quantity_snapshot = db.Column(db.Numeric(12, 3), nullable=True)
    unit_price_snapshot = db.Column(db.Numeric(12, 4), nullable=True)
    case_price_snapshot = db.Column(db.Numeric(12, 4), nullable=True)
    units_per_case_snapshot = db.Column(db.Integer, nullable=True)
    line_total_snapshot = db.Column(db.Numeric(12, 2), nullable=True)


class InvoiceTax(db.Model):
    __tablename__ = "invoice_taxes"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    type = db.Column(db.String(16), nullable=False)
    rate_percent = db.Column(db.Numeric(12, 4), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "rate_percent": money_to_json(self.rate_percent),
            "amount": money_to_json(self.amount),
        }


class OrderPayment(db.Model):
    """
    One payment received against an order.

    Rows are never edited; the amount paid is the sum of every row. Payments
    sit beside credit: they settle the amount due, they do not change it.
    """
    __tablename__ = "order_payments"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="amount_positive"),
        db.Index("ix_order_payments_scope", "distributor_id", "vendor_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    distributor_id = db.Column(db.Integer, nullable=False)
    vendor_id = db.Column(db.Integer, nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    method = db.Column(db.String(32), nullable=True)
    note = db.Column(db.String(255), nullable=True)
    created_by = db.Column(db.Integer, nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", backref=db.backref("payments", lazy=True, order_by="OrderPayment.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount": money_to_json(self.amount),
            "method": self.method,
            "note": self.note,
            "created_by": self.created_by,
            "paid_at": to_utc_z(self.paid_at),
        }
