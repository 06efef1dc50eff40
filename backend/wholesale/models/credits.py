from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..services.money import money_to_json
from ..services.credit_ledger import LedgerEntryType

_LEDGER_TYPES_SQL = ", ".join(f"'{t.value}'" for t in LedgerEntryType)


class VendorCreditLedgerEntry(db.Model):
    """
    One immutable credit event between a distributor and a vendor.

    Append-only: rows are never updated or deleted. Corrections are new rows
    (credit_deduct, credit_reversal). The balance is computed from all rows
    by credit_ledger.compute_vendor_credit_balance, never stored.
    """
    __tablename__ = "vendor_credit_ledger"
    __table_args__ = (
        db.CheckConstraint(f"type IN ({_LEDGER_TYPES_SQL})", name="type_valid"),
        db.CheckConstraint("amount >= 0", name="amount_non_negative"),
        db.Index("ix_vendor_credit_ledger_scope", "distributor_id", "vendor_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, nullable=False)
    vendor_id = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True)
    note = db.Column(db.String(255), nullable=True)
    created_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "vendor_id": self.vendor_id,
            "type": self.type,
            "amount": money_to_json(self.amount),
            "order_id": self.order_id,
            "invoice_id": self.invoice_id,
            "note": self.note,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class OrderCreditApplication(db.Model):
    """Current credit applied to one order; every change is mirrored in the ledger."""
    __tablename__ = "order_credit_applications"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_order_credit_applications_order"),
        db.CheckConstraint("applied_amount >= 0", name="applied_amount_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, nullable=False, index=True)
    vendor_id = db.Column(db.Integer, nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True)
    applied_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    note = db.Column(db.String(255), nullable=True)
    created_by = db.Column(db.Integer, nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "invoice_id": self.invoice_id,
            "applied_amount": money_to_json(self.applied_amount),
            "note": self.note,
            "updated_at": to_utc_z(self.updated_at),
        }
