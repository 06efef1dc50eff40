from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..services.money import money_to_json


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("distributor_id", "name", name="uq_categories_distributor_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "distributor_id": self.distributor_id, "name": self.name}


class Product(db.Model):
    """
    Catalog product with every generation of pricing columns.

    PRICING COLUMNS:
    - sell_per_unit / sell_per_case: canonical sell prices
    - sell_price / price_case: legacy names, read only as fallbacks
    - units_per_case: whole number >= 1 when present; anything else counts as 1
      for derivation and is never rewritten
    All price columns are nullable: NULL means "not priced", which is not 0.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_distributor_name", "distributor_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    item_code = db.Column(db.String(64), nullable=True)

    sell_per_unit = db.Column(db.Numeric(12, 4), nullable=True)
    sell_per_case = db.Column(db.Numeric(12, 4), nullable=True)
    sell_price = db.Column(db.Numeric(12, 4), nullable=True)
    price_case = db.Column(db.Numeric(12, 4), nullable=True)
    cost_per_unit = db.Column(db.Numeric(12, 4), nullable=True)
    cost_per_case = db.Column(db.Numeric(12, 4), nullable=True)

    units_per_case = db.Column(db.Integer, nullable=True)
    allow_piece = db.Column(db.Boolean, nullable=False, default=True)
    allow_case = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} distributor_id={self.distributor_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "name": self.name,
            "item_code": self.item_code,
            "sell_per_unit": money_to_json(self.sell_per_unit),
            "sell_per_case": money_to_json(self.sell_per_case),
            "sell_price": money_to_json(self.sell_price),
            "price_case": money_to_json(self.price_case),
            "units_per_case": self.units_per_case,
            "allow_piece": self.allow_piece,
            "allow_case": self.allow_case,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class VendorPriceOverride(db.Model):
    """
    Price agreed with one vendor for one product.

    price_cents is the original single-price column (per unit, in cents);
    price_per_unit / price_per_case replaced it. Each column answers only for
    its own unit type.
    """
    __tablename__ = "vendor_price_overrides"
    __table_args__ = (
        db.UniqueConstraint(
            "distributor_id", "vendor_id", "product_id", name="uq_vendor_price_overrides_scope"
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, nullable=False, index=True)
    vendor_id = db.Column(db.Integer, nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    price_cents = db.Column(db.Integer, nullable=True)
    price_per_unit = db.Column(db.Numeric(12, 4), nullable=True)
    price_per_case = db.Column(db.Numeric(12, 4), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "vendor_id": self.vendor_id,
            "product_id": self.product_id,
            "price_cents": self.price_cents,
            "price_per_unit": money_to_json(self.price_per_unit),
            "price_per_case": money_to_json(self.price_per_case),
            "updated_at": to_utc_z(self.updated_at),
        }


class BulkPriceOverride(db.Model):
    """Distributor-wide price tier for a product, independent of any vendor."""
    __tablename__ = "bulk_price_overrides"
    __table_args__ = (
        db.UniqueConstraint("distributor_id", "product_id", name="uq_bulk_price_overrides_scope"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    price_per_unit = db.Column(db.Numeric(12, 4), nullable=True)
    price_per_case = db.Column(db.Numeric(12, 4), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "product_id": self.product_id,
            "price_per_unit": money_to_json(self.price_per_unit),
            "price_per_case": money_to_json(self.price_per_case),
        }
