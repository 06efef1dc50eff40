# Overview: Loads products and override rows, then prices them through price_resolver.

from __future__ import annotations

from ..extensions import db
from ..models import BulkPriceOverride, Product, VendorPriceOverride
from .price_display import format_price_label, orderable_units, price_pair_labels
from .price_resolver import (
    PriceResolution,
    UnitType,
    get_required_effective_price,
    resolve_effective_price,
    resolve_price_pair,
)


class PricingLookupError(Exception):
    """Raised when the product being priced does not exist for the distributor."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def get_product(distributor_id: int, product_id: int) -> Product:
    product = (
        db.session.query(Product)
        .filter_by(id=product_id, distributor_id=distributor_id)
        .first()
    )
    if not product:
        raise PricingLookupError("Product not found", details={"product_id": product_id})
    return product


def get_overrides(
    distributor_id: int,
    vendor_id: int | None,
    product_id: int,
) -> tuple[VendorPriceOverride | None, BulkPriceOverride | None]:
    vendor_override = None
    if vendor_id is not None:
        vendor_override = (
            db.session.query(VendorPriceOverride)
            .filter_by(distributor_id=distributor_id, vendor_id=vendor_id, product_id=product_id)
            .first()
        )
    bulk_override = (
        db.session.query(BulkPriceOverride)
        .filter_by(distributor_id=distributor_id, product_id=product_id)
        .first()
    )
    return vendor_override, bulk_override


def get_effective_price(
    *,
    distributor_id: int,
    vendor_id: int | None,
    product_id: int,
    unit_type: UnitType,
) -> dict:
    """Read-only price for display; a missing price is returned, not raised."""
    product = get_product(distributor_id, product_id)
    vendor_override, bulk_override = get_overrides(distributor_id, vendor_id, product_id)
    result = resolve_effective_price(unit_type, product, vendor_override, bulk_override)
    return {
        "product_id": product.id,
        "unit_type": unit_type.value,
        **result.to_dict(),
        "label": format_price_label(result.price, unit_type),
    }


def get_required_price(
    *,
    distributor_id: int,
    vendor_id: int,
    product: Product,
    unit_type: UnitType,
) -> PriceResolution:
    """Order-time price; raises MissingEffectivePriceError when unpriced."""
    vendor_override, bulk_override = get_overrides(distributor_id, vendor_id, product.id)
    return get_required_effective_price(unit_type, product, vendor_override, bulk_override)


def catalog_prices(
    *,
    distributor_id: int,
    vendor_id: int | None,
    category_id: int | None = None,
) -> list[dict]:
    """
    Price every active product of a distributor for one vendor.

    Overrides are loaded in two queries. Rows with bad or missing prices come
    back labelled "Price Not Available" instead of failing the whole list.
    """
    q = db.session.query(Product).filter_by(distributor_id=distributor_id, is_active=True)
    if category_id is not None:
        q = q.filter_by(category_id=category_id)
    products = q.order_by(Product.name.asc(), Product.id.asc()).all()

    vendor_overrides = {}
    if vendor_id is not None:
        rows = (
            db.session.query(VendorPriceOverride)
            .filter_by(distributor_id=distributor_id, vendor_id=vendor_id)
            .all()
        )
        vendor_overrides = {row.product_id: row for row in rows}

    bulk_rows = db.session.query(BulkPriceOverride).filter_by(distributor_id=distributor_id).all()
    bulk_overrides = {row.product_id: row for row in bulk_rows}

    items = []
    for product in products:
        pair = resolve_price_pair(
            product,
            vendor_overrides.get(product.id),
            bulk_overrides.get(product.id),
        )
        items.append({
            "product_id": product.id,
            "name": product.name,
            "item_code": product.item_code,
            "category_name": product.category.name if product.category else None,
            "pricing": pair.to_dict(),
            "labels": price_pair_labels(pair),
            "orderable_units": [unit.value for unit in orderable_units(pair)],
        })
    return items
