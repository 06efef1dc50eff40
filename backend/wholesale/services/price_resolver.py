# Overview: Effective price resolution across vendor, bulk and product price layers.

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .money import (
    EQUIVALENT_PLACES,
    parse_nullable_number,
    parse_units_per_case,
    round_to,
)

"""
Precedence (first present value wins, per requested unit type):

1. vendor override
2. bulk override
3. product default (canonical field, then legacy field)
4. None

A layer answers only for the unit type asked. There is no unit<->case
conversion here; compute_equivalent_unit/compute_equivalent_case are the
explicit, display-only conversions.
"""


class UnitType(str, Enum):
    PIECE = "piece"
    CASE = "case"


class PriceSource(str, Enum):
    VENDOR_OVERRIDE = "vendor_override"
    BULK_OVERRIDE = "bulk_override"
    PRODUCT_DEFAULT = "product_default"


MISSING_PRICE_MESSAGES = {
    UnitType.PIECE: "Set unit price in inventory before ordering by piece.",
    UnitType.CASE: "Set case price in inventory before ordering by case.",
}


class MissingEffectivePriceError(Exception):
    """Raised when an order line is committed for a unit type with no price."""
    def __init__(self, unit_type: UnitType, details: dict | None = None):
        super().__init__(MISSING_PRICE_MESSAGES[unit_type])
        self.unit_type = unit_type
        self.details = details or {}


@dataclass(frozen=True)
class PriceResolution:
    price: Optional[Decimal]
    source: Optional[PriceSource]

    def to_dict(self) -> dict:
        return {
            "price": None if self.price is None else float(self.price),
            "source": self.source.value if self.source else None,
        }


@dataclass(frozen=True)
class _LayerPrices:
    unit: Optional[Decimal]
    case: Optional[Decimal]

    def for_unit(self, unit_type: UnitType) -> Optional[Decimal]:
        return self.case if unit_type is UnitType.CASE else self.unit


def read_field(source: Any, key: str) -> Any:
    """Read a field from a mapping or an object (ORM row, dataclass)."""
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def coerce_unit_type(value: Any) -> Optional[UnitType]:
    if isinstance(value, UnitType):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip().lower()
    if raw in ("unit", "pc", "pcs"):
        return UnitType.PIECE
    try:
        return UnitType(raw)
    except ValueError:
        return None


def _layer_prices(layer: Any, label: str) -> _LayerPrices:
    if layer is None:
        return _LayerPrices(unit=None, case=None)

    unit = parse_nullable_number(read_field(layer, "price_per_unit"), f"{label}.price_per_unit")
    if unit is None:
        cents = parse_nullable_number(read_field(layer, "price_cents"), f"{label}.price_cents")
        if cents is not None:
            unit = cents / 100

    return _LayerPrices(
        unit=unit,
        case=parse_nullable_number(read_field(layer, "price_per_case"), f"{label}.price_per_case"),
    )


def _product_prices(product: Any) -> _LayerPrices:
    unit = parse_nullable_number(read_field(product, "sell_per_unit"), "product.sell_per_unit")
    if unit is None:
        unit = parse_nullable_number(read_field(product, "sell_price"), "product.sell_price")

    case = parse_nullable_number(read_field(product, "sell_per_case"), "product.sell_per_case")
    if case is None:
        case = parse_nullable_number(read_field(product, "price_case"), "product.price_case")

    return _LayerPrices(unit=unit, case=case)


def product_units_per_case(product: Any) -> int:
    """Units per case for derivation; absent or invalid counts as 1."""
    return parse_units_per_case(read_field(product, "units_per_case"), "product.units_per_case") or 1


def _resolve(
    unit_type: UnitType,
    product: Any,
    vendor_override: Any = None,
    bulk_override: Any = None,
) -> PriceResolution:
    layers = (
        (PriceSource.VENDOR_OVERRIDE, _layer_prices(vendor_override, "vendorOverride")),
        (PriceSource.BULK_OVERRIDE, _layer_prices(bulk_override, "bulkOverride")),
        (PriceSource.PRODUCT_DEFAULT, _product_prices(product)),
    )
    for source, prices in layers:
        price = prices.for_unit(unit_type)
        if price is not None:
            return PriceResolution(price=price, source=source)
    return PriceResolution(price=None, source=None)


def resolve_effective_price(
    unit_type: UnitType | str,
    product: Any,
    vendor_override: Any = None,
    bulk_override: Any = None,
) -> PriceResolution:
    """
    Non-throwing resolution for read-only display (catalog browsing).

    An unrecognised unit type resolves to no price.
    """
    unit = coerce_unit_type(unit_type)
    if unit is None:
        return PriceResolution(price=None, source=None)
    return _resolve(unit, product, vendor_override, bulk_override)


def get_required_effective_price(
    unit_type: UnitType | str,
    product: Any,
    vendor_override: Any = None,
    bulk_override: Any = None,
) -> PriceResolution:
    """
    Resolution for the order commit point.

    Raises MissingEffectivePriceError (carrying the unit type) when no layer
    supplies a price, so unpriced lines are hard-blocked.
    """
    unit = coerce_unit_type(unit_type)
    if unit is None:
        raise ValueError(f"Unknown unit type: {unit_type!r}")
    result = _resolve(unit, product, vendor_override, bulk_override)
    if result.price is None:
        raise MissingEffectivePriceError(unit, details={"unit_type": unit.value})
    return result


def compute_equivalent_unit(case_price: Any, units_per_case: Any) -> Optional[Decimal]:
    """Display-only "about $X per unit" for a case price."""
    price = parse_nullable_number(case_price, "case_price")
    upc = parse_units_per_case(units_per_case)
    if price is None or upc is None:
        return None
    return round_to(price / upc, EQUIVALENT_PLACES)


def compute_equivalent_case(unit_price: Any, units_per_case: Any) -> Optional[Decimal]:
    price = parse_nullable_number(unit_price, "unit_price")
    upc = parse_units_per_case(units_per_case)
    if price is None or upc is None:
        return None
    return round_to(price * upc, EQUIVALENT_PLACES)


@dataclass(frozen=True)
class PricePair:
    piece: PriceResolution
    case: PriceResolution
    units_per_case: int
    unit_equivalent: Optional[Decimal]
    case_equivalent: Optional[Decimal]
    allow_piece: bool
    allow_case: bool

    def to_dict(self) -> dict:
        return {
            "piece": self.piece.to_dict(),
            "case": self.case.to_dict(),
            "units_per_case": self.units_per_case,
            "unit_equivalent": None if self.unit_equivalent is None else float(self.unit_equivalent),
            "case_equivalent": None if self.case_equivalent is None else float(self.case_equivalent),
            "allow_piece": self.allow_piece,
            "allow_case": self.allow_case,
        }


def _allow_flag(product: Any, key: str) -> bool:
    raw = read_field(product, key)
    return True if raw is None else bool(raw)


def resolve_price_pair(product: Any, vendor_override: Any = None, bulk_override: Any = None) -> PricePair:
    """
    Resolve piece and case prices independently for a catalog row.

    The equivalents are informational only: unit_equivalent comes from the
    resolved case price, case_equivalent from the resolved piece price.
    """
    piece = _resolve(UnitType.PIECE, product, vendor_override, bulk_override)
    case = _resolve(UnitType.CASE, product, vendor_override, bulk_override)
    raw_upc = read_field(product, "units_per_case")
    upc = product_units_per_case(product)

    return PricePair(
        piece=piece,
        case=case,
        units_per_case=upc,
        unit_equivalent=compute_equivalent_unit(case.price, raw_upc) if case.price is not None else None,
        case_equivalent=compute_equivalent_case(piece.price, raw_upc) if piece.price is not None else None,
        allow_piece=_allow_flag(product, "allow_piece"),
        allow_case=_allow_flag(product, "allow_case"),
    )
