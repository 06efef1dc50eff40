from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from .money import round_money, to_decimal
from .price_resolver import PricePair, UnitType, coerce_unit_type

PRICE_NOT_AVAILABLE = "Price Not Available"

_UNIT_SUFFIX = {UnitType.PIECE: "pc", UnitType.CASE: "case"}


def format_money(value: Any) -> str:
    """$1,234.50 style; unknown values render as $0.00."""
    parsed = to_decimal(value)
    if parsed is None:
        return "$0.00"
    rounded = round_money(parsed)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.2f}"


def format_price_label(price: Optional[Decimal], unit_type: UnitType | str) -> str:
    """$6.60/pc or $33.00/case; a missing price is labelled, not zeroed."""
    unit = coerce_unit_type(unit_type) or UnitType.PIECE
    if price is None:
        return PRICE_NOT_AVAILABLE
    return f"{format_money(price)}/{_UNIT_SUFFIX[unit]}"


def format_qty_label(qty: int, unit_type: UnitType | str) -> str:
    unit = coerce_unit_type(unit_type) or UnitType.PIECE
    if unit is UnitType.PIECE:
        return f"{qty} {'pc' if qty == 1 else 'pcs'}"
    return f"{qty} {'case' if qty == 1 else 'cases'}"


def orderable_units(pair: PricePair) -> list[UnitType]:
    """Units a vendor may order: allowed by the product and actually priced."""
    units = []
    if pair.allow_piece and pair.piece.price is not None:
        units.append(UnitType.PIECE)
    if pair.allow_case and pair.case.price is not None:
        units.append(UnitType.CASE)
    return units


def price_pair_labels(pair: PricePair) -> dict:
    labels = {
        "piece": format_price_label(pair.piece.price, UnitType.PIECE),
        "case": format_price_label(pair.case.price, UnitType.CASE),
        "unit_equivalent": None,
    }
    if pair.unit_equivalent is not None:
        labels["unit_equivalent"] = f"≈ {format_money(pair.unit_equivalent)}/pc"
    return labels
