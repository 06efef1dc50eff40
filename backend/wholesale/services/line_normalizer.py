# Overview: Canonical qty/price/total for order and invoice lines of any historical shape.

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from .money import (
    EQUIVALENT_PLACES,
    ZERO,
    money_to_json,
    parse_nullable_number,
    round_money,
    round_to,
    to_decimal,
)
from .price_resolver import UnitType, coerce_unit_type, read_field

"""
Line normalization invariants (authoritative)

- A stored total (line_total_snapshot, then ext_amount) is used verbatim,
  even when it disagrees with qty x price.
- Snapshot fields beat edits, edits beat live/legacy fields.
- Live product pricing is never consulted here.
- Unknown numbers become 0 only at this display layer.
- Money is rounded to 2 dp on output; derived per-unit prices keep 4 dp
  until then.
"""

UNKNOWN_ITEM = "Unknown Item"
UNCATEGORIZED = "Uncategorized"

_CASE_ONLY = frozenset({UnitType.CASE})
_PIECE_ONLY = frozenset({UnitType.PIECE})


@dataclass(frozen=True)
class FieldRule:
    """One named step of a fallback chain."""
    field: str
    modes: Optional[frozenset] = None
    non_negative: bool = False
    positive_whole: bool = False

    def extract(self, raw: Any, mode: UnitType) -> Optional[Decimal]:
        if self.modes is not None and mode not in self.modes:
            return None
        value = parse_nullable_number(read_field(raw, self.field), f"line.{self.field}")
        if value is None:
            return None
        if self.non_negative and value < 0:
            return None
        if self.positive_whole and (value <= 0 or value != value.to_integral_value()):
            return None
        return value


QUANTITY_RULES = (
    FieldRule("quantity_snapshot"),
    FieldRule("edited_qty"),
    FieldRule("cases_qty", modes=_CASE_ONLY),
    FieldRule("pieces_qty", modes=_PIECE_ONLY),
    FieldRule("qty"),
)

UNITS_PER_CASE_RULES = (
    FieldRule("units_per_case_snapshot", positive_whole=True),
    FieldRule("units_per_case", positive_whole=True),
)

UNIT_PRICE_RULES = (
    FieldRule("unit_price_snapshot"),
    FieldRule("edited_unit_price"),
    FieldRule("unit_price"),
)

CASE_PRICE_RULES = (
    FieldRule("case_price_snapshot", non_negative=True),
)

LINE_TOTAL_RULES = (
    FieldRule("line_total_snapshot"),
    FieldRule("ext_amount"),
)

MODE_FIELDS = ("order_mode", "order_unit")
NAME_FIELDS = ("product_name_snapshot", "edited_name", "product_name")
CATEGORY_FIELDS = ("category_name_snapshot", "category_label", "category_name")


def first_present(rules: Iterable[FieldRule], raw: Any, mode: UnitType) -> Optional[Decimal]:
    for rule in rules:
        value = rule.extract(raw, mode)
        if value is not None:
            return value
    return None


def _first_text(raw: Any, fields: Iterable[str]) -> Optional[str]:
    for field in fields:
        value = read_field(raw, field)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _joined(raw: Any, key: str) -> Any:
    # PostgREST-style joins arrive either as an object or a one-element list
    value = read_field(raw, key)
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _joined_product_name(raw: Any) -> Optional[str]:
    return _first_text(_joined(raw, "products"), ("name",))


def _joined_category_name(raw: Any) -> Optional[str]:
    return _first_text(_joined(_joined(raw, "products"), "categories"), ("name",))


def resolve_line_mode(raw: Any) -> UnitType:
    for field in MODE_FIELDS:
        mode = coerce_unit_type(read_field(raw, field))
        if mode is not None:
            return mode
    return UnitType.PIECE


def compute_line_total(qty: Any, price: Any) -> Decimal:
    """qty x price, rounded half-up once on the product."""
    parsed_qty = to_decimal(qty)
    parsed_price = to_decimal(price)
    if parsed_qty is None or parsed_price is None:
        return round_money(ZERO)
    return round_money(parsed_qty * parsed_price)


def _resolve_prices(raw: Any, mode: UnitType, units_per_case: int) -> tuple[Decimal, Decimal]:
    unit_price = first_present(UNIT_PRICE_RULES, raw, mode)
    if unit_price is None:
        unit_price = ZERO

    case_price = first_present(CASE_PRICE_RULES, raw, mode)
    if case_price is not None:
        return unit_price, case_price

    if mode is UnitType.CASE:
        # Legacy rows stored the case price in unit_price when ordering by case.
        # A negative case price is never kept, so it reads as 0 here too.
        case_price = max(unit_price, ZERO)
        if units_per_case > 1:
            return round_to(case_price / units_per_case, EQUIVALENT_PLACES), case_price
        return case_price, case_price

    if units_per_case > 1:
        return unit_price, unit_price * units_per_case
    return unit_price, unit_price


def _quantity_to_json(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class NormalizedLine:
    id: Any
    name: str
    category: str
    mode: UnitType
    quantity: Decimal
    units_per_case: int
    unit_price: Decimal
    case_price: Decimal
    line_total: Decimal
    is_manual: bool
    item_code: Optional[str] = None

    @property
    def applicable_price(self) -> Decimal:
        return self.case_price if self.mode is UnitType.CASE else self.unit_price

    def as_snapshot(self) -> dict:
        """Fields to freeze onto an invoice line at generation time."""
        return {
            "id": self.id,
            "product_name_snapshot": self.name,
            "category_name_snapshot": self.category,
            "order_mode": self.mode.value,
            "quantity_snapshot": self.quantity,
            "units_per_case_snapshot": self.units_per_case,
            "unit_price_snapshot": self.unit_price,
            "case_price_snapshot": self.case_price,
            "line_total_snapshot": self.line_total,
            "is_manual": self.is_manual,
            "item_code": self.item_code,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "mode": self.mode.value,
            "quantity": _quantity_to_json(self.quantity),
            "units_per_case": self.units_per_case,
            "unit_price": money_to_json(self.unit_price),
            "case_price": money_to_json(self.case_price),
            "line_total": money_to_json(self.line_total),
            "is_manual": self.is_manual,
            "item_code": self.item_code,
        }


def normalize_line(raw: Any) -> NormalizedLine:
    """
    Best-effort canonical view of a stored order/invoice line.

    Accepts mappings or ORM rows written by any schema version. Never raises
    on odd data; it falls through each chain to a default instead.
    """
    mode = resolve_line_mode(raw)

    quantity = first_present(QUANTITY_RULES, raw, mode)
    if quantity is None:
        quantity = ZERO

    upc_value = first_present(UNITS_PER_CASE_RULES, raw, mode)
    units_per_case = int(upc_value) if upc_value is not None else 1

    unit_price, case_price = _resolve_prices(raw, mode, units_per_case)

    stored_total = first_present(LINE_TOTAL_RULES, raw, mode)
    if stored_total is not None:
        line_total = round_money(stored_total)
    else:
        applicable = case_price if mode is UnitType.CASE else unit_price
        line_total = compute_line_total(quantity, applicable)

    item_code = read_field(raw, "item_code")

    return NormalizedLine(
        id=read_field(raw, "id"),
        name=_first_text(raw, NAME_FIELDS) or _joined_product_name(raw) or UNKNOWN_ITEM,
        category=_first_text(raw, CATEGORY_FIELDS) or _joined_category_name(raw) or UNCATEGORIZED,
        mode=mode,
        quantity=quantity,
        units_per_case=units_per_case,
        unit_price=round_money(unit_price),
        case_price=round_money(case_price),
        line_total=line_total,
        is_manual=bool(read_field(raw, "is_manual")),
        item_code=item_code if isinstance(item_code, str) and item_code else None,
    )


def normalize_lines(raw_lines: Iterable[Any]) -> list[NormalizedLine]:
    return [normalize_line(raw) for raw in raw_lines]


def compute_subtotal(raw_lines: Iterable[Any]) -> Decimal:
    """Sum of normalized line totals; no other field is re-summed."""
    total = ZERO
    for line in normalize_lines(raw_lines):
        total += line.line_total
    return round_money(total)


def is_snapshotted(raw: Any) -> bool:
    return read_field(raw, "line_total_snapshot") is not None
