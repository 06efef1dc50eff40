# Overview: Field-target vocabulary and input parsing for bulk price edits.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from .money import round_to, to_decimal

T = TypeVar("T")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Discriminated result for admin-boundary parsing.

    Batch edit UIs report per-row failures from `error` instead of aborting
    the batch, so nothing in this module raises on bad input.
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult[T]":
        return cls(ok=False, error=error)

    def to_dict(self) -> dict:
        if not self.ok:
            return {"ok": False, "error": self.error}
        value = self.value.value if isinstance(self.value, Enum) else self.value
        if isinstance(value, Decimal):
            value = float(value)
        return {"ok": True, "value": value}


class PriceUnit(str, Enum):
    UNIT = "unit"
    CASE = "case"


class BulkPriceFieldTarget(str, Enum):
    SELL_UNIT = "SELL_UNIT"
    SELL_CASE = "SELL_CASE"
    COST_UNIT = "COST_UNIT"
    COST_CASE = "COST_CASE"


# Legacy raw column names on the products table
LEGACY_FIELD_BY_TARGET = {
    BulkPriceFieldTarget.SELL_UNIT: "sell_price",
    BulkPriceFieldTarget.SELL_CASE: "price_case",
    BulkPriceFieldTarget.COST_UNIT: "cost_price",
    BulkPriceFieldTarget.COST_CASE: "cost_case",
}

PRICE_UNIT_BY_TARGET = {
    BulkPriceFieldTarget.SELL_UNIT: PriceUnit.UNIT,
    BulkPriceFieldTarget.SELL_CASE: PriceUnit.CASE,
    BulkPriceFieldTarget.COST_UNIT: PriceUnit.UNIT,
    BulkPriceFieldTarget.COST_CASE: PriceUnit.CASE,
}

if set(LEGACY_FIELD_BY_TARGET) != set(BulkPriceFieldTarget) or set(PRICE_UNIT_BY_TARGET) != set(BulkPriceFieldTarget):
    raise RuntimeError("Bulk price tables must cover every BulkPriceFieldTarget")

TARGET_ALIASES = {
    "SELL_UNIT": BulkPriceFieldTarget.SELL_UNIT,
    "SELL_CASE": BulkPriceFieldTarget.SELL_CASE,
    "COST_UNIT": BulkPriceFieldTarget.COST_UNIT,
    "COST_CASE": BulkPriceFieldTarget.COST_CASE,
    # Deprecated: COST always meant the per-unit cost
    "COST": BulkPriceFieldTarget.COST_UNIT,
    "sell_price": BulkPriceFieldTarget.SELL_UNIT,
    "price_case": BulkPriceFieldTarget.SELL_CASE,
    "cost_price": BulkPriceFieldTarget.COST_UNIT,
    "cost_case": BulkPriceFieldTarget.COST_CASE,
    "SELL_PRICE": BulkPriceFieldTarget.SELL_UNIT,
    "PRICE_CASE": BulkPriceFieldTarget.SELL_CASE,
    "COST_PRICE": BulkPriceFieldTarget.COST_UNIT,
}


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def normalize_bulk_price_field_target(raw_value: Any) -> ParseResult[BulkPriceFieldTarget]:
    if not isinstance(raw_value, str) or not raw_value.strip():
        return ParseResult.failure("field target is required")

    value = raw_value.strip()
    target = TARGET_ALIASES.get(value) or TARGET_ALIASES.get(value.upper())
    if target is None:
        return ParseResult.failure(f"Invalid field target: {value}")
    return ParseResult.success(target)


def resolve_bulk_price_field_target(
    field_target: Any = None,
    field: Any = None,
) -> ParseResult[BulkPriceFieldTarget]:
    """`field_target` wins; `field` is the older request key."""
    if not _is_missing(field_target):
        return normalize_bulk_price_field_target(field_target)
    if not _is_missing(field):
        return normalize_bulk_price_field_target(field)
    return ParseResult.failure("field target is required")


def get_price_unit_for_bulk_target(target: BulkPriceFieldTarget) -> PriceUnit:
    return PRICE_UNIT_BY_TARGET[target]


def to_legacy_bulk_price_field(target: BulkPriceFieldTarget) -> str:
    return LEGACY_FIELD_BY_TARGET[target]


def parse_price_unit(raw_value: Any, label: str = "price_unit") -> ParseResult[PriceUnit]:
    if isinstance(raw_value, PriceUnit):
        return ParseResult.success(raw_value)
    try:
        return ParseResult.success(PriceUnit(raw_value))
    except ValueError:
        return ParseResult.failure(f'{label} must be "unit" or "case"')


def parse_numeric_input(
    raw_value: Any,
    label: str,
    *,
    allow_negative: bool = False,
    round_to_places: int = 2,
) -> ParseResult[Decimal]:
    """Required numeric admin input; absence is an error here, not a None."""
    if _is_missing(raw_value):
        return ParseResult.failure(f"{label} is required")

    value = to_decimal(raw_value)
    if value is None:
        return ParseResult.failure(f"{label} must be a valid number")

    if not allow_negative and value < 0:
        return ParseResult.failure(f"{label} must be 0 or greater")

    return ParseResult.success(round_to(value, round_to_places))
