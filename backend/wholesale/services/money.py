# Overview: Numeric primitives shared by pricing, invoice and credit math.

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional

from ..config import is_production

"""
Money semantics (authoritative)

- All money is decimal dollars (Decimal), never binary floats.
- None means "unknown". It is never silently turned into 0 by the parser.
- Rounding is half-up and happens where a value is emitted, not before.
"""

logger = logging.getLogger("wholesale.pricing")

MONEY_PLACES = 2
EQUIVALENT_PLACES = 4

ZERO = Decimal("0")

# Largest accepted magnitude is below 10**16; anything bigger is not a price,
# quantity or balance and is treated as malformed input.
MAX_ADJUSTED_EXPONENT = 15

# Wide enough to quantize the product of two in-range values
ROUNDING_PRECISION = 64


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a raw numeric input to Decimal without logging.

    - None / "" / whitespace -> None
    - bool, NaN, infinity, non-numeric strings -> None
    - floats go through repr() so 10.555 stays 10.555
    - magnitudes of 10**16 or more -> None
    """
    if _is_blank(value) or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None

    if not parsed.is_finite() or parsed.adjusted() > MAX_ADJUSTED_EXPONENT:
        return None
    return parsed


def parse_nullable_number(value: Any, field: str = "value") -> Optional[Decimal]:
    """
    Shared tri-state parser: a number, or None for absent/malformed input.

    Malformed input is logged outside production and never raised, so one bad
    override row cannot break pricing for the rest of a catalog page.
    """
    if _is_blank(value):
        return None

    parsed = to_decimal(value)
    if parsed is None and not is_production():
        logger.warning("Invalid number for %s: %r", field, value)
    return parsed


def parse_units_per_case(value: Any, field: str = "units_per_case") -> Optional[int]:
    """Positive whole units-per-case, or None when absent or invalid."""
    parsed = parse_nullable_number(value, field)
    if parsed is None or parsed <= 0 or parsed != parsed.to_integral_value():
        return None
    return int(parsed)


def round_to(value: Decimal, places: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = ROUNDING_PRECISION
        rounded = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    # -0.00 would leak a sign into the UI
    return rounded.copy_abs() if rounded == 0 else rounded


def round_money(value: Decimal) -> Decimal:
    return round_to(value, MONEY_PLACES)


def to_money(value: Any) -> Decimal:
    """Normalize any raw amount to 2 dp; unparseable input degrades to 0.00."""
    parsed = to_decimal(value)
    if parsed is None:
        return round_money(ZERO)
    return round_money(parsed)


def money_to_json(value: Optional[Decimal]) -> Optional[float]:
    if value is None:
        return None
    return float(value)
