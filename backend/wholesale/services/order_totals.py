from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from .money import ZERO, round_money, to_decimal, to_money
from .price_resolver import read_field

TAX_TYPE_PERCENT = "percent"
TAX_TYPE_FIXED = "fixed"


def compute_tax_total(taxes: Iterable[Any], taxable_base: Any) -> Decimal:
    """
    Percent rows tax the base; every other row is a flat amount.

    The rate column doubles as the flat amount for fixed rows.
    """
    base = to_money(taxable_base)
    total = ZERO
    for tax in taxes:
        rate = to_decimal(read_field(tax, "rate_percent"))
        if rate is None:
            continue
        if str(read_field(tax, "type") or "") == TAX_TYPE_PERCENT:
            total += base * rate / 100
        else:
            total += rate
    return round_money(total)


def compute_order_total(
    subtotal: Any,
    adjustment_total: Any = 0,
    taxes: Iterable[Any] = (),
) -> Decimal:
    taxable_base = to_money(subtotal) + to_money(adjustment_total)
    return round_money(taxable_base + compute_tax_total(taxes, taxable_base))
