from decimal import Decimal

from wholesale.services.order_totals import compute_order_total, compute_tax_total
from wholesale.services.price_display import (
    PRICE_NOT_AVAILABLE,
    format_money,
    format_price_label,
    format_qty_label,
    orderable_units,
    price_pair_labels,
)
from wholesale.services.price_resolver import UnitType, resolve_price_pair


class TestTaxes:
    def test_percent_tax(self):
        taxes = [{"type": "percent", "rate_percent": 13}]
        assert compute_tax_total(taxes, "27.50") == Decimal("3.58")

    def test_fractional_percent_keeps_full_rate(self):
        taxes = [{"type": "percent", "rate_percent": "8.875"}]
        assert compute_tax_total(taxes, "100.00") == Decimal("8.88")

    def test_fixed_tax_is_flat(self):
        taxes = [{"type": "fixed", "rate_percent": "2.50"}]
        assert compute_tax_total(taxes, "1000") == Decimal("2.50")

    def test_order_total_includes_adjustment_in_taxable_base(self):
        taxes = [{"type": "percent", "rate_percent": 10}, {"type": "fixed", "rate_percent": 1}]
        # base 90 -> 9.00 percent + 1.00 flat
        assert compute_order_total("100.00", "-10.00", taxes) == Decimal("100.00")

    def test_order_total_without_taxes(self):
        assert compute_order_total("27.50") == Decimal("27.50")


class TestLabels:
    def test_format_money(self):
        assert format_money("1234.5") == "$1,234.50"
        assert format_money(None) == "$0.00"
        assert format_money("-3") == "-$3.00"

    def test_price_label(self):
        assert format_price_label(Decimal("6.6"), UnitType.PIECE) == "$6.60/pc"
        assert format_price_label(Decimal("33"), "case") == "$33.00/case"
        assert format_price_label(None, "case") == PRICE_NOT_AVAILABLE

    def test_zero_price_is_labelled_as_a_price(self):
        assert format_price_label(Decimal("0"), UnitType.PIECE) == "$0.00/pc"

    def test_qty_label(self):
        assert format_qty_label(1, "piece") == "1 pc"
        assert format_qty_label(5, "piece") == "5 pcs"
        assert format_qty_label(2, "case") == "2 cases"

    def test_pair_labels_and_orderable_units(self):
        pair = resolve_price_pair({
            "sell_per_unit": "0.85",
            "units_per_case": 24,
            "allow_piece": True,
            "allow_case": True,
        })
        labels = price_pair_labels(pair)
        assert labels["piece"] == "$0.85/pc"
        assert labels["case"] == PRICE_NOT_AVAILABLE
        assert labels["unit_equivalent"] is None
        assert orderable_units(pair) == [UnitType.PIECE]

    def test_unit_equivalent_label(self):
        pair = resolve_price_pair({"sell_per_case": "11.00", "units_per_case": 12})
        assert price_pair_labels(pair)["unit_equivalent"] == "≈ $0.92/pc"
