"""Effective price precedence: vendor override > bulk override > product default."""

from decimal import Decimal

import pytest

from wholesale.services.price_resolver import (
    MissingEffectivePriceError,
    PriceSource,
    UnitType,
    coerce_unit_type,
    compute_equivalent_case,
    compute_equivalent_unit,
    get_required_effective_price,
    resolve_effective_price,
    resolve_price_pair,
)


PRODUCT = {
    "sell_per_unit": "1.10",
    "sell_per_case": "12.00",
    "units_per_case": 12,
}


class TestPrecedence:
    def test_vendor_override_wins(self):
        result = resolve_effective_price(
            UnitType.CASE,
            PRODUCT,
            vendor_override={"price_per_case": "11.00"},
            bulk_override={"price_per_case": "11.50"},
        )
        assert result.price == Decimal("11.00")
        assert result.source is PriceSource.VENDOR_OVERRIDE

    def test_bulk_override_beats_product(self):
        result = resolve_effective_price(UnitType.PIECE, PRODUCT, bulk_override={"price_per_unit": "1.00"})
        assert result.price == Decimal("1.00")
        assert result.source is PriceSource.BULK_OVERRIDE

    def test_zero_override_is_a_price(self):
        result = resolve_effective_price(UnitType.PIECE, PRODUCT, vendor_override={"price_per_unit": 0})
        assert result.price == Decimal("0")
        assert result.source is PriceSource.VENDOR_OVERRIDE

    def test_override_for_other_unit_falls_through(self):
        # A case-only vendor override says nothing about the piece price
        result = resolve_effective_price(UnitType.PIECE, PRODUCT, vendor_override={"price_per_case": "11.00"})
        assert result.price == Decimal("1.10")
        assert result.source is PriceSource.PRODUCT_DEFAULT

    def test_malformed_override_is_absent(self):
        result = resolve_effective_price(UnitType.CASE, PRODUCT, vendor_override={"price_per_case": "abc"})
        assert result.price == Decimal("12.00")
        assert result.source is PriceSource.PRODUCT_DEFAULT

    def test_price_cents_is_the_vendor_unit_fallback(self):
        result = resolve_effective_price(UnitType.PIECE, PRODUCT, vendor_override={"price_cents": 95})
        assert result.price == Decimal("0.95")
        assert result.source is PriceSource.VENDOR_OVERRIDE

    def test_legacy_product_columns_are_fallbacks(self):
        legacy = {"sell_price": "2.25", "price_case": "24.00"}
        assert resolve_effective_price("piece", legacy).price == Decimal("2.25")
        assert resolve_effective_price("case", legacy).price == Decimal("24.00")


class TestNoConversion:
    def test_case_price_is_never_derived_from_unit_price(self):
        product = {"sell_per_unit": "0.85", "units_per_case": 24}
        result = resolve_effective_price(UnitType.CASE, product)
        assert result.price is None
        assert result.source is None

    def test_unit_price_is_never_derived_from_case_price(self):
        product = {"sell_per_case": "18.00", "units_per_case": 24}
        assert resolve_effective_price(UnitType.PIECE, product).price is None


class TestRequiredPrice:
    def test_missing_case_price_raises_with_unit_message(self):
        with pytest.raises(MissingEffectivePriceError) as exc:
            get_required_effective_price(UnitType.CASE, {"sell_per_unit": "0.85"})
        assert exc.value.unit_type is UnitType.CASE
        assert str(exc.value) == "Set case price in inventory before ordering by case."

    def test_missing_piece_price_raises_with_unit_message(self):
        with pytest.raises(MissingEffectivePriceError) as exc:
            get_required_effective_price("piece", {"sell_per_case": "18.00"})
        assert str(exc.value) == "Set unit price in inventory before ordering by piece."

    def test_zero_price_is_not_missing(self):
        result = get_required_effective_price(UnitType.PIECE, {"sell_per_unit": 0})
        assert result.price == Decimal("0")

    def test_unknown_unit_is_rejected(self):
        with pytest.raises(ValueError):
            get_required_effective_price("pallet", PRODUCT)

    def test_non_throwing_resolver_answers_unknown_unit_with_no_price(self):
        assert resolve_effective_price("pallet", PRODUCT).price is None


def test_unit_aliases():
    assert coerce_unit_type("unit") is UnitType.PIECE
    assert coerce_unit_type(" PCS ") is UnitType.PIECE
    assert coerce_unit_type("Case") is UnitType.CASE
    assert coerce_unit_type(None) is None


class TestEquivalents:
    def test_equivalent_unit_keeps_four_places(self):
        assert compute_equivalent_unit("11.00", 12) == Decimal("0.9167")

    def test_equivalent_case(self):
        assert compute_equivalent_case("1.10", 12) == Decimal("13.2000")

    def test_invalid_units_per_case_gives_no_equivalent(self):
        assert compute_equivalent_unit("11.00", 0) is None
        assert compute_equivalent_case("1.10", "x") is None


class TestPricePair:
    def test_each_unit_resolves_independently(self):
        pair = resolve_price_pair(
            {**PRODUCT, "allow_piece": True, "allow_case": True},
            vendor_override={"price_per_case": "11.00"},
        )
        assert pair.piece.price == Decimal("1.10")
        assert pair.piece.source is PriceSource.PRODUCT_DEFAULT
        assert pair.case.price == Decimal("11.00")
        assert pair.case.source is PriceSource.VENDOR_OVERRIDE
        assert pair.unit_equivalent == Decimal("0.9167")
        assert pair.case_equivalent == Decimal("13.2000")

    def test_missing_unit_has_no_equivalent(self):
        pair = resolve_price_pair({"sell_per_unit": "0.85", "units_per_case": 24})
        assert pair.case.price is None
        assert pair.unit_equivalent is None
        assert pair.units_per_case == 24
        # Absent allow flags default to allowed
        assert pair.allow_piece and pair.allow_case
