"""Invoice generation: snapshots are frozen once and never re-derived."""

import re
from decimal import Decimal

import pytest

from wholesale.extensions import db
from wholesale.models import Invoice, InvoiceItem, Order, OrderItem, OrderTax
from wholesale.services import invoice_service, order_service
from wholesale.services.invoice_service import (
    InvoiceAlreadyGeneratedError,
    InvoiceError,
    InvoiceNotFoundError,
)
from wholesale.services.order_service import OrderError


@pytest.fixture
def filled_order(db_session, order, chips_vendor_case_override):
    product_id = chips_vendor_case_override.product_id
    order_service.add_order_item(order.id, product_id, "case", 2)
    order_service.add_order_item(order.id, product_id, "piece", 5)
    db_session.add(OrderTax(order_id=order.id, name="HST", type="percent", rate_percent=Decimal("13")))
    db_session.commit()
    return order


class TestGenerateInvoice:
    def test_totals_and_number(self, db_session, filled_order):
        invoice = invoice_service.generate_invoice(filled_order.id)

        assert invoice.subtotal == Decimal("27.50")
        assert invoice.tax_total == Decimal("3.58")
        assert invoice.total == Decimal("31.08")
        assert invoice.invoice_number == f"INV-{invoice.id:06d}"
        assert re.fullmatch(r"INV-\d{6}", invoice.invoice_number)
        assert db.session.get(Order, filled_order.id).status == "invoiced"

        taxes = invoice.taxes
        assert len(taxes) == 1
        assert taxes[0].amount == Decimal("3.58")

    def test_snapshot_columns_are_written(self, db_session, filled_order):
        invoice = invoice_service.generate_invoice(filled_order.id)

        case_item = (
            db.session.query(InvoiceItem)
            .filter_by(invoice_id=invoice.id, order_mode="case")
            .one()
        )
        assert case_item.product_name_snapshot == "Sea Salt Chips"
        assert case_item.category_name_snapshot == "Snacks"
        assert case_item.quantity_snapshot == Decimal("2")
        assert case_item.case_price_snapshot == Decimal("11.00")
        assert case_item.unit_price_snapshot == Decimal("0.92")
        assert case_item.units_per_case_snapshot == 12
        assert case_item.line_total_snapshot == Decimal("22.00")
        # Legacy columns mirror the applicable price and total
        assert case_item.unit_price == Decimal("11.00")
        assert case_item.ext_amount == Decimal("22.00")

    def test_invoice_ignores_later_price_and_line_changes(self, db_session, filled_order, chips):
        invoice = invoice_service.generate_invoice(filled_order.id)
        before = invoice_service.get_invoice_view(invoice.id)

        chips.sell_per_unit = Decimal("9.99")
        chips.name = "Renamed Chips"
        for item in db.session.query(OrderItem).filter_by(order_id=filled_order.id):
            item.unit_price = Decimal("500")
        db_session.commit()

        after = invoice_service.get_invoice_view(invoice.id)
        assert after["lines"] == before["lines"]
        assert after["total"] == before["total"] == 31.08
        assert after["lines"][0]["name"] == "Sea Salt Chips"

    def test_order_view_uses_invoice_totals_once_invoiced(self, db_session, filled_order):
        invoice_service.generate_invoice(filled_order.id)

        for item in db.session.query(OrderItem).filter_by(order_id=filled_order.id):
            item.unit_price = Decimal("500")
        db_session.commit()

        view = order_service.get_order_view(filled_order.id)
        assert view["total"] == 31.08
        assert view["invoice_id"] is not None

    def test_second_generation_is_rejected(self, db_session, filled_order):
        invoice_service.generate_invoice(filled_order.id)

        with pytest.raises(InvoiceAlreadyGeneratedError):
            invoice_service.generate_invoice(filled_order.id)
        assert db.session.query(Invoice).filter_by(order_id=filled_order.id).count() == 1

    def test_invoiced_order_lines_are_locked(self, db_session, filled_order, chips):
        invoice_service.generate_invoice(filled_order.id)
        item_id = filled_order.items[0].id

        with pytest.raises(OrderError, match="invoiced"):
            order_service.add_order_item(filled_order.id, chips.id, "piece", 1)
        with pytest.raises(OrderError, match="invoiced"):
            order_service.edit_order_item(filled_order.id, item_id, edited_qty=3)

    def test_empty_order_cannot_be_invoiced(self, db_session, order):
        with pytest.raises(InvoiceError, match="no lines"):
            invoice_service.generate_invoice(order.id)

    def test_cancelled_order_cannot_be_invoiced(self, db_session, filled_order):
        filled_order.status = "cancelled"
        db_session.commit()

        with pytest.raises(InvoiceError, match="cancelled"):
            invoice_service.generate_invoice(filled_order.id)

    def test_unknown_order(self, db_session):
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.generate_invoice(999999)


def test_edited_values_are_frozen(db_session, order, chips):
    item = order_service.add_order_item(order.id, chips.id, "piece", 5)
    order_service.edit_order_item(order.id, item.id, edited_qty=4, edited_name="Chips (promo)")

    invoice = invoice_service.generate_invoice(order.id)
    view = invoice_service.get_invoice_view(invoice.id)

    line = view["lines"][0]
    assert line["name"] == "Chips (promo)"
    assert line["quantity"] == 4
    assert line["line_total"] == 4.4
    assert view["subtotal"] == 4.4


def test_invoice_lookup_is_scoped_to_distributor(db_session, filled_order):
    invoice = invoice_service.generate_invoice(filled_order.id)

    with pytest.raises(InvoiceNotFoundError):
        invoice_service.get_invoice_view(invoice.id, distributor_id=2)
