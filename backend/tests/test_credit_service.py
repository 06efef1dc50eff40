from decimal import Decimal

import pytest

from wholesale.extensions import db
from wholesale.models import OrderCreditApplication, VendorCreditLedgerEntry
from wholesale.services import credit_service, invoice_service, order_service
from wholesale.services.credit_service import CreditError
from wholesale.services.order_service import OrderNotFoundError

DISTRIBUTOR_ID = 1
VENDOR_ID = 7


@pytest.fixture
def priced_order(db_session, order, chips_vendor_case_override):
    # 2 cases at 11.00 + 5 pieces at 1.10 = 27.50
    product_id = chips_vendor_case_override.product_id
    order_service.add_order_item(order.id, product_id, "case", 2)
    order_service.add_order_item(order.id, product_id, "piece", 5)
    return order


def _ledger_types(order_id=None):
    q = db.session.query(VendorCreditLedgerEntry)
    if order_id is not None:
        q = q.filter_by(order_id=order_id)
    return [entry.type for entry in q.order_by(VendorCreditLedgerEntry.id)]


class TestAddAndDeduct:
    def test_balance_is_derived_from_ledger(self, db_session):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, "50")
        credit_service.deduct_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 20, note="Correction")

        assert credit_service.get_vendor_credit_balance(DISTRIBUTOR_ID, VENDOR_ID) == Decimal("30.00")
        assert _ledger_types() == ["credit_add", "credit_deduct"]

    def test_balances_are_scoped_per_vendor(self, db_session):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 50)
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID + 1, 5)

        assert credit_service.get_vendor_credit_balance(DISTRIBUTOR_ID, VENDOR_ID) == Decimal("50.00")
        assert credit_service.get_vendor_credit_balance(DISTRIBUTOR_ID + 1, VENDOR_ID) == Decimal("0.00")

    @pytest.mark.parametrize("amount", [0, -5, "abc", None])
    def test_amount_must_be_positive(self, db_session, amount):
        with pytest.raises(CreditError, match="Enter an amount greater than 0."):
            credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, amount)

    def test_deduct_beyond_balance_is_rejected(self, db_session):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 10)

        with pytest.raises(CreditError, match="exceeds available credit"):
            credit_service.deduct_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, "10.01")
        assert _ledger_types() == ["credit_add"]

    def test_ledger_lists_newest_first(self, db_session):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 10)
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 20)

        entries = credit_service.list_ledger(DISTRIBUTOR_ID, VENDOR_ID)
        assert [entry.amount for entry in entries] == [Decimal("20.00"), Decimal("10.00")]


class TestApplyToOrder:
    def test_apply_then_reduce_writes_apply_and_reversal(self, db_session, priced_order):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 50)

        credit_service.apply_vendor_credit_to_order(priced_order.id, "20.00")
        assert credit_service.get_vendor_credit_balance(DISTRIBUTOR_ID, VENDOR_ID) == Decimal("30.00")

        application = credit_service.apply_vendor_credit_to_order(priced_order.id, 5)
        assert application.applied_amount == Decimal("5.00")
        assert credit_service.get_vendor_credit_balance(DISTRIBUTOR_ID, VENDOR_ID) == Decimal("45.00")
        assert _ledger_types(priced_order.id) == ["credit_apply", "credit_reversal"]

        view = order_service.get_order_view(priced_order.id)
        assert view["credit_applied"] == 5.0
        assert view["amount_due"] == 22.5

    def test_cannot_exceed_order_total(self, db_session, priced_order):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 100)

        with pytest.raises(CreditError) as exc:
            credit_service.apply_vendor_credit_to_order(priced_order.id, "27.51")
        assert exc.value.details["max_applicable"] == 27.5

        credit_service.apply_vendor_credit_to_order(priced_order.id, "27.50")
        assert order_service.get_order_view(priced_order.id)["amount_due"] == 0.0

    def test_cannot_exceed_available_balance(self, db_session, priced_order):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 10)
        credit_service.apply_vendor_credit_to_order(priced_order.id, 10)

        # Balance is now 0, but the 10 already on this order can be kept
        credit_service.apply_vendor_credit_to_order(priced_order.id, 10)
        with pytest.raises(CreditError):
            credit_service.apply_vendor_credit_to_order(priced_order.id, 11)
        assert _ledger_types(priced_order.id) == ["credit_apply"]

    def test_zero_releases_credit(self, db_session, priced_order):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 10)
        credit_service.apply_vendor_credit_to_order(priced_order.id, 10)
        credit_service.apply_vendor_credit_to_order(priced_order.id, 0)

        assert credit_service.get_order_credit_applied(priced_order.id) == Decimal("0.00")
        assert credit_service.get_vendor_credit_balance(DISTRIBUTOR_ID, VENDOR_ID) == Decimal("10.00")

    def test_negative_amount_rejected(self, db_session, priced_order):
        with pytest.raises(CreditError):
            credit_service.apply_vendor_credit_to_order(priced_order.id, -1)

    def test_unknown_order_is_not_found(self, db_session):
        with pytest.raises(OrderNotFoundError):
            credit_service.apply_vendor_credit_to_order(999999, 1)

    def test_invoice_links_the_application(self, db_session, priced_order):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 10)
        credit_service.apply_vendor_credit_to_order(priced_order.id, 10)

        invoice = invoice_service.generate_invoice(priced_order.id)
        application = db.session.query(OrderCreditApplication).filter_by(order_id=priced_order.id).one()
        assert application.invoice_id == invoice.id

        view = invoice_service.get_invoice_view(invoice.id)
        assert view["credit_applied"] == 10.0
        assert view["amount_due"] == 17.5

    def test_credit_after_invoice_is_tagged_with_invoice(self, db_session, priced_order):
        credit_service.add_vendor_credit(DISTRIBUTOR_ID, VENDOR_ID, 10)
        invoice = invoice_service.generate_invoice(priced_order.id)

        credit_service.apply_vendor_credit_to_order(priced_order.id, 4)

        entry = db.session.query(VendorCreditLedgerEntry).filter_by(type="credit_apply").one()
        assert entry.invoice_id == invoice.id
        assert invoice_service.get_invoice_view(invoice.id)["amount_due"] == 23.5
