# Overview: Flask API routes for orders, order lines, invoice generation, order credit and payments.

# backend/wholesale/routes/orders.py
"""Order API routes"""

from flask import Blueprint, request, jsonify, current_app

from ..services import order_service, invoice_service, credit_service, payment_service
from ..services.order_service import OrderError, OrderNotFoundError
from ..services.invoice_service import InvoiceError, InvoiceAlreadyGeneratedError, InvoiceNotFoundError
from ..services.credit_service import CreditError
from ..services.payment_service import PaymentError
from ..services.catalog_pricing_service import PricingLookupError
from ..services.price_resolver import MissingEffectivePriceError
from ..services.money import money_to_json


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("/")
def create_order_route():
    try:
        data = request.get_json() or {}
        distributor_id = data.get("distributor_id")
        vendor_id = data.get("vendor_id")

        if not distributor_id or not vendor_id:
            return jsonify({"error": "distributor_id and vendor_id required"}), 400

        order = order_service.create_order(distributor_id, vendor_id)
        return jsonify({"order": order.to_dict()}), 201

    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    """Order with normalized lines, totals, credit applied and amount due."""
    try:
        distributor_id = request.args.get("distributor_id", type=int)
        return jsonify(order_service.get_order_view(order_id, distributor_id)), 200

    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/items")
def add_item_route(order_id: int):
    """
    Add a line to an order.

    Request body (product line):
    {"product_id": 12, "order_unit": "case", "qty": 2}

    Request body (manual line):
    {"manual": true, "name": "Delivery fee", "unit_price": "15.00", "qty": 1}

    Returns:
        201: Line created
        400: Invalid input, unit not allowed, or no price for the unit
        404: Order or product not found
        409: Order already invoiced
    """
    try:
        data = request.get_json() or {}

        if data.get("manual"):
            item = order_service.add_manual_item(
                order_id,
                data.get("name"),
                data.get("unit_price"),
                data.get("qty"),
            )
        else:
            product_id = data.get("product_id")
            if not product_id:
                return jsonify({"error": "product_id required"}), 400
            item = order_service.add_order_item(
                order_id,
                product_id,
                data.get("order_unit", "piece"),
                data.get("qty"),
            )

        return jsonify({
            "item": {
                "id": item.id,
                "order_unit": item.order_unit,
                "unit_price": money_to_json(item.unit_price),
                "price_source": item.price_source,
            }
        }), 201

    except MissingEffectivePriceError as e:
        return jsonify({"error": str(e), "unit_type": e.unit_type.value}), 400
    except (OrderNotFoundError, PricingLookupError) as e:
        return jsonify({"error": str(e)}), 404
    except OrderError as e:
        status = 409 if e.details.get("status") == "invoiced" else 400
        return jsonify({"error": str(e)}), status
    except Exception:
        current_app.logger.exception("Failed to add order item")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<int:order_id>/items/<int:item_id>")
def edit_item_route(order_id: int, item_id: int):
    """
    Edit a line before invoicing.

    Request body: any of {"edited_qty", "edited_unit_price", "edited_name", "user_id"}
    """
    try:
        data = request.get_json() or {}
        order_service.edit_order_item(
            order_id,
            item_id,
            edited_qty=data.get("edited_qty"),
            edited_unit_price=data.get("edited_unit_price"),
            edited_name=data.get("edited_name"),
            user_id=data.get("user_id"),
        )
        return jsonify(order_service.get_order_view(order_id)), 200

    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except OrderError as e:
        status = 409 if e.details.get("status") == "invoiced" else 400
        return jsonify({"error": str(e)}), status
    except Exception:
        current_app.logger.exception("Failed to edit order item")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>/items/<int:item_id>")
def remove_item_route(order_id: int, item_id: int):
    try:
        order_service.remove_order_item(order_id, item_id)
        return jsonify(order_service.get_order_view(order_id)), 200

    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except OrderError as e:
        status = 409 if e.details.get("status") == "invoiced" else 400
        return jsonify({"error": str(e)}), status
    except Exception:
        current_app.logger.exception("Failed to remove order item")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>/taxes")
def set_taxes_route(order_id: int):
    """Request body: {"taxes": [{"name": "HST", "type": "percent", "rate_percent": 13}]}"""
    try:
        data = request.get_json() or {}
        taxes = data.get("taxes")
        if not isinstance(taxes, list):
            return jsonify({"error": "taxes must be a list"}), 400

        order_service.set_order_taxes(order_id, taxes)
        return jsonify(order_service.get_order_view(order_id)), 200

    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except OrderError as e:
        status = 409 if e.details.get("status") == "invoiced" else 400
        return jsonify({"error": str(e)}), status
    except Exception:
        current_app.logger.exception("Failed to set order taxes")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/invoice")
def generate_invoice_route(order_id: int):
    """
    Generate the invoice for an order (once).

    Returns:
        201: Invoice view
        400: Order cancelled or empty
        404: Order not found
        409: Invoice already generated
    """
    try:
        invoice = invoice_service.generate_invoice(order_id)
        return jsonify(invoice_service.get_invoice_view(invoice.id)), 201

    except InvoiceNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InvoiceAlreadyGeneratedError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except InvoiceError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to generate invoice")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/credit")
def apply_credit_route(order_id: int):
    """
    Set the vendor credit applied to an order.

    Request body: {"amount": "25.00", "note": "...", "user_id": 3}
    The amount replaces whatever was applied before; 0 releases it.
    """
    try:
        data = request.get_json() or {}
        if "amount" not in data:
            return jsonify({"error": "amount required"}), 400

        application = credit_service.apply_vendor_credit_to_order(
            order_id,
            data.get("amount"),
            note=data.get("note"),
            user_id=data.get("user_id"),
        )
        return jsonify({
            "application": application.to_dict(),
            "order": order_service.get_order_view(order_id),
        }), 200

    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except CreditError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to apply credit")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/payments")
def record_payment_route(order_id: int):
    """
    Record a payment received against an order.

    Request body: {"amount": "40.00", "method": "cheque", "note": "...", "user_id": 3}

    Returns:
        201: Payment plus total_amount, amount_paid, amount_due, balance_due
        400: Invalid amount, cancelled order, or more than the balance due
        404: Order not found
    """
    try:
        data = request.get_json() or {}
        if "amount" not in data:
            return jsonify({"error": "amount required"}), 400

        payment, summary = payment_service.record_order_payment(
            order_id,
            data.get("amount"),
            method=data.get("method"),
            note=data.get("note"),
            user_id=data.get("user_id"),
        )
        return jsonify({
            "payment": payment.to_dict(),
            **payment_service.summary_to_json(summary),
        }), 201

    except OrderNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PaymentError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return jsonify({"error": "Internal server error"}), 500
