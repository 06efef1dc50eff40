# Overview: Flask API routes for reading generated invoices.

from flask import Blueprint, request, jsonify, current_app

from ..services import invoice_service
from ..services.invoice_service import InvoiceNotFoundError


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("/<int:invoice_id>")
def get_invoice_route(invoice_id: int):
    """Invoice rendered from its snapshot lines only."""
    try:
        distributor_id = request.args.get("distributor_id", type=int)
        return jsonify(invoice_service.get_invoice_view(invoice_id, distributor_id)), 200

    except InvoiceNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load invoice")
        return jsonify({"error": "Internal server error"}), 500
