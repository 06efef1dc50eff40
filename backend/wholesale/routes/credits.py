# Overview: Flask API routes for vendor credit balance, ledger history, and manual adjustments.

# backend/wholesale/routes/credits.py
"""
Vendor Credit API Routes

DESIGN:
- Balance is computed from the ledger on every read
- Add/deduct append one ledger row each; nothing is edited in place
- Applying credit to an order lives under /api/orders/<id>/credit
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import credit_service
from ..services.credit_service import CreditError
from ..services.money import money_to_json


credits_bp = Blueprint("credits", __name__, url_prefix="/api/credits")


def _scope_from_args():
    return request.args.get("distributor_id", type=int), request.args.get("vendor_id", type=int)


@credits_bp.get("/balance")
def balance_route():
    try:
        distributor_id, vendor_id = _scope_from_args()
        if not distributor_id or not vendor_id:
            return jsonify({"error": "distributor_id and vendor_id required"}), 400

        balance = credit_service.get_vendor_credit_balance(distributor_id, vendor_id)
        return jsonify({
            "distributor_id": distributor_id,
            "vendor_id": vendor_id,
            "balance": money_to_json(balance),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to load credit balance")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.get("/ledger")
def ledger_route():
    """Newest first. Query params: distributor_id, vendor_id, limit (default 100)."""
    try:
        distributor_id, vendor_id = _scope_from_args()
        if not distributor_id or not vendor_id:
            return jsonify({"error": "distributor_id and vendor_id required"}), 400

        limit = min(request.args.get("limit", 100, type=int), 500)
        entries = credit_service.list_ledger(distributor_id, vendor_id, limit=limit)
        return jsonify({
            "entries": [entry.to_dict() for entry in entries],
            "count": len(entries),
            "balance": money_to_json(credit_service.get_vendor_credit_balance(distributor_id, vendor_id)),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to load credit ledger")
        return jsonify({"error": "Internal server error"}), 500


def _adjust(operation, action: str):
    try:
        data = request.get_json() or {}
        distributor_id = data.get("distributor_id")
        vendor_id = data.get("vendor_id")
        if not distributor_id or not vendor_id:
            return jsonify({"error": "distributor_id and vendor_id required"}), 400

        entry = operation(
            distributor_id,
            vendor_id,
            data.get("amount"),
            note=data.get("note"),
            user_id=data.get("user_id"),
        )
        return jsonify({
            "entry": entry.to_dict(),
            "balance": money_to_json(credit_service.get_vendor_credit_balance(distributor_id, vendor_id)),
        }), 201

    except CreditError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to %s vendor credit", action)
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.post("/add")
def add_credit_route():
    """Request body: {"distributor_id", "vendor_id", "amount", "note", "user_id"}"""
    return _adjust(credit_service.add_vendor_credit, "add")


@credits_bp.post("/deduct")
def deduct_credit_route():
    """Request body: {"distributor_id", "vendor_id", "amount", "note", "user_id"}"""
    return _adjust(credit_service.deduct_vendor_credit, "deduct")
