# Overview: Flask API routes for effective prices, catalog price rows, and bulk field targets.

# backend/wholesale/routes/pricing.py
"""
Pricing API Routes

DESIGN:
- Read-only: nothing here writes prices or order lines
- A missing price is data ("Price Not Available"), not an error response
- Caller identity is resolved upstream; distributor_id/vendor_id are query params
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import catalog_pricing_service
from ..services.catalog_pricing_service import PricingLookupError
from ..services.bulk_price_targets import (
    get_price_unit_for_bulk_target,
    parse_numeric_input,
    resolve_bulk_price_field_target,
    to_legacy_bulk_price_field,
)
from ..services.price_resolver import coerce_unit_type


pricing_bp = Blueprint("pricing", __name__, url_prefix="/api/pricing")


@pricing_bp.get("/effective")
def effective_price_route():
    """
    Effective price of one product for one vendor and unit.

    Query params: distributor_id, vendor_id (optional), product_id, unit (piece|case)

    Returns:
        200: {"product_id", "unit_type", "price", "source", "label"}
        400: Invalid input
        404: Product not found
    """
    try:
        distributor_id = request.args.get("distributor_id", type=int)
        vendor_id = request.args.get("vendor_id", type=int)
        product_id = request.args.get("product_id", type=int)
        unit_type = coerce_unit_type(request.args.get("unit", "piece"))

        if not distributor_id or not product_id:
            return jsonify({"error": "distributor_id and product_id required"}), 400
        if unit_type is None:
            return jsonify({"error": 'unit must be "piece" or "case"'}), 400

        result = catalog_pricing_service.get_effective_price(
            distributor_id=distributor_id,
            vendor_id=vendor_id,
            product_id=product_id,
            unit_type=unit_type,
        )
        return jsonify(result), 200

    except PricingLookupError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to resolve effective price")
        return jsonify({"error": "Internal server error"}), 500


@pricing_bp.get("/catalog")
def catalog_route():
    """
    Vendor-facing catalog with both unit prices per product.

    Query params: distributor_id, vendor_id (optional), category_id (optional)
    """
    try:
        distributor_id = request.args.get("distributor_id", type=int)
        if not distributor_id:
            return jsonify({"error": "distributor_id required"}), 400

        items = catalog_pricing_service.catalog_prices(
            distributor_id=distributor_id,
            vendor_id=request.args.get("vendor_id", type=int),
            category_id=request.args.get("category_id", type=int),
        )
        return jsonify({"items": items, "count": len(items)}), 200

    except Exception:
        current_app.logger.exception("Failed to load catalog prices")
        return jsonify({"error": "Internal server error"}), 500


@pricing_bp.post("/bulk-targets/resolve")
def resolve_bulk_targets_route():
    """
    Validate a batch of bulk price edits without applying them.

    Request body:
    {
        "rows": [
            {"field_target": "SELL_CASE", "value": "33.00"},
            {"field": "cost_price", "value": "1.10"}
        ]
    }

    Each row is answered on its own; a bad row never fails the batch.
    """
    try:
        data = request.get_json() or {}
        rows = data.get("rows")
        if not isinstance(rows, list):
            return jsonify({"error": "rows must be a list"}), 400

        results = []
        for index, row in enumerate(rows):
            row = row if isinstance(row, dict) else {}
            target = resolve_bulk_price_field_target(row.get("field_target"), row.get("field"))
            if not target.ok:
                results.append({"index": index, "ok": False, "error": target.error})
                continue

            value = parse_numeric_input(row.get("value"), "value")
            if not value.ok:
                results.append({"index": index, "ok": False, "error": value.error})
                continue

            results.append({
                "index": index,
                "ok": True,
                "field_target": target.value.value,
                "price_unit": get_price_unit_for_bulk_target(target.value).value,
                "legacy_field": to_legacy_bulk_price_field(target.value),
                "value": float(value.value),
            })

        return jsonify({
            "results": results,
            "valid": sum(1 for r in results if r["ok"]),
            "invalid": sum(1 for r in results if not r["ok"]),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to resolve bulk price targets")
        return jsonify({"error": "Internal server error"}), 500
