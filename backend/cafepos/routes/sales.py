# Overview: Flask API routes for reading committed sales.

# backend/cafepos/routes/sales.py
"""Sales are created only by checkout confirmation; these routes are read-only."""

from flask import Blueprint, jsonify

from ..decorators import require_user
from ..services import sales_service


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_user
def list_sales_route():
    sales = sales_service.list_sales()
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<int:sale_id>")
@require_user
def get_sale_route(sale_id: int):
    """Get sale with items."""
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404

    return jsonify({
        "sale": sale.to_dict(),
        "items": [item.to_dict() for item in sale.items],
    }), 200
