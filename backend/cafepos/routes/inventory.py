# Overview: Flask API routes for back-of-house supplies.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_user
from ..services import inventory_service
from ..services.inventory_service import InventoryError
from ..validation import ValidationError


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/supplies")


@inventory_bp.get("")
@require_user
def list_supplies_route():
    supplies = inventory_service.list_supplies(search=request.args.get("search", ""))
    return jsonify({"items": [s.to_dict() for s in supplies], "count": len(supplies)}), 200


@inventory_bp.post("")
@require_user
def create_supply_route():
    """
    Add a supply.

    Requires: name, category. Status is derived from stock and min_stock.
    """
    try:
        supply = inventory_service.create_supply(request.get_json(silent=True) or {})
        return jsonify({"supply": supply.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create supply")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.put("/<int:supply_id>")
@require_user
def update_supply_route(supply_id: int):
    try:
        supply = inventory_service.update_supply(supply_id, request.get_json(silent=True) or {})
        return jsonify({"supply": supply.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except InventoryError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update supply")
        return jsonify({"error": "Internal server error"}), 500
