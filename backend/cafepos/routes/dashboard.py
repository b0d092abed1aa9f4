from flask import Blueprint, jsonify, request, current_app

from ..decorators import require_user
from ..services import analytics_service
from ..time_utils import parse_iso_date


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_user
def dashboard_route():
    """
    Top cards and chart series.

    Query: today (YYYY-MM-DD, defaults to the server's UTC date)
    """
    try:
        today = parse_iso_date(request.args.get("today"))
    except ValueError:
        return jsonify({"error": "today must be an ISO-8601 date"}), 400

    try:
        metrics = analytics_service.build_dashboard(today=today)
        return jsonify(metrics.to_dict()), 200

    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/inventory")
@require_user
def dashboard_inventory_route():
    try:
        rows = analytics_service.build_inventory_table(search=request.args.get("search", ""))
        return jsonify({"items": rows, "count": len(rows)}), 200

    except Exception:
        current_app.logger.exception("Failed to build inventory table")
        return jsonify({"error": "Internal server error"}), 500
