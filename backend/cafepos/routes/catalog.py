# Overview: Flask API routes for the menu catalog and product edits.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_user, current_user_id
from ..pos.terminals import get_terminal
from ..services import catalog_service
from ..services.catalog_service import CatalogError
from ..validation import ValidationError


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.get("/catalog")
@require_user
def get_catalog_route():
    """
    Menu grid for this terminal's catalog snapshot.

    Query: category_id (omit for All), search
    """
    category_id = request.args.get("category_id", type=int)
    search = request.args.get("search", "")

    terminal = get_terminal(current_user_id())
    with terminal.lock:
        catalog = terminal.ensure_catalog()
    return jsonify(catalog.to_dict(category_id=category_id, search=search)), 200


@catalog_bp.post("/catalog/refresh")
@require_user
def refresh_catalog_route():
    terminal = get_terminal(current_user_id())
    with terminal.lock:
        catalog = terminal.refresh_catalog()
    return jsonify(catalog.to_dict()), 200


@catalog_bp.get("/catalog/categories")
@require_user
def list_categories_route():
    categories = catalog_service.list_categories()
    return jsonify({"items": [c.to_dict() for c in categories]}), 200


@catalog_bp.get("/products")
@require_user
def list_products_route():
    """Inventory-screen product list with category filter options."""
    products = catalog_service.list_products()
    filtered = catalog_service.search_products(
        search=request.args.get("search", ""),
        category_name=request.args.get("category", ""),
    )
    return jsonify({
        "items": [p.to_dict() for p in filtered],
        "count": len(filtered),
        "categories": catalog_service.unique_category_names(products),
    }), 200


@catalog_bp.patch("/products/<int:product_id>")
@require_user
def update_product_route(product_id: int):
    """Edit price_cents, stock and status of a menu product."""
    try:
        product = catalog_service.update_product(product_id, request.get_json(silent=True))
        return jsonify({"product": product.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CatalogError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500
