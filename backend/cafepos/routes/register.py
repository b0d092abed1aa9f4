# Overview: Flask API routes for the register: cart, cash entry and checkout confirmation.

"""
Register routes

Every response carries the terminal view (state, cart, totals, amount and
change) so the client can render straight from it.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_user, current_user_id
from ..pos.checkout import CheckoutError
from ..pos.terminals import get_terminal
from ..services import settlement_service
from ..services.settlement_service import SettlementError, SettlementValidationError
from ..validation import ValidationError, coerce_int


register_bp = Blueprint("register", __name__, url_prefix="/api/register")


def _view(terminal, **extra):
    body = terminal.controller.to_dict()
    body.update(extra)
    return body


def _json_int(data: dict, key: str, *, nullable: bool = False):
    if key not in data:
        raise ValidationError(f"{key} required")
    value = data.get(key)
    if value is None or value == "":
        if nullable:
            return None
        raise ValidationError(f"{key} required")
    return coerce_int(value, key)


def _run(action):
    """Apply a controller action under the terminal lock and render the view."""
    terminal = get_terminal(current_user_id())
    try:
        with terminal.lock:
            result = action(terminal)
            return jsonify(_view(terminal, changed=bool(result))), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CheckoutError as e:
        return jsonify(_view(terminal, error=str(e))), 409


@register_bp.get("")
@require_user
def get_register_route():
    terminal = get_terminal(current_user_id())
    with terminal.lock:
        return jsonify(_view(terminal)), 200


# =============================================================================
# CART
# =============================================================================

@register_bp.post("/cart/items")
@require_user
def add_to_cart_route():
    data = request.get_json(silent=True) or {}

    def _add(terminal):
        product_id = _json_int(data, "product_id")
        product = terminal.ensure_catalog().get(product_id)
        if product is None:
            raise ValidationError(f"Product {product_id} not found")
        return terminal.controller.add_to_cart(product)

    return _run(_add)


@register_bp.put("/cart/items/<int:product_id>")
@require_user
def set_quantity_route(product_id: int):
    data = request.get_json(silent=True) or {}
    return _run(lambda t: t.controller.set_quantity(product_id, _json_int(data, "quantity")))


@register_bp.post("/cart/items/<int:product_id>/increment")
@require_user
def increment_route(product_id: int):
    return _run(lambda t: t.controller.increment(product_id))


@register_bp.post("/cart/items/<int:product_id>/decrement")
@require_user
def decrement_route(product_id: int):
    return _run(lambda t: t.controller.decrement(product_id))


@register_bp.delete("/cart/items/<int:product_id>")
@require_user
def remove_route(product_id: int):
    return _run(lambda t: t.controller.remove(product_id))


@register_bp.post("/cart/open")
@require_user
def open_cart_route():
    return _run(lambda t: t.controller.open_cart())


@register_bp.post("/cart/close")
@require_user
def close_cart_route():
    return _run(lambda t: t.controller.close_cart())


# =============================================================================
# CHECKOUT
# =============================================================================

@register_bp.post("/checkout")
@require_user
def begin_checkout_route():
    return _run(lambda t: t.controller.begin_checkout())


@register_bp.post("/checkout/cancel")
@require_user
def cancel_checkout_route():
    return _run(lambda t: t.controller.cancel())


@register_bp.post("/checkout/digit")
@require_user
def press_digit_route():
    data = request.get_json(silent=True) or {}
    return _run(lambda t: t.controller.press_digit(_json_int(data, "digit")))


@register_bp.post("/checkout/quick-amount")
@require_user
def quick_amount_route():
    data = request.get_json(silent=True) or {}
    return _run(lambda t: t.controller.quick_amount(_json_int(data, "amount")))


@register_bp.post("/checkout/clear")
@require_user
def clear_amount_route():
    return _run(lambda t: t.controller.clear_amount())


@register_bp.put("/checkout/amount")
@require_user
def set_amount_route():
    data = request.get_json(silent=True) or {}
    return _run(lambda t: t.controller.set_exact_amount(_json_int(data, "amount", nullable=True)))


@register_bp.post("/checkout/confirm")
@require_user
def confirm_checkout_route():
    """
    Confirm payment and settle the sale.

    400: a confirm precondition failed (nothing written)
    409: register not in checkout, or a settlement is already running
    502: a write failed; register stays in checkout for retry
    """
    terminal = get_terminal(current_user_id())
    try:
        sale = settlement_service.settle(terminal)
        return jsonify(_view(
            terminal,
            ok=True,
            message=settlement_service.SUCCESS_MESSAGE,
            sale=sale.to_dict(),
        )), 201

    except SettlementValidationError as e:
        return jsonify(_view(terminal, ok=False, error=str(e), details=e.details)), 400
    except CheckoutError as e:
        return jsonify(_view(terminal, ok=False, error=str(e))), 409
    except SettlementError as e:
        return jsonify(_view(terminal, ok=False, error=str(e), details=e.details)), 502
    except Exception:
        current_app.logger.exception("Failed to confirm checkout")
        return jsonify({"error": "Internal server error"}), 500
