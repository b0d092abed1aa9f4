# Overview: Checkout settlement; turns a confirmed cart into sale records and stock decrements.

"""
Settlement Service

WHY: Confirming payment is the only place a cart becomes persisted data.
The sequence is: sale header, then per cart line (in cart order) a sale item
followed by the product stock decrement.

MODES (Config.SETTLEMENT_MODE):
- atomic: every write goes into one transaction, committed at the end.
  Any failure rolls the whole checkout back.
- sequential: every write is committed on its own. A failure leaves the
  writes before it committed and nothing is undone; retrying writes a
  second sale header.

Validation failures never mutate anything and leave the register in
PaymentCapture. Write failures also return the register to PaymentCapture
with the cart and amount intact so the operator can retry.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..formatting import format_money, units_to_cents
from ..models import Sale
from ..pos.checkout import CheckoutController
from ..pos.terminals import Terminal
from . import catalog_service, sales_service


SETTLEMENT_ATOMIC = "atomic"
SETTLEMENT_SEQUENTIAL = "sequential"

VALID_SETTLEMENT_MODES = [SETTLEMENT_ATOMIC, SETTLEMENT_SEQUENTIAL]

SUCCESS_MESSAGE = "Payment Successful!"
FAILURE_MESSAGE = "Checkout failed."


class SettlementValidationError(Exception):
    """Checkout cannot be confirmed as entered; nothing was written."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SettlementError(Exception):
    """A write in the settlement sequence failed."""
    def __init__(self, message: str = FAILURE_MESSAGE, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# =============================================================================
# VALIDATION
# =============================================================================

def validate_checkout(controller: CheckoutController) -> dict[int, int]:
    """
    Check the confirm preconditions in order.

    Stock is re-read from the database so changes made by other terminals
    since the cart was built are caught.

    Returns:
        Current stock per product id in the cart.

    Raises:
        SettlementValidationError: with a message per failed precondition
    """
    cart = controller.cart
    if cart.is_empty():
        raise SettlementValidationError("Your cart is empty. Cannot proceed with checkout.")

    amount_given = controller.amount_given
    if amount_given is None:
        raise SettlementValidationError("Please enter the amount given.")

    change = controller.change_due_cents
    if change < 0:
        raise SettlementValidationError(
            f"Insufficient amount. You still need {format_money(-change)} more.",
            details={"short_cents": -change},
        )

    current_stock: dict[int, int] = {}
    for line in cart:
        product = catalog_service.get_product(line.product.id)
        stock = product.stock if product else 0
        if line.quantity > stock:
            raise SettlementValidationError(
                f"Not enough stock for {line.product.name}",
                details={
                    "product_id": line.product.id,
                    "requested_quantity": line.quantity,
                    "on_hand": stock,
                },
            )
        current_stock[line.product.id] = stock

    return current_stock


# =============================================================================
# WRITES
# =============================================================================

def _write_sale(controller: CheckoutController, user_id: str, current_stock: dict[int, int], *, commit: bool, progress: dict) -> Sale:
    total_cents = controller.total_cents

    progress["stage"] = "sale"
    sale = sales_service.insert_sale(
        total_amount_cents=total_cents,
        cash_received_cents=units_to_cents(controller.amount_given),
        change_amount_cents=controller.change_due_cents,
        user_id=user_id,
        commit=commit,
    )
    progress["sale_id"] = sale.id

    for line in controller.cart:
        product_id = line.product.id

        progress["stage"] = f"sale_item:{product_id}"
        sales_service.insert_sale_item(
            sale_id=sale.id,
            product_id=product_id,
            quantity=line.quantity,
            unit_price_cents=line.product.price_cents,
            commit=commit,
        )

        progress["stage"] = f"stock:{product_id}"
        catalog_service.update_product_stock(
            product_id,
            current_stock[product_id] - line.quantity,
            commit=commit,
        )

    return sale


def _settlement_mode() -> str:
    mode = current_app.config.get("SETTLEMENT_MODE", SETTLEMENT_ATOMIC)
    if mode not in VALID_SETTLEMENT_MODES:
        raise SettlementError(f"Invalid settlement mode: {mode}")
    return mode


def settle(terminal: Terminal) -> Sale:
    """
    Confirm payment for the terminal's cart and persist the sale.

    Returns:
        The committed Sale

    Raises:
        CheckoutError: register not in PaymentCapture (includes a confirm
            while another settlement for this terminal is in flight)
        SettlementValidationError: a precondition failed; nothing written
        SettlementError: a write failed; see module docstring for what stays
    """
    controller = terminal.controller
    mode = _settlement_mode()

    with terminal.lock:
        controller.require_payment_capture()
        current_stock = validate_checkout(controller)
        controller.begin_settlement()

    # Captured before any commit expires the Sale instance
    total_cents = controller.total_cents
    cash_cents = units_to_cents(controller.amount_given)
    change_cents = controller.change_due_cents

    progress: dict = {"stage": None, "sale_id": None}
    try:
        if mode == SETTLEMENT_ATOMIC:
            sale = _write_sale(controller, terminal.user_id, current_stock, commit=False, progress=progress)
            db.session.commit()
        else:
            sale = _write_sale(controller, terminal.user_id, current_stock, commit=True, progress=progress)
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception(
            "Settlement failed at %s (mode=%s, sale_id=%s, user=%s)",
            progress["stage"], mode, progress["sale_id"], terminal.user_id,
        )
        with terminal.lock:
            controller.fail_settlement()
        details = dict(progress)
        details["mode"] = mode
        if mode == SETTLEMENT_ATOMIC:
            details["sale_id"] = None
        raise SettlementError(FAILURE_MESSAGE, details=details) from exc

    # Committed: no database access until the register is back in Idle
    sale_id = progress["sale_id"]
    with terminal.lock:
        controller.complete_settlement()

    current_app.logger.info(
        "Sale %s committed: total=%s cash=%s change=%s user=%s",
        sale_id, total_cents, cash_cents, change_cents, terminal.user_id,
    )

    with terminal.lock:
        try:
            terminal.refresh_catalog()
        except SQLAlchemyError:
            # Sale is committed; reload lazily on next catalog read
            db.session.rollback()
            terminal.catalog = None
            current_app.logger.warning("Catalog refresh after sale %s failed", sale_id)

    return sale

