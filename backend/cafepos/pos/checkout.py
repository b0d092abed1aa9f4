"""
Checkout controller - register state machine over the cart

STATES:
- Idle: no panel open
- CartOpen: cart panel visible and editable
- PaymentCapture: checkout modal open, cash amount being entered
- Settling: settlement writes in flight; confirm is refused

TRANSITIONS:
- Idle -> CartOpen: cart mutation leaving the cart non-empty, or open_cart()
- CartOpen -> Idle: close_cart() (cart kept)
- CartOpen -> PaymentCapture: begin_checkout() (cart must be non-empty)
- PaymentCapture -> CartOpen: cancel() (amount discarded, cart kept)
- PaymentCapture -> Settling: begin_settlement()
- Settling -> Idle: complete_settlement() (cart cleared)
- Settling -> PaymentCapture: fail_settlement() (cart and amount kept)

The cart is locked while PaymentCapture or Settling is active so the total
cannot move under the amount being tendered.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from .cart import Cart
from .catalog import ProductSnapshot
from cafepos.formatting import units_to_cents

DEFAULT_QUICK_AMOUNTS = (50, 100, 500, 1000)

# Maximum cash entry: 9,999,999 whole units (999,999,900 cents)
MAX_AMOUNT_GIVEN = 9_999_999


class CheckoutError(Exception):
    """Raised when an action is not valid in the current register state."""
    pass


@dataclass(frozen=True)
class Idle:
    name = "IDLE"


@dataclass(frozen=True)
class CartOpen:
    name = "CART_OPEN"


@dataclass(frozen=True)
class PaymentCapture:
    amount_given: int | None = None
    name = "PAYMENT_CAPTURE"


@dataclass(frozen=True)
class Settling:
    amount_given: int
    name = "SETTLING"


CheckoutState = Union[Idle, CartOpen, PaymentCapture, Settling]


# =============================================================================
# DIGIT PAD
# =============================================================================

def press_digit(current: int | None, digit: int) -> int:
    """
    Append a digit to the amount as typed on the pad.

    A current value of exactly 0 is replaced, so "0" then "5" gives 5.
    """
    if isinstance(digit, bool) or not isinstance(digit, int) or not 0 <= digit <= 9:
        raise CheckoutError(f"Invalid digit: {digit!r}")
    typed = "" if current is None else str(current)
    if typed == "0":
        return digit
    amount = int(typed + str(digit))
    if amount > MAX_AMOUNT_GIVEN:
        raise CheckoutError(f"Amount given cannot exceed {MAX_AMOUNT_GIVEN}")
    return amount


def change_due_cents(amount_given: int | None, total_cents: int) -> int | None:
    """Unfloored change; negative means the amount is short. None if nothing entered."""
    if amount_given is None:
        return None
    return units_to_cents(amount_given) - total_cents


# =============================================================================
# CONTROLLER
# =============================================================================

class CheckoutController:
    def __init__(self, quick_amounts=DEFAULT_QUICK_AMOUNTS):
        self.cart = Cart()
        self.state: CheckoutState = Idle()
        self.quick_amounts = tuple(quick_amounts)

    # ------------------------------------------------------------------ cart

    def _require_cart_editable(self) -> None:
        if isinstance(self.state, (PaymentCapture, Settling)):
            raise CheckoutError("Cart cannot be changed during checkout")

    def _after_cart_change(self, changed: bool) -> bool:
        if changed and not self.cart.is_empty() and isinstance(self.state, Idle):
            self.state = CartOpen()
        return changed

    def add_to_cart(self, product: ProductSnapshot) -> bool:
        self._require_cart_editable()
        return self._after_cart_change(self.cart.add(product))

    def set_quantity(self, product_id: int, quantity: int) -> bool:
        self._require_cart_editable()
        return self._after_cart_change(self.cart.set_quantity(product_id, quantity))

    def increment(self, product_id: int) -> bool:
        self._require_cart_editable()
        return self._after_cart_change(self.cart.increment(product_id))

    def decrement(self, product_id: int) -> bool:
        self._require_cart_editable()
        return self._after_cart_change(self.cart.decrement(product_id))

    def remove(self, product_id: int) -> bool:
        self._require_cart_editable()
        return self._after_cart_change(self.cart.remove(product_id))

    def open_cart(self) -> None:
        if isinstance(self.state, (Idle, CartOpen)):
            self.state = CartOpen()
            return
        raise CheckoutError("Checkout is in progress")

    def close_cart(self) -> None:
        if isinstance(self.state, (Idle, CartOpen)):
            self.state = Idle()
            return
        raise CheckoutError("Checkout is in progress")

    # -------------------------------------------------------------- checkout

    def begin_checkout(self) -> None:
        if not isinstance(self.state, CartOpen):
            raise CheckoutError("Open the cart before checking out")
        if self.cart.is_empty():
            raise CheckoutError("Your cart is empty. Please add items before checkout.")
        self.state = PaymentCapture()

    def cancel(self) -> None:
        if not isinstance(self.state, PaymentCapture):
            raise CheckoutError("No checkout in progress")
        self.state = CartOpen()

    def require_payment_capture(self) -> PaymentCapture:
        if isinstance(self.state, Settling):
            raise CheckoutError("Settlement already in progress")
        if not isinstance(self.state, PaymentCapture):
            raise CheckoutError("No checkout in progress")
        return self.state

    def _set_amount(self, amount: int | None) -> None:
        if amount is not None and amount > MAX_AMOUNT_GIVEN:
            raise CheckoutError(f"Amount given cannot exceed {MAX_AMOUNT_GIVEN}")
        self.state = replace(self.require_payment_capture(), amount_given=amount)

    def press_digit(self, digit: int) -> None:
        current = self.require_payment_capture().amount_given
        self._set_amount(press_digit(current, digit))

    def quick_amount(self, amount: int) -> None:
        self.require_payment_capture()
        if amount not in self.quick_amounts:
            raise CheckoutError(f"Quick amount must be one of {list(self.quick_amounts)}")
        self._set_amount(amount)

    def clear_amount(self) -> None:
        self._set_amount(None)

    def set_exact_amount(self, amount: int | None) -> None:
        self.require_payment_capture()
        if amount is not None and amount < 0:
            raise CheckoutError("Amount given cannot be negative")
        self._set_amount(amount)

    # ---------------------------------------------------------------- totals

    @property
    def amount_given(self) -> int | None:
        if isinstance(self.state, (PaymentCapture, Settling)):
            return self.state.amount_given
        return None

    @property
    def total_cents(self) -> int:
        return self.cart.total_cents()

    @property
    def change_due_cents(self) -> int | None:
        return change_due_cents(self.amount_given, self.total_cents)

    @property
    def display_change_cents(self) -> int | None:
        change = self.change_due_cents
        return None if change is None else max(0, change)

    @property
    def can_confirm(self) -> bool:
        change = self.change_due_cents
        return (
            isinstance(self.state, PaymentCapture)
            and not self.cart.is_empty()
            and change is not None
            and change >= 0
        )

    # ------------------------------------------------------------ settlement

    def begin_settlement(self) -> Settling:
        capture = self.require_payment_capture()
        if capture.amount_given is None:
            raise CheckoutError("Please enter the amount given.")
        self.state = Settling(amount_given=capture.amount_given)
        return self.state

    def complete_settlement(self) -> None:
        if not isinstance(self.state, Settling):
            raise CheckoutError("No settlement in progress")
        self.cart.clear()
        self.state = Idle()

    def fail_settlement(self) -> None:
        if not isinstance(self.state, Settling):
            raise CheckoutError("No settlement in progress")
        self.state = PaymentCapture(amount_given=self.state.amount_given)

    def to_dict(self) -> dict:
        return {
            "state": self.state.name,
            "cart": self.cart.to_dict(),
            "total_cents": self.total_cents,
            "amount_given": self.amount_given,
            "change_due_cents": self.change_due_cents,
            "display_change_cents": self.display_change_cents,
            "can_confirm": self.can_confirm,
            "quick_amounts": list(self.quick_amounts),
        }
