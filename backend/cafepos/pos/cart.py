"""
Register cart.

Lines are keyed by product id, kept in insertion order, and hold the most
recent product snapshot that was added. A line's quantity never exceeds that
snapshot's stock and never drops below one.
"""

from __future__ import annotations

from dataclasses import dataclass

from .catalog import ProductSnapshot


@dataclass
class CartLine:
    product: ProductSnapshot
    quantity: int

    @property
    def subtotal_cents(self) -> int:
        return self.product.price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "subtotal_cents": self.subtotal_cents,
        }


class Cart:
    def __init__(self):
        self._lines: dict[int, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(list(self._lines.values()))

    def __contains__(self, product_id: int) -> bool:
        return product_id in self._lines

    def is_empty(self) -> bool:
        return not self._lines

    def get(self, product_id: int) -> CartLine | None:
        return self._lines.get(product_id)

    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def add(self, product: ProductSnapshot) -> bool:
        """
        Add one unit of product.

        Out-of-stock or unavailable products are ignored, as is an add that
        would exceed the stock. Returns whether the cart changed.
        """
        if not product.is_sellable:
            return False

        line = self._lines.get(product.id)
        if line is None:
            self._lines[product.id] = CartLine(product=product, quantity=1)
            return True

        # Adopt the caller's snapshot so the ceiling is the latest known stock
        line.product = product
        if line.quantity >= product.stock:
            line.quantity = product.stock
            return False
        line.quantity += 1
        return True

    def set_quantity(self, product_id: int, quantity: int) -> bool:
        """
        Set a line's quantity, clamped to the stock known when it was added.

        A quantity below one removes the line.
        """
        line = self._lines.get(product_id)
        if line is None:
            return False

        if quantity < 1:
            del self._lines[product_id]
            return True

        new_quantity = min(quantity, line.product.stock)
        if new_quantity == line.quantity:
            return False
        line.quantity = new_quantity
        return True

    def increment(self, product_id: int) -> bool:
        line = self._lines.get(product_id)
        if line is None:
            return False
        return self.set_quantity(product_id, line.quantity + 1)

    def decrement(self, product_id: int) -> bool:
        # The minus button stops at one; removal is explicit
        line = self._lines.get(product_id)
        if line is None:
            return False
        return self.set_quantity(product_id, max(1, line.quantity - 1))

    def remove(self, product_id: int) -> bool:
        return self._lines.pop(product_id, None) is not None

    def clear(self) -> None:
        self._lines.clear()

    def total_cents(self) -> int:
        return sum(line.subtotal_cents for line in self._lines.values())

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self._lines.values()],
            "item_count": self.item_count(),
            "total_cents": self.total_cents(),
        }
