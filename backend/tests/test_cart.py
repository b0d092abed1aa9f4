"""
Cart tests.

Verifies:
- Unavailable and out-of-stock products are ignored
- Quantity never exceeds the product stock
- set_quantity clamps to stock and removes lines below one
- Totals are exact in cents
"""

import pytest

from cafepos.pos.cart import Cart
from cafepos.pos.catalog import ProductSnapshot


def make_product(product_id=1, name="Americano", price_cents=9000, stock=3, status="available"):
    return ProductSnapshot(
        id=product_id,
        name=name,
        category_id=1,
        price_cents=price_cents,
        stock=stock,
        status=status,
    )


class TestAddToCart:

    def test_first_add_creates_line_with_quantity_one(self):
        cart = Cart()
        assert cart.add(make_product()) is True
        assert cart.get(1).quantity == 1

    def test_repeat_add_increments(self):
        cart = Cart()
        product = make_product()
        cart.add(product)
        cart.add(product)
        assert cart.get(1).quantity == 2
        assert len(cart) == 1

    @pytest.mark.parametrize("stock,status", [(0, "available"), (-1, "available"), (5, "unavailable")])
    def test_unsellable_product_is_ignored(self, stock, status):
        cart = Cart()
        assert cart.add(make_product(stock=stock, status=status)) is False
        assert cart.is_empty()

    def test_add_stops_at_stock(self):
        """Stock ceiling is a silent no-op, never an error."""
        cart = Cart()
        product = make_product(stock=2)
        results = [cart.add(product) for _ in range(5)]

        assert results == [True, True, False, False, False]
        assert cart.get(1).quantity == 2

    @pytest.mark.parametrize("stock", [1, 2, 7])
    def test_quantity_never_exceeds_stock(self, stock):
        cart = Cart()
        product = make_product(stock=stock)
        for _ in range(stock + 3):
            cart.add(product)
        assert cart.get(1).quantity == stock

    def test_add_with_lower_stock_snapshot_clamps(self):
        cart = Cart()
        cart.add(make_product(stock=5))
        cart.add(make_product(stock=5))
        cart.add(make_product(stock=5))

        assert cart.add(make_product(stock=2)) is False
        assert cart.get(1).quantity == 2

    def test_insertion_order_is_display_order(self):
        cart = Cart()
        cart.add(make_product(product_id=2, name="Latte"))
        cart.add(make_product(product_id=1, name="Americano"))
        cart.add(make_product(product_id=2, name="Latte"))

        assert [line.product.id for line in cart.lines()] == [2, 1]


class TestSetQuantity:

    def test_clamps_to_stock(self):
        cart = Cart()
        cart.add(make_product(stock=4))
        cart.set_quantity(1, 10)
        assert cart.get(1).quantity == 4

    def test_sets_exact_quantity(self):
        cart = Cart()
        cart.add(make_product(stock=4))
        assert cart.set_quantity(1, 3) is True
        assert cart.get(1).quantity == 3

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_below_one_removes_line(self, quantity):
        cart = Cart()
        cart.add(make_product())
        cart.set_quantity(1, quantity)
        assert 1 not in cart

    def test_unknown_product_is_ignored(self):
        cart = Cart()
        assert cart.set_quantity(99, 2) is False

    def test_decrement_stops_at_one(self):
        cart = Cart()
        product = make_product()
        cart.add(product)
        cart.add(product)

        cart.decrement(1)
        cart.decrement(1)
        assert cart.get(1).quantity == 1

    def test_increment_respects_stock(self):
        cart = Cart()
        cart.add(make_product(stock=2))
        cart.increment(1)
        assert cart.increment(1) is False
        assert cart.get(1).quantity == 2


class TestTotals:

    def test_total_and_item_count(self):
        cart = Cart()
        cart.add(make_product(product_id=1, price_cents=9000, stock=5))
        cart.add(make_product(product_id=1, price_cents=9000, stock=5))
        cart.add(make_product(product_id=2, price_cents=8550, stock=5))

        assert cart.total_cents() == 26550
        assert cart.item_count() == 3

    def test_remove_and_clear(self):
        cart = Cart()
        cart.add(make_product(product_id=1))
        cart.add(make_product(product_id=2))

        assert cart.remove(1) is True
        assert cart.remove(1) is False
        assert cart.total_cents() == 9000

        cart.clear()
        assert cart.is_empty()
        assert cart.total_cents() == 0
