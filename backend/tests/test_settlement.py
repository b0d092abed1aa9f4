"""
Settlement tests.

Verifies:
- A confirmed checkout writes one sale, one item per line and decrements stock
- Each failed precondition reports its message and writes nothing
- Stock is re-checked against the database at confirm time
- A failing write returns the register to payment capture intact
- Sequential mode leaves the committed header behind; atomic mode leaves nothing
"""

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from cafepos.extensions import db
from cafepos.models import Product, Sale, SaleItem
from cafepos.pos.catalog import ProductSnapshot
from cafepos.pos.checkout import CheckoutError, Idle, PaymentCapture, MAX_AMOUNT_GIVEN
from cafepos.services import sales_service, settlement_service
from cafepos.services.settlement_service import (
    SettlementError,
    SettlementValidationError,
    settle,
)


pytestmark = pytest.mark.settlement


def snapshot(product):
    return ProductSnapshot.from_model(db.session.get(Product, product.id))


def fill_cart(terminal, product, quantity):
    for _ in range(quantity):
        terminal.controller.add_to_cart(snapshot(product))


def enter_amount(terminal, units):
    for digit in str(units):
        terminal.controller.press_digit(int(digit))


@pytest.fixture
def ready(terminal, latte, croissant):
    """Two lattes and one croissant (325.50) with 500 entered."""
    fill_cart(terminal, latte, 2)
    fill_cart(terminal, croissant, 1)
    terminal.controller.begin_checkout()
    terminal.controller.quick_amount(500)
    return terminal


def sale_count():
    return db.session.query(Sale).count()


def item_count():
    return db.session.query(SaleItem).count()


@pytest.mark.smoke
class TestSuccessfulSettlement:

    def test_writes_sale_header(self, app, ready):
        sale = settle(ready)

        assert sale.id is not None
        assert sale.total_amount_cents == 32550
        assert sale.cash_received_cents == 50000
        assert sale.change_amount_cents == 17450
        assert sale.user_id == "cashier-0001"

    def test_writes_items_in_cart_order(self, app, ready, latte, croissant):
        sale = settle(ready)

        items = db.session.query(SaleItem).filter_by(sale_id=sale.id).order_by(SaleItem.id).all()
        assert [(i.product_id, i.quantity, i.subtotal_cents) for i in items] == [
            (latte.id, 2, 24000),
            (croissant.id, 1, 8550),
        ]

    def test_decrements_stock(self, app, ready, latte, croissant):
        settle(ready)

        assert db.session.get(Product, latte.id).stock == 3
        assert db.session.get(Product, croissant.id).stock == 1

    def test_resets_register_and_refreshes_catalog(self, app, ready, latte):
        settle(ready)

        assert isinstance(ready.controller.state, Idle)
        assert ready.controller.cart.is_empty()
        assert ready.catalog.get(latte.id).stock == 3

    def test_change_is_never_negative(self, app, terminal, latte):
        fill_cart(terminal, latte, 1)
        terminal.controller.begin_checkout()
        enter_amount(terminal, 120)

        sale = settle(terminal)
        assert sale.change_amount_cents == 0
        assert sale.total_amount_cents + sale.change_amount_cents == sale.cash_received_cents


    def test_largest_cash_amount_settles(self, app, terminal, latte):
        fill_cart(terminal, latte, 1)
        terminal.controller.begin_checkout()
        with pytest.raises(CheckoutError):
            enter_amount(terminal, 10 ** 20 - 1)
        terminal.controller.set_exact_amount(MAX_AMOUNT_GIVEN)

        sale = settle(terminal)
        assert sale.cash_received_cents == 999_999_900
        assert sale.change_amount_cents == 999_999_900 - 12000


class TestValidation:

    def test_no_amount(self, app, terminal, latte):
        fill_cart(terminal, latte, 1)
        terminal.controller.begin_checkout()

        with pytest.raises(SettlementValidationError, match="Please enter the amount given."):
            settle(terminal)
        assert sale_count() == 0

    def test_insufficient_amount_reports_shortfall(self, app, terminal, latte, croissant):
        fill_cart(terminal, latte, 2)
        fill_cart(terminal, croissant, 1)
        terminal.controller.begin_checkout()
        enter_amount(terminal, 300)

        with pytest.raises(SettlementValidationError) as exc_info:
            settle(terminal)

        assert str(exc_info.value) == "Insufficient amount. You still need ₱25.50 more."
        assert exc_info.value.details["short_cents"] == 2550
        assert sale_count() == 0
        assert isinstance(terminal.controller.state, PaymentCapture)

    def test_stock_dropped_by_another_terminal(self, app, db_session, terminal, latte):
        fill_cart(terminal, latte, 3)
        terminal.controller.begin_checkout()
        terminal.controller.quick_amount(500)

        product = db_session.get(Product, latte.id)
        product.stock = 1
        db_session.commit()

        with pytest.raises(SettlementValidationError, match="Not enough stock for Cafe Latte"):
            settle(terminal)

        assert sale_count() == 0
        assert db_session.get(Product, latte.id).stock == 1
        assert terminal.controller.cart.get(latte.id).quantity == 3

    def test_empty_cart_is_rejected(self, app, ready):
        """Defensive check for a cart emptied behind the controller's back."""
        ready.controller.cart.clear()

        with pytest.raises(SettlementValidationError, match="Your cart is empty"):
            settle(ready)
        assert sale_count() == 0

    def test_confirm_outside_checkout(self, app, terminal, latte):
        fill_cart(terminal, latte, 1)

        with pytest.raises(CheckoutError):
            settle(terminal)


class TestWriteFailure:

    @pytest.fixture
    def failing_item_insert(self, monkeypatch):
        def boom(**kwargs):
            raise RuntimeError("disk full")
        monkeypatch.setattr(sales_service, "insert_sale_item", boom)

    def test_atomic_mode_writes_nothing(self, app, ready, latte, failing_item_insert):
        with pytest.raises(SettlementError) as exc_info:
            settle(ready)

        assert str(exc_info.value) == "Checkout failed."
        assert exc_info.value.details["stage"] == f"sale_item:{latte.id}"
        assert exc_info.value.details["sale_id"] is None
        assert sale_count() == 0
        assert item_count() == 0
        assert db.session.get(Product, latte.id).stock == 5

    def test_sequential_mode_keeps_committed_header(self, app, ready, latte, monkeypatch, failing_item_insert):
        monkeypatch.setitem(app.config, "SETTLEMENT_MODE", "sequential")

        with pytest.raises(SettlementError) as exc_info:
            settle(ready)

        assert sale_count() == 1
        assert item_count() == 0
        assert db.session.get(Product, latte.id).stock == 5
        assert exc_info.value.details["sale_id"] is not None
        assert exc_info.value.details["mode"] == "sequential"

    def test_register_returns_to_payment_capture(self, app, ready, failing_item_insert):
        with pytest.raises(SettlementError):
            settle(ready)

        assert ready.controller.state == PaymentCapture(amount_given=500)
        assert ready.controller.cart.item_count() == 3

    def test_sequential_retry_writes_second_header(self, app, ready, monkeypatch):
        monkeypatch.setitem(app.config, "SETTLEMENT_MODE", "sequential")
        real_insert = sales_service.insert_sale_item
        calls = {"n": 0}

        def fail_once(**kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("transient")
            return real_insert(**kwargs)

        monkeypatch.setattr(sales_service, "insert_sale_item", fail_once)

        with pytest.raises(SettlementError):
            settle(ready)
        sale = settle(ready)

        assert sale_count() == 2
        assert db.session.query(SaleItem).filter_by(sale_id=sale.id).count() == 2
        assert isinstance(ready.controller.state, Idle)

    def test_invalid_mode_is_rejected(self, app, ready, monkeypatch):
        monkeypatch.setitem(app.config, "SETTLEMENT_MODE", "eventual")

        with pytest.raises(SettlementError, match="Invalid settlement mode"):
            settle(ready)
        assert sale_count() == 0


class TestReentrancy:

    def test_confirm_while_settling_is_refused(self, app, ready):
        ready.controller.begin_settlement()

        with pytest.raises(CheckoutError, match="already in progress"):
            settle(ready)
        assert sale_count() == 0

    def test_settling_blocks_a_concurrent_confirm(self, app, ready, monkeypatch):
        """A confirm issued from inside the write sequence hits the guard."""
        real_insert = sales_service.insert_sale
        seen = []

        def insert_and_reenter(**kwargs):
            try:
                settle(ready)
            except CheckoutError as exc:
                seen.append(str(exc))
            return real_insert(**kwargs)

        monkeypatch.setattr(sales_service, "insert_sale", insert_and_reenter)

        settle(ready)

        assert seen == ["Settlement already in progress"]
        assert sale_count() == 1


class TestAfterCommit:

    @pytest.fixture
    def reads_fail_after_commit(self, app, monkeypatch):
        """Every statement after the settlement commit raises a lock error."""
        committed = {"done": False}
        real_commit = db.session.commit

        def commit_then_lock():
            real_commit()
            committed["done"] = True

        def refuse(conn, cursor, statement, parameters, context, executemany):
            if committed["done"]:
                raise OperationalError(statement, parameters, Exception("database is locked"))

        monkeypatch.setattr(db.session, "commit", commit_then_lock)
        event.listen(db.engine, "before_cursor_execute", refuse)
        yield committed
        event.remove(db.engine, "before_cursor_execute", refuse)

    def test_register_returns_to_idle(self, app, ready, reads_fail_after_commit):
        ready.ensure_catalog()
        settle(ready)

        assert isinstance(ready.controller.state, Idle)
        assert ready.controller.cart.is_empty()
        assert ready.catalog is None

    def test_register_accepts_next_sale(self, app, ready, latte, reads_fail_after_commit):
        settle(ready)
        reads_fail_after_commit["done"] = False

        fill_cart(ready, latte, 1)
        assert ready.controller.cart.item_count() == 1
        assert sale_count() == 1
