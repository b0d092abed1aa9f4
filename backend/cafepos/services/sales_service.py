"""
Sales Service - persisted sale headers and sale items

Sales are written only by checkout settlement and never updated afterwards.
"""

from __future__ import annotations

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Sale, SaleItem


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def insert_sale(
    *,
    total_amount_cents: int,
    cash_received_cents: int,
    change_amount_cents: int,
    user_id: str,
    commit: bool = True,
) -> Sale:
    """Insert a sale header and return it with its generated id."""
    if not user_id:
        raise SaleError("Sale must be attributed to a user")

    sale = Sale(
        total_amount_cents=total_amount_cents,
        cash_received_cents=cash_received_cents,
        change_amount_cents=change_amount_cents,
        user_id=user_id,
    )
    db.session.add(sale)
    if commit:
        db.session.commit()
    else:
        db.session.flush()  # Get sale ID
    return sale


def insert_sale_item(
    *,
    sale_id: int,
    product_id: int,
    quantity: int,
    unit_price_cents: int,
    commit: bool = True,
) -> SaleItem:
    if quantity <= 0:
        raise SaleError("Sale item quantity must be positive", details={"product_id": product_id})

    item = SaleItem(
        sale_id=sale_id,
        product_id=product_id,
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        subtotal_cents=unit_price_cents * quantity,
    )
    db.session.add(item)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return item


def list_sales() -> list[Sale]:
    return db.session.query(Sale).order_by(Sale.id.asc()).all()


def list_sale_items() -> list[SaleItem]:
    """All sale items with the product joined for its name."""
    return (
        db.session.query(SaleItem)
        .options(joinedload(SaleItem.product))
        .order_by(SaleItem.id.asc())
        .all()
    )


def get_sale(sale_id: int) -> Sale | None:
    return db.session.query(Sale).filter_by(id=sale_id).first()
