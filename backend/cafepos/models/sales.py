from __future__ import annotations

from ..extensions import db
from cafepos.time_utils import to_utc_z


class Sale(db.Model):
    """
    Sale header, written once per successful checkout.

    Immutable after insert. Line detail lives in SaleItem.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_sale_date", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # All amounts in cents
    total_amount_cents = db.Column(db.Integer, nullable=False)
    cash_received_cents = db.Column(db.Integer, nullable=False)
    change_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    # Supplied by the identity gateway, not a local foreign key
    user_id = db.Column(db.String(64), nullable=False, index=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "total_amount_cents": self.total_amount_cents,
            "cash_received_cents": self.cash_received_cents,
            "change_amount_cents": self.change_amount_cents,
            "user_id": self.user_id,
            "sale_date": to_utc_z(self.sale_date),
        }


class SaleItem(db.Model):
    """One row per distinct cart line of a sale."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "subtotal_cents": self.subtotal_cents,
        }
