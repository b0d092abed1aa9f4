from __future__ import annotations

from ..extensions import db
from cafepos.time_utils import to_utc_z

SUPPLY_STATUS_IN_STOCK = "IN STOCK"
SUPPLY_STATUS_LOW_STOCK = "LOW STOCK"


def supply_status(stock: int, min_stock: int | None) -> str:
    return SUPPLY_STATUS_LOW_STOCK if stock <= (min_stock or 0) else SUPPLY_STATUS_IN_STOCK


class InventoryProduct(db.Model):
    """
    Back-of-house supply (beans, cups, milk), tracked apart from menu products.

    status is derived from stock/min_stock. It is written on every save and
    recomputed on every read; the stored column is never trusted.
    """
    __tablename__ = "inventory_products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=True)
    status = db.Column(db.String(16), nullable=False, default=SUPPLY_STATUS_IN_STOCK)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    @property
    def computed_status(self) -> str:
        return supply_status(self.stock, self.min_stock)

    @property
    def is_low(self) -> bool:
        return self.computed_status == SUPPLY_STATUS_LOW_STOCK

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "min_stock": self.min_stock,
            "unit": self.unit,
            "status": self.computed_status,
            "created_at": to_utc_z(self.created_at),
        }
