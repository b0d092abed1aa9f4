from __future__ import annotations

from ..extensions import db
from cafepos.time_utils import to_utc_z

PRODUCT_STATUS_AVAILABLE = "available"
PRODUCT_STATUS_UNAVAILABLE = "unavailable"

VALID_PRODUCT_STATUSES = [
    PRODUCT_STATUS_AVAILABLE,
    PRODUCT_STATUS_UNAVAILABLE,
]


def normalize_product_status(value: str | None) -> str:
    """Missing status reads as available; stored values are lower-case."""
    if not value:
        return PRODUCT_STATUS_AVAILABLE
    return value.strip().lower()


class Category(db.Model):
    """Menu category (e.g. Coffee, Pastries)."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Product(db.Model):
    """
    Sellable menu product.

    Stock is decremented by checkout settlement and otherwise only changed
    by direct product edits. Prices are stored in cents.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_name", "category_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=PRODUCT_STATUS_AVAILABLE)
    image_url = db.Column(db.String(512), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else "Unknown",
            "price_cents": self.price_cents,
            "stock": self.stock,
            "status": normalize_product_status(self.status),
            "image_url": self.image_url,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
