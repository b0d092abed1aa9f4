"""
Catalog snapshot held by a register terminal.

Loaded once, read-only, and replaced wholesale after a settlement so the
menu shows reduced stock straight away.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..models.catalog import PRODUCT_STATUS_AVAILABLE, normalize_product_status
from ..services import catalog_service
from cafepos.time_utils import utcnow, to_utc_z


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    name: str
    category_id: int | None
    price_cents: int
    stock: int
    status: str = PRODUCT_STATUS_AVAILABLE
    category_name: str = "Unknown"
    image_url: str | None = None

    @property
    def is_sellable(self) -> bool:
        return self.stock > 0 and self.status == PRODUCT_STATUS_AVAILABLE

    @classmethod
    def from_model(cls, product) -> "ProductSnapshot":
        return cls(
            id=product.id,
            name=product.name,
            category_id=product.category_id,
            price_cents=product.price_cents or 0,
            stock=product.stock or 0,
            status=normalize_product_status(product.status),
            category_name=product.category.name if product.category else "Unknown",
            image_url=product.image_url,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "status": self.status,
            "image_url": self.image_url,
            "sellable": self.is_sellable,
        }


@dataclass(frozen=True)
class CategorySnapshot:
    id: int
    name: str


@dataclass(frozen=True)
class CatalogSnapshot:
    products: tuple[ProductSnapshot, ...] = ()
    categories: tuple[CategorySnapshot, ...] = ()
    loaded_at: datetime = field(default_factory=utcnow)

    def get(self, product_id: int) -> ProductSnapshot | None:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def visible_products(self, category_id: int | None = None, search: str = "") -> list[ProductSnapshot]:
        """
        Menu grid contents.

        category_id=None means "All". Only sellable products are shown.
        """
        needle = (search or "").lower()
        return [
            p for p in self.products
            if (category_id is None or p.category_id == category_id)
            and needle in p.name.lower()
            and p.is_sellable
        ]

    def to_dict(self, category_id: int | None = None, search: str = "") -> dict:
        return {
            "categories": [{"id": c.id, "name": c.name} for c in self.categories],
            "products": [p.to_dict() for p in self.visible_products(category_id, search)],
            "loaded_at": to_utc_z(self.loaded_at),
        }


def load_catalog() -> CatalogSnapshot:
    products = catalog_service.list_products()
    categories = catalog_service.list_categories()
    return CatalogSnapshot(
        products=tuple(ProductSnapshot.from_model(p) for p in products),
        categories=tuple(CategorySnapshot(id=c.id, name=c.name) for c in categories),
    )
