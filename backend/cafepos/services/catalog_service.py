# Overview: Service-layer operations for menu products and categories.

"""
Catalog Service

Read side feeds the catalog snapshot used by the register; write side covers
the two writers of Product.stock: checkout settlement and direct product edits.
"""

from __future__ import annotations

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Category, Product
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_product
from .concurrency import lock_for_update, run_with_retry


class CatalogError(Exception):
    """Raised for catalog operation errors."""
    pass


PRODUCT_EDIT_POLICY = ModelValidationPolicy(
    writable_fields={"price_cents", "stock", "status"},
)


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.id.asc()).all()


def list_products() -> list[Product]:
    """All products with their category preloaded."""
    return (
        db.session.query(Product)
        .options(joinedload(Product.category))
        .order_by(Product.id.asc())
        .all()
    )


def get_product(product_id: int) -> Product | None:
    return db.session.query(Product).filter_by(id=product_id).first()


def search_products(search: str = "", category_name: str = "") -> list[Product]:
    """
    Product listing for the inventory screen.

    Name match is a case-insensitive substring; category_name must match
    exactly ("Unknown" selects products without a category).
    """
    needle = (search or "").lower()
    results = []
    for product in list_products():
        if needle and needle not in product.name.lower():
            continue
        name = product.category.name if product.category else "Unknown"
        if category_name and name != category_name:
            continue
        results.append(product)
    return results


def unique_category_names(products: list[Product]) -> list[str]:
    """Distinct category names in first-seen order."""
    seen: dict[str, None] = {}
    for product in products:
        seen.setdefault(product.category.name if product.category else "Unknown", None)
    return list(seen)


def update_product_stock(product_id: int, new_stock: int, *, commit: bool = True) -> Product:
    """
    Overwrite a product's stock level.

    commit=False leaves the change in the open transaction so the caller
    can group it with other writes.
    """
    if new_stock < 0:
        raise CatalogError(f"Stock for product {product_id} cannot go below zero")

    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if not product:
        raise CatalogError(f"Product {product_id} not found")

    product.stock = new_stock
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return product


def update_product(product_id: int, payload: dict) -> Product:
    """Direct edit of price, stock and availability from the inventory screen."""
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_EDIT_POLICY, partial=True)
    enforce_rules_product(patch)

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            raise CatalogError(f"Product {product_id} not found")

        for key, value in patch.items():
            setattr(product, key, value)

        db.session.commit()
        return product

    return run_with_retry(_op)
