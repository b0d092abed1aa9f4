# Overview: Service-layer operations for back-of-house supplies.

from __future__ import annotations

from ..extensions import db
from ..models import InventoryProduct
from ..models.inventory import supply_status
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_supply
from .concurrency import lock_for_update, run_with_retry


class InventoryError(Exception):
    """Raised for supply inventory errors."""
    pass


SUPPLY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "price_cents", "stock", "min_stock", "unit"},
    required_on_create={"name", "category"},
)

DEFAULT_UNIT = "pcs"


def list_supplies(search: str = "") -> list[InventoryProduct]:
    """Newest first, filtered by case-insensitive name substring."""
    supplies = (
        db.session.query(InventoryProduct)
        .order_by(InventoryProduct.created_at.desc(), InventoryProduct.id.desc())
        .all()
    )
    needle = (search or "").lower()
    if not needle:
        return supplies
    return [s for s in supplies if needle in s.name.lower()]


def _apply(supply: InventoryProduct, patch: dict) -> None:
    for key, value in patch.items():
        setattr(supply, key, value)
    supply.status = supply_status(supply.stock or 0, supply.min_stock)


def create_supply(payload: dict) -> InventoryProduct:
    patch = validate_payload(model=InventoryProduct, payload=payload, policy=SUPPLY_POLICY, partial=False)
    enforce_rules_supply(patch)

    supply = InventoryProduct(stock=0, min_stock=0, price_cents=0)
    _apply(supply, patch)
    db.session.add(supply)
    db.session.commit()
    return supply


def update_supply(supply_id: int, payload: dict) -> InventoryProduct:
    patch = validate_payload(model=InventoryProduct, payload=payload, policy=SUPPLY_POLICY, partial=True)
    enforce_rules_supply(patch)

    def _op():
        supply = lock_for_update(db.session.query(InventoryProduct).filter_by(id=supply_id)).first()
        if not supply:
            raise InventoryError(f"Supply {supply_id} not found")
        _apply(supply, patch)
        db.session.commit()
        return supply

    return run_with_retry(_op)


def low_stock_report(search: str = "") -> list[dict]:
    """Rows for the dashboard inventory table."""
    return [
        {
            "id": s.id,
            "name": s.name,
            "category": s.category,
            "stock": s.stock,
            "min_stock": s.min_stock or 0,
            "unit": s.unit or DEFAULT_UNIT,
            "flag": "Low" if s.is_low else "OK",
        }
        for s in list_supplies(search)
    ]
