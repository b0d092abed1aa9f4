# Overview: Dashboard metrics derived from raw sale history.

"""
Analytics Service

The metric functions are pure: they take sale and sale-item records plus
"today" and return values, so the dashboard can re-derive everything on each
request. build_dashboard() does the fetching; a source that fails to load is
treated as empty rather than failing the dashboard.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..formatting import format_money
from cafepos.time_utils import today as utc_today
from . import inventory_service, sales_service

MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

NO_TOP_SELLER = "N/A"
UNKNOWN_PRODUCT = "Unknown"


@dataclass(frozen=True)
class SaleRecord:
    sale_id: int
    total_amount_cents: int
    sale_date: datetime | date

    @classmethod
    def from_model(cls, sale) -> "SaleRecord":
        return cls(sale_id=sale.id, total_amount_cents=sale.total_amount_cents, sale_date=sale.sale_date)


@dataclass(frozen=True)
class SaleItemRecord:
    sale_id: int
    quantity: int
    product_name: str | None = None

    @classmethod
    def from_model(cls, item) -> "SaleItemRecord":
        return cls(
            sale_id=item.sale_id,
            quantity=item.quantity,
            product_name=item.product.name if item.product else None,
        )


@dataclass(frozen=True)
class SeriesPoint:
    label: str
    total_cents: int

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "total_cents": self.total_cents,
            "total": format_money(self.total_cents),
        }


def _in_month(value: datetime | date, today: date) -> bool:
    return value.month == today.month and value.year == today.year


def month_label(value: datetime | date) -> str:
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.year}"


def week_of_month(value: datetime | date) -> int:
    return math.ceil(value.day / 7)


# =============================================================================
# METRICS
# =============================================================================

def total_sales_amount(sales: list[SaleRecord]) -> int:
    return sum(s.total_amount_cents for s in sales)


def total_items_sold(items: list[SaleItemRecord]) -> int:
    return sum(i.quantity for i in items)


def top_seller_this_month(sales: list[SaleRecord], items: list[SaleItemRecord], today: date) -> str:
    """
    Product name with the most units sold in today's calendar month.

    Ties go to the alphabetically first name. Items whose sale is unknown
    are skipped.
    """
    month_sale_ids = {s.sale_id for s in sales if _in_month(s.sale_date, today)}

    quantities: dict[str, int] = {}
    for item in items:
        if item.sale_id not in month_sale_ids:
            continue
        name = item.product_name or UNKNOWN_PRODUCT
        quantities[name] = quantities.get(name, 0) + item.quantity

    if not quantities:
        return NO_TOP_SELLER

    best = max(quantities.values())
    return min(name for name, qty in quantities.items() if qty == best)


def monthly_sales_series(sales: list[SaleRecord]) -> list[SeriesPoint]:
    """Sales totals per "<Mon> <Year>", oldest month first."""
    buckets: dict[tuple[int, int], int] = {}
    for sale in sales:
        key = (sale.sale_date.year, sale.sale_date.month)
        buckets[key] = buckets.get(key, 0) + sale.total_amount_cents

    return [
        SeriesPoint(label=month_label(date(year, month, 1)), total_cents=total)
        for (year, month), total in sorted(buckets.items())
    ]


def weekly_sales_series(sales: list[SaleRecord], today: date) -> list[SeriesPoint]:
    """Current-month sales per "Week <n>" where n = ceil(day / 7)."""
    buckets: dict[int, int] = {}
    for sale in sales:
        if not _in_month(sale.sale_date, today):
            continue
        week = week_of_month(sale.sale_date)
        buckets[week] = buckets.get(week, 0) + sale.total_amount_cents

    return [SeriesPoint(label=f"Week {week}", total_cents=total) for week, total in sorted(buckets.items())]


# =============================================================================
# DASHBOARD
# =============================================================================

@dataclass
class DashboardMetrics:
    total_sales_cents: int = 0
    total_items_sold: int = 0
    top_seller_this_month: str = NO_TOP_SELLER
    monthly_sales: list[SeriesPoint] = field(default_factory=list)
    weekly_sales: list[SeriesPoint] = field(default_factory=list)
    degraded_sources: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_sales_cents": self.total_sales_cents,
            "total_sales": format_money(self.total_sales_cents),
            "total_items_sold": self.total_items_sold,
            "top_seller_this_month": self.top_seller_this_month,
            "monthly_sales": [p.to_dict() for p in self.monthly_sales],
            "weekly_sales": [p.to_dict() for p in self.weekly_sales],
            "degraded_sources": self.degraded_sources,
        }


def compute_dashboard(sales: list[SaleRecord], items: list[SaleItemRecord], today: date) -> DashboardMetrics:
    return DashboardMetrics(
        total_sales_cents=total_sales_amount(sales),
        total_items_sold=total_items_sold(items),
        top_seller_this_month=top_seller_this_month(sales, items, today),
        monthly_sales=monthly_sales_series(sales),
        weekly_sales=weekly_sales_series(sales, today),
    )


def _load(source: str, loader, degraded: list[str]) -> list:
    try:
        return loader()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning("Dashboard source %s unavailable; treating as empty", source, exc_info=True)
        degraded.append(source)
        return []


def build_dashboard(today: date | None = None) -> DashboardMetrics:
    today = today or utc_today()
    degraded: list[str] = []

    sales = _load(
        "sales",
        lambda: [SaleRecord.from_model(s) for s in sales_service.list_sales()],
        degraded,
    )
    items = _load(
        "sale_items",
        lambda: [SaleItemRecord.from_model(i) for i in sales_service.list_sale_items()],
        degraded,
    )

    metrics = compute_dashboard(sales, items, today)
    metrics.degraded_sources = degraded
    return metrics


def build_inventory_table(search: str = "") -> list[dict]:
    try:
        return inventory_service.low_stock_report(search)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning("Dashboard inventory table unavailable", exc_info=True)
        return []
