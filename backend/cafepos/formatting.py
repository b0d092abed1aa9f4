"""Presentation helpers for money amounts stored as integer cents."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from flask import current_app, has_app_context

DEFAULT_CURRENCY_SYMBOL = "₱"


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def units_to_cents(units: int) -> int:
    """Whole currency units (as typed on the cash pad) to cents."""
    return int(units) * 100


def format_money(cents: int, symbol: str | None = None) -> str:
    """
    Render cents as a two-decimal amount, e.g. 12550 -> "₱125.50".

    Negative amounts keep their sign in front of the symbol.
    """
    if symbol is None:
        symbol = current_app.config.get("CURRENCY_SYMBOL", DEFAULT_CURRENCY_SYMBOL) if has_app_context() else DEFAULT_CURRENCY_SYMBOL
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{cents_to_decimal(abs(cents)):,.2f}"
