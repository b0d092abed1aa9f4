# backend/cafepos/config.py
from __future__ import annotations
import os


def _int_list(value: str) -> list[int]:
    return [int(part) for part in value.split(",") if part.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cafepos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///cafepos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "atomic": one transaction per checkout (rolled back on failure)
    # "sequential": every write committed on its own, no rollback
    SETTLEMENT_MODE = os.environ.get("SETTLEMENT_MODE", "atomic")

    # Quick-amount buttons on the checkout pad (whole currency units)
    QUICK_AMOUNTS = _int_list(os.environ.get("QUICK_AMOUNTS", "50,100,500,1000"))

    CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "₱")

    CORS_ALLOWED_ORIGINS = set(
        os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
    )
