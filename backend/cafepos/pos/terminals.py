"""
In-process register terminals, one per signed-in user.

A terminal bundles the checkout controller with the catalog snapshot it sells
from. Its lock serialises state transitions for that user; nothing is shared
between terminals except the database.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from flask import current_app

from .catalog import CatalogSnapshot, load_catalog
from .checkout import CheckoutController, DEFAULT_QUICK_AMOUNTS

EXTENSION_KEY = "cafepos.terminals"


@dataclass
class Terminal:
    user_id: str
    controller: CheckoutController
    catalog: CatalogSnapshot | None = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def ensure_catalog(self) -> CatalogSnapshot:
        if self.catalog is None:
            self.catalog = load_catalog()
        return self.catalog

    def refresh_catalog(self) -> CatalogSnapshot:
        self.catalog = load_catalog()
        return self.catalog


class TerminalRegistry:
    def __init__(self, quick_amounts=DEFAULT_QUICK_AMOUNTS):
        self._terminals: dict[str, Terminal] = {}
        self._lock = threading.Lock()
        self.quick_amounts = tuple(quick_amounts)

    def get(self, user_id: str) -> Terminal:
        with self._lock:
            terminal = self._terminals.get(user_id)
            if terminal is None:
                terminal = Terminal(
                    user_id=user_id,
                    controller=CheckoutController(quick_amounts=self.quick_amounts),
                )
                self._terminals[user_id] = terminal
            return terminal

    def clear(self) -> None:
        with self._lock:
            self._terminals.clear()


def init_terminals(app) -> TerminalRegistry:
    registry = TerminalRegistry(quick_amounts=app.config.get("QUICK_AMOUNTS") or DEFAULT_QUICK_AMOUNTS)
    app.extensions[EXTENSION_KEY] = registry
    return registry


def get_registry() -> TerminalRegistry:
    return current_app.extensions[EXTENSION_KEY]


def get_terminal(user_id: str) -> Terminal:
    return get_registry().get(user_id)
