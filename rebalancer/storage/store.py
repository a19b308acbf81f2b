"""Keyed store for portfolios, holdings and prices.

The engine only talks to :class:`Store`, so the valuation, drift and
rebalance logic stays the same whether records live in memory (tests)
or in SQLite (:mod:`rebalancer.storage.sqlite_store`).

Records handed out by a store are copies. Mutating one has no effect
until it is written back with the matching ``set_*`` call.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Generator

from rebalancer.models import AssetHolding, AssetPrice, Portfolio

logger = logging.getLogger(__name__)


class Store(ABC):
    """Narrow get/set/exists interface over the three record tables."""

    @abstractmethod
    def get_portfolio(self, owner: str) -> Portfolio | None: ...

    @abstractmethod
    def set_portfolio(self, portfolio: Portfolio) -> None: ...

    @abstractmethod
    def get_holding(self, owner: str, slot: int) -> AssetHolding | None: ...

    @abstractmethod
    def set_holding(self, holding: AssetHolding) -> None: ...

    @abstractmethod
    def get_price(self, slot: int) -> AssetPrice | None: ...

    @abstractmethod
    def set_price(self, price: AssetPrice) -> None: ...

    @abstractmethod
    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Group writes so they land together or not at all."""
        yield

    def has_portfolio(self, owner: str) -> bool:
        return self.get_portfolio(owner) is not None

    def has_holding(self, owner: str, slot: int) -> bool:
        return self.get_holding(owner, slot) is not None

    def close(self) -> None:
        """Release any underlying resources."""


class InMemoryStore(Store):
    """Dict-backed store.

    Transactions keep a per-thread undo journal: the first write to a key
    inside a transaction records its previous value, and an exception
    restores every journaled key. Journals are per thread, so a rollback
    never touches keys written by another thread's transaction.
    """

    def __init__(self) -> None:
        self._portfolios: dict[str, Portfolio] = {}
        self._holdings: dict[tuple[str, int], AssetHolding] = {}
        self._prices: dict[int, AssetPrice] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    # ------------------------------------------------------------------
    # Portfolios
    # ------------------------------------------------------------------

    def get_portfolio(self, owner: str) -> Portfolio | None:
        with self._lock:
            record = self._portfolios.get(owner)
        return replace(record) if record is not None else None

    def set_portfolio(self, portfolio: Portfolio) -> None:
        self._write(self._portfolios, portfolio.owner, replace(portfolio))

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def get_holding(self, owner: str, slot: int) -> AssetHolding | None:
        with self._lock:
            record = self._holdings.get((owner, slot))
        return replace(record) if record is not None else None

    def set_holding(self, holding: AssetHolding) -> None:
        self._write(self._holdings, (holding.owner, holding.slot), replace(holding))

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def get_price(self, slot: int) -> AssetPrice | None:
        with self._lock:
            record = self._prices.get(slot)
        return replace(record) if record is not None else None

    def set_price(self, price: AssetPrice) -> None:
        self._write(self._prices, price.slot, replace(price))

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        journal = getattr(self._local, "journal", None)
        if journal is not None:
            # Nested: join the outer transaction.
            yield
            return

        self._local.journal = []
        try:
            yield
        except Exception:
            self._rollback(self._local.journal)
            raise
        finally:
            self._local.journal = None

    def _write(self, table: dict, key: Any, value: Any) -> None:
        journal = getattr(self._local, "journal", None)
        with self._lock:
            if journal is not None and not any(
                t is table and k == key for t, k, _ in journal
            ):
                journal.append((table, key, table.get(key)))
            table[key] = value

    def _rollback(self, journal: list[tuple[dict, Any, Any]]) -> None:
        with self._lock:
            for table, key, previous in reversed(journal):
                if previous is None:
                    table.pop(key, None)
                else:
                    table[key] = previous
        logger.debug("Rolled back %d in-memory write(s)", len(journal))

    def __repr__(self) -> str:
        return (
            f"InMemoryStore(portfolios={len(self._portfolios)}, "
            f"holdings={len(self._holdings)}, prices={len(self._prices)})"
        )
