"""SQLite-backed :class:`~rebalancer.storage.store.Store`."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Generator

from rebalancer.models import AssetHolding, AssetPrice, Portfolio
from rebalancer.storage.database import Database
from rebalancer.storage.migrations import ensure_schema
from rebalancer.storage.store import Store


# Quantity columns are decimal TEXT; see migrations/001_initial.sql.
def _row_to_portfolio(row: sqlite3.Row) -> Portfolio:
    return Portfolio(
        owner=row["owner"],
        rebalance_threshold=row["rebalance_threshold"],
        total_value=int(row["total_value"]),
        last_rebalance=row["last_rebalance"],
        auto_rebalance_enabled=bool(row["auto_rebalance_enabled"]),
    )


def _row_to_holding(row: sqlite3.Row) -> AssetHolding:
    return AssetHolding(
        owner=row["owner"],
        slot=row["slot"],
        asset_name=row["asset_name"],
        current_amount=int(row["current_amount"]),
        target_allocation=row["target_allocation"],
        current_allocation=row["current_allocation"],
    )


class SqliteStore(Store):
    """Store backed by the ``portfolios``, ``holdings`` and ``prices`` tables.

    Writes outside :meth:`transaction` commit immediately. Inside a
    transaction they are committed once, when the outermost block exits
    cleanly, and rolled back if it raises.
    """

    def __init__(self, db: Database, *, migrate: bool = True) -> None:
        self.db = db
        self._depth = 0
        if migrate:
            ensure_schema(db)

    # ------------------------------------------------------------------
    # Portfolios
    # ------------------------------------------------------------------

    def get_portfolio(self, owner: str) -> Portfolio | None:
        row = self.db.fetchone("SELECT * FROM portfolios WHERE owner = ?", (owner,))
        return _row_to_portfolio(row) if row else None

    def set_portfolio(self, portfolio: Portfolio) -> None:
        self._write(
            """INSERT INTO portfolios (
                owner, total_value, last_rebalance, rebalance_threshold,
                auto_rebalance_enabled
            ) VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(owner) DO UPDATE SET
                total_value=excluded.total_value,
                last_rebalance=excluded.last_rebalance,
                rebalance_threshold=excluded.rebalance_threshold,
                auto_rebalance_enabled=excluded.auto_rebalance_enabled
            """,
            (
                portfolio.owner, str(portfolio.total_value), portfolio.last_rebalance,
                portfolio.rebalance_threshold, int(portfolio.auto_rebalance_enabled),
            ),
        )

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def get_holding(self, owner: str, slot: int) -> AssetHolding | None:
        row = self.db.fetchone(
            "SELECT * FROM holdings WHERE owner = ? AND slot = ?", (owner, slot)
        )
        return _row_to_holding(row) if row else None

    def set_holding(self, holding: AssetHolding) -> None:
        self._write(
            """INSERT INTO holdings (
                owner, slot, asset_name, current_amount, target_allocation,
                current_allocation
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(owner, slot) DO UPDATE SET
                asset_name=excluded.asset_name,
                current_amount=excluded.current_amount,
                target_allocation=excluded.target_allocation,
                current_allocation=excluded.current_allocation
            """,
            (
                holding.owner, holding.slot, holding.asset_name,
                str(holding.current_amount), holding.target_allocation,
                holding.current_allocation,
            ),
        )

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def get_price(self, slot: int) -> AssetPrice | None:
        row = self.db.fetchone("SELECT * FROM prices WHERE slot = ?", (slot,))
        if row is None:
            return None
        return AssetPrice(slot=row["slot"], price=int(row["price"]), last_updated=row["last_updated"])

    def set_price(self, price: AssetPrice) -> None:
        self._write(
            """INSERT INTO prices (slot, price, last_updated) VALUES (?, ?, ?)
            ON CONFLICT(slot) DO UPDATE SET
                price=excluded.price, last_updated=excluded.last_updated
            """,
            (price.slot, str(price.price), price.last_updated),
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        with self.db.lock:
            if self._depth:
                # Nested: the outermost block commits or rolls back.
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._depth = 1
            try:
                with self.db.transaction():
                    yield
            finally:
                self._depth = 0

    def _write(self, sql: str, params: tuple) -> None:
        with self.db.lock:
            self.db.execute(sql, params)
            if self._depth == 0:
                self.db.conn.commit()

    def close(self) -> None:
        self.db.close()

    def __repr__(self) -> str:
        return f"SqliteStore({self.db!r})"
