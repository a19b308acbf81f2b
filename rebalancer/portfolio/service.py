"""Portfolio operations for callers: configuration, pricing, rebalancing.

:class:`PortfolioService` is the single entry point used by the CLI and
tests. It validates inputs, applies the owner-scoped locking discipline
and delegates the arithmetic to :mod:`rebalancer.engine`.

Locking:
  - one re-entrant lock per owner, held for every read or write of that
    owner's portfolio and holdings;
  - one reader/writer lock for the shared price table. Valuations take
    it shared, price updates take it exclusively.

Locks are always acquired owner-first, so two owners only ever contend
on the shared side of the price lock.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Generator

from rebalancer.config.defaults import MAX_QUANTITY
from rebalancer.config.schema import RebalancerConfig
from rebalancer.engine import drift, rebalance, valuation
from rebalancer.engine.drift import DriftReport
from rebalancer.engine.percent import BASIS_POINTS, validate_bp
from rebalancer.errors import (
    AssetExists,
    InvalidAllocation,
    InvalidAsset,
    NotAuthorized,
    PortfolioExists,
    PortfolioNotFound,
)
from rebalancer.models import (
    AssetAllocation,
    AssetHolding,
    AssetPrice,
    Portfolio,
    RebalanceResult,
)
from rebalancer.portfolio.context import Caller, Clock, SystemClock
from rebalancer.storage.store import Store

logger = logging.getLogger(__name__)


class _ReadWriteLock:
    """Many readers or one writer.

    A waiting writer blocks new readers, so a steady stream of
    valuations cannot starve price updates. Not re-entrant for readers.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Generator[None, None, None]:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Generator[None, None, None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


def _require_quantity(value: int, name: str) -> int:
    """Amounts and prices are unsigned and fit in 128 bits."""
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    if value > MAX_QUANTITY:
        raise ValueError(f"{name} must be <= 2**128 - 1, got {value}")
    return value


class PortfolioService:
    """Owner-scoped portfolio operations over a :class:`Store`.

    Usage::

        service = PortfolioService(InMemoryStore(), clock=ManualClock(1000))
        alice = Caller("alice")
        service.create_portfolio(alice, threshold=500)
        service.add_asset(alice, slot=1, target=5000, amount=10, name="BTC")
        service.update_price(Caller("oracle", is_admin=True), slot=1, price=50_000)
        if service.check_needs_rebalance("alice"):
            service.execute_rebalance(alice)
    """

    def __init__(
        self,
        store: Store,
        *,
        clock: Clock | None = None,
        config: RebalancerConfig | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.config = config or RebalancerConfig()
        self._owner_locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._prices = _ReadWriteLock()

    @property
    def max_slots(self) -> int:
        return self.config.portfolio.max_asset_slots

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def _owner_lock(self, owner: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._owner_locks.get(owner)
            if lock is None:
                lock = self._owner_locks[owner] = threading.RLock()
            return lock

    @contextmanager
    def _owner_view(self, owner: str) -> Generator[None, None, None]:
        """Owner lock plus a shared hold on the price table."""
        with self._owner_lock(owner), self._prices.read():
            yield

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _check_slot(self, slot: int) -> int:
        if not 1 <= slot <= self.max_slots:
            raise InvalidAsset(f"Slot must be within 1..{self.max_slots}, got {slot}")
        return slot

    def _require_portfolio(self, owner: str) -> Portfolio:
        portfolio = self.store.get_portfolio(owner)
        if portfolio is None:
            raise PortfolioNotFound(f"No portfolio for owner {owner!r}")
        return portfolio

    def _check_target_sum(self, owner: str, slot: int, target: int) -> None:
        """Reject a target that would push the owner's total above 100%."""
        if not self.config.rebalance.enforce_target_sum:
            return
        total = target
        for other in valuation.slot_range(self.max_slots):
            if other == slot:
                continue
            holding = self.store.get_holding(owner, other)
            if holding is not None:
                total += holding.target_allocation
        if total > BASIS_POINTS:
            raise InvalidAllocation(
                f"Targets for {owner!r} would sum to {total} bp (max {BASIS_POINTS})"
            )

    # ------------------------------------------------------------------
    # Portfolio configuration
    # ------------------------------------------------------------------

    def create_portfolio(self, caller: Caller, threshold: int | None = None) -> Portfolio:
        """Create the caller's portfolio with the given drift threshold."""
        owner = caller.identity
        if threshold is None:
            threshold = self.config.portfolio.default_threshold
        with self._owner_lock(owner):
            if self.store.has_portfolio(owner):
                raise PortfolioExists(f"Portfolio already exists for {owner!r}")
            validate_bp(threshold, name="rebalance_threshold")

            portfolio = Portfolio(
                owner=owner,
                rebalance_threshold=threshold,
                total_value=0,
                last_rebalance=self.clock.now(),
                auto_rebalance_enabled=True,
            )
            self.store.set_portfolio(portfolio)
        logger.info("Created portfolio for %s (threshold=%d bp)", owner, threshold)
        return portfolio

    def update_threshold(self, caller: Caller, threshold: int) -> Portfolio:
        owner = caller.identity
        with self._owner_lock(owner):
            portfolio = self._require_portfolio(owner)
            validate_bp(threshold, name="rebalance_threshold")
            portfolio.rebalance_threshold = threshold
            self.store.set_portfolio(portfolio)
        logger.info("Threshold for %s set to %d bp", owner, threshold)
        return portfolio

    def set_auto_rebalance(self, caller: Caller, enabled: bool) -> Portfolio:
        owner = caller.identity
        with self._owner_lock(owner):
            portfolio = self._require_portfolio(owner)
            portfolio.auto_rebalance_enabled = enabled
            self.store.set_portfolio(portfolio)
        logger.info("Auto-rebalance for %s %s", owner, "enabled" if enabled else "disabled")
        return portfolio

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def add_asset(
        self, caller: Caller, slot: int, target: int, amount: int, name: str,
    ) -> AssetHolding:
        """Add a holding to the caller's portfolio.

        Raises:
            PortfolioNotFound: caller has no portfolio.
            InvalidAsset: slot out of range or empty name.
            AssetExists: slot already holds an asset.
            InvalidAllocation: target above 10000 bp, or the target sum
                would exceed 10000 bp when that check is enabled.
        """
        owner = caller.identity
        _require_quantity(amount, "amount")
        with self._owner_lock(owner):
            self._require_portfolio(owner)
            self._check_slot(slot)
            if not name:
                raise InvalidAsset("Asset name must not be empty")
            if self.store.has_holding(owner, slot):
                raise AssetExists(f"Slot {slot} already holds an asset for {owner!r}")
            validate_bp(target, name="target_allocation")
            self._check_target_sum(owner, slot, target)

            holding = AssetHolding(
                owner=owner,
                slot=slot,
                asset_name=name,
                current_amount=amount,
                target_allocation=target,
                current_allocation=0,
            )
            self.store.set_holding(holding)
        logger.info("Added %s to %s slot %d (target=%d bp, amount=%d)", name, owner, slot, target, amount)
        return holding

    def update_target_allocation(self, caller: Caller, slot: int, target: int) -> AssetHolding:
        """Change the target allocation of an existing holding."""
        owner = caller.identity
        with self._owner_lock(owner):
            self._require_portfolio(owner)
            self._check_slot(slot)
            holding = self.store.get_holding(owner, slot)
            if holding is None:
                raise InvalidAsset(f"No asset in slot {slot} for {owner!r}")
            validate_bp(target, name="target_allocation")
            self._check_target_sum(owner, slot, target)
            holding.target_allocation = target
            self.store.set_holding(holding)
        logger.info("Target for %s slot %d set to %d bp", owner, slot, target)
        return holding

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def update_price(self, caller: Caller, slot: int, price: int) -> AssetPrice:
        """Publish a price for *slot*. Administrators only."""
        if not caller.is_admin:
            raise NotAuthorized(f"{caller.identity!r} may not update prices")
        self._check_slot(slot)
        _require_quantity(price, "price")
        record = AssetPrice(slot=slot, price=price, last_updated=self.clock.now())
        with self._prices.write():
            self.store.set_price(record)
        logger.info("Price for slot %d set to %d", slot, price)
        return record

    # ------------------------------------------------------------------
    # Valuation, drift, rebalance
    # ------------------------------------------------------------------

    def portfolio_value(self, owner: str) -> int:
        with self._owner_view(owner):
            return valuation.portfolio_value(self.store, owner, self.max_slots)

    def get_current_allocations(self, owner: str) -> list[AssetAllocation]:
        with self._owner_view(owner):
            return valuation.current_allocations(self.store, owner, self.max_slots)

    def single_asset_drift(self, owner: str, slot: int) -> int:
        with self._owner_view(owner):
            total = valuation.portfolio_value(self.store, owner, self.max_slots)
            return drift.single_asset_drift(self.store, owner, slot, total)

    def drift_report(self, owner: str) -> DriftReport:
        with self._owner_view(owner):
            return drift.drift_report(self.store, owner, self.max_slots)

    def check_needs_rebalance(self, owner: str) -> bool:
        with self._owner_view(owner):
            return drift.needs_rebalance(self.store, owner, self.max_slots)

    def execute_rebalance(self, caller: Caller) -> RebalanceResult:
        """Rebalance the caller's own portfolio."""
        owner = caller.identity
        with self._owner_view(owner):
            return rebalance.execute_rebalance(
                self.store, owner, self.clock.now(), self.max_slots
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_portfolio(self, owner: str) -> Portfolio | None:
        with self._owner_lock(owner):
            return self.store.get_portfolio(owner)

    def get_asset(self, owner: str, slot: int) -> AssetHolding | None:
        with self._owner_lock(owner):
            return self.store.get_holding(owner, slot)

    def get_price(self, slot: int) -> AssetPrice | None:
        with self._prices.read():
            return self.store.get_price(slot)
