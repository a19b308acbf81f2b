"""Domain records: portfolios, asset holdings, prices, allocations.

All quantities are non-negative integers. Percentages are basis points
(see :mod:`rebalancer.engine.percent`).
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Portfolio:
    """Portfolio-level configuration and bookkeeping for one owner."""

    owner: str
    rebalance_threshold: int
    """Drift tolerance in bp. Drift strictly above this makes the portfolio eligible."""
    total_value: int = 0
    """Value recorded at the last successful rebalance."""
    last_rebalance: int = 0
    auto_rebalance_enabled: bool = True


@dataclass
class AssetHolding:
    """One asset position (owner, slot) in a portfolio."""

    owner: str
    slot: int
    asset_name: str
    current_amount: int = 0
    target_allocation: int = 0
    current_allocation: int = 0
    """Cached share in bp. Informational only; drift is always recomputed."""


@dataclass
class AssetPrice:
    """Latest price for a slot. Shared by every owner."""

    slot: int
    price: int
    last_updated: int = 0


@dataclass
class AssetAllocation:
    """Computed allocation of one slot against a given total value."""

    slot: int
    asset_name: str = ""
    current_allocation: int = 0
    target_allocation: int = 0
    current_amount: int = 0

    @property
    def is_placeholder(self) -> bool:
        """True for the zero-filled record returned for unheld/unpriced slots."""
        return self.asset_name == ""

    @property
    def drift(self) -> int:
        return abs(self.current_allocation - self.target_allocation)


@dataclass
class AmountChange:
    """Amount written for one slot by a rebalance."""

    slot: int
    asset_name: str
    old_amount: int
    new_amount: int
    target_allocation: int


@dataclass
class RebalanceResult:
    """Outcome of a successful rebalance."""

    owner: str
    total_value: int
    executed_at: int
    changes: list[AmountChange] = field(default_factory=list)
    skipped_slots: list[int] = field(default_factory=list)
    """Slots with a holding but no price record; left untouched."""

    @property
    def n_changed(self) -> int:
        return len(self.changes)
