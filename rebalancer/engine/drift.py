"""Allocation drift detection.

Drift for a slot is ``|current_allocation - target_allocation|`` in basis
points, with the current allocation recomputed from amount and price on
every call. The cached ``current_allocation`` on a holding is never read
here.

A portfolio needs rebalancing when its largest single-slot drift is
strictly greater than its threshold. Drift equal to the threshold is
within tolerance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rebalancer.engine.percent import abs_diff
from rebalancer.engine.valuation import asset_allocation, portfolio_value, slot_range
from rebalancer.errors import PortfolioNotFound
from rebalancer.models import Portfolio
from rebalancer.storage.store import Store

logger = logging.getLogger(__name__)


@dataclass
class DriftReport:
    """Drift of every slot against one valuation of the portfolio."""

    owner: str
    total_value: int
    threshold: int
    drifts: dict[int, int] = field(default_factory=dict)
    """slot -> drift in bp, for held and priced slots only."""

    @property
    def max_drift(self) -> int:
        return max(self.drifts.values(), default=0)

    @property
    def needs_rebalance(self) -> bool:
        if self.total_value <= 0:
            return False
        return self.max_drift > self.threshold

    @property
    def worst_slot(self) -> int | None:
        """Slot with the largest drift (lowest slot wins ties)."""
        if not self.drifts:
            return None
        return max(sorted(self.drifts), key=lambda s: self.drifts[s])


def single_asset_drift(store: Store, owner: str, slot: int, total_value: int) -> int:
    """Drift of one slot in bp. Zero for unheld or unpriced slots."""
    allocation = asset_allocation(store, owner, slot, total_value)
    if allocation.is_placeholder:
        return 0
    return abs_diff(allocation.current_allocation, allocation.target_allocation)


def _require_portfolio(store: Store, owner: str) -> Portfolio:
    portfolio = store.get_portfolio(owner)
    if portfolio is None:
        raise PortfolioNotFound(f"No portfolio for owner {owner!r}")
    return portfolio


def drift_report(store: Store, owner: str, max_slots: int) -> DriftReport:
    """Value the portfolio once and measure drift for every slot.

    Raises:
        PortfolioNotFound: if *owner* has no portfolio.
    """
    portfolio = _require_portfolio(store, owner)
    total = portfolio_value(store, owner, max_slots)
    report = DriftReport(owner=owner, total_value=total, threshold=portfolio.rebalance_threshold)
    if total <= 0:
        return report

    for slot in slot_range(max_slots):
        allocation = asset_allocation(store, owner, slot, total)
        if allocation.is_placeholder:
            continue
        report.drifts[slot] = abs_diff(
            allocation.current_allocation, allocation.target_allocation
        )

    logger.debug(
        "Drift for %s: max=%d bp threshold=%d bp needs_rebalance=%s",
        owner, report.max_drift, report.threshold, report.needs_rebalance,
    )
    return report


def needs_rebalance(store: Store, owner: str, max_slots: int) -> bool:
    """Whether the portfolio's max drift is strictly above its threshold.

    Always False for a portfolio worth zero, whatever the threshold.

    Raises:
        PortfolioNotFound: if *owner* has no portfolio.
    """
    return drift_report(store, owner, max_slots).needs_rebalance
