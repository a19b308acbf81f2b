"""Rebalance execution.

Preconditions are checked in a fixed order before anything is written:

  1. the portfolio exists            -> ``PortfolioNotFound``
  2. auto-rebalance is enabled       -> ``NotAuthorized``
  3. drift exceeds the threshold     -> ``RebalanceNotNeeded``

On success every held and priced slot gets::

    target_value = floor(total_value * target_allocation / 10000)
    new_amount   = floor(target_value / price)        (0 when price is 0)

and its cached ``current_allocation`` is set to ``target_allocation``.
The cached figure is exact by construction even though ``new_amount`` is
truncated; a fresh valuation may differ by a few basis points.

Slots holding an asset with no price record are skipped, not rolled back.
The portfolio bookkeeping and all amount updates are written in a single
store transaction.
"""

from __future__ import annotations

import logging

from rebalancer.engine.drift import drift_report
from rebalancer.engine.percent import apply_bp, safe_floor_div
from rebalancer.engine.valuation import slot_range
from rebalancer.errors import NotAuthorized, PortfolioNotFound, RebalanceNotNeeded
from rebalancer.models import AmountChange, RebalanceResult
from rebalancer.storage.store import Store

logger = logging.getLogger(__name__)


def execute_rebalance(store: Store, owner: str, now: int, max_slots: int) -> RebalanceResult:
    """Bring every slot's amount back to its target allocation.

    Parameters:
        store: Record store.
        owner: Portfolio owner.
        now: Clock reading recorded as ``last_rebalance``.
        max_slots: Number of slots to consider.

    Returns:
        RebalanceResult with the per-slot amount changes.
    """
    portfolio = store.get_portfolio(owner)
    if portfolio is None:
        raise PortfolioNotFound(f"No portfolio for owner {owner!r}")
    if not portfolio.auto_rebalance_enabled:
        raise NotAuthorized(f"Auto-rebalance is disabled for {owner!r}")

    report = drift_report(store, owner, max_slots)
    if not report.needs_rebalance:
        raise RebalanceNotNeeded(
            f"Max drift {report.max_drift} bp is within threshold "
            f"{report.threshold} bp for {owner!r}"
        )

    total = report.total_value
    result = RebalanceResult(owner=owner, total_value=total, executed_at=now)

    with store.transaction():
        portfolio.total_value = total
        portfolio.last_rebalance = now
        store.set_portfolio(portfolio)

        for slot in slot_range(max_slots):
            holding = store.get_holding(owner, slot)
            if holding is None:
                continue
            price = store.get_price(slot)
            if price is None:
                logger.warning("Slot %d (%s) has no price; left untouched", slot, holding.asset_name)
                result.skipped_slots.append(slot)
                continue

            target_value = apply_bp(total, holding.target_allocation)
            new_amount = safe_floor_div(target_value, price.price)
            result.changes.append(AmountChange(
                slot=slot,
                asset_name=holding.asset_name,
                old_amount=holding.current_amount,
                new_amount=new_amount,
                target_allocation=holding.target_allocation,
            ))
            holding.current_amount = new_amount
            holding.current_allocation = holding.target_allocation
            store.set_holding(holding)

    logger.info(
        "Rebalanced %s at %d: value=%d, %d slot(s) updated, %d skipped",
        owner, now, total, result.n_changed, len(result.skipped_slots),
    )
    return result
