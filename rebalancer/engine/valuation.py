"""Portfolio valuation and per-asset allocation.

Value of a slot is ``current_amount * price``. A slot missing either its
holding or its price contributes nothing, so an empty or unpriced
portfolio is worth zero rather than an error.
"""

from __future__ import annotations

import logging

from rebalancer.engine.percent import share_bp
from rebalancer.models import AssetAllocation, AssetHolding, AssetPrice
from rebalancer.storage.store import Store

logger = logging.getLogger(__name__)


def slot_range(max_slots: int) -> range:
    """Slot ids ``1..max_slots`` in iteration order."""
    return range(1, max_slots + 1)


def priced_holding(
    store: Store, owner: str, slot: int,
) -> tuple[AssetHolding, AssetPrice] | None:
    """Holding and price for a slot, or None when either is missing."""
    holding = store.get_holding(owner, slot)
    if holding is None:
        return None
    price = store.get_price(slot)
    if price is None:
        return None
    return holding, price


def portfolio_value(store: Store, owner: str, max_slots: int) -> int:
    """Sum of ``amount * price`` over every held and priced slot."""
    total = 0
    for slot in slot_range(max_slots):
        pair = priced_holding(store, owner, slot)
        if pair is None:
            continue
        holding, price = pair
        total += holding.current_amount * price.price
    logger.debug("Portfolio value for %s: %d", owner, total)
    return total


def asset_allocation(
    store: Store, owner: str, slot: int, total_value: int,
) -> AssetAllocation:
    """Current allocation of one slot against *total_value*.

    Returns a zero-filled placeholder (empty ``asset_name``) when the
    total is zero or the slot is unheld or unpriced.
    """
    if total_value <= 0:
        return AssetAllocation(slot=slot)
    pair = priced_holding(store, owner, slot)
    if pair is None:
        return AssetAllocation(slot=slot)

    holding, price = pair
    return AssetAllocation(
        slot=slot,
        asset_name=holding.asset_name,
        current_allocation=share_bp(holding.current_amount * price.price, total_value),
        target_allocation=holding.target_allocation,
        current_amount=holding.current_amount,
    )


def current_allocations(store: Store, owner: str, max_slots: int) -> list[AssetAllocation]:
    """Allocations for every held and priced slot, in slot order.

    Placeholders are filtered out. Empty when the portfolio is worth zero.
    """
    total = portfolio_value(store, owner, max_slots)
    if total <= 0:
        return []
    allocations = (asset_allocation(store, owner, slot, total) for slot in slot_range(max_slots))
    return [a for a in allocations if not a.is_placeholder]
