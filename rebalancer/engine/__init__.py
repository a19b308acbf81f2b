"""Valuation, drift detection and rebalancing.

Public API:
  portfolio_value    : Sum of amount x price over held, priced slots
  asset_allocation   : Current vs target allocation for one slot
  current_allocations: All non-placeholder allocations, in slot order
  single_asset_drift : |current - target| for one slot, in bp
  needs_rebalance    : Max drift strictly above threshold
  drift_report       : DriftReport for a whole portfolio
  execute_rebalance  : Reset amounts to match targets
"""

from rebalancer.engine.drift import DriftReport, drift_report, needs_rebalance, single_asset_drift
from rebalancer.engine.rebalance import execute_rebalance
from rebalancer.engine.valuation import asset_allocation, current_allocations, portfolio_value

__all__ = [
    "DriftReport",
    "asset_allocation",
    "current_allocations",
    "drift_report",
    "execute_rebalance",
    "needs_rebalance",
    "portfolio_value",
    "single_asset_drift",
]
