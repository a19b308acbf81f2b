"""Tabular allocation report."""

from __future__ import annotations

import pandas as pd

from rebalancer.engine.percent import bp_to_pct
from rebalancer.models import AssetAllocation

REPORT_COLUMNS = ["asset", "amount", "current_bp", "target_bp", "drift_bp"]


def allocations_frame(allocations: list[AssetAllocation]) -> pd.DataFrame:
    """One row per allocation, indexed by slot."""
    if not allocations:
        frame = pd.DataFrame(columns=REPORT_COLUMNS)
        frame.index.name = "slot"
        return frame

    frame = pd.DataFrame(
        [
            {
                "slot": a.slot,
                "asset": a.asset_name,
                "amount": a.current_amount,
                "current_bp": a.current_allocation,
                "target_bp": a.target_allocation,
                "drift_bp": a.drift,
            }
            for a in allocations
        ]
    ).set_index("slot")
    return frame[REPORT_COLUMNS]


def format_allocations(allocations: list[AssetAllocation]) -> str:
    """Render allocations as a plain-text table with percentages."""
    frame = allocations_frame(allocations)
    if frame.empty:
        return "(no priced holdings)"
    display = frame.assign(
        current=frame["current_bp"].map(lambda v: f"{bp_to_pct(v):.2f}%"),
        target=frame["target_bp"].map(lambda v: f"{bp_to_pct(v):.2f}%"),
        drift=frame["drift_bp"].map(lambda v: f"{bp_to_pct(v):.2f}%"),
    )[["asset", "amount", "current", "target", "drift"]]
    return display.to_string()
