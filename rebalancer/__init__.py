"""Rebalancer -- target-allocation tracking and threshold rebalancing."""

__version__ = "0.1.0"
