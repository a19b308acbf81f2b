"""Configuration loading, validation, and defaults."""

from rebalancer.config.loader import load_config
from rebalancer.config.schema import RebalancerConfig

__all__ = ["load_config", "RebalancerConfig"]
