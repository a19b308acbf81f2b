"""Portfolio records, caller context and the operation surface.

Public API::

    from rebalancer.portfolio import (
        Portfolio,
        AssetHolding,
        AssetPrice,
        AssetAllocation,
        RebalanceResult,
        Caller,
        Authorizer,
        ManualClock,
        SystemClock,
        PortfolioService,
    )
"""

from rebalancer.models import (
    AmountChange,
    AssetAllocation,
    AssetHolding,
    AssetPrice,
    Portfolio,
    RebalanceResult,
)
from rebalancer.portfolio.context import Authorizer, Caller, ManualClock, SystemClock
from rebalancer.portfolio.service import PortfolioService

__all__ = [
    "AmountChange",
    "AssetAllocation",
    "AssetHolding",
    "AssetPrice",
    "Authorizer",
    "Caller",
    "ManualClock",
    "Portfolio",
    "PortfolioService",
    "RebalanceResult",
    "SystemClock",
]
