"""Error taxonomy for portfolio and rebalance operations.

Every error here is a precondition violation surfaced directly to the
caller. There is no transient failure class, so nothing is retried.
Numeric edge cases (zero portfolio value, zero price) are handled as
policy inside the engine and never raise.
"""

from __future__ import annotations


class RebalancerError(Exception):
    """Base class for all domain errors."""

    code: int = 0

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def __str__(self) -> str:
        return self.message


class NotAuthorized(RebalancerError):
    """Caller lacks permission, or auto-rebalance is disabled."""

    code = 100


class InvalidAsset(RebalancerError):
    """Slot outside the configured range, or no holding in that slot."""

    code = 101


class InvalidAllocation(RebalancerError):
    """A basis-point argument is outside 0..10000."""

    code = 102


class RebalanceNotNeeded(RebalancerError):
    """Drift is within the portfolio's threshold."""

    code = 104


class AssetExists(RebalancerError):
    """A holding already exists for this (owner, slot)."""

    code = 105


class PortfolioNotFound(RebalancerError):
    code = 106


class PortfolioExists(RebalancerError):
    code = 107


__all__ = [
    "AssetExists",
    "InvalidAllocation",
    "InvalidAsset",
    "NotAuthorized",
    "PortfolioExists",
    "PortfolioNotFound",
    "RebalanceNotNeeded",
    "RebalancerError",
]
