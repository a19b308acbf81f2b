"""Fixed-point percentage math on integer basis points.

10000 bp = 100%. All helpers take and return ``int`` and use floor
division, so results are exact and reproducible across platforms.
"""

from __future__ import annotations

from rebalancer.config.defaults import BASIS_POINTS
from rebalancer.errors import InvalidAllocation


def validate_bp(value: int, *, name: str = "allocation") -> int:
    """Return *value* unchanged if it is a valid basis-point figure.

    Raises:
        InvalidAllocation: if *value* is negative or above 10000.
    """
    if value < 0 or value > BASIS_POINTS:
        raise InvalidAllocation(
            f"{name} must be within 0..{BASIS_POINTS} bp, got {value}"
        )
    return value


def share_bp(part: int, whole: int) -> int:
    """Share of *part* in *whole*, in basis points, floored.

    Returns 0 when *whole* is zero instead of dividing by it.
    """
    if whole <= 0:
        return 0
    return part * BASIS_POINTS // whole


def apply_bp(value: int, bp: int) -> int:
    """Floor of ``value * bp / 10000``."""
    return value * bp // BASIS_POINTS


def abs_diff(a: int, b: int) -> int:
    return a - b if a >= b else b - a


def safe_floor_div(numerator: int, denominator: int) -> int:
    """Floor division that yields 0 for a zero denominator."""
    if denominator == 0:
        return 0
    return numerator // denominator


def bp_to_pct(bp: int) -> float:
    """Basis points as a display percentage (6242 -> 62.42)."""
    return bp / 100
