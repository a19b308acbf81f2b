"""Default values for portfolio, rebalance, auth and storage settings.

Basis points throughout: 10000 = 100%.
"""

BASIS_POINTS = 10_000

# Amounts and prices are unsigned 128-bit quantities.
MAX_QUANTITY = 2**128 - 1

# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------
PORTFOLIO_DEFAULTS = {
    "max_asset_slots": 5,       # slots 1..5, bounded iteration per operation
    "max_asset_slots_limit": 64,
    "default_threshold": 500,   # 5% drift tolerance
}

# ---------------------------------------------------------------------------
# Rebalance
# ---------------------------------------------------------------------------
REBALANCE_DEFAULTS = {
    "enforce_target_sum": False,  # target sums are the caller's responsibility
}

# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------
AUTH_DEFAULTS = {
    "admins": ["admin"],  # identities allowed to publish prices
    "default_identity": "admin",
}

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
STORAGE_BACKENDS = ("memory", "sqlite")

STORAGE_DEFAULTS = {
    "backend": "sqlite",
    "path": "~/.rebalancer/rebalancer.db",
}
