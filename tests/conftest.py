"""Shared test fixtures for the rebalancer.

Provides stores (in-memory and SQLite), a manual clock, callers and a
service seeded with the three-asset BTC/ETH/USDC portfolio used across
the engine and service tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from rebalancer.config.schema import RebalancerConfig
from rebalancer.portfolio.context import Caller, ManualClock
from rebalancer.portfolio.service import PortfolioService
from rebalancer.storage.database import Database
from rebalancer.storage.migrations import ensure_schema
from rebalancer.storage.sqlite_store import SqliteStore
from rebalancer.storage.store import InMemoryStore

OWNER = "alice"
ADMIN = "admin"

BTC, ETH, USDC = 1, 2, 3

# ---------------------------------------------------------------------------
# Core infrastructure
# ---------------------------------------------------------------------------

@pytest.fixture
def test_config(tmp_path: Path) -> RebalancerConfig:
    """Default config with a temp database path."""
    return RebalancerConfig(storage={"backend": "sqlite", "path": str(tmp_path / "test.db")})


@pytest.fixture
def test_db(tmp_path: Path) -> Database:
    """Database with schema applied, using temp file."""
    db = Database(tmp_path / "test.db")
    ensure_schema(db)
    yield db
    db.close()


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SqliteStore:
    store = SqliteStore(Database(tmp_path / "store.db"))
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    """Each test using this fixture runs against both backends."""
    if request.param == "memory":
        yield InMemoryStore()
        return
    s = SqliteStore(Database(tmp_path / "param.db"))
    yield s
    s.close()


@pytest.fixture
def clock() -> ManualClock:
    """Block-height style clock starting at 1000."""
    return ManualClock(1000)


@pytest.fixture
def owner() -> Caller:
    return Caller(OWNER)


@pytest.fixture
def admin() -> Caller:
    return Caller(ADMIN, is_admin=True)


@pytest.fixture
def service(store, clock) -> PortfolioService:
    return PortfolioService(store, clock=clock)


# ---------------------------------------------------------------------------
# Seeded portfolios
# ---------------------------------------------------------------------------

def seed_three_assets(service: PortfolioService, owner: Caller, admin: Caller) -> None:
    """10 BTC @ 50000, 100 ETH @ 3000, 1000 USDC @ 1; targets 50/30/20%."""
    service.create_portfolio(owner, 500)
    service.add_asset(owner, BTC, 5000, 10, "BTC")
    service.add_asset(owner, ETH, 3000, 100, "ETH")
    service.add_asset(owner, USDC, 2000, 1000, "USDC")
    service.update_price(admin, BTC, 50_000)
    service.update_price(admin, ETH, 3_000)
    service.update_price(admin, USDC, 1)


@pytest.fixture
def seeded(service, owner, admin) -> PortfolioService:
    """Service holding the BTC/ETH/USDC portfolio (value 801000)."""
    seed_three_assets(service, owner, admin)
    return service
