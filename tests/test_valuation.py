"""Tests for portfolio valuation and per-asset allocation."""

from __future__ import annotations

from conftest import BTC, ETH, OWNER, USDC

from rebalancer.engine.valuation import (
    asset_allocation,
    current_allocations,
    portfolio_value,
    slot_range,
)
from rebalancer.models import AssetAllocation


class TestPortfolioValue:
    def test_three_asset_value(self, seeded):
        # 10 * 50000 + 100 * 3000 + 1000 * 1
        assert portfolio_value(seeded.store, OWNER, 5) == 801_000
        assert seeded.portfolio_value(OWNER) == 801_000

    def test_empty_portfolio_is_zero(self, service, owner):
        service.create_portfolio(owner, 500)
        assert service.portfolio_value(OWNER) == 0

    def test_unknown_owner_is_zero(self, service):
        assert service.portfolio_value("nobody") == 0

    def test_unpriced_asset_excluded(self, service, owner, admin):
        service.create_portfolio(owner, 500)
        service.add_asset(owner, BTC, 5000, 10, "BTC")
        assert service.portfolio_value(OWNER) == 0

        service.add_asset(owner, ETH, 5000, 100, "ETH")
        service.update_price(admin, ETH, 1000)
        assert service.portfolio_value(OWNER) == 100_000

    def test_price_without_holding_ignored(self, service, owner, admin):
        service.create_portfolio(owner, 500)
        service.update_price(admin, BTC, 50_000)
        assert service.portfolio_value(OWNER) == 0

    def test_zero_price_contributes_nothing(self, service, owner, admin):
        service.create_portfolio(owner, 500)
        service.add_asset(owner, BTC, 5000, 10, "BTC")
        service.update_price(admin, BTC, 0)
        assert service.portfolio_value(OWNER) == 0

    def test_only_scans_configured_slots(self, seeded):
        assert portfolio_value(seeded.store, OWNER, 2) == 800_000

    def test_slot_range(self):
        assert list(slot_range(5)) == [1, 2, 3, 4, 5]


class TestAssetAllocation:
    def test_floor_divided_allocations(self, seeded):
        btc = asset_allocation(seeded.store, OWNER, BTC, 801_000)
        eth = asset_allocation(seeded.store, OWNER, ETH, 801_000)
        usdc = asset_allocation(seeded.store, OWNER, USDC, 801_000)
        assert btc == AssetAllocation(slot=BTC, asset_name="BTC", current_allocation=6242,
                                      target_allocation=5000, current_amount=10)
        assert eth.current_allocation == 3745
        assert usdc.current_allocation == 12

    def test_zero_total_gives_placeholder(self, seeded):
        alloc = asset_allocation(seeded.store, OWNER, BTC, 0)
        assert alloc.is_placeholder
        assert alloc.current_allocation == 0
        assert alloc.target_allocation == 0
        assert alloc.current_amount == 0

    def test_unheld_slot_gives_placeholder(self, seeded):
        assert asset_allocation(seeded.store, OWNER, 4, 801_000).is_placeholder

    def test_unpriced_slot_gives_placeholder(self, service, owner):
        service.create_portfolio(owner, 500)
        service.add_asset(owner, BTC, 5000, 10, "BTC")
        assert asset_allocation(service.store, OWNER, BTC, 1000).is_placeholder

    def test_ignores_cached_allocation(self, seeded):
        holding = seeded.store.get_holding(OWNER, BTC)
        holding.current_allocation = 1
        seeded.store.set_holding(holding)
        assert asset_allocation(seeded.store, OWNER, BTC, 801_000).current_allocation == 6242


class TestCurrentAllocations:
    def test_ordered_by_slot(self, seeded):
        allocations = seeded.get_current_allocations(OWNER)
        assert [a.asset_name for a in allocations] == ["BTC", "ETH", "USDC"]
        assert [a.target_allocation for a in allocations] == [5000, 3000, 2000]
        assert [a.current_allocation for a in allocations] == [6242, 3745, 12]

    def test_rounding_loss_tolerated(self, seeded):
        total = sum(a.current_allocation for a in seeded.get_current_allocations(OWNER))
        assert 10_000 - len(seeded.get_current_allocations(OWNER)) <= total <= 10_000

    def test_empty_portfolio(self, service, owner):
        service.create_portfolio(owner, 500)
        assert service.get_current_allocations(OWNER) == []

    def test_unpriced_asset_omitted(self, seeded, owner):
        seeded.add_asset(owner, 4, 1000, 5, "SOL")
        names = [a.asset_name for a in seeded.get_current_allocations(OWNER)]
        assert names == ["BTC", "ETH", "USDC"]
        assert current_allocations(seeded.store, OWNER, 5) == seeded.get_current_allocations(OWNER)

    def test_price_change_moves_allocation(self, service, owner, admin):
        service.create_portfolio(owner, 500)
        service.add_asset(owner, BTC, 5000, 10, "BTC")
        service.add_asset(owner, ETH, 5000, 100, "ETH")
        service.update_price(admin, BTC, 10_000)
        service.update_price(admin, ETH, 1_000)
        assert [a.current_allocation for a in service.get_current_allocations(OWNER)] == [5000, 5000]

        service.update_price(admin, BTC, 20_000)
        # 200000 / 300000 and 100000 / 300000, floored
        assert [a.current_allocation for a in service.get_current_allocations(OWNER)] == [6666, 3333]
