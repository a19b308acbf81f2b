"""Multi-owner isolation under concurrent mutation."""

from __future__ import annotations

import threading
import time

import pytest
from conftest import ADMIN, BTC, ETH, USDC

from rebalancer.errors import RebalanceNotNeeded
from rebalancer.portfolio.context import Caller, ManualClock
from rebalancer.portfolio.service import PortfolioService, _ReadWriteLock

N_ROUNDS = 50


def _seed(service: PortfolioService, caller: Caller) -> None:
    service.create_portfolio(caller, 500)
    service.add_asset(caller, BTC, 5000, 10, "BTC")
    service.add_asset(caller, ETH, 3000, 100, "ETH")
    service.add_asset(caller, USDC, 2000, 1000, "USDC")


def _run_threads(*targets) -> list[BaseException]:
    errors: list[BaseException] = []

    def wrap(fn):
        def runner():
            try:
                fn()
            except Exception as e:
                errors.append(e)
        return runner

    threads = [threading.Thread(target=wrap(t)) for t in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return errors


@pytest.fixture
def shared(store):
    service = PortfolioService(store, clock=ManualClock(1000))
    admin = Caller(ADMIN, is_admin=True)
    a, b = Caller("alice"), Caller("bob")
    _seed(service, a)
    _seed(service, b)
    service.update_price(admin, BTC, 50_000)
    service.update_price(admin, ETH, 3_000)
    service.update_price(admin, USDC, 1)
    return service, admin, a, b


class TestConcurrentOwners:
    def test_simultaneous_rebalances_are_independent(self, shared):
        service, _admin, a, b = shared
        barrier = threading.Barrier(2)
        results = {}

        def rebalance(caller):
            def run():
                barrier.wait()
                results[caller.identity] = service.execute_rebalance(caller)
            return run

        errors = _run_threads(rebalance(a), rebalance(b))
        assert errors == []
        for name in ("alice", "bob"):
            assert [c.new_amount for c in results[name].changes] == [8, 80, 160_200]
            assert service.get_portfolio(name).total_value == 801_000

    def test_rebalancing_one_owner_never_touches_the_other(self, shared):
        service, admin, a, b = shared
        bob_before = [service.get_asset("bob", s) for s in (BTC, ETH, USDC)]
        bob_portfolio = service.get_portfolio("bob")

        def alice_loop():
            for _ in range(N_ROUNDS):
                try:
                    service.execute_rebalance(a)
                except RebalanceNotNeeded:
                    pass

        def oracle_loop():
            for i in range(N_ROUNDS):
                service.update_price(admin, BTC, 50_000 if i % 2 else 100_000)

        def bob_reader():
            for _ in range(N_ROUNDS):
                allocations = service.get_current_allocations("bob")
                assert [x.current_amount for x in allocations] == [10, 100, 1000]
                service.check_needs_rebalance("bob")

        errors = _run_threads(alice_loop, oracle_loop, bob_reader)
        assert errors == []
        assert [service.get_asset("bob", s) for s in (BTC, ETH, USDC)] == bob_before
        assert service.get_portfolio("bob") == bob_portfolio

    def test_rebalance_sees_consistent_snapshot(self, shared):
        service, admin, a, _b = shared

        def oracle_loop():
            for i in range(N_ROUNDS):
                service.update_price(admin, ETH, 3_000 if i % 2 else 6_000)

        def alice_loop():
            for _ in range(N_ROUNDS):
                try:
                    result = service.execute_rebalance(a)
                except RebalanceNotNeeded:
                    continue
                for change in result.changes:
                    assert change.target_allocation in (5000, 3000, 2000)

        errors = _run_threads(alice_loop, oracle_loop)
        assert errors == []
        for slot, target in [(BTC, 5000), (ETH, 3000), (USDC, 2000)]:
            holding = service.get_asset("alice", slot)
            assert holding.current_allocation in (0, target)


def _wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.001)


class TestPriceLock:
    def test_waiting_writer_blocks_new_readers(self):
        lock = _ReadWriteLock()
        order: list[str] = []
        release_first = threading.Event()

        def first_reader():
            with lock.read():
                release_first.wait(5)

        def writer():
            with lock.write():
                order.append("write")

        def late_reader():
            with lock.read():
                order.append("read")

        t_first = threading.Thread(target=first_reader)
        t_first.start()
        _wait_for(lambda: lock._readers == 1)

        t_writer = threading.Thread(target=writer)
        t_writer.start()
        _wait_for(lambda: lock._writers_waiting == 1)

        t_late = threading.Thread(target=late_reader)
        t_late.start()
        time.sleep(0.05)
        assert order == []

        release_first.set()
        for t in (t_first, t_writer, t_late):
            t.join(timeout=5)
        assert order == ["write", "read"]

    def test_price_update_completes_under_steady_reads(self, shared):
        service, admin, _a, _b = shared
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                service.portfolio_value("alice")

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()
        try:
            for price in range(1, 21):
                service.update_price(admin, USDC, price)
        finally:
            stop.set()
            for t in readers:
                t.join(timeout=5)
        assert service.get_price(USDC).price == 20
