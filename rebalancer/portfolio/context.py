"""Caller identity, authorization and clocks.

Usage::

    auth = Authorizer(admins=["oracle"])
    caller = auth.caller("alice")          # Caller(identity="alice", is_admin=False)

    clock = ManualClock(1000)
    clock.advance(500)                     # 1500
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Iterable, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    """Identity of whoever is making a call."""

    identity: str
    is_admin: bool = False


class Authorizer:
    """Resolves identities to callers from a fixed set of administrators."""

    def __init__(self, admins: Iterable[str]) -> None:
        self._admins = frozenset(admins)

    def is_admin(self, identity: str) -> bool:
        return identity in self._admins

    def caller(self, identity: str) -> Caller:
        return Caller(identity=identity, is_admin=self.is_admin(identity))


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Unix time in whole seconds, never going backwards."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


class ManualClock:
    """Settable sequence number, e.g. a block height."""

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._value

    def set(self, value: int) -> None:
        with self._lock:
            if value < self._value:
                raise ValueError(f"Clock cannot go backwards ({self._value} -> {value})")
            self._value = value

    def advance(self, delta: int = 1) -> int:
        if delta < 0:
            raise ValueError(f"delta must be >= 0, got {delta}")
        with self._lock:
            self._value += delta
            return self._value
