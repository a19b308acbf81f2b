"""Record storage: the Store interface, in-memory and SQLite backends."""

from __future__ import annotations

import logging

from rebalancer.config.loader import resolve_path
from rebalancer.config.schema import RebalancerConfig
from rebalancer.storage.database import Database
from rebalancer.storage.sqlite_store import SqliteStore
from rebalancer.storage.store import InMemoryStore, Store

logger = logging.getLogger(__name__)


def create_store(config: RebalancerConfig) -> Store:
    """Build the store named by ``config.storage.backend``."""
    if config.storage.backend == "memory":
        logger.debug("Using in-memory store")
        return InMemoryStore()
    db_path = resolve_path(config.storage.path)
    logger.debug("Using SQLite store at %s", db_path)
    return SqliteStore(Database(db_path))


__all__ = ["Database", "InMemoryStore", "SqliteStore", "Store", "create_store"]
