"""Two-tier TTL cache: permanent and expiring storage with a background sweeper."""

from trashcan.cache.engine import TrashCan, get_trash_can, reset_trash_can
from trashcan.cache.entry import (
    NEVER_EXPIRES,
    CacheStats,
    Entry,
    Lookup,
    LookupStatus,
    Tier,
)
from trashcan.cache.sweeper import Sweeper, SweeperState
from trashcan.cache.units import TimeUnit

__all__ = [
    "NEVER_EXPIRES",
    "CacheStats",
    "Entry",
    "Lookup",
    "LookupStatus",
    "Sweeper",
    "SweeperState",
    "Tier",
    "TimeUnit",
    "TrashCan",
    "get_trash_can",
    "reset_trash_can",
]
