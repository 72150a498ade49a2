"""trashcan -- in-process two-tier TTL cache for handing data between components."""

from trashcan.cache import (
    NEVER_EXPIRES,
    CacheStats,
    Entry,
    Lookup,
    LookupStatus,
    Sweeper,
    SweeperState,
    Tier,
    TimeUnit,
    TrashCan,
    get_trash_can,
    reset_trash_can,
)
from trashcan.exceptions import (
    ConfigurationError,
    CorruptEntryError,
    SweeperError,
    TrashCanException,
)

__version__ = "1.0.0"

__all__ = [
    "NEVER_EXPIRES",
    "CacheStats",
    "ConfigurationError",
    "CorruptEntryError",
    "Entry",
    "Lookup",
    "LookupStatus",
    "Sweeper",
    "SweeperError",
    "SweeperState",
    "Tier",
    "TimeUnit",
    "TrashCan",
    "TrashCanException",
    "get_trash_can",
    "reset_trash_can",
]
