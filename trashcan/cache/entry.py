"""
Entry and result models for the two-tier cache.

An :class:`Entry` is immutable once stored: re-inserting under the same
key replaces it with a new entry.  Elapsed time is measured on the
monotonic clock; the wall-clock ``stored_at`` is informational only.
"""

import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

# Passed as ``duration`` to mark a permanent (never expiring) insert.
NEVER_EXPIRES = -1


class Tier(str, Enum):
    """Storage partition an entry lives in."""

    PERMANENT = "permanent"
    EXPIRING = "expiring"

    # Legacy names
    STORAGE = "permanent"
    CACHE = "expiring"


class Entry(BaseModel):
    """A single stored value.

    Attributes:
        value: The stored payload, opaque to the cache.
        stored_at: UTC wall-clock time of insertion.
        stored_at_monotonic: Monotonic clock reading at insertion.
        ttl: Lifetime after insertion, or ``None`` for a permanent entry.
    """

    value: Any = None
    stored_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    stored_at_monotonic: float = Field(default_factory=time.monotonic)
    ttl: Optional[timedelta] = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def never_expires(self) -> bool:
        """Whether this entry belongs in the permanent tier."""
        return self.ttl is None

    @property
    def expires_at(self) -> Optional[datetime]:
        """Wall-clock expiry time, or ``None`` for permanent entries."""
        if self.ttl is None:
            return None
        try:
            return self.stored_at + self.ttl
        except OverflowError:
            return datetime.max.replace(tzinfo=timezone.utc)

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Whether the TTL has fully elapsed.

        Args:
            now: Monotonic clock reading; defaults to ``time.monotonic()``.

        Returns:
            ``True`` once ``now - stored_at_monotonic >= ttl``.  Always
            ``False`` for permanent entries.
        """
        if self.ttl is None:
            return False
        if now is None:
            now = time.monotonic()
        return now - self.stored_at_monotonic >= self.ttl.total_seconds()


class LookupStatus(str, Enum):
    """Outcome of a lookup."""

    FOUND = "found"
    ABSENT = "absent"
    EXPIRED = "expired"
    CORRUPTED = "corrupted"


class Lookup(BaseModel):
    """Tagged result of :meth:`TrashCan.lookup`.

    ``value`` is only meaningful when ``status`` is ``FOUND``; a stored
    ``None`` is therefore distinguishable from absence.
    """

    key: str
    tier: Tier
    status: LookupStatus = LookupStatus.ABSENT
    value: Any = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def found(self) -> bool:
        """Whether the lookup produced a usable value."""
        return self.status is LookupStatus.FOUND


class CacheStats(BaseModel):
    """Aggregate cache statistics.

    Attributes:
        permanent_count: Entries currently in the permanent tier.
        expiring_count: Entries currently in the expiring tier.
        hits: Lookups that returned a value.
        misses: Lookups that returned nothing, for any reason.
        expired: Entries evicted lazily on read because their TTL elapsed.
        corrupted: Entries evicted because their value could not be read.
        swept: Entries removed by the sweeper.
        sweeps: Sweep passes run so far.
        hit_rate: Ratio of hits to total lookups (0.0 if no lookups).
        sweeper_state: Current sweeper state name.
    """

    permanent_count: int = 0
    expiring_count: int = 0
    hits: int = 0
    misses: int = 0
    expired: int = 0
    corrupted: int = 0
    swept: int = 0
    sweeps: int = 0
    hit_rate: float = 0.0
    sweeper_state: str = "stopped"
