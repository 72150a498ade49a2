"""
Two-tier in-process cache engine.

Values live in one of two tiers: a permanent tier whose entries never
expire, and an expiring tier whose entries carry a TTL.  Each tier has
its own :class:`FairLock`, so traffic on one tier never waits on the
other, and the two locks are never held at the same time.  A
:class:`Sweeper` periodically evicts expired entries from the expiring
tier; reads also evict them lazily.
"""

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

from trashcan.cache.entry import (
    NEVER_EXPIRES,
    CacheStats,
    Entry,
    Lookup,
    LookupStatus,
    Tier,
)
from trashcan.cache.locks import FairLock
from trashcan.cache.sweeper import Sweeper
from trashcan.cache.units import TimeUnit
from trashcan.config import get_settings
from trashcan.exceptions import CorruptEntryError

logger = logging.getLogger(__name__)

TypeSpec = Union[Type[Any], Tuple[Type[Any], ...]]


class _TierStore:
    """One tier's mapping together with the lock that guards it."""

    def __init__(self, tier: Tier) -> None:
        self.tier = tier
        self.lock = FairLock()
        self.entries: Dict[str, Entry] = {}


class TrashCan:
    """In-process key-value cache with a permanent and an expiring tier.

    Intended for handing short-lived data from one component to another
    inside a single process.  Reads consume the entry by default.

    Args:
        sweep_interval_seconds: Sweeper period.  Defaults to
            ``cache.sweep_interval_seconds`` from settings.
        initial_delay_seconds: Delay before the first sweep.  Defaults to
            the sweep interval.
        autostart: Start the sweeper immediately.  Defaults to
            ``cache.autostart``.
        evict_cross_tier: When ``True``, a ``put`` removes any copy of the
            key left in the other tier.  Defaults to
            ``cache.evict_cross_tier``.
        clock: Monotonic time source used for TTL arithmetic.
    """

    def __init__(
        self,
        sweep_interval_seconds: Optional[float] = None,
        initial_delay_seconds: Optional[float] = None,
        autostart: Optional[bool] = None,
        evict_cross_tier: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        cfg = get_settings().cache
        interval = (
            sweep_interval_seconds
            if sweep_interval_seconds is not None
            else cfg.sweep_interval_seconds
        )
        delay = (
            initial_delay_seconds
            if initial_delay_seconds is not None
            else cfg.initial_delay_seconds
        )
        self._evict_cross_tier = (
            evict_cross_tier if evict_cross_tier is not None else cfg.evict_cross_tier
        )
        self._stop_timeout = cfg.stop_timeout_seconds
        self._clock = clock

        self._permanent = _TierStore(Tier.PERMANENT)
        self._expiring = _TierStore(Tier.EXPIRING)

        # Guarded by _counter_lock.
        self._hits: int = 0
        self._misses: int = 0
        self._expired: int = 0
        self._corrupted: int = 0
        self._counter_lock = threading.Lock()

        self._sweeper = Sweeper(
            self._expire,
            interval_seconds=interval,
            initial_delay_seconds=delay,
        )

        logger.info(
            "TrashCan initialised",
            extra={
                "sweep_interval_seconds": interval,
                "evict_cross_tier": self._evict_cross_tier,
            },
        )

        if autostart is None:
            autostart = cfg.autostart
        if autostart:
            self.start()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background sweeper.

        Raises:
            SweeperError: If the sweeper is already running.
        """
        self._sweeper.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the background sweeper; stored entries are kept.

        Args:
            timeout: Seconds to wait for the sweeper thread.  Defaults to
                ``cache.stop_timeout_seconds``.
        """
        self._sweeper.stop(timeout if timeout is not None else self._stop_timeout)

    @property
    def is_running(self) -> bool:
        """Whether the background sweeper is active."""
        return self._sweeper.is_running

    def __enter__(self) -> "TrashCan":
        if not self.is_running:
            self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(
        self,
        key: str,
        value: Any,
        unit: TimeUnit = TimeUnit.MILLISECONDS,
        duration: int = NEVER_EXPIRES,
        *,
        ttl: Optional[timedelta] = None,
    ) -> None:
        """Store ``value`` under ``key``.

        With no ``duration`` (or a negative one) the value goes to the
        permanent tier.  Otherwise it goes to the expiring tier and lives
        for ``duration`` units of ``unit``.  A zero duration is eligible
        for expiry immediately.

        Args:
            key: Non-empty string key.
            value: Any object; stored by reference.
            unit: Unit of ``duration``.
            duration: TTL length, or a negative number for "never".
            ttl: Alternative to ``unit``/``duration``; a negative
                ``timedelta`` also means "never".

        Raises:
            TypeError: If ``key`` is not a string.
            ValueError: If ``key`` is empty, or both ``ttl`` and
                ``duration`` are given.
        """
        self._check_key(key)
        if ttl is not None:
            if duration != NEVER_EXPIRES:
                raise ValueError("Pass either ttl or unit/duration, not both")
            lifetime: Optional[timedelta] = None if ttl < timedelta(0) else ttl
        else:
            lifetime = None if duration < 0 else unit.to_timedelta(duration)

        entry = Entry(
            value=value,
            stored_at=datetime.now(timezone.utc),
            stored_at_monotonic=self._clock(),
            ttl=lifetime,
        )
        target, other = (
            (self._permanent, self._expiring)
            if entry.never_expires
            else (self._expiring, self._permanent)
        )

        with target.lock:
            replaced = key in target.entries
            target.entries[key] = entry

        stale = False
        if self._evict_cross_tier:
            with other.lock:
                stale = other.entries.pop(key, None) is not None

        logger.debug(
            "Cache set",
            extra={
                "key": key,
                "tier": target.tier.value,
                "ttl_seconds": lifetime.total_seconds() if lifetime else None,
                "replaced": replaced,
                "evicted_other_tier": stale,
            },
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def lookup(
        self,
        key: str,
        tier: Tier,
        consume: bool = True,
        expected_type: Optional[TypeSpec] = None,
    ) -> Lookup:
        """Look up ``key`` in ``tier`` and report what happened.

        Expired entries found in the expiring tier are evicted.  A stored
        value that cannot be read back (for instance one that is not an
        instance of ``expected_type``) is treated as corrupt and evicted.
        With ``consume`` the key is removed from the tier whatever the
        outcome.

        Args:
            key: The key to look up.
            tier: Which tier to search.
            consume: Remove the key after reading.
            expected_type: Type (or tuple of types) the caller expects.

        Returns:
            A :class:`Lookup` whose ``status`` is ``FOUND``, ``ABSENT``,
            ``EXPIRED`` or ``CORRUPTED``.
        """
        store = self._store_for(tier)
        status = LookupStatus.ABSENT
        value: Any = None

        with store.lock:
            entry = store.entries.get(key)
            try:
                if entry is not None:
                    if entry.is_expired(self._clock()):
                        del store.entries[key]
                        status = LookupStatus.EXPIRED
                    else:
                        value = self._read_value(key, entry, expected_type)
                        status = LookupStatus.FOUND
                if consume:
                    store.entries.pop(key, None)
            except CorruptEntryError as exc:
                store.entries.pop(key, None)
                status = LookupStatus.CORRUPTED
                logger.warning(
                    "Corrupt cache entry evicted",
                    extra={"key": key, "tier": store.tier.value, "error": str(exc)},
                )
            self._count(status)

        logger.debug(
            "Cache lookup",
            extra={
                "key": key,
                "tier": store.tier.value,
                "status": status.value,
                "consume": consume,
            },
        )
        return Lookup(key=key, tier=store.tier, status=status, value=value)

    def get(
        self,
        key: str,
        tier: Tier,
        consume: bool = True,
        *,
        default: Any = None,
        expected_type: Optional[TypeSpec] = None,
    ) -> Any:
        """Return the value stored under ``key`` in ``tier``.

        Missing, expired and corrupt entries all come back as ``default``;
        use :meth:`lookup` to tell them apart.

        Args:
            key: The key to look up.
            tier: Which tier to search.
            consume: Remove the key after reading (the default).
            default: Returned when there is no usable value.
            expected_type: Type (or tuple of types) the caller expects.

        Returns:
            The stored value, or ``default``.
        """
        result = self.lookup(key, tier, consume=consume, expected_type=expected_type)
        return result.value if result.found else default

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear(self, tier: Optional[Tier] = None) -> int:
        """Remove every entry from both tiers, or only from ``tier``.

        Each tier is cleared under its own lock; the locks are taken one
        after the other, never together.

        Returns:
            Number of entries removed.
        """
        stores = (
            [self._store_for(tier)]
            if tier is not None
            else [self._permanent, self._expiring]
        )
        count = 0
        for store in stores:
            with store.lock:
                count += len(store.entries)
                store.entries.clear()
        logger.info(
            "Cache cleared",
            extra={
                "tier": tier.value if tier is not None else "all",
                "entries_removed": count,
            },
        )
        return count

    def sweep(self) -> int:
        """Run one expiry pass now, in the calling thread.

        Returns:
            Number of expired entries removed.
        """
        return self._sweeper.sweep_now()

    def stats(self) -> CacheStats:
        """Return aggregate cache statistics."""
        with self._permanent.lock:
            permanent_count = len(self._permanent.entries)
        with self._expiring.lock:
            expiring_count = len(self._expiring.entries)
        with self._counter_lock:
            hits, misses = self._hits, self._misses
            expired, corrupted = self._expired, self._corrupted
        total = hits + misses
        return CacheStats(
            permanent_count=permanent_count,
            expiring_count=expiring_count,
            hits=hits,
            misses=misses,
            expired=expired,
            corrupted=corrupted,
            swept=self._sweeper.removed,
            sweeps=self._sweeper.sweeps,
            hit_rate=hits / total if total > 0 else 0.0,
            sweeper_state=self._sweeper.state.value,
        )

    def __len__(self) -> int:
        stats = self.stats()
        return stats.permanent_count + stats.expiring_count

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _expire(self) -> int:
        """Evict expired entries from the expiring tier.

        Never touches the permanent tier.
        """
        store = self._expiring
        with store.lock:
            if not store.entries:
                return 0
            now = self._clock()
            expired_keys = [
                key for key, entry in store.entries.items() if entry.is_expired(now)
            ]
            for key in expired_keys:
                del store.entries[key]
        return len(expired_keys)

    def _store_for(self, tier: Tier) -> _TierStore:
        try:
            tier = Tier(tier)
        except ValueError:
            raise ValueError(f"Unknown tier: {tier!r}") from None
        return self._permanent if tier is Tier.PERMANENT else self._expiring

    def _count(self, status: LookupStatus) -> None:
        with self._counter_lock:
            if status is LookupStatus.FOUND:
                self._hits += 1
                return
            self._misses += 1
            if status is LookupStatus.EXPIRED:
                self._expired += 1
            elif status is LookupStatus.CORRUPTED:
                self._corrupted += 1

    @staticmethod
    def _read_value(
        key: str, entry: Entry, expected_type: Optional[TypeSpec]
    ) -> Any:
        """Return the entry's value, raising if it cannot be handed back."""
        value = entry.value
        if expected_type is not None and not isinstance(value, expected_type):
            raise CorruptEntryError(
                f"Entry {key!r} holds {type(value).__name__}, "
                f"expected {_type_name(expected_type)}"
            )
        return value

    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str):
            raise TypeError(f"Key must be a str, got {type(key).__name__}")
        if not key:
            raise ValueError("Key must not be empty")


def _type_name(spec: TypeSpec) -> str:
    if isinstance(spec, tuple):
        return " | ".join(t.__name__ for t in spec)
    return spec.__name__


# ---------------------------------------------------------------------------
# Process-wide default instance
# ---------------------------------------------------------------------------

_default: Optional[TrashCan] = None
_default_lock = threading.Lock()


def get_trash_can() -> TrashCan:
    """Return the lazily-created process-wide :class:`TrashCan`.

    The instance is built from settings on first call.
    """
    global _default

    if _default is not None:
        return _default

    with _default_lock:
        if _default is None:
            _default = TrashCan()
        return _default


def reset_trash_can() -> None:
    """Stop and discard the process-wide instance (for testing)."""
    global _default
    with _default_lock:
        instance, _default = _default, None
    if instance is not None:
        instance.stop()
