"""
Rate Cache

Holds the latest successfully fetched rate per directional currency pair.

DESIGN DECISION: The cache is a plain dict behind a lock. Entries are
immutable RateEntry objects, so a write is a single reference swap and a
reader sees either the old entry or the new one, never a mix. The lock is
only held for the dictionary operation itself, never across network I/O.

There is no background eviction. An expired entry is dropped the first time
someone reads it; the universe of currency pairs is small enough that this
keeps memory bounded.
"""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from fintrack.models.rates import CurrencyPair, RateEntry, utc_now


DEFAULT_TTL = timedelta(hours=1)


def _as_utc(moment: Optional[datetime]) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if moment is None:
        return utc_now()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class RateCache:
    """
    Time-bounded map of CurrencyPair -> RateEntry.

    Thread-safe. Keys are the literal pair: an entry for (USD, RUB)
    never answers a lookup for (RUB, USD).
    """

    def __init__(self, ttl: timedelta = DEFAULT_TTL):
        if ttl <= timedelta(0):
            raise ValueError("Cache TTL must be positive")
        self._ttl = ttl
        self._entries: dict[CurrencyPair, RateEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def get(self, pair: CurrencyPair, now: Optional[datetime] = None) -> Optional[RateEntry]:
        """
        Return the entry for `pair` if it is still fresh.

        Returns None for a missing or expired entry; the caller must refresh.
        """
        now = _as_utc(now)
        with self._lock:
            entry = self._entries.get(pair)
            if entry is None:
                return None
            if not entry.is_fresh(now, self._ttl):
                del self._entries[pair]
                return None
            return entry

    def put(
        self,
        pair: CurrencyPair,
        rate: Decimal,
        now: Optional[datetime] = None,
    ) -> RateEntry:
        """Store a freshly fetched rate, replacing any previous entry."""
        entry = RateEntry(pair=pair, rate=rate, fetched_at=_as_utc(now))
        with self._lock:
            self._entries[pair] = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, pair: CurrencyPair) -> bool:
        """True if an entry is held for `pair`, fresh or not."""
        with self._lock:
            return pair in self._entries
