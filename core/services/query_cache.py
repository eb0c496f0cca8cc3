"""Keyed result cache with in-flight deduplication and a freshness window."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import itertools
import time
from typing import Any

DEFAULT_QUERY_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float


class QueryCache:
    """Results per query key, at most one in-flight fetch per key.

    A fetch is started with `begin(key)`, which hands out a token, and
    finished with `resolve` or `fail` using that token. Tokens from an older
    `begin` for the same key are ignored once a newer one was issued.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_QUERY_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, int] = {}
        self._tokens = itertools.count(1)

    def get(self, key: str) -> CacheEntry | None:
        """Return the last stored entry for `key`, fresh or not."""
        return self._entries.get(key)

    def is_fresh(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() - entry.stored_at < self._ttl

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def begin(self, key: str) -> int | None:
        """Mark a fetch for `key` as started; None if one is already running."""
        if key in self._in_flight:
            return None
        token = next(self._tokens)
        self._in_flight[key] = token
        return token

    def resolve(self, key: str, token: int, value: Any) -> bool:
        """Store `value` for `key`; False when `token` is no longer current."""
        if self._in_flight.get(key) != token:
            return False
        del self._in_flight[key]
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())
        return True

    def fail(self, key: str, token: int) -> bool:
        """End the fetch for `key` without touching its previous value."""
        if self._in_flight.get(key) != token:
            return False
        del self._in_flight[key]
        return True

    def invalidate(self, key: str | None = None) -> None:
        """Drop stored values (all keys when `key` is None); in-flight fetches stay."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
