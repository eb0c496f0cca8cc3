"""Ownership overlay: the owned-coins side table merged onto fetched records."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
import time

from loguru import logger

from core.models import Coin, OverlaySnapshot
from core.services.interfaces import IQueryService

DEFAULT_OVERLAY_TTL_SECONDS = 300.0


def merge_overlay(coin: Coin, snapshot: OverlaySnapshot) -> Coin:
    """Return a copy of `coin` carrying ownership and display images.

    Owned-collection photos win over catalog stock photos.
    """
    entry = snapshot.get(coin.coin_id)
    if entry is None:
        return replace(
            coin,
            is_owned=False,
            display_obverse=coin.stock_obverse,
            display_reverse=coin.stock_reverse,
        )
    return replace(
        coin,
        is_owned=True,
        display_obverse=entry.obverse or coin.stock_obverse,
        display_reverse=entry.reverse or coin.stock_reverse,
    )


class OwnershipOverlayCache:
    """Session-scoped snapshot of owned coins with a staleness window.

    The snapshot is replaced wholesale on reload; readers holding the previous
    snapshot keep a consistent view.
    """

    def __init__(
        self,
        service: IQueryService,
        ttl_seconds: float = DEFAULT_OVERLAY_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._service = service
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._snapshot: OverlaySnapshot | None = None

    @property
    def snapshot(self) -> OverlaySnapshot | None:
        """Current snapshot, or None while the overlay is not ready."""
        return self._snapshot

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    @property
    def count(self) -> int:
        return self._snapshot.count if self._snapshot else 0

    def load(self) -> OverlaySnapshot:
        """Fetch the owned-coins table and install it as the new snapshot."""
        entries = self._service.select_owned()
        snapshot = OverlaySnapshot(
            entries={e.coin_id: e for e in entries},
            loaded_at=self._clock(),
        )
        self._snapshot = snapshot
        logger.info("Ownership overlay loaded: {} owned coins", snapshot.count)
        return snapshot

    def is_stale(self) -> bool:
        if self._snapshot is None:
            return True
        return self._clock() - self._snapshot.loaded_at >= self._ttl

    def refresh_if_stale(self) -> OverlaySnapshot:
        """Reload when the staleness window has passed; return the snapshot."""
        if self.is_stale():
            return self.load()
        return self._snapshot  # type: ignore[return-value]
