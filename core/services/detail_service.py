"""Detail lookups that enrich a summary coin with its full joined record."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
import time

from loguru import logger

from core.models import Coin, CoinDetail
from core.services.interfaces import IQueryService

DEFAULT_DETAIL_TTL_SECONDS = 1800.0


def merge_detail(summary: Coin, detail: CoinDetail | None) -> CoinDetail:
    """Combine a summary coin with its detail record.

    Detail fields take precedence, except the overlay attributes which only
    the summary (fetched with the ownership cache) knows.
    """
    if detail is None:
        return CoinDetail(coin=summary)
    coin = replace(
        detail.coin,
        is_owned=summary.is_owned,
        display_obverse=summary.display_obverse,
        display_reverse=summary.display_reverse,
    )
    return replace(detail, coin=coin)


class CoinDetailService:
    """Fetches and caches detail records per coin id."""

    def __init__(
        self,
        service: IQueryService,
        ttl_seconds: float = DEFAULT_DETAIL_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._service = service
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._cache: dict[int, tuple[float, CoinDetail | None]] = {}

    def get(self, summary: Coin) -> CoinDetail:
        """Return the merged detail for `summary`, fetching when not cached."""
        now = self._clock()
        cached = self._cache.get(summary.coin_id)
        if cached is not None and now - cached[0] < self._ttl:
            detail = cached[1]
        else:
            detail = self._service.select_coin_detail(summary.coin_id)
            if detail is None:
                logger.warning("No detail record for coin {}", summary.coin_id)
            self._cache = {**self._cache, summary.coin_id: (now, detail)}
        return merge_detail(summary, detail)
