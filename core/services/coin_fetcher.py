"""Incremental coin fetcher.

Turns a `FilterSpec` into remote selects and returns overlay-merged coins.
Browsing (no active filter) takes one bounded, shuffled sample; any active
filter walks the full result set in fixed-size range windows.
"""

from __future__ import annotations

import random

from loguru import logger

from core.models import Coin, FilterSpec, OverlaySnapshot
from core.services.interfaces import CoinQuery, IQueryService
from core.services.overlay_cache import merge_overlay
from core.services.sort_service import sort_column

BROWSE_LIMIT = 200
BATCH_SIZE = 1000


def build_coin_query(
    filters: FilterSpec, overlay: OverlaySnapshot, period_ids: list[int] | None = None
) -> CoinQuery:
    """Translate `filters` into a `CoinQuery`.

    Args:
        filters: Validated filter state.
        overlay: Ownership snapshot supplying ids for the owned-only filter.
        period_ids: Pre-resolved periods of the selected country, used when
            a country is set without a period.
    """
    column, ascending = sort_column(filters.sort_by)
    return CoinQuery(
        owned_ids=overlay.owned_ids if filters.show_owned == "owned" else None,
        search=filters.search,
        period_ids=period_ids if filters.country and not filters.period else None,
        period_id=filters.period,
        order_column=column,
        ascending=ascending,
    )


def _fetch_browse(
    service: IQueryService, query: CoinQuery, limit: int, rng: random.Random
) -> list[Coin]:
    coins = list(service.select_coins(query, limit=limit).coins)
    rng.shuffle(coins)
    logger.debug("Browse sample: {} coins (limit {})", len(coins), limit)
    return coins


def _fetch_batched(service: IQueryService, query: CoinQuery, batch_size: int) -> list[Coin]:
    coins: list[Coin] = []
    offset = 0
    batches = 0
    while True:
        page = service.select_coins(query, offset=offset, limit=batch_size)
        batches += 1
        if not page.row_count:
            break
        coins.extend(page.coins)
        # Unparseable rows still occupy the window
        if page.row_count < batch_size:
            break
        offset += batch_size
    logger.debug("Batched fetch: {} coins in {} requests", len(coins), batches)
    return coins


def fetch_coins(
    service: IQueryService,
    filters: FilterSpec,
    overlay: OverlaySnapshot,
    *,
    browse_limit: int = BROWSE_LIMIT,
    batch_size: int = BATCH_SIZE,
    rng: random.Random | None = None,
) -> list[Coin]:
    """Fetch all coins matching `filters` and merge the ownership overlay.

    Raises:
        MalformedFilter: `filters` is inconsistent.
        RemoteUnavailable: any remote select failed; nothing partial is returned.
    """
    filters.validate()

    if filters.show_owned == "owned" and overlay.is_empty:
        logger.debug("Owned-only filter with empty overlay, skipping fetch")
        return []

    period_ids: list[int] | None = None
    if filters.country and not filters.period:
        period_ids = service.select_period_ids_for_country(filters.country)
        if not period_ids:
            logger.debug("Country {} has no periods, skipping fetch", filters.country)
            return []

    query = build_coin_query(filters, overlay, period_ids)
    if filters.is_browsing:
        raw = _fetch_browse(service, query, browse_limit, rng or random.Random())
    else:
        raw = _fetch_batched(service, query, batch_size)

    return [merge_overlay(coin, overlay) for coin in raw]
