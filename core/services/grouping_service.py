"""Grouping of a flat coin list into Category -> Period hierarchies.

Categories are always alphabetical. Period order depends on the presentation
mode: the table view is chronological (its row axis is the year), the grid
view bubbles up periods by the extreme coin value matching the sort key.
"""

from __future__ import annotations

from collections.abc import Iterable
import math

from core.models import (
    NO_PERIOD_ID,
    NO_PERIOD_NAME,
    UNCATEGORIZED_ID,
    UNCATEGORIZED_NAME,
    Category,
    CategoryGroup,
    Coin,
    PeriodGroup,
)
from core.services.sort_service import SortService

PALETTE_SIZE = 6
UNCATEGORIZED_COLOR_INDEX = PALETTE_SIZE - 1

_sorter = SortService()


def _finite(value: float) -> float:
    """Untouched min/max sentinels count as 0."""
    return value if math.isfinite(value) else 0


def _bubble_key(period: PeriodGroup, sort_by: str) -> tuple[float, float]:
    # Both components ascending; negate for descending statistics
    tie = -period.start_year
    if sort_by == "year_asc":
        return _finite(period.min_year), tie
    if sort_by == "price_desc":
        return -_finite(period.max_price), tie
    if sort_by == "price_asc":
        return _finite(period.min_price), tie
    return -_finite(period.max_year), tie


def sort_periods(
    periods: Iterable[PeriodGroup], sort_by: str, is_table_mode: bool
) -> list[PeriodGroup]:
    """Order periods chronologically (table) or by bubble-up statistic (grid)."""
    if is_table_mode:
        return sorted(periods, key=lambda p: p.start_year, reverse=sort_by != "year_asc")
    return sorted(periods, key=lambda p: _bubble_key(p, sort_by))


def group_periods(coins: Iterable[Coin], sort_by: str, is_table_mode: bool) -> list[PeriodGroup]:
    """Partition one category's coins into sorted periods with sorted coins."""
    by_id: dict[int | str, PeriodGroup] = {}
    for coin in coins:
        pid = coin.period_id or NO_PERIOD_ID
        period = by_id.get(pid)
        if period is None:
            period = PeriodGroup(
                id=pid,
                name=coin.period_name or NO_PERIOD_NAME,
                start_year=coin.period_start_year or 0,
            )
            by_id[pid] = period
        period.add(coin)

    ordered = sort_periods(by_id.values(), sort_by, is_table_mode)
    for period in ordered:
        period.coins = _sorter.sort_coins(period.coins, sort_by)
    return ordered


def group(
    coins: Iterable[Coin],
    categories: Iterable[Category],
    sort_by: str,
    is_table_mode: bool,
) -> list[CategoryGroup]:
    """Build the sorted category/period hierarchy for `coins`.

    Args:
        coins: Flat, overlay-merged coin list.
        categories: Category metadata; its order assigns palette slots.
        sort_by: Active sort key.
        is_table_mode: Chronological period order when True, bubble-up otherwise.
    """
    groups: dict[int | str, CategoryGroup] = {}
    for index, cat in enumerate(categories):
        groups[cat.type_id] = CategoryGroup(
            id=cat.type_id, name=cat.type_name, color_index=index % PALETTE_SIZE
        )

    for coin in coins:
        target = groups.get(coin.type_id) if coin.type_id else None
        if target is None:
            target = groups.get(UNCATEGORIZED_ID)
            if target is None:
                target = CategoryGroup(
                    id=UNCATEGORIZED_ID,
                    name=UNCATEGORIZED_NAME,
                    color_index=UNCATEGORIZED_COLOR_INDEX,
                )
                groups[UNCATEGORIZED_ID] = target
        target.coins.append(coin)

    result = sorted((g for g in groups.values() if g.coins), key=lambda g: g.name.lower())
    for g in result:
        g.periods = group_periods(g.coins, sort_by, is_table_mode)
    return result
