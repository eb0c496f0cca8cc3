"""Sorting service for coin lists.

Coins are ordered by the column behind the active sort key. Missing numeric
values sort as 0 and the sort is stable, so ties keep their remote order.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from core.models import Coin
from core.services.interfaces import SORT_COLUMNS


def sort_column(sort_by: str) -> tuple[str, bool]:
    """Return (field_name, ascending) for `sort_by`, defaulting to year_desc."""
    return SORT_COLUMNS.get(sort_by, SORT_COLUMNS["year_desc"])


class SortService:
    """Provides sorting utilities for coin lists."""

    def sort_coins(self, coins: Iterable[Coin], sort_by: str) -> list[Coin]:
        """Return `coins` ordered by the column and direction of `sort_by`."""
        field_name, ascending = sort_column(sort_by)

        def _key(coin: Coin) -> Any:
            value = getattr(coin, field_name, None)
            if value is None:
                value = 0
            return value if ascending else -value

        return sorted(coins, key=_key)

    def sort_multi(self, coins: Iterable[Coin], sort_keys: list[tuple[str, bool]]) -> list[Coin]:
        """Return `coins` sorted by several (field_name, ascending) keys.

        Strings compare case-insensitively; numbers and strings may be mixed
        across keys but not within one key.
        """
        items = list(coins)
        # Apply keys from least to most significant, relying on sort stability
        for field_name, ascending in reversed(sort_keys):

            def _key(coin: Coin, name: str = field_name) -> Any:
                value = getattr(coin, name, None)
                if isinstance(value, bool):
                    return int(value)
                if isinstance(value, (int, float)):
                    return value
                return "" if value is None else str(value).lower()

            items.sort(key=_key, reverse=not ascending)
        return items
