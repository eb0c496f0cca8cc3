"""Core service interfaces and shared data structures.

This module defines the remote query contract consumed by the fetch pipeline
and the small dataclasses describing a coin select.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.models import Category, Coin, CoinDetail, Country, OverlayEntry, Period

# sort key -> (column, ascending)
SORT_COLUMNS: dict[str, tuple[str, bool]] = {
    "year_desc": ("year", False),
    "year_asc": ("year", True),
    "price_desc": ("price_usd", False),
    "price_asc": ("price_usd", True),
}


@dataclass
class CoinQuery:
    """Filter and ordering for one coin select.

    Attributes:
        owned_ids: Restrict to these coin ids (membership filter) when set.
        search: Case-insensitive substring matched against name, subject and km.
        period_ids: Restrict to these period ids (country pre-resolution).
        period_id: Restrict to a single period.
        order_column: Column to order by.
        ascending: Ordering direction.
    """

    owned_ids: list[int] | None = None
    search: str = ""
    period_ids: list[int] | None = None
    period_id: str = ""
    order_column: str = "year"
    ascending: bool = False


@dataclass
class CoinPage:
    """One window of a coin select.

    `row_count` counts every row the store returned, including rows that
    could not be parsed into `coins`; paging decisions use it.
    """

    coins: list[Coin] = field(default_factory=list)
    row_count: int = 0


class IQueryService:
    """Interface for the remote catalog store.

    Implementations raise `core.errors.RemoteUnavailable` on any failure.
    """

    def select_countries(self) -> list[Country]:
        """Return all countries ordered by name."""
        raise NotImplementedError

    def select_categories(self) -> list[Category]:
        """Return all categories ordered by name."""
        raise NotImplementedError

    def select_owned(self) -> list[OverlayEntry]:
        """Return the owned-coins side table."""
        raise NotImplementedError

    def select_periods_for_country(self, country_id: str) -> list[Period]:
        """Return the periods linked to `country_id`."""
        raise NotImplementedError

    def select_period_ids_for_country(self, country_id: str) -> list[int]:
        """Return only the ids of the periods linked to `country_id`."""
        raise NotImplementedError

    def select_coins(
        self, query: CoinQuery, offset: int | None = None, limit: int | None = None
    ) -> CoinPage:
        """Return the coins matching `query`, optionally windowed by offset/limit."""
        raise NotImplementedError

    def select_coin_detail(self, coin_id: int) -> CoinDetail | None:
        """Return the full joined record for `coin_id`, or None if missing."""
        raise NotImplementedError
