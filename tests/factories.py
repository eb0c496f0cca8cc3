from __future__ import annotations

import itertools
from typing import Any

from core.errors import RemoteUnavailable
from core.models import Category, Coin, CoinDetail, Country, OverlayEntry, Period
from core.services.interfaces import CoinPage, CoinQuery, IQueryService

_ids = itertools.count(1)


def make_coin(**overrides: Any) -> Coin:
    values: dict[str, Any] = {"coin_id": next(_ids), "name": "Coin", "year": 1900}
    values.update(overrides)
    return Coin(**values)


class FakeQueryService(IQueryService):
    """In-memory catalog that records every call it receives."""

    def __init__(
        self,
        coins: list[Coin] | None = None,
        owned: list[OverlayEntry] | None = None,
        categories: list[Category] | None = None,
        countries: list[Country] | None = None,
        periods_by_country: dict[str, list[Period]] | None = None,
    ) -> None:
        self.coins = list(coins or [])
        self.owned = list(owned or [])
        self.categories = list(categories or [])
        self.countries = list(countries or [])
        self.periods_by_country = dict(periods_by_country or {})
        self.details: dict[int, CoinDetail] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_on: set[str] = set()
        self.fail_coins_at_call: int | None = None
        # Positions in the ordered result that the store returns but nobody can parse
        self.unparseable_at: set[int] = set()

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name in self.fail_on:
            raise RemoteUnavailable(name, "service down")

    def count(self, name: str) -> int:
        return sum(1 for n, _ in self.calls if n == name)

    def select_countries(self) -> list[Country]:
        self._record("select_countries")
        return list(self.countries)

    def select_categories(self) -> list[Category]:
        self._record("select_categories")
        return list(self.categories)

    def select_owned(self) -> list[OverlayEntry]:
        self._record("select_owned")
        return list(self.owned)

    def select_periods_for_country(self, country_id: str) -> list[Period]:
        self._record("select_periods_for_country", country_id)
        return list(self.periods_by_country.get(country_id, []))

    def select_period_ids_for_country(self, country_id: str) -> list[int]:
        self._record("select_period_ids_for_country", country_id)
        return [p.period_id for p in self.periods_by_country.get(country_id, [])]

    def select_coins(
        self, query: CoinQuery, offset: int | None = None, limit: int | None = None
    ) -> CoinPage:
        self._record("select_coins", (query, offset, limit))
        failing = self.fail_coins_at_call
        if failing is not None and self.count("select_coins") == failing:
            raise RemoteUnavailable("select_coins", "connection reset")
        rows = self.coins
        if query.owned_ids is not None:
            wanted = set(query.owned_ids)
            rows = [c for c in rows if c.coin_id in wanted]
        if query.period_id:
            rows = [c for c in rows if str(c.period_id) == str(query.period_id)]
        elif query.period_ids is not None:
            allowed = set(query.period_ids)
            rows = [c for c in rows if c.period_id in allowed]
        if query.search:
            term = query.search.lower()
            rows = [
                c
                for c in rows
                if any(term in (v or "").lower() for v in (c.name, c.subject, c.km))
            ]
        rows = sorted(
            rows,
            key=lambda c: getattr(c, query.order_column) or 0,
            reverse=not query.ascending,
        )
        start = offset or 0
        end = start + limit if limit is not None else len(rows)
        window = range(start, min(end, len(rows)))
        return CoinPage(
            coins=[rows[i] for i in window if i not in self.unparseable_at],
            row_count=len(window),
        )

    def select_coin_detail(self, coin_id: int) -> CoinDetail | None:
        self._record("select_coin_detail", coin_id)
        return self.details.get(coin_id)
