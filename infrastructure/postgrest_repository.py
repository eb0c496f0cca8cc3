"""Remote catalog store backed by a Supabase/PostgREST HTTP endpoint.

Every select is a GET against `{base_url}/rest/v1/{table}`. Joins use
PostgREST embedded resources, pagination uses offset/limit, and any failure
is reported as `RemoteUnavailable`.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
import requests

from core.errors import RemoteUnavailable
from core.models import Category, Coin, CoinDetail, Country, OverlayEntry, Period
from core.services.interfaces import CoinPage, CoinQuery, IQueryService

COIN_SUMMARY_SELECT = (
    "coin_id,name,year,price_usd,km,subject,"
    "type_id,period_id,denomination_id,series_id,marked,"
    "d_denominations(denomination_name),"
    "d_period(period_name,period_start_year,period_link),"
    "d_series(series_name,series_range,series_link)"
)
COIN_DETAIL_SELECT = (
    "*,"
    "d_period!inner(period_name,period_start_year,period_link),"
    "d_series(series_name,series_link,series_range),"
    "d_categories(type_name),"
    "d_denominations(denomination_name)"
)
SEARCH_COLUMNS = ("name", "subject", "km")
EMBEDDED_TABLES = {"d_period", "d_series", "d_denominations", "d_categories"}
SINGLE_OBJECT = "application/vnd.pgrst.object+json"


def quote_value(value: str) -> str:
    """Double-quote a filter value so reserved characters stay literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def search_filter(term: str) -> str:
    """PostgREST `or` expression matching `term` in name, subject or km."""
    pattern = quote_value(f"*{term}*")
    return "(" + ",".join(f"{col}.ilike.{pattern}" for col in SEARCH_COLUMNS) + ")"


def in_list(values: list[Any]) -> str:
    return "in.(" + ",".join(str(v) for v in values) + ")"


def coin_query_params(
    query: CoinQuery, offset: int | None = None, limit: int | None = None
) -> dict[str, str]:
    """Encode a `CoinQuery` as PostgREST query parameters."""
    params: dict[str, str] = {"select": COIN_SUMMARY_SELECT}
    if query.owned_ids is not None:
        params["coin_id"] = in_list(query.owned_ids)
    if query.search:
        params["or"] = search_filter(query.search)
    if query.period_id:
        params["period_id"] = f"eq.{query.period_id}"
    elif query.period_ids is not None:
        params["period_id"] = in_list(query.period_ids)
    direction = "asc" if query.ascending else "desc"
    # coin_id breaks ties so offset windows never overlap
    params["order"] = f"{query.order_column}.{direction},coin_id.asc"
    if offset is not None:
        params["offset"] = str(offset)
    if limit is not None:
        params["limit"] = str(limit)
    return params


class PostgrestQueryService(IQueryService):
    """`IQueryService` over HTTP using a shared `requests.Session`."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base = base_url.rstrip("/") + "/rest/v1"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )

    def _get(
        self, operation: str, table: str, params: dict[str, str], *, single: bool = False
    ) -> Any:
        headers = {"Accept": SINGLE_OBJECT} if single else None
        try:
            resp = self._session.get(
                f"{self._base}/{table}", params=params, headers=headers, timeout=self._timeout
            )
            if single and resp.status_code == 406:
                return None
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as ex:
            logger.error("{} failed on {}: {}", operation, table, ex)
            raise RemoteUnavailable(operation, str(ex)) from ex
        except ValueError as ex:
            logger.error("{} returned an undecodable body: {}", operation, ex)
            raise RemoteUnavailable(operation, "invalid JSON response") from ex

    def select_countries(self) -> list[Country]:
        rows = self._get(
            "select_countries", "d_countries", {"select": "*", "order": "country_name.asc"}
        )
        return [
            Country(country_id=int(r["country_id"]), country_name=r["country_name"]) for r in rows
        ]

    def select_categories(self) -> list[Category]:
        rows = self._get(
            "select_categories", "d_categories", {"select": "*", "order": "type_name.asc"}
        )
        return [Category(type_id=int(r["type_id"]), type_name=r["type_name"]) for r in rows]

    def select_owned(self) -> list[OverlayEntry]:
        rows = self._get(
            "select_owned",
            "d_coins_owned",
            {"select": "coin_id,image_url_obverse,image_url_reverse"},
        )
        return [
            OverlayEntry(
                coin_id=int(r["coin_id"]),
                obverse=r.get("image_url_obverse"),
                reverse=r.get("image_url_reverse"),
            )
            for r in rows
        ]

    def select_periods_for_country(self, country_id: str) -> list[Period]:
        rows = self._get(
            "select_periods_for_country",
            "b_periods_countries",
            {"select": "period_id,d_period!inner(*)", "country_id": f"eq.{country_id}"},
        )
        periods: list[Period] = []
        for r in rows:
            embedded = r.get("d_period")
            if isinstance(embedded, dict):
                periods.append(Period.from_row(embedded))
        return periods

    def select_period_ids_for_country(self, country_id: str) -> list[int]:
        rows = self._get(
            "select_period_ids_for_country",
            "b_periods_countries",
            {"select": "period_id", "country_id": f"eq.{country_id}"},
        )
        return [int(r["period_id"]) for r in rows if r.get("period_id") is not None]

    def select_coins(
        self, query: CoinQuery, offset: int | None = None, limit: int | None = None
    ) -> CoinPage:
        rows = self._get("select_coins", "f_coins", coin_query_params(query, offset, limit))
        coins: list[Coin] = []
        for row in rows:
            try:
                coins.append(Coin.from_row(row))
            except (KeyError, ValueError, TypeError) as ex:
                logger.error("Coin row error: {} | row={}", ex, row)
                continue
        return CoinPage(coins=coins, row_count=len(rows))

    def select_country_name_for_period(self, period_id: int) -> str | None:
        rows = self._get(
            "select_country_name_for_period",
            "b_periods_countries",
            {"select": "d_countries(country_name)", "period_id": f"eq.{period_id}", "limit": "1"},
        )
        if not rows:
            return None
        country = rows[0].get("d_countries") or {}
        return country.get("country_name")

    def select_coin_detail(self, coin_id: int) -> CoinDetail | None:
        row = self._get(
            "select_coin_detail",
            "f_coins",
            {"select": COIN_DETAIL_SELECT, "coin_id": f"eq.{coin_id}"},
            single=True,
        )
        if not row:
            return None
        coin = Coin.from_row(row)
        country_name = None
        if coin.period_id:
            country_name = self.select_country_name_for_period(coin.period_id)
        known = set(Coin.__dataclass_fields__) | EMBEDDED_TABLES
        return CoinDetail(
            coin=coin,
            category_name=(row.get("d_categories") or {}).get("type_name"),
            country_name=country_name or "Unknown",
            extra={k: v for k, v in row.items() if k not in known},
        )
