from __future__ import annotations

import pytest
import requests

from core.errors import RemoteUnavailable
from core.models import FilterSpec, OverlaySnapshot
from core.services.coin_fetcher import fetch_coins
from core.services.interfaces import CoinQuery
from infrastructure.postgrest_repository import (
    COIN_SUMMARY_SELECT,
    SINGLE_OBJECT,
    PostgrestQueryService,
    coin_query_params,
    search_filter,
)


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self._payload = payload
        self.status_code = status_code
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replies are queued per table name."""

    def __init__(self):
        self.headers = {}
        self.requests = []
        self.replies = {}

    def get(self, url, params=None, headers=None, timeout=None):
        self.requests.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        table = url.rsplit("/", 1)[-1]
        reply = self.replies[table].pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def _service(session, **kw):
    return PostgrestQueryService("https://example.test/", "secret", session=session, **kw)


def test_session_carries_auth_headers():
    session = FakeSession()
    _service(session)
    assert session.headers["apikey"] == "secret"
    assert session.headers["Authorization"] == "Bearer secret"


def test_search_filter_quotes_reserved_characters():
    assert search_filter("a,b") == (
        '(name.ilike."*a,b*",subject.ilike."*a,b*",km.ilike."*a,b*")'
    )
    assert search_filter('say "hi"').startswith('(name.ilike."*say \\"hi\\"*"')


def test_coin_query_params_encodes_every_filter():
    query = CoinQuery(
        owned_ids=[3, 4],
        search="eagle",
        period_ids=[7, 8],
        order_column="price_usd",
        ascending=True,
    )
    params = coin_query_params(query, offset=1000, limit=1000)
    assert params["select"] == COIN_SUMMARY_SELECT
    assert params["coin_id"] == "in.(3,4)"
    assert params["period_id"] == "in.(7,8)"
    assert params["order"] == "price_usd.asc,coin_id.asc"
    assert (params["offset"], params["limit"]) == ("1000", "1000")
    assert "or" in params


def test_single_period_takes_precedence_and_browse_has_no_offset():
    params = coin_query_params(
        CoinQuery(period_id="9", period_ids=[1], order_column="year"), limit=200
    )
    assert params["period_id"] == "eq.9"
    assert params["order"] == "year.desc,coin_id.asc"
    assert "offset" not in params and params["limit"] == "200"


def test_select_coins_parses_rows_and_skips_bad_ones():
    session = FakeSession()
    session.replies["f_coins"] = [
        FakeResponse(
            [
                {
                    "coin_id": 1,
                    "name": "A",
                    "year": 1900,
                    "d_denominations": {"denomination_name": "1 Cent"},
                },
                {"name": "no id"},
                {"coin_id": 2, "year": "not a year"},
                {"coin_id": 3, "price_usd": 2.5},
            ]
        )
    ]
    page = _service(session, timeout=4.0).select_coins(CoinQuery(), offset=0, limit=1000)

    assert [c.coin_id for c in page.coins] == [1, 3]
    assert page.row_count == 4
    assert page.coins[0].denomination_name == "1 Cent"
    req = session.requests[0]
    assert req["url"] == "https://example.test/rest/v1/f_coins"
    assert req["timeout"] == 4.0


@pytest.mark.parametrize(
    "reply",
    [
        FakeResponse(status_code=500),
        requests.ConnectionError("refused"),
        requests.Timeout("slow"),
        FakeResponse(bad_json=True),
    ],
)
def test_failures_become_remote_unavailable(reply):
    session = FakeSession()
    session.replies["f_coins"] = [reply]
    with pytest.raises(RemoteUnavailable) as info:
        _service(session).select_coins(CoinQuery())
    assert info.value.operation == "select_coins"


def test_metadata_selects():
    session = FakeSession()
    session.replies["d_countries"] = [FakeResponse([{"country_id": 1, "country_name": "France"}])]
    session.replies["d_coins_owned"] = [
        FakeResponse([{"coin_id": 5, "image_url_obverse": "o", "image_url_reverse": None}])
    ]
    session.replies["b_periods_countries"] = [
        FakeResponse([{"period_id": 9, "d_period": {"period_id": 9, "period_name": "Empire"}}]),
        FakeResponse([{"period_id": 9}, {"period_id": 10}]),
    ]
    service = _service(session)

    assert service.select_countries()[0].country_name == "France"
    owned = service.select_owned()
    assert (owned[0].coin_id, owned[0].obverse) == (5, "o")
    assert service.select_periods_for_country("1")[0].period_name == "Empire"
    assert service.select_period_ids_for_country("1") == [9, 10]
    assert session.requests[-1]["params"]["country_id"] == "eq.1"


def test_coin_detail_joins_country_and_keeps_extra_fields():
    session = FakeSession()
    session.replies["f_coins"] = [
        FakeResponse(
            {
                "coin_id": 8,
                "name": "Franc",
                "period_id": 9,
                "mintage": 1000,
                "d_categories": {"type_name": "Standard Circulation"},
                "d_period": {"period_name": "Empire", "period_start_year": 1804},
            }
        )
    ]
    session.replies["b_periods_countries"] = [
        FakeResponse([{"d_countries": {"country_name": "France"}}])
    ]

    detail = _service(session).select_coin_detail(8)

    assert detail.coin.name == "Franc"
    assert detail.category_name == "Standard Circulation"
    assert detail.country_name == "France"
    assert detail.extra == {"mintage": 1000}
    assert session.requests[0]["headers"] == {"Accept": SINGLE_OBJECT}


def test_coin_detail_not_found():
    session = FakeSession()
    session.replies["f_coins"] = [FakeResponse(status_code=406)]
    assert _service(session).select_coin_detail(99) is None


def test_bad_row_in_full_window_does_not_end_batched_fetch():
    rows = [{"coin_id": i, "year": 1900, "period_id": 10} for i in range(1, 1501)]
    rows[9]["year"] = "c. 1900"
    session = FakeSession()
    session.replies["b_periods_countries"] = [FakeResponse([{"period_id": 10}])]
    session.replies["f_coins"] = [FakeResponse(rows[:1000]), FakeResponse(rows[1000:])]

    coins = fetch_coins(_service(session), FilterSpec(country="FR"), OverlaySnapshot())

    assert len(coins) == 1499
    windows = [r["params"] for r in session.requests if r["url"].endswith("/f_coins")]
    assert [(p["offset"], p["limit"]) for p in windows] == [("0", "1000"), ("1000", "1000")]
