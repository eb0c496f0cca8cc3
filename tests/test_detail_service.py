from __future__ import annotations

from factories import FakeQueryService, make_coin

from core.models import CoinDetail
from core.services.detail_service import CoinDetailService, merge_detail


def test_detail_fields_win_but_overlay_is_preserved():
    summary = make_coin(is_owned=True, display_obverse="mine.jpg", name="Short")
    full = make_coin(coin_id=summary.coin_id, name="Full Name", km="KM-9")
    merged = merge_detail(summary, CoinDetail(coin=full, country_name="France"))

    assert merged.coin.name == "Full Name"
    assert merged.coin.km == "KM-9"
    assert merged.coin.is_owned is True
    assert merged.coin.display_obverse == "mine.jpg"
    assert merged.country_name == "France"


def test_missing_detail_wraps_summary():
    summary = make_coin()
    merged = merge_detail(summary, None)
    assert merged.coin is summary
    assert merged.country_name == "Unknown"


def test_service_caches_per_coin():
    summary = make_coin()
    service = FakeQueryService()
    service.details[summary.coin_id] = CoinDetail(coin=make_coin(coin_id=summary.coin_id))
    details = CoinDetailService(service)

    details.get(summary)
    details.get(summary)
    details.get(make_coin())

    assert service.count("select_coin_detail") == 2


def test_missing_record_is_cached_too():
    summary = make_coin(name="Lonely")
    service = FakeQueryService()
    details = CoinDetailService(service)
    assert details.get(summary).coin.name == "Lonely"
    details.get(summary)
    assert service.count("select_coin_detail") == 1
