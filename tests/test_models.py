from __future__ import annotations

import pytest

from app.viewmodels.coin_vm import CoinVM
from core.errors import MalformedFilter
from core.models import Coin, CollapseState, FilterSpec, OverlayEntry, OverlaySnapshot


def test_filter_key_is_identity_of_all_fields():
    a = FilterSpec(search="lion", country="3", sort_by="price_asc")
    b = FilterSpec(search="lion", country="3", sort_by="price_asc")
    assert a.key() == b.key()
    assert a.key() != a.with_search("lions").key()
    assert a.key() != a.with_show_owned("owned").key()


def test_with_country_always_clears_period():
    spec = FilterSpec(country="3").with_period("17")
    assert spec.period == "17"
    assert spec.with_country("").period == ""
    assert spec.with_country("4").period == ""


def test_is_browsing_only_without_any_filter():
    assert FilterSpec().is_browsing
    assert FilterSpec(sort_by="price_desc").is_browsing
    assert not FilterSpec(search="x").is_browsing
    assert not FilterSpec(country="1").is_browsing
    assert not FilterSpec(show_owned="owned").is_browsing


def test_search_text_is_trimmed_once_for_key_and_browsing():
    assert FilterSpec(search="   ").is_browsing
    assert FilterSpec().with_search("  \t").key() == FilterSpec().key()
    assert FilterSpec(search=" lion ").search == "lion"


@pytest.mark.parametrize(
    "spec",
    [
        FilterSpec(show_owned="mine"),
        FilterSpec(sort_by="name_asc"),
        FilterSpec(period="5"),
    ],
)
def test_validate_rejects_inconsistent_filters(spec):
    with pytest.raises(MalformedFilter):
        spec.validate()


def test_coin_from_row_reads_embedded_joins():
    coin = Coin.from_row(
        {
            "coin_id": 11,
            "name": "Morgan Dollar",
            "year": 1921,
            "price_usd": "42.5",
            "km": "110",
            "subject": None,
            "marked": True,
            "type_id": 2,
            "period_id": 9,
            "denomination_id": 4,
            "series_id": None,
            "d_denominations": {"denomination_name": "1 Dollar"},
            "d_period": {"period_name": "Republic", "period_start_year": 1776, "period_link": "u"},
            "d_series": None,
            "images": {"obverse": {"medium": "o.jpg"}},
        }
    )
    assert coin.coin_id == 11
    assert coin.price_usd == 42.5
    assert coin.denomination_name == "1 Dollar"
    assert coin.period_start_year == 1776
    assert coin.series_name is None
    assert coin.stock_obverse == "o.jpg"
    assert coin.stock_reverse is None
    assert coin.is_owned is False
    assert coin.display_obverse is None


def test_display_defaults_for_missing_fields():
    coin = Coin(coin_id=1)
    assert coin.display_name == "Unnamed Coin"
    assert coin.display_year == "?"
    assert coin.display_price == "N/A"
    assert coin.display_km == "N/A"
    assert Coin(coin_id=2, price_usd=3.5).display_price == "$3.50"


def test_collapse_state_defaults_and_toggles():
    state = CollapseState()
    assert not state.is_category_expanded(1)
    assert state.is_period_expanded(1, 7)

    state = state.toggle_category(1).toggle_period(1, 7)
    assert state.is_category_expanded(1)
    assert not state.is_period_expanded(1, 7)
    # Same period id under another category keeps its own state
    assert state.is_period_expanded(2, 7)

    assert not state.toggle_category(1).is_category_expanded(1)


def test_overlay_snapshot_lookup():
    snap = OverlaySnapshot(entries={5: OverlayEntry(coin_id=5, obverse="a")})
    assert snap.count == 1
    assert snap.owned_ids == [5]
    assert snap.get(5).obverse == "a"
    assert snap.get(6) is None
    assert OverlaySnapshot().is_empty


def test_coin_vm_labels():
    vm = CoinVM(Coin(coin_id=1, subject="Liberty Head", denomination_name="5 Cents", marked=True))
    assert vm.cell_label == "Liberty "
    assert vm.badges == ["RARE", "5 Cents"]
    assert vm.series_text == "Unknown Range"
    assert vm.owned_mark == "✗"
    assert CoinVM(Coin(coin_id=2)).cell_label == "Unknown"
    assert CoinVM(Coin(coin_id=3, year=1900, km="12")).subtitle == "1900 · N/A · KM# 12"
