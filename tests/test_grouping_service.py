from __future__ import annotations

from factories import make_coin
import pytest

from core.models import NO_PERIOD_NAME, SORT_KEYS, UNCATEGORIZED_ID, Category
from core.services.grouping_service import UNCATEGORIZED_COLOR_INDEX, group

CATEGORIES = [
    Category(type_id=1, type_name="Standard Circulation"),
    Category(type_id=2, type_name="commemorative"),
    Category(type_id=3, type_name="Bullion"),
]


def _coin(type_id, period_id, start, year=1900, price=None, **kw):
    return make_coin(
        type_id=type_id,
        period_id=period_id,
        period_name=f"P{period_id}",
        period_start_year=start,
        year=year,
        price_usd=price,
        **kw,
    )


@pytest.mark.parametrize("sort_by", SORT_KEYS)
@pytest.mark.parametrize("is_table_mode", [True, False])
def test_categories_are_alphabetical_for_every_sort(sort_by, is_table_mode):
    coins = [_coin(1, 10, 1800), _coin(2, 10, 1800), _coin(3, 10, 1800), _coin(None, 10, 1800)]
    groups = group(coins, CATEGORIES, sort_by, is_table_mode)
    assert [g.name for g in groups] == [
        "Bullion",
        "commemorative",
        "Standard Circulation",
        "Uncategorized",
    ]


def test_empty_categories_are_dropped_and_colors_follow_metadata_order():
    groups = group([_coin(3, 10, 1800), _coin(1, 10, 1800)], CATEGORIES, "year_desc", False)
    assert [(g.id, g.color_index) for g in groups] == [(3, 2), (1, 0)]


def test_unknown_category_falls_back_to_uncategorized():
    coins = [_coin(99, 10, 1800), _coin(None, 10, 1800)]
    (only,) = group(coins, CATEGORIES, "year_desc", False)
    assert only.id == UNCATEGORIZED_ID
    assert only.color_index == UNCATEGORIZED_COLOR_INDEX
    assert len(only.coins) == 2


def test_missing_period_becomes_general_issues():
    coin = make_coin(type_id=1, period_id=None)
    (cat,) = group([coin], CATEGORIES, "year_desc", False)
    assert [p.name for p in cat.periods] == [NO_PERIOD_NAME]
    assert cat.periods[0].start_year == 0


def test_table_mode_orders_periods_chronologically():
    coins = [
        _coin(1, 10, 1700, price=5),
        _coin(1, 20, 1900, price=1),
        _coin(1, 30, 1800, price=100),
    ]
    desc = group(coins, CATEGORIES, "price_desc", True)[0]
    assert [p.start_year for p in desc.periods] == [1900, 1800, 1700]
    asc = group(coins, CATEGORIES, "year_asc", True)[0]
    assert [p.start_year for p in asc.periods] == [1700, 1800, 1900]


def test_grid_price_desc_bubbles_up_most_valuable_period():
    coins = [
        _coin(1, 10, 1700, price=20),
        _coin(1, 20, 1900, price=5),
        _coin(1, 30, 1800, price=500),
        _coin(1, 40, 1850, price=20),
    ]
    (cat,) = group(coins, CATEGORIES, "price_desc", False)
    # Equal maximum price breaks ties by newest start year
    assert [p.id for p in cat.periods] == [30, 40, 10, 20]


def test_grid_year_sorts_use_period_extremes():
    coins = [
        _coin(1, 10, 1700, year=1750),
        _coin(1, 10, 1700, year=1950),
        _coin(1, 20, 1800, year=1900),
    ]
    (desc,) = group(coins, CATEGORIES, "year_desc", False)
    assert [p.id for p in desc.periods] == [10, 20]
    (asc,) = group(coins, CATEGORIES, "year_asc", False)
    assert [p.id for p in asc.periods] == [10, 20]

    coins.append(_coin(1, 30, 1600, year=1600))
    (asc,) = group(coins, CATEGORIES, "year_asc", False)
    assert [p.id for p in asc.periods] == [30, 10, 20]


def test_grid_price_asc_treats_unpriced_period_as_zero():
    coins = [_coin(1, 10, 1700, price=3), _coin(1, 20, 1800, price=None)]
    (cat,) = group(coins, CATEGORIES, "price_asc", False)
    assert [p.id for p in cat.periods] == [20, 10]


def test_period_stats_and_coin_order():
    coins = [
        _coin(1, 10, 1700, year=1720, price=2),
        _coin(1, 10, 1700, year=0, price=None),
        _coin(1, 10, 1700, year=1790, price=9),
    ]
    (cat,) = group(coins, CATEGORIES, "year_desc", False)
    period = cat.periods[0]
    assert (period.min_year, period.max_year) == (1720, 1790)
    assert (period.min_price, period.max_price) == (2, 9)
    assert [c.year for c in period.coins] == [1790, 1720, 0]


def test_owned_counts_roll_up():
    coins = [_coin(1, 10, 1700, is_owned=True), _coin(1, 10, 1700), _coin(1, 20, 1800)]
    (cat,) = group(coins, CATEGORIES, "year_desc", False)
    assert cat.owned_count == 1
    assert sum(p.owned_count for p in cat.periods) == 1
