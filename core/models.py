"""Core domain models for coin records, filters, groups and planned rows."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import json
from typing import Any, Union

from core.errors import MalformedFilter

SHOW_OWNED_VALUES = ("all", "owned")
SORT_KEYS = ("year_desc", "year_asc", "price_desc", "price_asc")
DEFAULT_SORT = "year_desc"

UNCATEGORIZED_ID = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"
NO_PERIOD_ID = "no_period"
NO_PERIOD_NAME = "General Issues"


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _as_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _nested(row: dict[str, Any], *path: str) -> Any:
    """Walk embedded objects in a remote row, returning None on any gap."""
    node: Any = row
    for part in path:
        if isinstance(node, list):
            node = node[0] if node else None
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


@dataclass
class Coin:
    """A single catalog coin with denormalized joins and ownership overlay."""

    coin_id: int
    name: str | None = None
    year: int | None = None
    price_usd: float | None = None
    km: str | None = None
    subject: str | None = None
    marked: bool = False
    type_id: int | None = None
    period_id: int | None = None
    denomination_id: int | None = None
    series_id: int | None = None
    denomination_name: str | None = None
    period_name: str | None = None
    period_start_year: int | None = None
    period_link: str | None = None
    series_name: str | None = None
    series_range: str | None = None
    series_link: str | None = None
    stock_obverse: str | None = None
    stock_reverse: str | None = None
    # Overlay attributes, filled in by the fetcher
    is_owned: bool = False
    display_obverse: str | None = None
    display_reverse: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Coin:
        """Build a Coin from a remote row including its embedded joins."""
        return cls(
            coin_id=int(row["coin_id"]),
            name=row.get("name"),
            year=_as_int(row.get("year")),
            price_usd=_as_float(row.get("price_usd")),
            km=row.get("km"),
            subject=row.get("subject"),
            marked=bool(row.get("marked")),
            type_id=_as_int(row.get("type_id")),
            period_id=_as_int(row.get("period_id")),
            denomination_id=_as_int(row.get("denomination_id")),
            series_id=_as_int(row.get("series_id")),
            denomination_name=_nested(row, "d_denominations", "denomination_name"),
            period_name=_nested(row, "d_period", "period_name"),
            period_start_year=_as_int(_nested(row, "d_period", "period_start_year")),
            period_link=_nested(row, "d_period", "period_link"),
            series_name=_nested(row, "d_series", "series_name"),
            series_range=_nested(row, "d_series", "series_range"),
            series_link=_nested(row, "d_series", "series_link"),
            stock_obverse=_nested(row, "images", "obverse", "medium"),
            stock_reverse=_nested(row, "images", "reverse", "medium"),
        )

    @property
    def display_name(self) -> str:
        return self.name or "Unnamed Coin"

    @property
    def display_year(self) -> str:
        return str(self.year) if self.year else "?"

    @property
    def display_price(self) -> str:
        return f"${self.price_usd:.2f}" if self.price_usd else "N/A"

    @property
    def display_km(self) -> str:
        return self.km or "N/A"


@dataclass(frozen=True)
class OverlayEntry:
    """Owned-collection photos for one coin."""

    coin_id: int
    obverse: str | None = None
    reverse: str | None = None


@dataclass(frozen=True)
class OverlaySnapshot:
    """Read-only view of the owned-coins side table at one point in time."""

    entries: dict[int, OverlayEntry] = field(default_factory=dict)
    loaded_at: float = 0.0

    @property
    def count(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def owned_ids(self) -> list[int]:
        return list(self.entries)

    def get(self, coin_id: int) -> OverlayEntry | None:
        return self.entries.get(coin_id)


@dataclass(frozen=True)
class Country:
    country_id: int
    country_name: str


@dataclass(frozen=True)
class Category:
    type_id: int
    type_name: str


@dataclass(frozen=True)
class Period:
    period_id: int
    period_name: str | None = None
    period_start_year: int | None = None
    period_link: str | None = None
    period_range: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Period:
        return cls(
            period_id=int(row["period_id"]),
            period_name=row.get("period_name"),
            period_start_year=_as_int(row.get("period_start_year")),
            period_link=row.get("period_link"),
            period_range=row.get("period_range"),
        )


@dataclass(frozen=True)
class FilterSpec:
    """User filter state; its serialized form identifies a coin fetch."""

    search: str = ""
    country: str = ""
    period: str = ""
    show_owned: str = "all"
    sort_by: str = DEFAULT_SORT

    def __post_init__(self) -> None:
        # Surrounding whitespace never narrows a search
        object.__setattr__(self, "search", self.search.strip())

    def key(self) -> str:
        """Canonical serialized form used as the cache and dedup key."""
        return json.dumps(
            {
                "search": self.search,
                "country": self.country,
                "period": self.period,
                "show_owned": self.show_owned,
                "sort_by": self.sort_by,
            },
            sort_keys=True,
        )

    @property
    def is_browsing(self) -> bool:
        """True when no filter is active (bounded, randomized sample)."""
        return (
            not self.search
            and not self.country
            and not self.period
            and self.show_owned == "all"
        )

    def validate(self) -> FilterSpec:
        """Raise `MalformedFilter` if the filter is inconsistent; return self."""
        if self.show_owned not in SHOW_OWNED_VALUES:
            raise MalformedFilter(f"Unknown show_owned value: {self.show_owned!r}")
        if self.sort_by not in SORT_KEYS:
            raise MalformedFilter(f"Unknown sort_by value: {self.sort_by!r}")
        if self.period and not self.country:
            raise MalformedFilter("Period filter requires a country")
        return self

    def with_search(self, search: str) -> FilterSpec:
        return replace(self, search=search)

    def with_country(self, country: str) -> FilterSpec:
        # Changing country always invalidates the period selection
        return replace(self, country=country, period="")

    def with_period(self, period: str) -> FilterSpec:
        return replace(self, period=period)

    def with_show_owned(self, show_owned: str) -> FilterSpec:
        return replace(self, show_owned=show_owned)

    def with_sort_by(self, sort_by: str) -> FilterSpec:
        return replace(self, sort_by=sort_by)


@dataclass
class PeriodGroup:
    """Coins of one period inside a category, with aggregate stats."""

    id: int | str
    name: str
    start_year: int
    coins: list[Coin] = field(default_factory=list)
    min_year: float = float("inf")
    max_year: float = float("-inf")
    min_price: float = float("inf")
    max_price: float = float("-inf")

    def add(self, coin: Coin) -> None:
        """Append `coin` and fold it into the aggregate stats."""
        self.coins.append(coin)
        if coin.year:
            self.min_year = min(self.min_year, coin.year)
            self.max_year = max(self.max_year, coin.year)
        if coin.price_usd is not None:
            self.min_price = min(self.min_price, coin.price_usd)
            self.max_price = max(self.max_price, coin.price_usd)

    @property
    def owned_count(self) -> int:
        return sum(1 for c in self.coins if c.is_owned)


@dataclass
class CategoryGroup:
    """Top-level category bucket holding its periods."""

    id: int | str
    name: str
    color_index: int
    coins: list[Coin] = field(default_factory=list)
    periods: list[PeriodGroup] = field(default_factory=list)

    @property
    def owned_count(self) -> int:
        return sum(1 for c in self.coins if c.is_owned)


def period_key(group_id: int | str, period_id: int | str) -> str:
    return f"{group_id}-{period_id}"


@dataclass(frozen=True)
class CollapseState:
    """Expand/collapse flags for categories and (category, period) pairs.

    Categories default to collapsed; periods default to expanded, so an absent
    entry in either mapping means the default.
    """

    expanded_categories: frozenset[str] = frozenset()
    collapsed_periods: frozenset[str] = frozenset()

    def is_category_expanded(self, group_id: int | str) -> bool:
        return str(group_id) in self.expanded_categories

    def is_period_expanded(self, group_id: int | str, period_id: int | str) -> bool:
        return period_key(group_id, period_id) not in self.collapsed_periods

    def toggle_category(self, group_id: int | str) -> CollapseState:
        key = str(group_id)
        return replace(self, expanded_categories=self.expanded_categories ^ {key})

    def toggle_period(self, group_id: int | str, period_id: int | str) -> CollapseState:
        key = period_key(group_id, period_id)
        return replace(self, collapsed_periods=self.collapsed_periods ^ {key})


@dataclass(frozen=True)
class HeaderRow:
    group: CategoryGroup

    kind = "header"

    @property
    def key(self) -> str:
        return f"h:{self.group.id}"


@dataclass(frozen=True)
class SubHeaderRow:
    title: str
    count: int
    owned_count: int
    group_id: int | str
    period_id: int | str
    is_expanded: bool
    is_last_in_group: bool

    kind = "subheader"

    @property
    def key(self) -> str:
        return f"s:{self.group_id}:{self.period_id}"


@dataclass(frozen=True)
class DataRow:
    coins: tuple[Coin, ...]
    group_id: int | str
    period_id: int | str
    chunk_index: int
    is_last: bool

    kind = "row"

    @property
    def key(self) -> str:
        return f"r:{self.group_id}:{self.period_id}:{self.chunk_index}"


Row = Union[HeaderRow, SubHeaderRow, DataRow]


@dataclass
class CoinDetail:
    """Full joined record backing the detail view."""

    coin: Coin
    category_name: str | None = None
    country_name: str = "Unknown"
    extra: dict[str, Any] = field(default_factory=dict)
