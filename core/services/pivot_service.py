"""Year x denomination pivot of one period's coins for the table view."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
import re

from core.models import Coin
from core.services.sort_service import SortService

NO_DATE = 0
NO_DATE_LABEL = "ND"
UNKNOWN_DENOMINATION = "Unknown"

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")

_sorter = SortService()


class CellState(str, Enum):
    ALL_OWNED = "all-owned"
    MIXED = "mixed"
    NONE = "none"
    EMPTY = "empty"


def face_value(denomination: str) -> float:
    """Leading numeric face value of a denomination name, 0 when absent."""
    match = _LEADING_NUMBER.match(denomination)
    return float(match.group(0)) if match else 0.0


def year_label(year: int) -> str:
    return str(year) if year > 0 else NO_DATE_LABEL


def classify(coins: list[Coin]) -> CellState:
    """Ownership state of a cell's coin list."""
    if not coins:
        return CellState.EMPTY
    owned = sum(1 for c in coins if c.is_owned)
    if owned == len(coins):
        return CellState.ALL_OWNED
    if owned:
        return CellState.MIXED
    return CellState.NONE


@dataclass
class PivotTable:
    """Pivoted coins: `matrix` maps (year, denomination) to the cell's coins."""

    years: list[int] = field(default_factory=list)
    denominations: list[str] = field(default_factory=list)
    matrix: dict[tuple[int, str], list[Coin]] = field(default_factory=dict)

    def cell(self, year: int, denomination: str) -> list[Coin]:
        return self.matrix.get((year, denomination), [])

    def cell_state(self, year: int, denomination: str) -> CellState:
        return classify(self.cell(year, denomination))


def pivot(coins: Iterable[Coin]) -> PivotTable:
    """Pivot `coins` into a year x denomination matrix.

    Years are descending with "no date" bucketed as 0 (so it sorts last);
    denominations ascend by face value, ties broken lexically. Each cell
    lists owned coins first, then by subject.
    """
    matrix: dict[tuple[int, str], list[Coin]] = {}
    years: set[int] = set()
    denominations: set[str] = set()
    for coin in coins:
        year = coin.year or NO_DATE
        denom = coin.denomination_name or UNKNOWN_DENOMINATION
        years.add(year)
        denominations.add(denom)
        matrix.setdefault((year, denom), []).append(coin)

    for key, cell in matrix.items():
        matrix[key] = _sorter.sort_multi(cell, [("is_owned", False), ("subject", True)])

    return PivotTable(
        years=sorted(years, reverse=True),
        denominations=sorted(denominations, key=lambda d: (face_value(d), d)),
        matrix=matrix,
    )


def series_cells(table: PivotTable, series_id: int | None) -> set[tuple[int, str]]:
    """Cells holding at least one coin of `series_id`, for hover highlighting."""
    if series_id is None:
        return set()
    return {
        key for key, cell in table.matrix.items() if any(c.series_id == series_id for c in cell)
    }
