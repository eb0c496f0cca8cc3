from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QBrush, QColor, QStandardItem, QStandardItemModel

from app.viewmodels.coin_vm import CoinVM
from app.views.constants import (
    CELL_COLORS,
    CELL_STATE_ROLE,
    COIN_IDS_ROLE,
    SERIES_HIGHLIGHT,
    SERIES_IDS_ROLE,
)
from core.services.pivot_service import PivotTable, series_cells, year_label

YEAR_HEADER = "Year"
EMPTY_CELL_TEXT = "–"


def build_pivot_model(table: PivotTable) -> QStandardItemModel:
    """Builds a year x denomination item model for the table view.

    Each cell lists its coins as "label ✓/✗" lines and carries the coin ids,
    series ids and ownership state in custom roles.
    """
    model = QStandardItemModel(len(table.years), len(table.denominations) + 1)
    model.setHorizontalHeaderLabels([YEAR_HEADER, *table.denominations])

    for row, year in enumerate(table.years):
        year_item = QStandardItem(year_label(year))
        year_item.setEditable(False)
        year_item.setTextAlignment(Qt.AlignCenter)
        model.setItem(row, 0, year_item)

        for col, denom in enumerate(table.denominations, start=1):
            coins = table.cell(year, denom)
            state = table.cell_state(year, denom)
            if coins:
                lines = [f"{vm.cell_label} {vm.owned_mark}" for vm in map(CoinVM, coins)]
                item = QStandardItem("\n".join(lines))
                tips = [f"{c.display_name} ({CoinVM(c).series_text})" for c in coins]
                item.setToolTip("\n".join(tips))
            else:
                item = QStandardItem(EMPTY_CELL_TEXT)
            item.setEditable(False)
            item.setData([c.coin_id for c in coins], COIN_IDS_ROLE)
            item.setData(state.value, CELL_STATE_ROLE)
            series = sorted({c.series_id for c in coins if c.series_id is not None})
            item.setData(series, SERIES_IDS_ROLE)
            item.setBackground(QBrush(QColor(CELL_COLORS[state])))
            model.setItem(row, col, item)

    return model


def highlight_series(model: QStandardItemModel, table: PivotTable, series_id: int | None) -> None:
    """Tint the cells holding a coin of `series_id`; other cells show their state color."""
    marked = series_cells(table, series_id)
    for row, year in enumerate(table.years):
        for col, denom in enumerate(table.denominations, start=1):
            if (year, denom) in marked:
                color = SERIES_HIGHLIGHT
            else:
                color = CELL_COLORS[table.cell_state(year, denom)]
            model.item(row, col).setBackground(QBrush(QColor(color)))
