"""TableModeView: non-virtualized category/period tree of pivot tables."""

from __future__ import annotations

from PySide6.QtCore import QModelIndex
from PySide6.QtGui import QCursor, QStandardItemModel
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHeaderView,
    QMenu,
    QPushButton,
    QScrollArea,
    QTableView,
    QVBoxLayout,
    QWidget,
)

from app.viewmodels.coin_vm import CoinVM
from app.viewmodels.gallery_vm import GalleryVM
from app.views.constants import COIN_IDS_ROLE, SERIES_IDS_ROLE, category_color
from app.views.pivot_model_builder import build_pivot_model, highlight_series
from core.services.pivot_service import PivotTable


class TableModeView(QScrollArea):
    """Renders every section of `vm.table_sections()` in one scrolling column.

    Clicking a cell opens the detail of its coin (a menu picks one when the
    cell holds several); hovering a cell highlights the rest of its series.
    """

    def __init__(self, vm: GalleryVM, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._vm = vm
        self.setWidgetResizable(True)
        vm.rowsChanged.connect(self.refresh)

    def refresh(self) -> None:
        if self._vm.view_mode != "table":
            return
        content = QWidget()
        layout = QVBoxLayout(content)
        for section in self._vm.table_sections():
            color = category_color(section.group.color_index)
            header = QPushButton(
                f"{section.group.name}   {len(section.group.coins)} coins"
                f" • {section.group.owned_count} owned"
            )
            header.setStyleSheet(
                f"background:{color.bg}; color:{color.text}; border:1px solid {color.border};"
                " text-align:left; padding:12px; font-weight:bold;"
            )
            header.clicked.connect(
                lambda _c=False, gid=section.group.id: self._vm.toggle_category(gid)
            )
            layout.addWidget(header)

            for tp in section.periods:
                chevron = "▾" if tp.is_expanded else "▸"
                title = QPushButton(
                    f"{chevron}  {tp.period.name}   {len(tp.period.coins)} coins"
                    f" • {tp.period.owned_count} owned"
                )
                title.setFlat(True)
                gid, pid = section.group.id, tp.period.id
                title.clicked.connect(lambda _c=False, g=gid, p=pid: self._vm.toggle_period(g, p))
                layout.addWidget(title)
                if tp.table is None:
                    continue
                layout.addWidget(self._pivot_view(tp.table))
        layout.addStretch(1)
        # Buttons of the old content may still be emitting; delete it later
        old = self.takeWidget()
        if old is not None:
            old.deleteLater()
        self.setWidget(content)

    def _pivot_view(self, table: PivotTable) -> QTableView:
        model = build_pivot_model(table)
        view = QTableView()
        view.setModel(model)
        view.setEditTriggers(QAbstractItemView.NoEditTriggers)
        view.setMouseTracking(True)
        view.verticalHeader().setVisible(False)
        view.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeToContents)
        view.resizeRowsToContents()
        view.clicked.connect(self.open_cell)
        view.entered.connect(lambda index, m=model, t=table: self.hover_cell(m, t, index))
        view.viewportEntered.connect(lambda m=model, t=table: highlight_series(m, t, None))
        return view

    def open_cell(self, index: QModelIndex) -> None:
        coins = self._vm.coins_for_ids(index.data(COIN_IDS_ROLE) or [])
        if not coins:
            return
        if len(coins) == 1:
            self._vm.open_detail(coins[0])
            return
        menu = QMenu(self)
        for coin in coins:
            action = menu.addAction(CoinVM(coin).title)
            action.triggered.connect(lambda _c=False, c=coin: self._vm.open_detail(c))
        menu.exec(QCursor.pos())

    def hover_cell(self, model: QStandardItemModel, table: PivotTable, index: QModelIndex) -> None:
        series = index.data(SERIES_IDS_ROLE) or []
        highlight_series(model, table, series[0] if series else None)
