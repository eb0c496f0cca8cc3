from __future__ import annotations

import sys
from pathlib import Path

from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QHBoxLayout,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)
from loguru import logger

from app.viewmodels.coin_vm import CoinVM
from app.viewmodels.gallery_vm import GalleryVM
from app.views.gallery_view import GalleryView
from app.views.table_view import TableModeView
from core.models import CoinDetail
from infrastructure.logging import find_latest_log_file, init_logging
from infrastructure.postgrest_repository import PostgrestQueryService
from infrastructure.settings import JsonSettings, load_config

BASE_DIR = Path(__file__).parent

SORT_LABELS = [
    ("year_desc", "Year (Newest)"),
    ("year_asc", "Year (Oldest)"),
    ("price_desc", "Price (High-Low)"),
    ("price_asc", "Price (Low-High)"),
]


def _show_detail(parent: QWidget, detail: CoinDetail) -> None:
    coin = detail.coin
    vm = CoinVM(coin)
    lines = [
        vm.subtitle,
        f"Country: {detail.country_name}",
        f"Category: {detail.category_name or 'Unknown'}",
        f"Denomination: {coin.denomination_name or 'Unknown'}",
        f"Period: {coin.period_name or 'Unknown'}",
        f"Series: {coin.series_name or 'Unknown'} ({vm.series_text})",
        f"Owned: {'Yes' if coin.is_owned else 'No'}",
        f"Obverse: {coin.display_obverse or 'N/A'}",
        f"Reverse: {coin.display_reverse or 'N/A'}",
    ]
    lines.extend(f"{k}: {v}" for k, v in sorted(detail.extra.items()) if v not in (None, ""))
    QMessageBox.information(parent, vm.title, "\n".join(lines))


def _build_window(vm: GalleryVM) -> QMainWindow:
    win = QMainWindow()
    win.setWindowTitle("Numismatic Gallery")

    search = QLineEdit()
    search.setPlaceholderText("Search coins by name, subject, or KM#...")
    search.textChanged.connect(vm.set_search)
    search.returnPressed.connect(vm.flush_search)

    owned = QComboBox()
    owned.addItem("All Coins", "all")
    owned.addItem("Only Owned", "owned")
    owned.currentIndexChanged.connect(lambda _i: vm.set_show_owned(owned.currentData()))

    sort = QComboBox()
    for key, label in SORT_LABELS:
        sort.addItem(label, key)
    sort.currentIndexChanged.connect(lambda _i: vm.set_sort_by(sort.currentData()))

    country = QComboBox()
    period = QComboBox()

    def _fill_countries() -> None:
        country.blockSignals(True)
        country.clear()
        country.addItem("All Countries", "")
        for c in vm.countries:
            country.addItem(c.country_name, str(c.country_id))
        country.blockSignals(False)

    def _fill_periods() -> None:
        period.blockSignals(True)
        period.clear()
        period.addItem("All Periods", "")
        for p in vm.periods:
            period.addItem(p.period_name or str(p.period_id), str(p.period_id))
        period.setEnabled(bool(vm.filters.country))
        period.blockSignals(False)

    _fill_countries()
    _fill_periods()
    vm.metadataChanged.connect(_fill_countries)
    vm.periodsChanged.connect(_fill_periods)
    country.currentIndexChanged.connect(lambda _i: vm.set_country(country.currentData()))
    period.currentIndexChanged.connect(lambda _i: vm.set_period(period.currentData()))

    clear = QPushButton("Clear")

    def _clear() -> None:
        for w in (search, country, owned):
            w.blockSignals(True)
        search.clear()
        country.setCurrentIndex(0)
        owned.setCurrentIndex(0)
        for w in (search, country, owned):
            w.blockSignals(False)
        vm.clear_filters()

    clear.clicked.connect(_clear)

    mode = QComboBox()
    mode.addItem("Grid", "grid")
    mode.addItem("Table", "table")

    stack = QStackedWidget()
    stack.addWidget(GalleryView(vm))
    table = TableModeView(vm)
    stack.addWidget(table)

    def _on_mode(_index: int) -> None:
        vm.set_view_mode(mode.currentData())
        stack.setCurrentIndex(mode.currentIndex())
        sort.setEnabled(vm.view_mode == "grid")

    mode.currentIndexChanged.connect(_on_mode)

    bar = QHBoxLayout()
    for w in (search, country, period, owned, sort, clear, mode):
        bar.addWidget(w)
    central = QWidget(win)
    root = QVBoxLayout(central)
    root.addLayout(bar)
    root.addWidget(stack, 1)
    win.setCentralWidget(central)

    def _status() -> None:
        if vm.error:
            win.statusBar().showMessage(vm.error)
        elif vm.loading:
            win.statusBar().showMessage("Loading collection...")
        else:
            win.statusBar().showMessage(f"{len(vm.coins)} coins loaded • {vm.owned_count} owned")

    vm.rowsChanged.connect(_status)
    vm.loadingChanged.connect(lambda _b: _status())
    vm.errorChanged.connect(lambda _m: _status())
    vm.detailReady.connect(lambda detail: _show_detail(win, detail))
    return win


def main() -> int:
    settings = JsonSettings(BASE_DIR / "settings.json")
    config = load_config(settings)
    log_path = init_logging(config.log_dir, config.log_level, console=config.log_console)
    logger.info("Logging to {}", find_latest_log_file(str(log_path)))

    if not config.api_url or not config.api_key:
        logger.error("Remote credentials missing: set NUMISMATIC_API_URL and NUMISMATIC_API_KEY")
        return 2

    app = QApplication(sys.argv)
    service = PostgrestQueryService(
        config.api_url, config.api_key, timeout=config.timeout_seconds
    )
    vm = GalleryVM(service, config=config)
    win = _build_window(vm)
    win.resize(1280, 900)
    win.show()
    vm.start()
    logger.info("Gallery started against {}", config.api_url)

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
