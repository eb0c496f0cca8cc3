"""ViewModel driving the fetch -> group -> plan pipeline of the gallery."""

from __future__ import annotations

from dataclasses import dataclass, field

from PySide6.QtCore import QObject, QTimer, Signal
from loguru import logger

from app.viewmodels.fetch_tasks import FetchTaskRunner
from core.errors import MalformedFilter
from core.models import CategoryGroup, Coin, CollapseState, FilterSpec, Period, PeriodGroup, Row
from core.services.coin_fetcher import fetch_coins
from core.services.detail_service import CoinDetailService
from core.services.grouping_service import group
from core.services.interfaces import IQueryService
from core.services.metadata_provider import MetadataProvider
from core.services.overlay_cache import OwnershipOverlayCache
from core.services.pivot_service import PivotTable, pivot
from core.services.query_cache import QueryCache
from core.services.row_planner import columns_for_width, plan
from core.services.virtualizer import VirtualItem, Virtualizer
from infrastructure.settings import AppConfig

VIEW_MODES = ("grid", "table")


@dataclass
class TablePeriod:
    period: PeriodGroup
    is_expanded: bool
    table: PivotTable | None = None


@dataclass
class TableSection:
    """One category of the (non-virtualized) table view."""

    group: CategoryGroup
    is_expanded: bool
    periods: list[TablePeriod] = field(default_factory=list)


class GalleryVM(QObject):
    """Main gallery view-model.

    Owns filter, collapse and viewport state and recomputes the pipeline
    stages downstream of whatever changed: overlay -> fetch -> group -> plan.
    Remote work runs through a task runner; results come back through
    `taskFinished` on the GUI thread.
    """

    rowsChanged = Signal()
    loadingChanged = Signal(bool)
    errorChanged = Signal(str)
    metadataChanged = Signal()
    periodsChanged = Signal()
    ownedCountChanged = Signal(int)
    detailReady = Signal(object)
    taskFinished = Signal(str, object, object)

    def __init__(
        self,
        service: IQueryService,
        config: AppConfig | None = None,
        runner_factory=None,
        parent: QObject | None = None,
    ) -> None:
        """Create a GalleryVM.

        Args:
            service: Remote query service.
            config: Application config (defaults to `AppConfig()`).
            runner_factory: Callable `(receiver=...) -> runner` with a
                `submit(token, fn)` method (defaults to `FetchTaskRunner`).
            parent: Optional Qt parent.
        """
        super().__init__(parent)
        self._config = config or AppConfig()
        self._service = service
        self._overlay = OwnershipOverlayCache(service, self._config.overlay_ttl_seconds)
        self._metadata = MetadataProvider(service, self._config.periods_ttl_seconds)
        self._details = CoinDetailService(service, self._config.detail_ttl_seconds)
        self._cache = QueryCache(self._config.coins_ttl_seconds)
        self._virtualizer = Virtualizer()
        self._runner = (runner_factory or FetchTaskRunner)(receiver=self)
        self.taskFinished.connect(self._on_task_finished)

        self.filters = FilterSpec()
        self.view_mode = "grid"
        self.collapse = CollapseState()
        self.coins: list[Coin] = []
        self.groups: list[CategoryGroup] = []
        self.rows: list[Row] = []
        self.periods: list[Period] = []
        self.error = ""
        self._debounced_search = ""
        self._loading = False
        self._requested_key: str | None = None
        self._coin_requests: dict[int, str] = {}
        self._columns = columns_for_width(1300)
        self._scroll_offset = 0.0

        self._search_timer = QTimer(self)
        self._search_timer.setSingleShot(True)
        self._search_timer.setInterval(self._config.search_debounce_ms)
        self._search_timer.timeout.connect(self._apply_search)

        self._overlay_timer = QTimer(self)
        self._overlay_timer.setInterval(int(self._config.overlay_ttl_seconds * 1000))
        self._overlay_timer.timeout.connect(self._on_overlay_timer)

    # ----- read-only state -----
    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def owned_count(self) -> int:
        return self._overlay.count

    @property
    def countries(self):
        return self._metadata.countries

    @property
    def categories(self):
        return self._metadata.categories

    @property
    def scroll_offset(self) -> float:
        return self._scroll_offset

    @property
    def total_height(self) -> float:
        return self._virtualizer.total_size

    def effective_filters(self) -> FilterSpec:
        """Filters as fetched: the search text is the debounced one."""
        return self.filters.with_search(self._debounced_search)

    # ----- lifecycle -----
    def start(self) -> None:
        """Load metadata and the ownership overlay; coins follow the overlay."""
        self._set_loading(True)
        self._runner.submit("metadata", self._metadata.load)
        self.refresh_overlay(force=True)
        self._overlay_timer.start()

    def refresh_overlay(self, force: bool = False) -> None:
        """Reload the ownership overlay once its staleness window passed."""
        if force or self._overlay.is_stale():
            self._runner.submit("overlay", self._overlay.load)

    def _on_overlay_timer(self) -> None:
        # loaded_at is stamped when a load ends, so a TTL-long tick finds it fresh
        self.refresh_overlay(force=True)

    # ----- filter setters -----
    def set_search(self, text: str) -> None:
        self.filters = self.filters.with_search(text)
        self._search_timer.start()

    def flush_search(self) -> None:
        """Apply a pending search immediately (e.g. on Enter)."""
        if self._search_timer.isActive():
            self._search_timer.stop()
        self._apply_search()

    def set_country(self, country: str) -> None:
        self.filters = self.filters.with_country(country)
        self.periods = []
        self.periodsChanged.emit()
        if country:
            self._runner.submit(
                f"periods|{country}", lambda: self._metadata.periods_for_country(country)
            )
        self._request_coins()

    def set_period(self, period: str) -> None:
        self.filters = self.filters.with_period(period)
        self._request_coins()

    def set_show_owned(self, show_owned: str) -> None:
        self.filters = self.filters.with_show_owned(show_owned)
        self._request_coins()

    def set_sort_by(self, sort_by: str) -> None:
        self.filters = self.filters.with_sort_by(sort_by)
        # Regroup what is on screen right away; the refetch replaces it later
        self._replan()
        self._request_coins()

    def clear_filters(self) -> None:
        self._search_timer.stop()
        self._debounced_search = ""
        self.filters = FilterSpec(sort_by=self.filters.sort_by)
        self.periods = []
        self.periodsChanged.emit()
        self._request_coins()

    # ----- presentation state -----
    def set_view_mode(self, mode: str) -> None:
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {mode}")
        if mode != self.view_mode:
            self.view_mode = mode
            self._replan()

    def toggle_category(self, group_id) -> None:
        self.collapse = self.collapse.toggle_category(group_id)
        self._replan()

    def toggle_period(self, group_id, period_id) -> None:
        self.collapse = self.collapse.toggle_period(group_id, period_id)
        self._replan()

    def set_viewport_width(self, width: int) -> None:
        columns = columns_for_width(width)
        if columns != self._columns:
            self._columns = columns
            self._virtualizer.reset_measurements()
            self._replan()

    def visible_items(self, scroll_offset: float, viewport_height: float) -> list[VirtualItem]:
        """Rows to render for the grid viewport at `scroll_offset`."""
        self._scroll_offset = scroll_offset
        return self._virtualizer.virtual_items(scroll_offset, viewport_height)

    def measure_row(self, index: int, height: float) -> float:
        """Feed back a rendered row height, keeping the viewport anchored.

        Returns the change in total height (0 when the row already had it).
        """
        first = self._virtualizer.index_at(self._scroll_offset)
        delta = self._virtualizer.measure(index, height)
        if delta and index < first:
            self._scroll_offset += delta
        return delta

    def table_sections(self) -> list[TableSection]:
        """Full category/period tree for the table view, pivoted where expanded."""
        sections: list[TableSection] = []
        for g in self.groups:
            expanded = self.collapse.is_category_expanded(g.id)
            section = TableSection(group=g, is_expanded=expanded)
            if expanded:
                for p in g.periods:
                    p_expanded = self.collapse.is_period_expanded(g.id, p.id)
                    section.periods.append(
                        TablePeriod(
                            period=p,
                            is_expanded=p_expanded,
                            table=pivot(p.coins) if p_expanded else None,
                        )
                    )
            sections.append(section)
        return sections

    def coins_for_ids(self, coin_ids) -> list[Coin]:
        """Loaded coins with the given ids, in the order of `coin_ids`."""
        by_id = {c.coin_id: c for c in self.coins}
        return [by_id[i] for i in coin_ids if i in by_id]

    def open_detail(self, coin: Coin) -> None:
        """Fetch the detail record of `coin`; emits `detailReady`."""
        self._runner.submit(f"detail|{coin.coin_id}", lambda: self._details.get(coin))

    # ----- pipeline -----
    def _apply_search(self) -> None:
        self._debounced_search = self.filters.search
        self._request_coins()

    def _request_coins(self) -> None:
        if not self._overlay.is_ready:
            # Fetching waits for the ownership overlay
            self._set_loading(True)
            return

        filters = self.effective_filters()
        try:
            filters.validate()
        except MalformedFilter as ex:
            logger.warning("Rejected filter: {}", ex)
            self._set_error(str(ex))
            return

        key = filters.key()
        self._requested_key = key
        entry = self._cache.get(key)
        if entry is not None:
            self._show_coins(entry.value)
            if self._cache.is_fresh(key):
                self._set_loading(False)
                return
        if self._cache.in_flight(key):
            self._set_loading(True)
            return

        token = self._cache.begin(key)
        if token is None:
            return
        snapshot = self._overlay.snapshot
        self._coin_requests[token] = key
        self._set_loading(True)
        logger.info("Fetching coins for {}", key)
        self._runner.submit(
            f"coins|{token}",
            lambda: fetch_coins(
                self._service,
                filters,
                snapshot,
                browse_limit=self._config.browse_limit,
                batch_size=self._config.batch_size,
            ),
        )

    def _on_task_finished(self, token: str, result: object, error: object) -> None:
        kind, _, arg = token.partition("|")
        if kind == "coins":
            self._on_coins(int(arg), result, error)
        elif kind == "overlay":
            self._on_overlay(error)
        elif kind == "metadata":
            self._on_metadata(error)
        elif kind == "periods":
            self._on_periods(arg, result, error)
        elif kind == "detail":
            if error is not None:
                self._set_error(f"Could not load coin details: {error}")
            else:
                self.detailReady.emit(result)
        else:
            logger.warning("Unknown task token: {}", token)

    def _on_coins(self, cache_token: int, result, error) -> None:
        key = self._coin_requests.pop(cache_token, None)
        if key is None:
            return
        if error is not None:
            self._cache.fail(key, cache_token)
            if key == self._requested_key:
                # Keep showing the last good coins alongside the error
                self._set_loading(False)
                self._set_error(f"Could not load coins: {error}")
            return

        self._cache.resolve(key, cache_token, result)
        if key != self._requested_key:
            logger.debug("Discarding result for superseded filter {}", key)
            return
        logger.info("Loaded {} coins", len(result))
        self._set_error("")
        self._set_loading(False)
        self._show_coins(result)

    def _on_overlay(self, error) -> None:
        if error is not None:
            self._set_error(f"Could not load owned coins: {error}")
            if not self._overlay.is_ready:
                self._set_loading(False)
            return
        self.ownedCountChanged.emit(self._overlay.count)
        # Cached coins carry the previous ownership; refetch with the new snapshot
        self._cache.invalidate()
        self._request_coins()

    def _on_metadata(self, error) -> None:
        if error is not None:
            self._set_error(f"Could not load catalog metadata: {error}")
            return
        self.metadataChanged.emit()
        self._replan()

    def _on_periods(self, country: str, result, error) -> None:
        if country != self.filters.country:
            return
        if error is not None:
            self._set_error(f"Could not load periods: {error}")
            return
        self.periods = list(result)
        self.periodsChanged.emit()

    def _show_coins(self, coins: list[Coin]) -> None:
        self.coins = coins
        self._replan()

    def _replan(self) -> None:
        is_table = self.view_mode == "table"
        self.groups = group(self.coins, self._metadata.categories, self.filters.sort_by, is_table)
        if is_table:
            self.rows = []
        else:
            self.rows = plan(self.groups, self.collapse, self._columns)
        self._scroll_offset = self._virtualizer.set_rows(self.rows, self._scroll_offset)
        self.rowsChanged.emit()

    def _set_loading(self, loading: bool) -> None:
        if loading != self._loading:
            self._loading = loading
            self.loadingChanged.emit(loading)

    def _set_error(self, message: str) -> None:
        if message != self.error:
            self.error = message
            self.errorChanged.emit(message)
