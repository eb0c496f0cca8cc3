"""GalleryView: virtualized grid of category headers, period headers and coin cards."""

from __future__ import annotations

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QFont, QPainter, QPen
from PySide6.QtWidgets import QAbstractScrollArea, QWidget

from app.viewmodels.coin_vm import CoinVM
from app.viewmodels.gallery_vm import GalleryVM
from app.views.constants import (
    CARD_IMAGE_PX,
    CARD_SPACING_PX,
    DEFAULT_BORDER,
    HEADER_MARGIN_TOP_PX,
    ROW_PADDING_PX,
    category_color,
)
from core.models import DataRow, HeaderRow, SubHeaderRow
from core.services.virtualizer import VirtualItem


class GalleryView(QAbstractScrollArea):
    """Paints only the rows the view-model reports as visible.

    Clicking a category header toggles the category, clicking a period header
    toggles the period, and clicking a card opens its detail. Card rows report
    the height their text needs back to the view-model after each paint.
    """

    def __init__(self, vm: GalleryVM, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._vm = vm
        self._items: list[VirtualItem] = []
        self.verticalScrollBar().setSingleStep(40)
        self.verticalScrollBar().valueChanged.connect(lambda _v: self.viewport().update())
        vm.rowsChanged.connect(self._on_rows_changed)

    def _group_colors(self) -> dict:
        return {g.id: category_color(g.color_index) for g in self._vm.groups}

    def _on_rows_changed(self) -> None:
        bar = self.verticalScrollBar()
        bar.setRange(0, max(0, int(self._vm.total_height) - self.viewport().height()))
        bar.setPageStep(self.viewport().height())
        # The view-model re-anchors the offset when rows above it change
        bar.setValue(int(self._vm.scroll_offset))
        self.viewport().update()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._vm.set_viewport_width(self.viewport().width())
        self._on_rows_changed()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        scroll = float(self.verticalScrollBar().value())
        height = float(self.viewport().height())
        self._items = self._vm.visible_items(scroll, height)
        colors = self._group_colors()

        painter = QPainter(self.viewport())
        painter.setRenderHint(QPainter.Antialiasing)
        width = float(self.viewport().width())
        measured: list[tuple[int, float]] = []
        for item in self._items:
            rect = QRectF(0.0, item.start - scroll, width, item.size)
            row = item.row
            if isinstance(row, HeaderRow):
                self._paint_header(painter, rect, row, colors)
            elif isinstance(row, SubHeaderRow):
                self._paint_subheader(painter, rect, row, colors)
            else:
                measured.append((item.index, self._paint_coins(painter, rect, row, colors)))
        painter.end()

        changed = False
        for index, size in measured:
            changed = bool(self._vm.measure_row(index, size)) or changed
        if changed:
            self._on_rows_changed()

    def _paint_header(self, painter: QPainter, rect: QRectF, row: HeaderRow, colors) -> None:
        color = colors.get(row.group.id) or category_color(row.group.color_index)
        box = rect.adjusted(ROW_PADDING_PX, HEADER_MARGIN_TOP_PX, -ROW_PADDING_PX, 0)
        painter.setPen(QPen(QColor(color.border)))
        painter.setBrush(QColor(color.bg))
        painter.drawRoundedRect(box, 12, 12)
        font = QFont(painter.font())
        font.setBold(True)
        font.setPointSize(14)
        painter.setFont(font)
        painter.setPen(QColor(color.text))
        text = (
            f"{row.group.name}   {len(row.group.coins)} coins • {row.group.owned_count} owned"
        )
        painter.drawText(box.adjusted(16, 0, -16, 0), Qt.AlignVCenter | Qt.AlignLeft, text)

    def _paint_subheader(
        self, painter: QPainter, rect: QRectF, row: SubHeaderRow, colors
    ) -> None:
        color = colors.get(row.group_id)
        painter.setPen(QPen(QColor(color.border if color else DEFAULT_BORDER)))
        painter.setBrush(QColor("#ffffff"))
        box = rect.adjusted(ROW_PADDING_PX, 0, -ROW_PADDING_PX, 0)
        painter.drawRect(box)
        font = QFont(painter.font())
        font.setBold(True)
        font.setPointSize(11)
        painter.setFont(font)
        painter.setPen(QColor("#475569"))
        chevron = "▾" if row.is_expanded else "▸"
        text = f"{chevron}  {row.title}   {row.count} coins • {row.owned_count} owned"
        painter.drawText(box.adjusted(16, 0, -16, 0), Qt.AlignVCenter | Qt.AlignLeft, text)

    def _paint_coins(self, painter: QPainter, rect: QRectF, row: DataRow, colors) -> float:
        """Paint one row of cards; return the row height its text needs."""
        columns = max(1, self._vm.columns)
        inner = rect.adjusted(ROW_PADDING_PX * 2, CARD_SPACING_PX, -ROW_PADDING_PX * 2, 0)
        card_w = (inner.width() - CARD_SPACING_PX * (columns - 1)) / columns
        color = colors.get(row.group_id)
        font = QFont(painter.font())
        font.setBold(False)
        font.setPointSize(10)
        painter.setFont(font)
        text_w = max(1.0, card_w - 24)
        needed = 0.0
        for i, coin in enumerate(row.coins):
            vm = CoinVM(coin)
            card = QRectF(
                inner.left() + i * (card_w + CARD_SPACING_PX),
                inner.top(),
                card_w,
                inner.height() - CARD_SPACING_PX,
            )
            border = "#10b981" if coin.is_owned else (color.border if color else DEFAULT_BORDER)
            painter.setPen(QPen(QColor(border), 2 if coin.is_owned else 1))
            painter.setBrush(QColor("#ffffff"))
            painter.drawRoundedRect(card, 10, 10)
            painter.setPen(QColor("#1e293b"))
            text = f"{vm.title}\n{vm.subtitle}"
            text_box = QRectF(
                card.left() + 12,
                card.top() + CARD_IMAGE_PX,
                text_w,
                max(0.0, card.height() - CARD_IMAGE_PX - 12),
            )
            painter.drawText(text_box, Qt.AlignLeft | Qt.TextWordWrap, text)
            bound = painter.boundingRect(
                QRectF(0.0, 0.0, text_w, 10_000.0), Qt.AlignLeft | Qt.TextWordWrap, text
            )
            needed = max(needed, CARD_IMAGE_PX + bound.height() + 12)
            if vm.badges:
                painter.drawText(card.adjusted(12, 8, -12, 0), Qt.AlignRight, "  ".join(vm.badges))
        # Card plus the spacing above and below it
        return needed + CARD_SPACING_PX * 2

    def _item_at(self, y: float) -> VirtualItem | None:
        scroll = float(self.verticalScrollBar().value())
        for item in self._items:
            if item.start - scroll <= y < item.end - scroll:
                return item
        return None

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        pos = event.position()
        item = self._item_at(pos.y())
        if item is None:
            return
        row = item.row
        if isinstance(row, HeaderRow):
            self._vm.toggle_category(row.group.id)
        elif isinstance(row, SubHeaderRow):
            self._vm.toggle_period(row.group_id, row.period_id)
        elif isinstance(row, DataRow):
            columns = max(1, self._vm.columns)
            inner_w = self.viewport().width() - ROW_PADDING_PX * 4
            col = int((pos.x() - ROW_PADDING_PX * 2) // max(1.0, inner_w / columns))
            if 0 <= col < len(row.coins):
                self._vm.open_detail(row.coins[col])
