"""
UI/view constants centralized for reuse across view modules.

The category palette is cosmetic: a slot is a pure function of the group's
color index, never stored state.
"""

from __future__ import annotations

from dataclasses import dataclass

from PySide6.QtCore import Qt

from core.services.pivot_service import CellState


@dataclass(frozen=True)
class CategoryColor:
    bg: str
    border: str
    text: str


CATEGORY_COLORS: tuple[CategoryColor, ...] = (
    CategoryColor(bg="#fef3c7", border="#f59e0b", text="#92400e"),
    CategoryColor(bg="#fee2e2", border="#ef4444", text="#991b1b"),
    CategoryColor(bg="#dbeafe", border="#3b82f6", text="#1e40af"),
    CategoryColor(bg="#d1fae5", border="#10b981", text="#065f46"),
    CategoryColor(bg="#f3e8ff", border="#8b5cf6", text="#5b21b6"),
    CategoryColor(bg="#f1f5f9", border="#94a3b8", text="#475569"),
)
DEFAULT_BORDER = "#e5e7eb"
SERIES_HIGHLIGHT = "#bfdbfe"


def category_color(index: int) -> CategoryColor:
    return CATEGORY_COLORS[index % len(CATEGORY_COLORS)]


CELL_COLORS: dict[CellState, str] = {
    CellState.ALL_OWNED: "#d1fae5",
    CellState.MIXED: "#fef3c7",
    CellState.NONE: "#fee2e2",
    CellState.EMPTY: "#ffffff",
}

# Data roles
COIN_IDS_ROLE: int = Qt.UserRole  # coin ids of a pivot cell
CELL_STATE_ROLE: int = Qt.UserRole + 1
SERIES_IDS_ROLE: int = Qt.UserRole + 2

# Gallery layout
CARD_SPACING_PX: int = 12
ROW_PADDING_PX: int = 24
HEADER_MARGIN_TOP_PX: int = 24
CARD_IMAGE_PX: int = 250  # image area above the card text
