"""Windowed layout for the grid view's linear row list.

Only rows intersecting the viewport (plus an overscan margin) are handed to
the view. Row positions come from a prefix-sum offset table over estimated
heights, refined by measured heights cached per row key.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from core.models import Row

ROW_HEIGHT_ESTIMATES: dict[str, float] = {
    "header": 94.0,
    "subheader": 50.0,
    "row": 380.0,
}
DEFAULT_OVERSCAN = 5


def estimate_row_height(row: Row) -> float:
    """Estimated pixel height of `row` before it has been measured."""
    return ROW_HEIGHT_ESTIMATES.get(row.kind, ROW_HEIGHT_ESTIMATES["row"])


@dataclass(frozen=True)
class VirtualItem:
    """A row positioned in list coordinates."""

    index: int
    key: str
    start: float
    size: float
    row: Row

    @property
    def end(self) -> float:
        return self.start + self.size


@dataclass(frozen=True)
class VisibleRange:
    """Inclusive index bounds; `start`/`end` include the overscan margin."""

    start: int
    end: int
    first_visible: int
    last_visible: int


class Virtualizer:
    """Maps scroll positions to row indices for a dynamically sized row list."""

    def __init__(
        self,
        estimate: Callable[[Row], float] = estimate_row_height,
        overscan: int = DEFAULT_OVERSCAN,
    ) -> None:
        self._estimate = estimate
        self._overscan = max(0, int(overscan))
        self._rows: list[Row] = []
        self._keys: list[str] = []
        self._index_by_key: dict[str, int] = {}
        self._sizes: list[float] = []
        self._offsets: list[float] = [0.0]
        self._measured: dict[str, float] = {}

    @property
    def rows(self) -> list[Row]:
        return self._rows

    @property
    def count(self) -> int:
        return len(self._rows)

    @property
    def total_size(self) -> float:
        return self._offsets[-1]

    def offset_of(self, index: int) -> float:
        return self._offsets[index]

    def size_of(self, index: int) -> float:
        return self._sizes[index]

    def set_rows(self, rows: Sequence[Row], scroll_offset: float | None = None) -> float:
        """Install a new row list and rebuild the offset table.

        When `scroll_offset` is given, returns the offset that keeps the row
        at the top of the viewport (or its nearest surviving predecessor) at
        the same on-screen position. Otherwise returns 0.
        """
        anchor = self._anchor(scroll_offset) if scroll_offset is not None else None
        old_keys = self._keys

        self._rows = list(rows)
        self._keys = [row.key for row in self._rows]
        self._index_by_key = {key: i for i, key in enumerate(self._keys)}
        self._sizes = [
            self._measured.get(key) or self._estimate(row)
            for key, row in zip(self._keys, self._rows)
        ]
        self._rebuild_offsets(0)

        if scroll_offset is None:
            return 0.0
        if anchor is None:
            return self._clamp(scroll_offset)

        old_index, delta = anchor
        for i in range(old_index, -1, -1):
            new_index = self._index_by_key.get(old_keys[i])
            if new_index is not None:
                # A surviving predecessor is aligned to its top edge
                keep = delta if i == old_index else 0.0
                return self._clamp(self._offsets[new_index] + keep)
        return self._clamp(scroll_offset)

    def measure(self, index: int, height: float) -> float:
        """Record the real height of row `index`; return the size change."""
        height = float(height)
        key = self._keys[index]
        self._measured[key] = height
        delta = height - self._sizes[index]
        if delta:
            self._sizes[index] = height
            self._rebuild_offsets(index)
        return delta

    def reset_measurements(self) -> None:
        """Forget measured heights, e.g. after the viewport width changed."""
        self._measured.clear()
        self._sizes = [self._estimate(row) for row in self._rows]
        self._rebuild_offsets(0)

    def index_at(self, offset: float) -> int:
        """Index of the row containing list coordinate `offset` (clamped)."""
        if not self._rows:
            return -1
        index = bisect_right(self._offsets, offset) - 1
        return min(max(index, 0), len(self._rows) - 1)

    def visible_range(self, scroll_offset: float, viewport_height: float) -> VisibleRange | None:
        """Indices intersecting the viewport, widened by the overscan margin."""
        if not self._rows:
            return None
        first = self.index_at(scroll_offset)
        bottom = scroll_offset + max(0.0, viewport_height)
        last = bisect_left(self._offsets, bottom) - 1
        last = min(max(last, first), len(self._rows) - 1)
        return VisibleRange(
            start=max(0, first - self._overscan),
            end=min(len(self._rows) - 1, last + self._overscan),
            first_visible=first,
            last_visible=last,
        )

    def virtual_items(self, scroll_offset: float, viewport_height: float) -> list[VirtualItem]:
        """Positioned rows to render for the given viewport."""
        rng = self.visible_range(scroll_offset, viewport_height)
        if rng is None:
            return []
        return [
            VirtualItem(
                index=i,
                key=self._keys[i],
                start=self._offsets[i],
                size=self._sizes[i],
                row=self._rows[i],
            )
            for i in range(rng.start, rng.end + 1)
        ]

    def _anchor(self, scroll_offset: float) -> tuple[int, float] | None:
        if not self._rows:
            return None
        index = self.index_at(scroll_offset)
        return index, scroll_offset - self._offsets[index]

    def _rebuild_offsets(self, start: int) -> None:
        offsets = self._offsets[: start + 1] if start else [0.0]
        running = offsets[-1]
        for size in self._sizes[start:]:
            running += size
            offsets.append(running)
        self._offsets = offsets

    def _clamp(self, offset: float) -> float:
        return min(max(0.0, offset), self.total_size)
