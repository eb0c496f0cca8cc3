"""Flattens grouped coins into the linear row list of the grid view."""

from __future__ import annotations

from collections.abc import Iterable

from core.models import CategoryGroup, CollapseState, DataRow, HeaderRow, Row, SubHeaderRow

# (max width exclusive, columns)
COLUMN_BREAKPOINTS: tuple[tuple[int, int], ...] = ((650, 1), (950, 2), (1300, 3))
MAX_COLUMNS = 4


def columns_for_width(width: int) -> int:
    """Return the number of coin cards per row for a viewport `width`."""
    for limit, columns in COLUMN_BREAKPOINTS:
        if width < limit:
            return columns
    return MAX_COLUMNS


def plan(groups: Iterable[CategoryGroup], collapse: CollapseState, columns: int) -> list[Row]:
    """Return header, sub-header and data rows for the visible hierarchy.

    Collapsed categories contribute only their header. Inside an expanded
    category every period contributes a sub-header and, unless collapsed,
    its coins in chunks of `columns`.
    """
    columns = max(1, int(columns))
    rows: list[Row] = []
    for group in groups:
        rows.append(HeaderRow(group=group))
        if not collapse.is_category_expanded(group.id):
            continue

        last_period_index = len(group.periods) - 1
        for p_index, period in enumerate(group.periods):
            is_expanded = collapse.is_period_expanded(group.id, period.id)
            is_last_period = p_index == last_period_index
            rows.append(
                SubHeaderRow(
                    title=period.name,
                    count=len(period.coins),
                    owned_count=period.owned_count,
                    group_id=group.id,
                    period_id=period.id,
                    is_expanded=is_expanded,
                    is_last_in_group=is_last_period and not is_expanded,
                )
            )
            if not is_expanded:
                continue

            coins = period.coins
            for chunk_index, start in enumerate(range(0, len(coins), columns)):
                is_last_chunk = start + columns >= len(coins)
                rows.append(
                    DataRow(
                        coins=tuple(coins[start : start + columns]),
                        group_id=group.id,
                        period_id=period.id,
                        chunk_index=chunk_index,
                        is_last=is_last_period and is_last_chunk,
                    )
                )
    return rows
