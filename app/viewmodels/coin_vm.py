"""Lightweight view model wrapper around `Coin`."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import Coin

CELL_LABEL_CHARS = 8


@dataclass
class CoinVM:
    """Expose convenient display strings for cards, cells and tooltips."""

    coin: Coin

    @property
    def title(self) -> str:
        return self.coin.display_name

    @property
    def year_text(self) -> str:
        return self.coin.display_year

    @property
    def price_text(self) -> str:
        return self.coin.display_price

    @property
    def subtitle(self) -> str:
        """Year, price and KM number on one line."""
        parts = [self.year_text, self.price_text]
        if self.coin.km:
            parts.append(f"KM# {self.coin.km}")
        return " · ".join(parts)

    @property
    def badges(self) -> list[str]:
        result: list[str] = []
        if self.coin.marked:
            result.append("RARE")
        if self.coin.denomination_name:
            result.append(self.coin.denomination_name)
        return result

    @property
    def cell_label(self) -> str:
        """Short label inside a pivot cell: subject prefix, else denomination."""
        if self.coin.subject:
            return self.coin.subject[:CELL_LABEL_CHARS]
        return self.coin.denomination_name or "Unknown"

    @property
    def series_text(self) -> str:
        return self.coin.series_range or "Unknown Range"

    @property
    def owned_mark(self) -> str:
        return "✓" if self.coin.is_owned else "✗"
