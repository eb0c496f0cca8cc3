"""Low-cardinality enumerations: countries, categories and periods per country."""

from __future__ import annotations

from collections.abc import Callable
import time

from loguru import logger

from core.models import Category, Country, Period
from core.services.interfaces import IQueryService

DEFAULT_PERIODS_TTL_SECONDS = 1800.0


class MetadataProvider:
    """Caches metadata lookups for the session.

    Countries and categories are loaded once. Periods are loaded lazily per
    country and kept for `periods_ttl_seconds`.
    """

    def __init__(
        self,
        service: IQueryService,
        periods_ttl_seconds: float = DEFAULT_PERIODS_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._service = service
        self._periods_ttl = float(periods_ttl_seconds)
        self._clock = clock
        self._countries: list[Country] = []
        self._categories: list[Category] = []
        self._loaded = False
        self._periods: dict[str, tuple[float, list[Period]]] = {}

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def countries(self) -> list[Country]:
        return self._countries

    @property
    def categories(self) -> list[Category]:
        return self._categories

    def load(self) -> None:
        """Load countries and categories unless already cached."""
        if self._loaded:
            return
        countries = self._service.select_countries()
        categories = self._service.select_categories()
        self._countries, self._categories = countries, categories
        self._loaded = True
        logger.info(
            "Metadata loaded: {} countries, {} categories", len(countries), len(categories)
        )

    def periods_for_country(self, country_id: str) -> list[Period]:
        """Return periods of `country_id`, newest start year first."""
        if not country_id:
            return []
        cached = self._periods.get(country_id)
        now = self._clock()
        if cached is not None and now - cached[0] < self._periods_ttl:
            return cached[1]
        periods = sorted(
            self._service.select_periods_for_country(country_id),
            key=lambda p: p.period_start_year or 0,
            reverse=True,
        )
        self._periods = {**self._periods, country_id: (now, periods)}
        logger.debug("Loaded {} periods for country {}", len(periods), country_id)
        return periods

