"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

ENV_API_URL = "NUMISMATIC_API_URL"
ENV_API_KEY = "NUMISMATIC_API_KEY"


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node


@dataclass(frozen=True)
class AppConfig:
    """Typed view of settings.json plus environment overrides."""

    api_url: str = ""
    api_key: str = ""
    timeout_seconds: float = 15.0
    browse_limit: int = 200
    batch_size: int = 1000
    search_debounce_ms: int = 300
    coins_ttl_seconds: float = 300.0
    overlay_ttl_seconds: float = 300.0
    periods_ttl_seconds: float = 1800.0
    detail_ttl_seconds: float = 1800.0
    log_level: str = "INFO"
    log_dir: str | None = None
    log_console: bool = False


def load_config(settings: JsonSettings, env_file: str | Path | None = None) -> AppConfig:
    """Build an `AppConfig`; credentials in the environment (or .env) win."""
    load_dotenv(env_file)
    return AppConfig(
        api_url=os.getenv(ENV_API_URL) or str(settings.get("remote.url", "") or ""),
        api_key=os.getenv(ENV_API_KEY) or str(settings.get("remote.api_key", "") or ""),
        timeout_seconds=float(settings.get("remote.timeout_seconds", 15.0)),
        browse_limit=int(settings.get("fetch.browse_limit", 200)),
        batch_size=int(settings.get("fetch.batch_size", 1000)),
        search_debounce_ms=int(settings.get("fetch.search_debounce_ms", 300)),
        coins_ttl_seconds=float(settings.get("cache.coins_ttl_seconds", 300.0)),
        overlay_ttl_seconds=float(settings.get("cache.overlay_ttl_seconds", 300.0)),
        periods_ttl_seconds=float(settings.get("cache.periods_ttl_seconds", 1800.0)),
        detail_ttl_seconds=float(settings.get("cache.detail_ttl_seconds", 1800.0)),
        log_level=str(settings.get("logging.level", "INFO")),
        log_dir=settings.get("logging.dir"),
        log_console=bool(settings.get("logging.console", False)),
    )
