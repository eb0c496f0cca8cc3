"""loguru setup for the gallery: one daily file sink, optional console echo."""

from __future__ import annotations

from pathlib import Path
import sys

from loguru import logger

LOG_FILE_PREFIX = "gallery_"
# Fetches run on pool threads, so every record names its thread
LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {thread.name} | "
    "{name}:{function}:{line} - {message}"
)


def get_log_directory() -> str:
    return str(Path.home() / ".numismatic_gallery" / "logs")


def init_logging(log_dir: str | None = None, level: str = "INFO", console: bool = False) -> Path:
    """Route all loguru output to a rotating file in `log_dir`.

    Args:
        log_dir: Target directory, created if missing (defaults to
            `get_log_directory()`).
        level: Minimum level for both sinks.
        console: Also echo records to stderr.

    Returns:
        The directory the file sink writes to.
    """
    log_path = Path(log_dir or get_log_directory())
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / (LOG_FILE_PREFIX + "{time:YYYYMMDD}.log")),
        format=LOG_FORMAT,
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
    if console:
        logger.add(sys.stderr, format=LOG_FORMAT, level=level, enqueue=True)
    return log_path


def find_latest_log_file(log_dir: str | None = None) -> Path | None:
    """Most recently written gallery log in `log_dir`, or None."""
    log_path = Path(log_dir or get_log_directory())
    try:
        candidates = sorted(
            log_path.glob(f"{LOG_FILE_PREFIX}*.log"), key=lambda p: p.stat().st_mtime
        )
    except OSError:
        return None
    return candidates[-1] if candidates else None
