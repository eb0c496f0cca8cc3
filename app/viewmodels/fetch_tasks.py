"""Background runners for remote selects, reporting back through `taskFinished`."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject, QRunnable, QThreadPool
from loguru import logger


class _FetchTask(QRunnable):
    """QRunnable for background remote selects.

    Emits `receiver.taskFinished(token, result, error)` upon completion. The
    receiver is expected to own a Qt `Signal(str, object, object)` named
    `taskFinished`; exactly one of `result` / `error` is meaningful.
    """

    def __init__(self, *, token: str, fn: Callable[[], Any], receiver: QObject) -> None:
        super().__init__()
        self._token = token
        self._fn = fn
        self._receiver = receiver

    def run(self) -> None:  # type: ignore[override]
        result: Any = None
        error: Exception | None = None
        try:
            result = self._fn()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Fetch task {} failed: {}", self._token, ex)
            error = ex
        # Queued across threads; the receiver lives on the GUI thread
        self._receiver.taskFinished.emit(self._token, result, error)  # type: ignore[attr-defined]


class FetchTaskRunner:
    """Dispatches remote selects to the global thread pool.

    Tokens identify the request kind and its inputs, e.g.
    - Coins: "coins|{cache token}"
    - Overlay: "overlay"
    - Metadata: "metadata"
    - Periods: "periods|{country id}"
    - Detail: "detail|{coin id}"
    """

    def __init__(self, *, receiver: QObject, pool: QThreadPool | None = None) -> None:
        self._receiver = receiver
        self._pool = pool or QThreadPool.globalInstance()

    def submit(self, token: str, fn: Callable[[], Any]) -> None:
        self._pool.start(_FetchTask(token=token, fn=fn, receiver=self._receiver))


class InlineTaskRunner:
    """Runs tasks synchronously on the calling thread (tests, headless use)."""

    def __init__(self, *, receiver: QObject) -> None:
        self._receiver = receiver

    def submit(self, token: str, fn: Callable[[], Any]) -> None:
        _FetchTask(token=token, fn=fn, receiver=self._receiver).run()
