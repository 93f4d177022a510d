"""Fire-and-forget dispatch of external adapter calls."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Dispatcher:
    """Runs adapter calls on a bounded worker pool.

    Callers on the ingest and scheduler paths never wait for the result.
    Exceptions raised by a job are logged and swallowed here so that an
    adapter failure can never reach the core.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="aparajita-dispatch")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def submit(self, label: str, fn: Callable[..., Any], *args: Any) -> Future:
        future = self._executor.submit(self._run, label, fn, *args)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def wait(self, timeout: float | None = None) -> None:
        """Block until every job submitted so far has finished."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @staticmethod
    def _run(label: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception:  # noqa: BLE001
            logger.exception("Dispatched job failed: %s", label)
            return None
