"""Thread-safe progress sink with cancellation.

Converters size the job with :meth:`Progress.set_total` (or
:meth:`Progress.add_total` when stages are discovered one after another)
and advance it with :meth:`Progress.try_step`, which is also the point at
which a pending cancellation surfaces as :class:`CancelError`.
"""

from __future__ import annotations

import threading

from docimport.errors import CancelError
from docimport.observability import get_logger

log = get_logger("docimport.progress")


class Progress:
    """Progress counter shared by the converter stages of one import.

    Parameters
    ----------
    log_interval:
        Emit a progress log line every *log_interval* steps.  ``0``
        disables periodic logging.
    """

    def __init__(self, log_interval: int = 0) -> None:
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._total = 0
        self._current = 0
        self._message = ""
        self._log_interval = log_interval
        self._last_logged = 0

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    @property
    def current(self) -> int:
        with self._lock:
            return self._current

    @property
    def message(self) -> str:
        with self._lock:
            return self._message

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def set_total(self, total: int) -> None:
        with self._lock:
            self._total = total

    def add_total(self, delta: int) -> None:
        with self._lock:
            self._total += delta

    def set_progress_message(self, message: str) -> None:
        with self._lock:
            self._message = message

    def cancel(self) -> None:
        """Request cancellation; the next :meth:`try_step` raises."""
        self._cancelled.set()

    def try_step(self, delta: int = 1) -> None:
        """Advance by *delta* steps.

        Raises
        ------
        CancelError
            When :meth:`cancel` has been called.
        """
        if self._cancelled.is_set():
            raise CancelError(context={"step": self.current})
        with self._lock:
            self._current += delta
            current, total, message = self._current, self._total, self._message
            should_log = (
                self._log_interval > 0
                and (current == total or current - self._last_logged >= self._log_interval)
            )
            if should_log:
                self._last_logged = current
        if should_log:
            log.info(
                "import progress",
                extra={"extra_fields": {
                    "op": "progress", "current": current, "total": total,
                    "stage": message,
                }},
            )
