"""Named job scheduling for Cookie Hunter.

Jobs are keyed by name: scheduling a name that is already pending stops its
timer and starts a new one, so there is at most one pending timer per name.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

logger = logging.getLogger(__name__)


class JobScheduler(ABC):
    """Abstract scheduler of named, optionally repeating jobs."""

    @abstractmethod
    def schedule(
        self,
        name: str,
        callback: Callable[[], None],
        delay_ms: int,
        repeating: bool = False,
    ) -> None:
        """
        Arm (or re-arm) the timer for a named job.

        Args:
            name: Job name; re-scheduling a pending name restarts its timer
            callback: Called when the timer fires
            delay_ms: Delay, or interval for repeating jobs, in milliseconds
            repeating: Fire every delay_ms until cancelled
        """

    @abstractmethod
    def cancel(self, name: str) -> bool:
        """Stop a pending job. Returns True if one was pending."""

    @abstractmethod
    def is_scheduled(self, name: str) -> bool:
        """Return True if a job with this name is pending."""


class QtJobScheduler(QObject):
    """
    JobScheduler driven by the Qt event loop.

    Each job owns one QTimer. Callbacks run on the thread that owns the
    scheduler, one at a time, so jobs never run concurrently with each other.
    """

    job_fired = pyqtSignal(str)  # job name
    job_failed = pyqtSignal(str, str)  # (job name, error message)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timers: dict[str, QTimer] = {}

    def schedule(
        self,
        name: str,
        callback: Callable[[], None],
        delay_ms: int,
        repeating: bool = False,
    ) -> None:
        self.cancel(name)

        timer = QTimer(self)
        timer.setSingleShot(not repeating)
        timer.setInterval(int(delay_ms))
        timer.timeout.connect(lambda: self._fire(name, timer, callback))
        self._timers[name] = timer
        timer.start()
        logger.debug("Scheduled job %s in %d ms (repeating=%s)", name, delay_ms, repeating)

    def cancel(self, name: str) -> bool:
        timer = self._timers.pop(name, None)
        if timer is None:
            return False
        timer.stop()
        timer.deleteLater()
        return True

    def cancel_all(self) -> None:
        """Stop every pending job."""
        for name in list(self._timers):
            self.cancel(name)

    def is_scheduled(self, name: str) -> bool:
        timer = self._timers.get(name)
        return timer is not None and timer.isActive()

    def _fire(self, name: str, timer: QTimer, callback: Callable[[], None]) -> None:
        # One-shot jobs are forgotten before the callback so it can re-arm itself
        if timer.isSingleShot() and self._timers.get(name) is timer:
            del self._timers[name]
            timer.deleteLater()

        try:
            callback()
        except Exception as e:
            logger.exception("Job %s failed", name)
            self.job_failed.emit(name, str(e))
            return
        self.job_fired.emit(name)


JobScheduler.register(QtJobScheduler)
