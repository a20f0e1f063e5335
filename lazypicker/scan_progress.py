"""Polls file-scan progress with backoff until the scan finishes."""

from __future__ import annotations

from collections.abc import Callable

from .scheduling import ScheduledTask, TaskScheduler
from .types import ScanProgress


def poll_delay_seconds(iteration: int) -> float:
    if iteration < 10:
        return 0.1
    if iteration < 20:
        return 0.3
    return 0.5


class ScanProgressMonitor:
    def __init__(
        self,
        scheduler: TaskScheduler,
        *,
        get_progress: Callable[[], ScanProgress],
        on_progress: Callable[[ScanProgress], None],
        on_complete: Callable[[], None],
        is_active: Callable[[], bool] = lambda: True,
    ) -> None:
        self.scheduler = scheduler
        self._get_progress = get_progress
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._is_active = is_active
        self.task: ScheduledTask | None = None
        self.iteration = 0

    def start(self) -> None:
        """Restart polling from the fastest interval."""
        self.stop()
        self.iteration = 0
        self._poll()

    def stop(self) -> None:
        if self.task is not None:
            self.task.cancel()
            self.task = None

    def _poll(self) -> None:
        self.task = None
        if not self._is_active():
            return
        progress = self._get_progress()
        if not progress.is_scanning:
            self._on_complete()
            return
        self._on_progress(progress)
        delay = poll_delay_seconds(self.iteration)
        self.iteration += 1
        self.task = self.scheduler.call_later(delay, self._poll, name="scan-progress")
