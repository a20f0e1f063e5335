"""Cooperative task scheduling for the single-threaded picker loop.

Timers are represented as cancellable task handles rather than raw callbacks.
Nothing runs on its own: the owning event loop calls ``run_due`` between input
reads, and tests drive a fake clock.
"""

from __future__ import annotations

import time
from collections.abc import Callable


class ScheduledTask:
    """Handle for one delayed callback."""

    def __init__(self, due_at: float, callback: Callable[[], None], name: str = "") -> None:
        self.due_at = due_at
        self.name = name
        self._callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired

    def cancel(self) -> None:
        self.cancelled = True

    def _fire(self) -> None:
        self.fired = True
        self._callback()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else ("fired" if self.fired else "pending")
        return f"ScheduledTask({self.name!r}, due_at={self.due_at:.3f}, {state})"


class TaskScheduler:
    """Deadline-ordered queue of ``ScheduledTask`` handles."""

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._monotonic = monotonic
        self._tasks: list[ScheduledTask] = []

    def now(self) -> float:
        return self._monotonic()

    def call_later(self, delay_seconds: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        """Schedule ``callback`` to run once after ``delay_seconds``."""
        task = ScheduledTask(self._monotonic() + max(0.0, delay_seconds), callback, name=name)
        self._tasks.append(task)
        return task

    def pending_tasks(self) -> list[ScheduledTask]:
        self._tasks = [task for task in self._tasks if task.pending]
        return list(self._tasks)

    def next_due_in(self) -> float | None:
        """Seconds until the earliest pending task, or ``None`` when idle."""
        pending = self.pending_tasks()
        if not pending:
            return None
        earliest = min(task.due_at for task in pending)
        return max(0.0, earliest - self._monotonic())

    def run_due(self) -> int:
        """Run every task whose deadline has passed, in deadline order.

        Tasks scheduled by a running callback are not run in the same pass
        unless they are already due when the pass re-checks the queue.
        """
        ran = 0
        while True:
            now = self._monotonic()
            due = [task for task in self._tasks if task.pending and task.due_at <= now]
            if not due:
                break
            task = min(due, key=lambda candidate: candidate.due_at)
            self._tasks.remove(task)
            task._fire()
            ran += 1
        self._tasks = [task for task in self._tasks if task.pending]
        return ran

    def cancel_all(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []


class FakeClock:
    """Manually advanced monotonic clock for deterministic scheduling."""

    def __init__(self, start: float = 0.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds
