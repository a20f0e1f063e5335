"""Immediate versus debounced preview refresh for the highlighted item.

A cursor move onto a different file schedules one debounced load; further
moves before it fires replace it, so rapid scrolling loads only the file the
cursor settles on. Moves within the same file relocate synchronously.
"""

from __future__ import annotations

from collections.abc import Callable

from ..scheduling import ScheduledTask, TaskScheduler
from ..types import Item, Location

DEFAULT_DEBOUNCE_SECONDS = 0.1


class PreviewCoordinator:
    def __init__(
        self,
        scheduler: TaskScheduler,
        *,
        show: Callable[[Item, Location | None], None],
        relocate: Callable[[Item, Location | None], None],
        clear: Callable[[], None],
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        is_active: Callable[[], bool] = lambda: True,
    ) -> None:
        self.scheduler = scheduler
        self._show = show
        self._relocate = relocate
        self._clear = clear
        self._is_active = is_active
        self.debounce_seconds = debounce_seconds
        self.last_identifier: str | None = None
        self.last_location: Location | None = None
        self.pending_task: ScheduledTask | None = None
        self.has_shown = False

    def refresh(self, item: Item | None, location: Location | None) -> None:
        """React to the highlighted item and its effective location."""
        if item is None:
            self.cancel()
            self.last_identifier = None
            self.last_location = None
            self._clear()
            return

        if item.identifier == self.last_identifier:
            self.cancel()
            if location == self.last_location:
                return
            self.last_location = location
            self._relocate(item, location)
            return

        self.cancel()
        if not self.has_shown:
            self._show_now(item, location)
            return
        self.pending_task = self.scheduler.call_later(
            self.debounce_seconds,
            lambda: self._fire(item, location),
            name="preview",
        )

    def cancel(self) -> None:
        if self.pending_task is not None:
            self.pending_task.cancel()
            self.pending_task = None

    def forget(self) -> None:
        """Drop the shown identity so the next refresh reloads."""
        self.cancel()
        self.last_identifier = None
        self.last_location = None

    def _fire(self, item: Item, location: Location | None) -> None:
        self.pending_task = None
        if not self._is_active():
            return
        self._show_now(item, location)

    def _show_now(self, item: Item, location: Location | None) -> None:
        self.last_identifier = item.identifier
        self.last_location = location
        self.has_shown = True
        self._show(item, location)
