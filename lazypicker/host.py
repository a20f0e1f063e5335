"""The display host interface and an in-memory host.

The session never draws by itself: it hands geometry, line buffers, styled
ranges, and notices to a host. ``HeadlessHost`` records everything, which is
what tests and ``--print`` use; the terminal host draws the same state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .layout import Geometry
from .render.status import StatusLine
from .render.types import RenderedList, StyledRange
from .selection import CommitRequest, ExternalListEntry

INFO = "info"
WARN = "warn"
ERROR = "error"


@dataclass(frozen=True)
class Notice:
    message: str
    level: str = INFO


class PickerHost(Protocol):
    def size(self) -> tuple[int, int]: ...

    def place_panels(self, geometry: Geometry) -> None: ...

    def set_panel(self, name: str, rendered: RenderedList) -> None: ...

    def set_title(self, name: str, title: str | None) -> None: ...

    def set_prompt(self, prompt: str, query: str) -> None: ...

    def set_status(self, status: StatusLine | None) -> None: ...

    def set_scrollbar(self, lines: list[str] | None, thumb: tuple[int, int] = (0, 0)) -> None: ...

    def notify(self, notice: Notice) -> None: ...

    def commit(self, request: CommitRequest) -> None: ...

    def send_external_list(self, entries: list[ExternalListEntry]) -> None: ...

    def close(self) -> None: ...


@dataclass
class PanelBuffer:
    lines: list[str] = field(default_factory=list)
    highlights: list[StyledRange] = field(default_factory=list)
    title: str | None = None
    cursor_row: int | None = None


class HeadlessHost:
    """Host that keeps the latest picker state in memory."""

    def __init__(self, width: int = 120, height: int = 40) -> None:
        self.width = width
        self.height = height
        self.geometry: Geometry | None = None
        self.panels: dict[str, PanelBuffer] = {}
        self.prompt = ""
        self.query = ""
        self.status: StatusLine | None = None
        self.scrollbar: list[str] | None = None
        self.scrollbar_thumb: tuple[int, int] = (0, 0)
        self.notices: list[Notice] = []
        self.commits: list[CommitRequest] = []
        self.external_lists: list[list[ExternalListEntry]] = []
        self.closed = False

    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def place_panels(self, geometry: Geometry) -> None:
        self.geometry = geometry
        placed = geometry.panels()
        self.panels = {name: self.panels.get(name, PanelBuffer()) for name in placed}
        for name, panel in placed.items():
            self.panels[name].title = panel.title

    def set_panel(self, name: str, rendered: RenderedList) -> None:
        buffer = self.panels.setdefault(name, PanelBuffer())
        buffer.lines = list(rendered.lines)
        buffer.highlights = list(rendered.highlights)
        buffer.cursor_row = rendered.cursor_row

    def set_title(self, name: str, title: str | None) -> None:
        self.panels.setdefault(name, PanelBuffer()).title = title

    def set_prompt(self, prompt: str, query: str) -> None:
        self.prompt = prompt
        self.query = query

    def set_status(self, status: StatusLine | None) -> None:
        self.status = status

    def set_scrollbar(self, lines: list[str] | None, thumb: tuple[int, int] = (0, 0)) -> None:
        self.scrollbar = lines
        self.scrollbar_thumb = thumb

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    def commit(self, request: CommitRequest) -> None:
        self.commits.append(request)

    def send_external_list(self, entries: list[ExternalListEntry]) -> None:
        self.external_lists.append(list(entries))

    def close(self) -> None:
        self.closed = True
        self.scrollbar = None

    def lines(self, name: str) -> list[str]:
        buffer = self.panels.get(name)
        return [] if buffer is None else list(buffer.lines)

    def snapshot(self) -> dict[str, object]:
        return {
            "prompt": self.prompt + self.query,
            "status": None if self.status is None else self.status.text,
            "panels": {name: list(buffer.lines) for name, buffer in self.panels.items()},
            "titles": {name: buffer.title for name, buffer in self.panels.items()},
            "scrollbar": None if self.scrollbar is None else list(self.scrollbar),
            "notices": [notice.message for notice in self.notices],
            "closed": self.closed,
        }
