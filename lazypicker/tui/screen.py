"""Frame composition for the terminal host.

Panels, borders, titles, the prompt, status, and scrollbar are painted onto a
cell canvas so overlapping borders resolve in paint order. The same frame is
written to the terminal row by row or printed once for ``--print``.
"""

from __future__ import annotations

import shutil
import time

from ..host import ERROR, WARN, HeadlessHost, Notice
from ..layout import PanelGeometry
from ..render.scrollbar import THUMB_GLYPH
from ..text import ANSI_ESCAPE_RE, SGR_RESET, apply_style_spans, char_display_width, display_width, truncate_end
from ..theme import UITheme

NOTICE_SECONDS = 3.0

Cell = tuple[str, str]  # (character, SGR prefix); "" marks a wide char tail


class Canvas:
    """Grid of styled cells addressed by 0-based row and column."""

    def __init__(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self.rows: list[list[Cell]] = [[(" ", "")] * self.width for _ in range(self.height)]

    def put(self, row: int, col: int, text: str, style: str = "", limit: int | None = None) -> int:
        """Paint ``text`` starting at ``(row, col)``; returns the end column.

        Escape sequences inside ``text`` layer on top of ``style`` until the
        next reset. Painting stops at ``limit`` (exclusive) or the canvas edge.
        """
        stop = self.width if limit is None else min(self.width, limit)
        if not 0 <= row < self.height:
            return col
        cells = self.rows[row]
        active = style
        x = col
        i = 0
        n = len(text)
        while i < n and x < stop:
            if text[i] == "\x1b":
                match = ANSI_ESCAPE_RE.match(text, i)
                if match:
                    seq = match.group(0)
                    if seq.endswith("m"):
                        active = style if seq in (SGR_RESET, "\x1b[m") else active + seq
                    i = match.end()
                    continue
            ch = text[i]
            i += 1
            width = char_display_width(ch, x - col)
            if width == 0:
                continue
            if ch == "\t":
                for offset in range(width):
                    if 0 <= x + offset < stop:
                        cells[x + offset] = (" ", active)
                x += width
                continue
            if width == 2 and x + 1 >= stop:
                break
            if x >= 0:
                cells[x] = (ch, active)
                if width == 2:
                    cells[x + 1] = ("", active)
            x += width
        return x

    def render_row(self, row: int) -> str:
        out: list[str] = []
        current = ""
        for ch, style in self.rows[row]:
            if style != current:
                if current:
                    out.append(SGR_RESET)
                if style:
                    out.append(style)
                current = style
            out.append(ch)
        if current:
            out.append(SGR_RESET)
        return "".join(out)

    def lines(self) -> list[str]:
        return [self.render_row(row) for row in range(self.height)]


def _draw_border(canvas: Canvas, panel: PanelGeometry, title: str | None, theme: UITheme) -> None:
    rect = panel.rect
    top_left, top, top_right, right, bottom_right, bottom, bottom_left, left = panel.border
    x0, y0 = rect.col, rect.row
    x1, y1 = rect.col + rect.width + 1, rect.row + rect.height + 1
    style = theme.style("border")

    if top_left or top or top_right:
        canvas.put(y0, x0, top_left, style)
        canvas.put(y0, x0 + 1, top * rect.width, style, limit=x1)
        canvas.put(y0, x1, top_right, style)
        if title:
            canvas.put(y0, x0 + 1, truncate_end(title, rect.width), theme.style("title"), limit=x1)
    for y in range(y0 + 1, y1):
        canvas.put(y, x0, left, style)
        canvas.put(y, x1, right, style)
    if bottom_left or bottom or bottom_right:
        canvas.put(y1, x0, bottom_left, style)
        canvas.put(y1, x0 + 1, bottom * rect.width, style, limit=x1)
        canvas.put(y1, x1, bottom_right, style)


def _draw_lines(canvas: Canvas, host: HeadlessHost, name: str, panel: PanelGeometry, theme: UITheme) -> None:
    buffer = host.panels.get(name)
    if buffer is None:
        return
    rect = panel.rect
    by_row: dict[int, list[tuple[int, int | None, str]]] = {}
    for styled in buffer.highlights:
        by_row.setdefault(styled.row, []).append((styled.col_start, styled.col_end, theme.style(styled.style)))
    for row, line in enumerate(buffer.lines[: rect.height]):
        spans = [span for span in by_row.get(row, []) if span[2]]
        canvas.put(rect.content_row + row, rect.content_col, apply_style_spans(line, spans), limit=rect.content_col + rect.width)


def _draw_prompt(canvas: Canvas, host: HeadlessHost, panel: PanelGeometry, theme: UITheme) -> None:
    rect = panel.rect
    row, col, end = rect.content_row, rect.content_col, rect.content_col + rect.width
    status_text = ""
    if host.status is not None:
        status_text = f" {host.status.text} "
    status_col = end - display_width(status_text)
    limit = status_col if status_text else end
    x = canvas.put(row, col, host.prompt, theme.style("prompt"), limit=limit)
    x = canvas.put(row, x, host.query, limit=limit)
    canvas.put(row, x, " ", theme.style("cursor"), limit=limit)
    if status_text and status_col > col:
        canvas.put(row, status_col, status_text, theme.style(host.status.style), limit=end)


def _draw_scrollbar(canvas: Canvas, host: HeadlessHost, theme: UITheme) -> None:
    if host.geometry is None or not host.scrollbar:
        return
    rect = host.geometry.scrollbar
    for offset, glyph in enumerate(host.scrollbar[: rect.height]):
        tag = "scrollbar_thumb" if glyph == THUMB_GLYPH else "scrollbar_track"
        canvas.put(rect.row + offset, rect.col, glyph, theme.style(tag))


def _draw_notice(canvas: Canvas, notice: Notice, theme: UITheme) -> None:
    tag = {WARN: "notice_warn", ERROR: "notice_error"}.get(notice.level, "notice_info")
    row = canvas.height - 1
    canvas.put(row, 0, " " * canvas.width)
    canvas.put(row, 0, truncate_end(notice.message, canvas.width), theme.style(tag))


def compose_frame(
    host: HeadlessHost,
    theme: UITheme,
    width: int,
    height: int,
    notice: Notice | None = None,
) -> list[str]:
    """Return the full screen for ``host``'s current state as styled rows."""
    canvas = Canvas(width, height)
    geometry = host.geometry
    if geometry is not None:
        for name, panel in geometry.panels().items():
            buffer = host.panels.get(name)
            title = buffer.title if buffer is not None else panel.title
            _draw_border(canvas, panel, title, theme)
            if name == "input":
                _draw_prompt(canvas, host, panel, theme)
            else:
                _draw_lines(canvas, host, name, panel, theme)
        _draw_scrollbar(canvas, host, theme)
    if notice is not None and height > 0:
        _draw_notice(canvas, notice, theme)
    return canvas.lines()


class TerminalHost(HeadlessHost):
    """Host bound to the real terminal: sizes from the tty, draws frames."""

    def __init__(self, theme: UITheme, write=None) -> None:
        width, height = shutil.get_terminal_size((80, 24))
        super().__init__(width, height)
        self.theme = theme
        self._write = write
        self._last_frame: list[str] = []
        self.notice: Notice | None = None
        self.notice_until = 0.0
        self.notices_before_close = 0

    def size(self) -> tuple[int, int]:
        term = shutil.get_terminal_size((self.width, self.height))
        self.width, self.height = term.columns, term.lines
        return self.width, self.height

    def notify(self, notice: Notice) -> None:
        super().notify(notice)
        self.notice = notice
        self.notice_until = time.monotonic() + NOTICE_SECONDS

    def close(self) -> None:
        super().close()
        self.notices_before_close = len(self.notices)

    def notices_after_close(self) -> list[Notice]:
        return self.notices[self.notices_before_close :] if self.closed else []

    def draw(self) -> None:
        """Write rows that changed since the previous frame."""
        if self._write is None:
            return
        if self.notice is not None and time.monotonic() >= self.notice_until:
            self.notice = None
        frame = compose_frame(self, self.theme, self.width, self.height, self.notice)
        if len(frame) != len(self._last_frame):
            self._last_frame = []
            self._write("\x1b[2J")
        out: list[str] = []
        for row, line in enumerate(frame):
            if row < len(self._last_frame) and self._last_frame[row] == line:
                continue
            out.append(f"\x1b[{row + 1};1H{line}")
        self._last_frame = frame
        if out:
            self._write("".join(out))

    def invalidate(self) -> None:
        self._last_frame = []
