"""ANSI-aware text measurement and line shaping utilities.

Provides width measurement, clipping, padding, and style-span injection that
preserve escape sequences. Columns are terminal display columns throughout.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8
SGR_RESET = "\033[0m"


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    """Return the display width of ``text`` ignoring escape sequences."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered terminal cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if ch == "\t":
            if col + w > max_cols:
                break
            out.append(" " * w)
            col += w
            i += 1
            continue
        if col + w > max_cols:
            break
        out.append(ch)
        col += w
        i += 1

    return "".join(out)


def fit_line(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` columns and right-pad with spaces."""
    clipped = clip_ansi_line(text, width)
    pad = width - display_width(clipped)
    if "\x1b" in clipped:
        clipped += SGR_RESET
    return clipped + (" " * max(0, pad))


def truncate_end(text: str, width: int, marker: str = "...") -> str:
    """Shorten plain ``text`` to ``width`` columns with a trailing marker."""
    if width <= 0:
        return ""
    if display_width(text) <= width:
        return text
    if width <= len(marker):
        return clip_ansi_line(text, width)
    return clip_ansi_line(text, width - len(marker)) + marker


def shorten_path(path: str, max_width: int) -> str:
    """Fit a slash-separated directory path into ``max_width`` columns.

    Leading segments are dropped first (shown as ``../``); a single remaining
    segment that still does not fit is cut at the end.
    """
    if max_width <= 0:
        return ""
    if display_width(path) <= max_width:
        return path
    segments = [part for part in path.split("/") if part]
    while len(segments) > 1:
        segments = segments[1:]
        candidate = "../" + "/".join(segments)
        if display_width(candidate) <= max_width:
            return candidate
    return truncate_end(segments[0] if segments else path, max_width)


def apply_style_spans(text: str, spans: list[tuple[int, int | None, str]]) -> str:
    """Inject SGR ``style`` codes over display-column spans of ``text``.

    ``spans`` holds ``(col_start, col_end, style)`` tuples where ``col_end``
    of ``None`` means end of line. Overlapping spans stack in order, so later
    attributes win. Existing escape sequences are kept; the span style is
    re-applied after each of them so embedded resets do not cut a span short.
    """
    if not spans:
        return text

    visible: list[tuple[str, bool]] = []
    col = 0
    i = 0
    n = len(text)
    columns: list[int] = []
    while i < n:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                visible.append((match.group(0), True))
                columns.append(col)
                i = match.end()
                continue
        ch = text[i]
        visible.append((ch, False))
        columns.append(col)
        col += char_display_width(ch, col)
        i += 1
    line_end = col

    def style_at(column: int) -> str:
        chosen: list[str] = []
        for start, end, style in spans:
            stop = line_end if end is None else end
            if start <= column < stop:
                chosen.append(style)
        return "".join(chosen)

    out: list[str] = []
    active = ""
    for (chunk, is_escape), column in zip(visible, columns):
        if is_escape:
            out.append(chunk)
            if active:
                out.append(active)
            continue
        wanted = style_at(column)
        if wanted != active:
            if active:
                out.append(SGR_RESET)
            if wanted:
                out.append(wanted)
            active = wanted
        out.append(chunk)
    if active:
        out.append(SGR_RESET)
    return "".join(out)
