"""File preview loading, highlighting, and viewport state.

Files are probed for NUL bytes before decoding; text is sanitized so
control bytes cannot drive the terminal, then colored with Pygments.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from ..render.types import RenderedList, StyledRange
from ..text import display_width, fit_line
from ..types import Item, Location

BINARY_PROBE_BYTES = 4_096
COLORIZE_MAX_FILE_BYTES = 256_000
PLACEHOLDER_TEXT = "No preview available"
DEFAULT_TITLE = " Preview "
FILE_INFO_PLACEHOLDER: tuple[str, ...] = (
    "File Info Panel",
    "",
    "Select a file to view:",
    "  scoring details",
    "  file size and type",
    "  repeat-use count",
    "",
    "Navigate: Up/Down or Ctrl-P/Ctrl-N",
)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_FORMATTERS: dict[str, Terminal256Formatter] = {}


def read_text(path: Path) -> str:
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def is_binary_file(path: Path) -> bool:
    try:
        with path.open("rb") as handle:
            sample = handle.read(BINARY_PROBE_BYTES)
    except OSError:
        return False
    return b"\x00" in sample


def _formatter_for_style(style: str) -> Terminal256Formatter:
    formatter = _FORMATTERS.get(style)
    if formatter is not None:
        return formatter
    try:
        get_style_by_name(style)
    except ClassNotFound:
        style = "monokai"
    formatter = Terminal256Formatter(style=style)
    _FORMATTERS[style] = formatter
    return formatter


def colorize_source(source: str, path: Path, style: str = "monokai") -> str:
    try:
        lexer = get_lexer_for_filename(path.name, source)
    except ClassNotFound:
        lexer = TextLexer()
    return highlight(source, lexer, _formatter_for_style(style))


@dataclass(frozen=True)
class PreviewDocument:
    path: Path
    lines: tuple[str, ...]
    is_binary: bool = False
    error: str | None = None


def load_document(path: Path, style: str = "monokai", colorize: bool = True, is_binary: bool | None = None) -> PreviewDocument:
    """Read ``path`` into display lines, highlighted when ``colorize``."""
    if is_binary is None:
        is_binary = is_binary_file(path)
    if is_binary:
        try:
            size = path.stat().st_size
        except OSError:
            return PreviewDocument(path, (str(path), "", "<binary file>"), is_binary=True)
        return PreviewDocument(path, (str(path), "", f"<binary file: {size} bytes>"), is_binary=True)

    try:
        source = read_text(path)
        file_size = path.stat().st_size
    except OSError as exc:
        return PreviewDocument(path, (f"{path}", "", f"<error reading file: {exc}>"), error=str(exc))

    source = sanitize_terminal_text(source)
    if colorize and file_size <= COLORIZE_MAX_FILE_BYTES:
        source = colorize_source(source, path, style)
    lines = source.splitlines()
    return PreviewDocument(path, tuple(lines) if lines else ("",))


def preview_title(item: Item, location: Location | None, max_width: int, *, with_line: bool) -> str:
    """Build the preview panel title for ``item``.

    Content matches append ``:line``. Titles that do not fit keep the file
    name and as many trailing directories as possible behind ``../``, or
    fall back to a cut file name.
    """
    relative_path = item.relative_path or item.identifier
    suffix = f":{location.line}" if with_line and location is not None and location.line else ""
    display_path = relative_path + suffix
    if display_width(display_path) + 2 <= max_width:
        return f" {display_path} "

    available = max_width - 2
    filename = os.path.basename(relative_path) + suffix
    if available <= 3:
        return filename
    if display_width(filename) + 5 > available:
        return f" {filename[: available - 3]}... "

    segments = [part for part in re.split(r"[/\\]", relative_path) if part]
    segments[-1] = filename
    shown = [segments[-1]]
    length = display_width(shown[0]) + 4
    for segment in reversed(segments[:-1]):
        candidate = length + display_width(segment) + 1
        if candidate > available:
            break
        shown.insert(0, segment)
        length = candidate
    if len(shown) == len(segments):
        return f" {'/'.join(shown)} "
    return f" ../{'/'.join(shown)} "


def file_info_lines(item: Item, cursor: int) -> list[str]:
    lines = [
        f"Name: {item.display_name}",
        f"Path: {item.relative_path or item.identifier}",
        f"Position: {cursor}",
        f"Score: {item.score}",
        f"Repeat uses: {item.combo_count} (boost {item.combo_boost})",
        f"Binary: {'yes' if item.is_binary else 'no'}",
    ]
    try:
        stat = os.stat(item.identifier)
    except OSError:
        return lines
    lines.append(f"Size: {stat.st_size} bytes")
    return lines


class SourcePreview:
    """Preview viewport: one loaded document, a location, and a scroll offset."""

    def __init__(self, style: str = "monokai", colorize: bool = True) -> None:
        self.style = style
        self.colorize = colorize
        self.document: PreviewDocument | None = None
        self.location: Location | None = None
        self.top: int | None = None
        self._last_top = 0

    def show(self, item: Item, location: Location | None = None) -> None:
        self.document = load_document(Path(item.identifier), self.style, self.colorize, item.is_binary or None)
        self.location = location
        self.top = None

    def relocate(self, location: Location | None) -> None:
        self.location = location
        self.top = None

    def clear(self) -> None:
        self.document = None
        self.location = None
        self.top = None
        self._last_top = 0

    def scroll_by(self, delta: int) -> None:
        if self.document is None:
            return
        limit = max(0, len(self.document.lines) - 1)
        self.top = max(0, min(self._last_top + delta, limit))

    def _resolve_top(self, height: int) -> int:
        if self.top is not None:
            return self.top
        if self.location is None or self.document is None:
            return 0
        target = max(0, self.location.line - 1)
        top = max(0, target - height // 4)
        return min(top, max(0, len(self.document.lines) - height))

    def render(self, width: int, height: int) -> RenderedList:
        height = max(0, height)
        if self.document is None:
            lines = [fit_line(PLACEHOLDER_TEXT, width)] + [fit_line("", width)] * max(0, height - 1)
            return RenderedList(lines=lines[:height])

        doc_lines = self.document.lines
        top = self._resolve_top(height)
        self._last_top = top
        gutter = 0 if self.document.is_binary else len(str(len(doc_lines))) + 1
        target_row = self.location.line - 1 if self.location is not None else None

        lines: list[str] = []
        highlights: list[StyledRange] = []
        for row in range(height):
            index = top + row
            if index >= len(doc_lines):
                lines.append(fit_line("", width))
                continue
            number = f"{index + 1:>{gutter - 1}} " if gutter else ""
            lines.append(fit_line(number + doc_lines[index], width))
            if gutter:
                highlights.append(StyledRange(row, 0, gutter, "line_number"))
            if target_row is not None and index == target_row:
                highlights.append(StyledRange(row, 0, None, "preview_location"))
        return RenderedList(lines=lines, highlights=highlights)
