"""Turn a page of items into the fixed-height list panel.

Items arrive best-first. With the prompt at the bottom the list is drawn
bottom-up so the best item sits next to the prompt.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass

from ..text import display_width, fit_line, shorten_path, truncate_end
from ..types import CONTENT_MODE, FILES_MODE, Item
from .combo import ComboMatch
from .types import RenderedList, StyledRange

SELECTED_MARKER = "●"
GUTTER_WIDTH = 2
NO_RESULTS_TEXT = "No results"
SUGGESTION_HEADERS = {
    CONTENT_MODE: "No file matches, showing content results",
    FILES_MODE: "No content matches, showing file results",
}

# (col_start, col_end, style) within one row
Span = tuple[int, int | None, str]
# (text, spans, item index)
Row = tuple[str, list[Span], int | None]


@dataclass
class ListRenderContext:
    items: tuple[Item, ...]
    cursor: int
    width: int
    height: int
    prompt_position: str
    mode: str = FILES_MODE
    query: str = ""
    combo: ComboMatch | None = None
    show_scores: bool = False
    is_selected: Callable[[Item], bool] | None = None
    suggestion_source: str | None = None


def file_display_parts(item: Item, max_width: int) -> tuple[str, str]:
    """Return ``(file_name, directory)`` shortened to fit ``max_width``."""
    name = item.display_name or os.path.basename(item.identifier)
    directory = item.directory
    if not directory and item.relative_path:
        parent = os.path.dirname(item.relative_path)
        if parent not in ("", "."):
            directory = parent
    path_width = max(0, max_width - display_width(name) - 1)
    if not directory or path_width == 0:
        return truncate_end(name, max_width), ""
    return name, shorten_path(directory, path_width)


def _item_row(item: Item, mode: str, width: int, show_scores: bool) -> tuple[str, list[Span]]:
    spans: list[Span] = []
    score_text = f"  {item.score}" if show_scores else ""
    body_width = max(0, width - display_width(score_text))

    if mode == CONTENT_MODE:
        line = item.location.line if item.location is not None else 0
        column = item.location.column if item.location is not None and item.location.column else None
        prefix = f"{item.label}:{line}" + (f":{column}" if column is not None else "")
        prefix = truncate_end(prefix, body_width)
        text = prefix
        spans.append((0, display_width(prefix), "location"))
        remaining = body_width - display_width(prefix) - 1
        content = item.line_content.strip()
        if remaining > 0 and content:
            text += " " + truncate_end(content, remaining)
    else:
        name, directory = file_display_parts(item, body_width)
        text = name
        if directory:
            start = display_width(name) + 1
            text += " " + directory
            spans.append((start, start + display_width(directory), "directory"))

    if score_text:
        padded = fit_line(text, body_width)
        spans.append((body_width, None, "score"))
        text = padded + score_text
    return text, spans


def render_list(ctx: ListRenderContext) -> RenderedList:
    """Render ``ctx.items`` into exactly ``ctx.height`` lines plus styles."""
    height = max(0, ctx.height)
    width = max(0, ctx.width)
    items = ctx.items
    cursor = max(1, min(ctx.cursor, len(items))) if items else 0
    bottom = ctx.prompt_position == "bottom"
    item_mode = ctx.suggestion_source or ctx.mode
    text_width = max(0, width - GUTTER_WIDTH)

    # Each block keeps its rows in top-to-bottom order regardless of direction.
    blocks: list[list[Row]] = []
    for index, item in enumerate(items, start=1):
        block = []
        if ctx.combo is not None and ctx.combo.item_index == index:
            block.append((ctx.combo.header, [(0, None, "combo_header")], None))
        text, spans = _item_row(item, item_mode, text_width, ctx.show_scores)
        marker = SELECTED_MARKER if ctx.is_selected is not None and ctx.is_selected(item) else " "
        row_text = marker + " " + text
        row_spans: list[Span] = []
        if ctx.combo is not None and ctx.combo.item_index == index:
            row_spans.append((0, None, "combo_item"))
        if index == cursor:
            row_spans.append((0, None, "cursor"))
        if marker != " ":
            row_spans.append((0, 1, "selected_marker"))
        row_spans.extend(
            (start + GUTTER_WIDTH, None if end is None else end + GUTTER_WIDTH, style) for start, end, style in spans
        )
        block.append((row_text, row_spans, index))
        blocks.append(block)
    if bottom:
        blocks.reverse()

    rows = [row for block in blocks for row in block]
    if ctx.suggestion_source is not None and items:
        header = SUGGESTION_HEADERS.get(ctx.suggestion_source, "")
        rows.insert(0, (header, [(0, None, "suggestion_header")], None))
    if not items and ctx.query:
        rows = [("  " + NO_RESULTS_TEXT, [(0, None, "dim")], None)]

    cursor_pos = next((pos for pos, row in enumerate(rows) if cursor and row[2] == cursor), None)
    if len(rows) > height:
        if bottom:
            start = len(rows) - height
            if cursor_pos is not None and cursor_pos < start:
                start = cursor_pos
        else:
            start = 0
            if cursor_pos is not None and cursor_pos >= height:
                start = cursor_pos - height + 1
        rows = rows[start : start + height]

    padding = height - len(rows)
    blank: list[Row] = [("", [], None)] * padding
    rows = blank + rows if bottom else rows + blank

    lines: list[str] = []
    highlights: list[StyledRange] = []
    item_rows: dict[int, int] = {}
    cursor_row: int | None = None
    for row_number, (text, spans, index) in enumerate(rows):
        lines.append(fit_line(text, width))
        for start, end, style in spans:
            highlights.append(StyledRange(row=row_number, col_start=start, col_end=end, style=style))
        if index is not None:
            item_rows[index] = row_number
            if index == cursor:
                cursor_row = row_number
    return RenderedList(lines=lines, highlights=highlights, cursor_row=cursor_row, item_rows=item_rows)
