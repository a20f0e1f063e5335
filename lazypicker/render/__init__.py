"""Render pipeline for the picker list, status indicator, and scrollbar.

Everything here is a pure function of session state: lines and styled ranges
come out, the host decides how to draw them.
"""

from __future__ import annotations

from .combo import ComboMatch, ComboState, detect_combo
from .empty_state import GREP_HELP_LINES, render_grep_empty_state
from .list_view import ListRenderContext, render_list
from .scrollbar import ScrollbarState, scrollbar_lines, scrollbar_thumb, total_pages
from .status import StatusLine, status_line
from .types import RenderedList, StyledRange

__all__ = [
    "ComboMatch",
    "ComboState",
    "GREP_HELP_LINES",
    "ListRenderContext",
    "RenderedList",
    "ScrollbarState",
    "StatusLine",
    "StyledRange",
    "detect_combo",
    "render_grep_empty_state",
    "render_list",
    "scrollbar_lines",
    "scrollbar_thumb",
    "status_line",
    "total_pages",
]
