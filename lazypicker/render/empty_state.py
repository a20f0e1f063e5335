"""Static help view shown by content search before anything is typed."""

from __future__ import annotations

from ..text import fit_line
from .types import RenderedList, StyledRange

GREP_HELP_LINES: tuple[str, ...] = (
    "",
    "  Start typing to search file contents...",
    "",
    "  Tips:",
    '    "pattern *.rs"    search only in Rust files',
    '    "pattern /src/"   limit search to src/ directory',
    '    "!test pattern"   exclude test files',
    "",
)


def render_grep_empty_state(width: int, height: int, prompt_position: str) -> RenderedList:
    """Render the tips block, anchored next to the prompt."""
    content = list(GREP_HELP_LINES[: max(0, height)])
    padding = [""] * max(0, height - len(content))
    lines = padding + content if prompt_position == "bottom" else content + padding
    offset = len(padding) if prompt_position == "bottom" else 0
    highlights = [
        StyledRange(row=offset + row, col_start=0, col_end=None, style="tip")
        for row, text in enumerate(content)
        if text.strip()
    ]
    return RenderedList(lines=[fit_line(line, width) for line in lines], highlights=highlights)
