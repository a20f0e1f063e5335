"""Render outputs handed to the host."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StyledRange:
    row: int  # 0-based row within the panel
    col_start: int
    col_end: int | None  # None means to end of line
    style: str


@dataclass
class RenderedList:
    lines: list[str]
    highlights: list[StyledRange] = field(default_factory=list)
    cursor_row: int | None = None
    item_rows: dict[int, int] = field(default_factory=dict)  # item index -> row
