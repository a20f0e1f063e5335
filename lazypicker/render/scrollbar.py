"""Page-position scrollbar drawn just outside the list panel border."""

from __future__ import annotations

import math
from dataclasses import dataclass

THUMB_GLYPH = "▊"
TRACK_GLYPH = "│"


def total_pages(total_matched: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return math.ceil(total_matched / page_size)


def scrollbar_thumb(height: int, pages: int, page_index: int, prompt_position: str) -> tuple[int, int]:
    """Return ``(thumb_start, thumb_size)`` in rows for a track of ``height``.

    With a bottom prompt the best page sits at the bottom, so the thumb runs
    inverted.
    """
    if height <= 0:
        return 0, 0
    pages = max(1, pages)
    thumb_size = min(height, max(1, height // pages))
    track_range = height - thumb_size
    span = max(1, pages - 1)
    page_index = max(0, min(page_index, pages - 1))
    if prompt_position == "bottom":
        start = math.floor(((pages - 1 - page_index) / span) * track_range)
    else:
        start = math.floor((page_index / span) * track_range)
    return start, thumb_size


def scrollbar_lines(height: int, thumb_start: int, thumb_size: int) -> list[str]:
    return [
        THUMB_GLYPH if thumb_start <= row < thumb_start + thumb_size else TRACK_GLYPH
        for row in range(max(0, height))
    ]


@dataclass
class ScrollbarState:
    """Tracks whether the scrollbar has appeared during this session.

    It stays hidden while the user never leaves the first page.
    """

    ever_shown: bool = False

    def should_show(self, *, exact: bool, suggestion: bool, pages: int, page_index: int) -> bool:
        if not exact or suggestion:
            return False
        if not self.ever_shown and page_index == 0:
            return False
        if pages <= 1:
            return False
        self.ever_shown = True
        return True

    def reset(self) -> None:
        self.ever_shown = False
