"""Repeat-use ("combo") overlay detection and visibility tracking."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..types import Item


@dataclass
class ComboState:
    """Whether the combo overlay may still be drawn for the current query.

    Once the cursor strays more than half a page from where the query
    started, the overlay stays hidden until the next fresh query.
    """

    visible: bool = True
    anchor_cursor: int = 1

    def reset(self, anchor_cursor: int = 1) -> None:
        self.visible = True
        self.anchor_cursor = anchor_cursor

    def observe_cursor(self, cursor: int, page_size: int) -> bool:
        """Hide the overlay when ``cursor`` left the anchor region.

        Returns ``True`` only on the call that hid it.
        """
        if not self.visible:
            return False
        if abs(cursor - self.anchor_cursor) > page_size // 2:
            self.visible = False
            return True
        return False


@dataclass(frozen=True)
class ComboMatch:
    item_index: int  # 1-based index into the page
    count: int
    header: str


def combo_header_text(count: int) -> str:
    return f"Last match (x{count} combo)"


def detect_combo(items: Sequence[Item], boost_multiplier: int, force: bool = False) -> ComboMatch | None:
    """Return the first item carrying a repeat-use boost, if any.

    An item qualifies when its boost reaches ``boost_multiplier``; with
    ``force`` any item with a non-zero repeat count qualifies.
    """
    for index, item in enumerate(items, start=1):
        boosted = item.combo_boost > 0 and item.combo_boost >= boost_multiplier
        if boosted or (force and item.combo_count > 0):
            return ComboMatch(item_index=index, count=item.combo_count, header=combo_header_text(item.combo_count))
    return None
