"""Multi-selection, commit requests, and external list entries.

File search selects whole files; content search selects individual match
occurrences keyed by ``path:line:col``. Selections persist across pages.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field

from .types import CONTENT_MODE, Item, Location

COMMIT_ACTIONS = ("edit", "split", "vsplit", "tab")


def occurrence_key(item: Item) -> str:
    line = item.location.line if item.location is not None else 0
    column = item.location.column if item.location is not None and item.location.column else 0
    return f"{item.identifier}:{line}:{column}"


@dataclass
class SelectionSet:
    mode: str
    _entries: dict[str, Item] = field(default_factory=dict)

    def key_for(self, item: Item) -> str:
        return occurrence_key(item) if self.mode == CONTENT_MODE else item.identifier

    def toggle(self, item: Item) -> bool:
        """Flip ``item``'s selection and return whether it is now selected."""
        key = self.key_for(item)
        if key in self._entries:
            del self._entries[key]
            return False
        self._entries[key] = item
        return True

    def is_selected(self, item: Item) -> bool:
        return self.key_for(item) in self._entries

    def items(self) -> list[Item]:
        return list(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


@dataclass(frozen=True)
class CommitRequest:
    path: str
    relative_path: str
    location: Location | None
    action: str = "edit"


@dataclass(frozen=True)
class ExternalListEntry:
    path: str
    line: int
    column: int
    text: str

    def format(self) -> str:
        return f"{self.path}:{self.line}:{self.column}:{self.text}"


def _relative(path: str) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        return path


def external_entries(items: Iterable[Item], mode: str) -> list[ExternalListEntry]:
    """Convert items to list entries; file entries point at line 1, column 1."""
    entries: list[ExternalListEntry] = []
    for item in items:
        if mode == CONTENT_MODE:
            location = item.location or Location(1)
            entries.append(
                ExternalListEntry(
                    path=item.identifier,
                    line=location.line or 1,
                    column=location.column or 1,
                    text=item.line_content or _relative(item.identifier),
                )
            )
        else:
            entries.append(ExternalListEntry(item.identifier, 1, 1, _relative(item.identifier)))
    return entries
