"""Pieces shared by the bundled search backends."""

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..types import Item, Location, SearchResult

# Trailing ":line" or ":line:col" on a file query.
_LOCATION_SUFFIX_RE = re.compile(r"^(?P<base>.*?):(?P<line>\d+)(?::(?P<col>\d+))?$")
_REGEX_META = set("\\.+*?()|[]{}^$")


class BackendError(Exception):
    """A search tool failed for a reason other than an unmatched query."""


@dataclass(frozen=True)
class ContentCursor:
    """Continuation token for content pages: next file and match to emit."""

    file_index: int
    match_index: int


def parse_location_suffix(text: str) -> tuple[str, Location | None]:
    """Split ``name:12`` or ``name:12:3`` into the search text and a location."""
    match = _LOCATION_SUFFIX_RE.match(text)
    if match is None or not match.group("base"):
        return text, None
    line = int(match.group("line"))
    column = int(match.group("col")) if match.group("col") else None
    if line <= 0:
        return text, None
    return match.group("base"), Location(line, column)


def fuzzy_line_pattern(query: str) -> str:
    """Build a regex matching the query's characters in order within one line."""
    parts = []
    for ch in query:
        if ch.isspace():
            continue
        parts.append("\\" + ch if ch in _REGEX_META else ch)
    return ".*?".join(parts)


def file_item_fields(relative_path: str) -> dict[str, str]:
    directory = os.path.dirname(relative_path)
    return {
        "display_name": os.path.basename(relative_path) or relative_path,
        "relative_path": relative_path,
        "directory": "" if directory == "." else directory,
    }


def page_grouped_matches(
    groups: Sequence[Sequence[Item]],
    origin: object,
    page_size: int,
    *,
    total_matched: int,
    regex_fallback_error: str | None = None,
) -> SearchResult:
    """Slice ``page_size`` matches starting at ``origin`` from per-file groups.

    ``origin`` is ``None`` for the first page or a ``ContentCursor``. The
    returned continuation is ``None`` once the last match has been emitted.
    """
    cursor = origin if isinstance(origin, ContentCursor) else ContentCursor(0, 0)
    file_index = cursor.file_index
    match_index = cursor.match_index
    items: list[Item] = []
    while file_index < len(groups) and len(items) < page_size:
        group = groups[file_index]
        take = group[match_index : match_index + (page_size - len(items))]
        items.extend(take)
        match_index += len(take)
        if match_index >= len(group):
            file_index += 1
            match_index = 0

    next_continuation = None
    if file_index < len(groups):
        next_continuation = ContentCursor(file_index, match_index)
    return SearchResult(
        items=tuple(items),
        total_matched=total_matched,
        next_continuation=next_continuation,
        regex_fallback_error=regex_fallback_error,
    )
