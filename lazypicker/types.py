"""Value types shared by the picker engine, backends, and hosts.

Items and windows are immutable once produced; navigation replaces them
wholesale instead of mutating in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field

FILES_MODE = "files"
CONTENT_MODE = "content"
BACKEND_MODES = (FILES_MODE, CONTENT_MODE)


class _ApproximateMarker:
    """Sentinel total for result streams whose size is not known exactly."""

    _instance: _ApproximateMarker | None = None

    def __new__(cls) -> _ApproximateMarker:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "APPROXIMATE"

    def __reduce__(self) -> str:
        return "APPROXIMATE"


APPROXIMATE = _ApproximateMarker()


def alternate_mode(mode: str) -> str:
    """Return the other backend mode."""
    return CONTENT_MODE if mode == FILES_MODE else FILES_MODE


@dataclass(frozen=True)
class Location:
    line: int  # 1-based
    column: int | None = None  # 1-based


@dataclass(frozen=True)
class Item:
    """One result row as returned by a backend."""

    identifier: str
    display_name: str
    location: Location | None = None
    score: int = 0
    is_binary: bool = False
    relative_path: str = ""
    directory: str = ""
    line_content: str = ""
    combo_count: int = 0
    combo_boost: int = 0

    @property
    def label(self) -> str:
        return self.relative_path or self.identifier


@dataclass(frozen=True)
class Query:
    text: str
    backend_mode: str = FILES_MODE


@dataclass(frozen=True)
class SearchResult:
    """Payload of one backend page fetch."""

    items: tuple[Item, ...] = ()
    total_matched: int = 0
    next_continuation: object | None = None
    regex_fallback_error: str | None = None
    location: Location | None = None
    warning: str | None = None


@dataclass(frozen=True)
class SearchMetadata:
    total_files: int = 0
    total_matched: int = 0


@dataclass(frozen=True)
class ScanProgress:
    is_scanning: bool = False
    scanned_count: int = 0


@dataclass(frozen=True)
class PageWindow:
    """Materialized slice of results currently shown in the list panel."""

    items: tuple[Item, ...] = ()
    page_index: int = 0
    total_count: int | _ApproximateMarker = 0

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_exact(self) -> bool:
        return self.total_count is not APPROXIMATE


EMPTY_WINDOW = PageWindow()


@dataclass(frozen=True)
class SearchOptions:
    """Per-call knobs forwarded to a backend ``search``."""

    grep_mode: str = "plain"
    min_combo_override: int | None = None
    extra: dict[str, object] = field(default_factory=dict)


def clamp_cursor(cursor: int, item_count: int) -> int:
    """Clamp a 1-based cursor into ``[1, max(1, item_count)]``."""
    return max(1, min(cursor, max(1, item_count)))
