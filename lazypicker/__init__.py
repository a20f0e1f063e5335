"""Public package surface for lazypicker.

Exports the picker session, its host interface, the bundled backends, and
``main`` for programmatic CLI invocation.
"""

from __future__ import annotations

from .backends import (
    BackendError,
    ContentSearchBackend,
    FileSearchBackend,
    InMemoryContentBackend,
    InMemoryFileBackend,
)
from .config import PickerConfig, load_picker_config
from .history import QueryHistory
from .host import HeadlessHost, Notice, PickerHost
from .layout import Geometry, compute_layout
from .pagination import OffsetPaging, PageFetchError, PaginationController, TokenPaging
from .scheduling import TaskScheduler
from .selection import CommitRequest, ExternalListEntry
from .session import PickerSession
from .types import CONTENT_MODE, FILES_MODE, Item, Location, PageWindow, Query, SearchOptions, SearchResult


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "BackendError",
    "CONTENT_MODE",
    "CommitRequest",
    "ContentSearchBackend",
    "ExternalListEntry",
    "FILES_MODE",
    "FileSearchBackend",
    "Geometry",
    "HeadlessHost",
    "InMemoryContentBackend",
    "InMemoryFileBackend",
    "Item",
    "Location",
    "Notice",
    "OffsetPaging",
    "PageFetchError",
    "PageWindow",
    "PaginationController",
    "PickerConfig",
    "PickerHost",
    "PickerSession",
    "Query",
    "QueryHistory",
    "SearchOptions",
    "SearchResult",
    "TaskScheduler",
    "TokenPaging",
    "compute_layout",
    "load_picker_config",
    "main",
]
