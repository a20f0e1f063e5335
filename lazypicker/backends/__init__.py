"""Bundled search backends: ripgrep-backed project search and in-memory data."""

from __future__ import annotations

from .base import BackendError, ContentCursor, parse_location_suffix
from .content import ContentSearchBackend, parse_grep_query
from .files import FileSearchBackend, fuzzy_score, rank_labels
from .memory import InMemoryContentBackend, InMemoryFileBackend

__all__ = [
    "BackendError",
    "ContentCursor",
    "ContentSearchBackend",
    "FileSearchBackend",
    "InMemoryContentBackend",
    "InMemoryFileBackend",
    "fuzzy_score",
    "parse_grep_query",
    "parse_location_suffix",
    "rank_labels",
]
