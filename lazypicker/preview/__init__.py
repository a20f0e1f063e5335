"""Preview pane: debounced refresh coordination and source rendering."""

from __future__ import annotations

from .coordinator import DEFAULT_DEBOUNCE_SECONDS, PreviewCoordinator
from .source import (
    DEFAULT_TITLE,
    FILE_INFO_PLACEHOLDER,
    PLACEHOLDER_TEXT,
    SourcePreview,
    file_info_lines,
    preview_title,
)

__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "DEFAULT_TITLE",
    "FILE_INFO_PLACEHOLDER",
    "PLACEHOLDER_TEXT",
    "PreviewCoordinator",
    "SourcePreview",
    "file_info_lines",
    "preview_title",
]
