"""Right-aligned status indicator drawn inside the prompt line."""

from __future__ import annotations

from dataclasses import dataclass

from ..types import CONTENT_MODE, ScanProgress, SearchMetadata

REGEX_FALLBACK_LABEL = "invalid regex, using literal"
GREP_MODE_STYLES = {
    "plain": "grep_plain",
    "regex": "grep_regex",
    "fuzzy": "grep_fuzzy",
}


@dataclass(frozen=True)
class StatusLine:
    text: str
    style: str


def status_line(
    *,
    mode: str,
    query: str,
    progress: ScanProgress | None,
    metadata: SearchMetadata,
    grep_modes: tuple[str, ...],
    grep_mode: str,
    cycle_key: str,
    regex_fallback_error: str | None,
) -> StatusLine | None:
    """Return the status text for the prompt, or ``None`` to show nothing.

    File search shows ``Indexing files N`` while scanning, the total file
    count for queries shorter than two characters, and ``matched/total``
    otherwise. Content search shows the active mode only when there is a
    choice of modes, and the regex fallback warning when one applies.
    """
    if mode == CONTENT_MODE:
        if regex_fallback_error:
            return StatusLine(REGEX_FALLBACK_LABEL, "warning")
        if len(grep_modes) <= 1:
            return None
        label = grep_mode if grep_mode in GREP_MODE_STYLES else "plain"
        return StatusLine(f"{cycle_key} {label}", GREP_MODE_STYLES[label])

    if progress is not None and progress.is_scanning:
        return StatusLine(f"Indexing files {progress.scanned_count}", "status")
    if len(query) < 2:
        return StatusLine(str(metadata.total_files), "status")
    return StatusLine(f"{metadata.total_matched}/{metadata.total_files}", "status")
