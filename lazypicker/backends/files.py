"""Ranked file search over a project scanned on a background thread.

The scan streams ``rg --files`` (or walks the tree when ripgrep is missing)
so results and progress are available while it runs. Ranking prefers
substring matches and falls back to an in-order character match; repeat
uses recorded in history add a combo boost.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import threading
from collections.abc import Iterator
from pathlib import Path

from ..history import QueryHistory
from ..types import Item, Query, ScanProgress, SearchMetadata, SearchOptions, SearchResult
from .base import file_item_fields, parse_location_suffix


def fuzzy_score(query: str, candidate: str) -> int | None:
    if not query:
        return 0
    query_folded = query.casefold()
    candidate_folded = candidate.casefold()

    score = 0
    prev_idx = -1
    run = 0
    for needle in query_folded:
        idx = candidate_folded.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            gap = idx - prev_idx - 1
            run = 0
            score -= min(40, gap * 2)
        if idx == 0 or candidate_folded[idx - 1] in "/_- .":
            score += 35
        prev_idx = idx

    score -= len(candidate_folded) // 5
    return score


def rank_labels(query: str, labels: list[str], labels_folded: list[str] | None = None) -> list[tuple[int, int]]:
    """Return ``(label_index, score)`` pairs for every label matching ``query``.

    Substring matches win outright, earlier and shorter first; only when none
    exist are labels scored as in-order character matches.
    """
    if labels_folded is None:
        labels_folded = [label.casefold() for label in labels]
    query_folded = query.casefold()

    substring_scored: list[tuple[int, int, str, int]] = []
    for idx, label in enumerate(labels):
        match_idx = labels_folded[idx].find(query_folded)
        if match_idx < 0:
            continue
        substring_scored.append((match_idx, len(label), label, idx))
    if substring_scored:
        substring_scored.sort(key=lambda item: (item[0], item[1], item[2]))
        return [(idx, 10_000 - (match_idx * 50) - label_len) for match_idx, label_len, _, idx in substring_scored]

    scored: list[tuple[int, int, str, int]] = []
    for idx, label in enumerate(labels):
        score = fuzzy_score(query, label)
        if score is None:
            continue
        scored.append((score, len(label), label, idx))
    scored.sort(key=lambda item: (-item[0], item[1], item[2]))
    return [(idx, score) for score, _, _, idx in scored]


def _walk_labels(root: Path, show_hidden: bool) -> Iterator[str]:
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        if not show_hidden:
            dirnames[:] = [name for name in dirnames if not name.startswith(".")]
            filenames = [name for name in filenames if not name.startswith(".")]
        dirnames.sort(key=str.lower)
        filenames.sort(key=str.lower)
        for filename in filenames:
            path = base / filename
            if path.is_file():
                yield path.relative_to(root).as_posix()


def _rg_labels(root: Path, show_hidden: bool, respect_gitignore: bool) -> Iterator[str] | None:
    if shutil.which("rg") is None:
        return None
    cmd = ["rg", "--files"]
    if not respect_gitignore:
        cmd.append("--no-ignore")
    if show_hidden:
        cmd.append("--hidden")
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=root,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError:
        return None

    def lines() -> Iterator[str]:
        assert proc.stdout is not None
        try:
            for raw in proc.stdout:
                label = raw.rstrip("\r\n")
                if label:
                    yield Path(label).as_posix()
        finally:
            proc.stdout.close()
            proc.wait()

    return lines()


class FileSearchBackend:
    """Offset-paged file search with combo boosts from query history."""

    def __init__(
        self,
        root: Path,
        *,
        history: QueryHistory | None = None,
        combo_boost_multiplier: int = 100,
        min_combo_count: int = 3,
        show_hidden: bool = False,
        respect_gitignore: bool = True,
    ) -> None:
        self.root = root.resolve()
        self.history = history
        self.combo_boost_multiplier = combo_boost_multiplier
        self.min_combo_count = min_combo_count
        self.show_hidden = show_hidden
        self.respect_gitignore = respect_gitignore
        self._lock = threading.Lock()
        self._labels: list[str] = []
        self._labels_folded: list[str] = []
        self._scanning = False
        self._scan_thread: threading.Thread | None = None
        self._last_total_matched = 0
        self._rank_cache_key: tuple[object, ...] | None = None
        self._rank_cache: list[Item] = []

    def start_scan(self) -> None:
        """Start the background scan unless one is already running."""
        with self._lock:
            if self._scanning:
                return
            self._scanning = True
            self._labels = []
            self._labels_folded = []
        self._scan_thread = threading.Thread(target=self._scan_worker, name="lazypicker-file-scan", daemon=True)
        self._scan_thread.start()

    def wait_for_scan(self, timeout: float | None = None) -> None:
        if self._scan_thread is not None:
            self._scan_thread.join(timeout)

    def _scan_worker(self) -> None:
        try:
            labels = _rg_labels(self.root, self.show_hidden, self.respect_gitignore)
            if labels is None:
                labels = _walk_labels(self.root, self.show_hidden)
            for label in labels:
                with self._lock:
                    self._labels.append(label)
                    self._labels_folded.append(label.casefold())
        finally:
            with self._lock:
                order = sorted(range(len(self._labels)), key=lambda idx: self._labels_folded[idx])
                self._labels = [self._labels[idx] for idx in order]
                self._labels_folded = [self._labels_folded[idx] for idx in order]
                self._scanning = False

    def get_scan_progress(self) -> ScanProgress:
        with self._lock:
            return ScanProgress(is_scanning=self._scanning, scanned_count=len(self._labels))

    def get_metadata(self) -> SearchMetadata:
        with self._lock:
            total_files = len(self._labels)
        return SearchMetadata(total_files=total_files, total_matched=self._last_total_matched)

    def _combo_count(self, query: str, identifier: str) -> int:
        if self.history is None or not query:
            return 0
        return self.history.combo_count(query, identifier)

    def _ranked(self, text: str, min_combo: int) -> list[Item]:
        with self._lock:
            labels = list(self._labels)
            labels_folded = list(self._labels_folded)
            scanning = self._scanning
        key = (text, min_combo, len(labels), scanning)
        if key == self._rank_cache_key:
            return self._rank_cache

        if text:
            ranked = rank_labels(text, labels, labels_folded)
        else:
            ranked = [(idx, 0) for idx in range(len(labels))]
        items: list[Item] = []
        for idx, score in ranked:
            label = labels[idx]
            identifier = str(self.root / label)
            count = self._combo_count(text, identifier)
            boost = count * self.combo_boost_multiplier if count > 0 and count >= min_combo else 0
            items.append(
                Item(
                    identifier=identifier,
                    score=score + boost,
                    combo_count=count,
                    combo_boost=boost,
                    **file_item_fields(label),
                )
            )
        items.sort(key=lambda item: (-item.score, len(item.relative_path), item.relative_path))
        self._rank_cache_key = key
        self._rank_cache = items
        return items

    def search(self, query: Query, origin: object, page_size: int, options: SearchOptions) -> SearchResult:
        text, location = parse_location_suffix(query.text.strip())
        min_combo = self.min_combo_count if options.min_combo_override is None else options.min_combo_override
        ranked = self._ranked(text, min_combo)
        self._last_total_matched = len(ranked)
        page_index = origin if isinstance(origin, int) else 0
        start = page_index * max(0, page_size)
        return SearchResult(
            items=tuple(ranked[start : start + max(0, page_size)]),
            total_matched=len(ranked),
            location=location,
        )
