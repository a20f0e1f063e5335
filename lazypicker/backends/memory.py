"""In-process backends over fixed data, for embedding callers and tests."""

from __future__ import annotations

import re
from pathlib import Path

from ..history import QueryHistory
from ..types import Item, Location, Query, SearchOptions, SearchResult
from .base import file_item_fields, fuzzy_line_pattern, page_grouped_matches
from .files import FileSearchBackend


class InMemoryFileBackend(FileSearchBackend):
    """File search over a fixed list of relative paths; no scan is run."""

    def __init__(
        self,
        labels: list[str],
        *,
        root: Path = Path("."),
        history: QueryHistory | None = None,
        combo_boost_multiplier: int = 100,
        min_combo_count: int = 3,
    ) -> None:
        super().__init__(
            root,
            history=history,
            combo_boost_multiplier=combo_boost_multiplier,
            min_combo_count=min_combo_count,
        )
        self._labels = list(labels)
        self._labels_folded = [label.casefold() for label in labels]

    def start_scan(self) -> None:
        return None


class InMemoryContentBackend:
    """Content search over ``{relative_path: text}`` using Python regexes.

    ``plain`` matches literally, ``regex`` compiles the query and falls back
    to literal matching when it does not compile, ``fuzzy`` matches the
    query's characters in order on one line.
    """

    def __init__(self, documents: dict[str, str], *, root: Path = Path("."), smart_case: bool = True) -> None:
        self.documents = dict(sorted(documents.items()))
        self.root = root.resolve()
        self.smart_case = smart_case

    def _compile(self, text: str, mode: str) -> tuple[re.Pattern[str], str | None]:
        flags = 0
        if mode == "fuzzy" or (self.smart_case and text == text.lower()):
            flags = re.IGNORECASE
        if mode == "regex":
            try:
                return re.compile(text, flags), None
            except re.error as exc:
                return re.compile(re.escape(text), flags), str(exc)
        if mode == "fuzzy":
            return re.compile(fuzzy_line_pattern(text), flags), None
        return re.compile(re.escape(text), flags), None

    def search(self, query: Query, origin: object, page_size: int, options: SearchOptions) -> SearchResult:
        text = query.text.strip()
        if not text or page_size <= 0:
            return SearchResult()
        pattern, fallback_error = self._compile(text, options.grep_mode)
        groups: list[list[Item]] = []
        for relative_path, content in self.documents.items():
            matches: list[Item] = []
            for line_number, line in enumerate(content.splitlines(), start=1):
                found = pattern.search(line)
                if found is None:
                    continue
                matches.append(
                    Item(
                        identifier=str(self.root / relative_path),
                        location=Location(line_number, found.start() + 1),
                        line_content=line,
                        **file_item_fields(relative_path),
                    )
                )
            if matches:
                groups.append(matches)
        total = sum(len(group) for group in groups)
        return page_grouped_matches(groups, origin, page_size, total_matched=total, regex_fallback_error=fallback_error)
