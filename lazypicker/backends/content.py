"""Content search through ripgrep's JSON output.

A query runs ``rg --json --sort path`` once, capped at ``max_matches``, and
the matches are grouped per file. Pages are sliced from that grouping and
addressed by ``ContentCursor`` continuation tokens, so the total is only
approximate when the cap is hit.
"""

from __future__ import annotations

import json
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ..types import Item, Location, Query, SearchOptions, SearchResult
from .base import BackendError, file_item_fields, fuzzy_line_pattern, page_grouped_matches

REGEX_ERROR_MARKER = "regex parse error"
MISSING_RG_WARNING = "ripgrep (rg) is not installed; content search is unavailable"


@dataclass(frozen=True)
class GrepQuery:
    """Search pattern plus path constraints parsed from the typed query."""

    pattern: str
    globs: tuple[str, ...] = ()


def parse_grep_query(text: str) -> GrepQuery:
    """Pull ``*.ext``, ``/dir/`` and ``!exclude`` tokens out of ``text``.

    Constraint tokens only apply when something else remains to search for.
    """
    tokens = text.split()
    globs: list[str] = []
    rest: list[str] = []
    for token in tokens:
        if token.startswith("*.") and len(token) > 2:
            globs.append(token)
        elif len(token) > 2 and token.startswith("/") and token.endswith("/"):
            globs.append(f"{token.strip('/')}/**")
        elif token.startswith("!") and len(token) > 1:
            globs.append(f"!*{token[1:]}*")
        else:
            rest.append(token)
    if not rest:
        return GrepQuery(pattern=text.strip())
    return GrepQuery(pattern=" ".join(rest), globs=tuple(globs))


def _preview_line(text: str, max_chars: int = 220) -> str:
    clean = text.rstrip("\r\n").replace("\t", "    ")
    if len(clean) <= max_chars:
        return clean
    return clean[: max(1, max_chars - 3)] + "..."


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return text.strip()


class ContentSearchBackend:
    """Ripgrep-backed content search paged by continuation tokens."""

    def __init__(
        self,
        root: Path,
        *,
        max_matches: int = 10_000,
        smart_case: bool = True,
        show_hidden: bool = False,
        respect_gitignore: bool = True,
    ) -> None:
        self.root = root.resolve()
        self.max_matches = max_matches
        self.smart_case = smart_case
        self.show_hidden = show_hidden
        self.respect_gitignore = respect_gitignore
        self._warned_missing_rg = False
        self._cache_key: tuple[object, ...] | None = None
        self._cache: tuple[list[list[Item]], int, str | None] = ([], 0, None)

    def _command(self, grep: GrepQuery, mode: str, fixed: bool) -> list[str]:
        cmd = ["rg", "--json", "--line-number", "--column", "--sort", "path"]
        if mode == "fuzzy":
            cmd.append("--ignore-case")
        elif self.smart_case:
            cmd.append("--smart-case")
        if fixed:
            cmd.append("--fixed-strings")
        if not self.respect_gitignore:
            cmd.append("--no-ignore")
        if self.show_hidden:
            cmd.append("--hidden")
        for glob in grep.globs:
            cmd.extend(["--glob", glob])
        pattern = fuzzy_line_pattern(grep.pattern) if mode == "fuzzy" else grep.pattern
        cmd.extend(["--regexp", pattern, "."])
        return cmd

    def _run(self, cmd: list[str], limit: int) -> tuple[list[list[Item]], int, int, str]:
        """Run ripgrep and group up to ``limit`` matches by file."""
        proc = subprocess.Popen(
            cmd,
            cwd=self.root,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        groups: list[list[Item]] = []
        group_paths: dict[str, int] = {}
        total = 0
        truncated = False
        try:
            assert proc.stdout is not None
            for raw in proc.stdout:
                line = raw.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                except ValueError:
                    continue
                if payload.get("type") != "match":
                    continue
                item = self._item_from_match(payload.get("data", {}))
                if item is None:
                    continue
                index = group_paths.get(item.identifier)
                if index is None:
                    index = len(groups)
                    group_paths[item.identifier] = index
                    groups.append([])
                groups[index].append(item)
                total += 1
                if total >= limit:
                    truncated = True
                    break
        finally:
            if truncated and proc.poll() is None:
                proc.kill()
            _stdout_unused, stderr_text = proc.communicate()
        return groups, total, proc.returncode if not truncated else 0, stderr_text or ""

    def _item_from_match(self, data: dict) -> Item | None:
        path_data = data.get("path", {})
        path_text = path_data.get("text") if isinstance(path_data, dict) else None
        if not path_text:
            return None
        relative = Path(path_text)
        if relative.is_absolute() or ".." in relative.parts:
            return None
        relative_text = relative.as_posix()

        line_number = int(data.get("line_number") or 0) or 1
        column = 1
        submatches = data.get("submatches")
        if isinstance(submatches, list) and submatches and isinstance(submatches[0], dict):
            column = int(submatches[0].get("start") or 0) + 1
        lines_data = data.get("lines", {})
        line_text = lines_data.get("text", "") if isinstance(lines_data, dict) else ""
        return Item(
            identifier=str(self.root / relative),
            location=Location(line_number, column),
            line_content=_preview_line(str(line_text)),
            **file_item_fields(relative_text),
        )

    def _collect(self, grep: GrepQuery, mode: str) -> tuple[list[list[Item]], int, str | None]:
        fixed = mode == "plain"
        groups, total, returncode, stderr_text = self._run(self._command(grep, mode, fixed), self.max_matches)
        fallback_error = None
        if returncode == 2 and not groups and mode == "regex" and REGEX_ERROR_MARKER in stderr_text:
            fallback_error = _first_line(stderr_text)
            groups, total, returncode, stderr_text = self._run(self._command(grep, mode, True), self.max_matches)
        if returncode not in (0, 1) and not groups:
            raise BackendError(_first_line(stderr_text) or f"rg failed with exit code {returncode}")
        return groups, total, fallback_error

    def search(self, query: Query, origin: object, page_size: int, options: SearchOptions) -> SearchResult:
        grep = parse_grep_query(query.text)
        if not grep.pattern or page_size <= 0:
            return SearchResult()
        if shutil.which("rg") is None:
            warning = None
            if not self._warned_missing_rg:
                self._warned_missing_rg = True
                warning = MISSING_RG_WARNING
            return SearchResult(warning=warning)

        mode = options.grep_mode
        key = (grep, mode)
        if origin is None or key != self._cache_key:
            self._cache = self._collect(grep, mode)
            self._cache_key = key
        groups, total, fallback_error = self._cache
        return page_grouped_matches(
            groups,
            origin,
            page_size,
            total_matched=total,
            regex_fallback_error=fallback_error,
        )
