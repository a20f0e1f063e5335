"""Persisted query history and repeat-use ("combo") counts.

History lives in a small JSON file under the platform data dir. Reads and
writes never raise: a damaged file behaves like an empty history.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_data_dir

from .config import APP_NAME
from .types import CONTENT_MODE

HISTORY_FILENAME = "history.json"
DEFAULT_HISTORY_PATH = Path(user_data_dir(APP_NAME, appauthor=False)) / HISTORY_FILENAME
MAX_HISTORY_ENTRIES = 200


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, str) and entry]


def _combo_table(value: object) -> dict[str, dict[str, int]]:
    if not isinstance(value, dict):
        return {}
    table: dict[str, dict[str, int]] = {}
    for query, paths in value.items():
        if not isinstance(query, str) or not isinstance(paths, dict):
            continue
        counts = {
            path: count
            for path, count in paths.items()
            if isinstance(path, str) and isinstance(count, int) and not isinstance(count, bool) and count > 0
        }
        if counts:
            table[query] = counts
    return table


class QueryHistory:
    """Recent file and content queries, newest first.

    ``path=None`` keeps everything in memory.
    """

    def __init__(self, path: Path | None = DEFAULT_HISTORY_PATH) -> None:
        self.path = path
        self.file_queries: list[str] = []
        self.content_queries: list[str] = []
        self.combos: dict[str, dict[str, int]] = {}
        self._load()

    def _load(self) -> None:
        if self.path is None:
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except Exception:
            return
        if not isinstance(data, dict):
            return
        self.file_queries = _string_list(data.get("file_queries"))[:MAX_HISTORY_ENTRIES]
        self.content_queries = _string_list(data.get("content_queries"))[:MAX_HISTORY_ENTRIES]
        self.combos = _combo_table(data.get("combos"))

    def _save(self) -> None:
        if self.path is None:
            return
        payload = {
            "file_queries": self.file_queries,
            "content_queries": self.content_queries,
            "combos": self.combos,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        except Exception:
            pass

    @staticmethod
    def _push(entries: list[str], query: str) -> None:
        if query in entries:
            entries.remove(query)
        entries.insert(0, query)
        del entries[MAX_HISTORY_ENTRIES:]

    def record_query_completion(self, query: str, path: str) -> None:
        """Remember that ``query`` led to opening ``path``."""
        if not query:
            return
        self._push(self.file_queries, query)
        paths = self.combos.setdefault(query, {})
        paths[path] = paths.get(path, 0) + 1
        self._save()

    def record_content_query(self, query: str) -> None:
        if not query:
            return
        self._push(self.content_queries, query)
        self._save()

    def get_historical_query(self, offset: int, mode: str) -> str | None:
        entries = self.content_queries if mode == CONTENT_MODE else self.file_queries
        if 0 <= offset < len(entries):
            return entries[offset]
        return None

    def combo_count(self, query: str, path: str) -> int:
        return self.combos.get(query, {}).get(path, 0)


class HistoryCycler:
    """Walks history offsets 0, 1, 2, ... and wraps to 0 when exhausted."""

    def __init__(self) -> None:
        self.offset: int | None = None

    def reset(self) -> None:
        self.offset = None

    def next_query(self, history: QueryHistory, mode: str) -> str | None:
        self.offset = 0 if self.offset is None else self.offset + 1
        query = history.get_historical_query(self.offset, mode)
        if query is not None:
            return query
        self.offset = 0
        query = history.get_historical_query(0, mode)
        if query is None:
            self.offset = None
        return query
