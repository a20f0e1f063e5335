"""Cross-backend suggestions for queries the active backend cannot match."""

from __future__ import annotations

from dataclasses import dataclass

from .pagination import PageFetchError, PaginationStrategy
from .types import CONTENT_MODE, Item, Query, SearchOptions, alternate_mode


@dataclass
class SuggestionState:
    active: bool = False
    source_backend: str | None = None
    items: tuple[Item, ...] = ()

    def clear(self) -> None:
        self.active = False
        self.source_backend = None
        self.items = ()


class SuggestionFallback:
    """Run one bounded query against the alternate backend.

    Content suggestions always search literally, whatever grep mode is active.
    """

    def __init__(self, strategies: dict[str, PaginationStrategy]) -> None:
        self.strategies = strategies

    def lookup(self, query: Query, page_size: int) -> SuggestionState:
        """Return suggestions for ``query``; raises ``PageFetchError`` on failure."""
        if not query.text or page_size <= 0:
            return SuggestionState()
        source = alternate_mode(query.backend_mode)
        strategy = self.strategies.get(source)
        if strategy is None:
            return SuggestionState()
        options = SearchOptions(grep_mode="plain") if source == CONTENT_MODE else SearchOptions()
        try:
            result = strategy.backend.search(Query(query.text, source), strategy.origin, page_size, options)
        except Exception as exc:
            raise PageFetchError(f"suggestion search failed: {exc}", exc) from exc
        items = tuple(result.items[:page_size])
        if not items:
            return SuggestionState()
        return SuggestionState(active=True, source_backend=source, items=items)
