"""Page windowing over exact-offset and continuation-token backends.

``PaginationController`` owns the page currently shown for one query. Two
strategies hide how a backend addresses pages: ``OffsetPaging`` asks for an
arbitrary page index against an exact total, ``TokenPaging`` follows opaque
continuation tokens forward and replays remembered tokens backward.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Protocol

from .types import (
    APPROXIMATE,
    EMPTY_WINDOW,
    Location,
    PageWindow,
    Query,
    SearchOptions,
    SearchResult,
)


class PageFetchError(Exception):
    """A backend fetch failed; the previously shown page is still valid."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class SearchBackend(Protocol):
    def search(self, query: Query, origin: object, page_size: int, options: SearchOptions) -> SearchResult: ...


@dataclass
class PaginationState:
    page_size: int = 0
    page_index: int = 0
    total_matched: int = 0
    prefetch_margin: int = 5
    continuation_chain: dict[int, object] = field(default_factory=dict)
    next_continuation: object | None = None
    regex_fallback_error: str | None = None
    location: Location | None = None
    warning: str | None = None


class OffsetPaging:
    """Random-access pages addressed by page index with an exact total."""

    exact = True
    origin = 0

    def __init__(self, backend: SearchBackend) -> None:
        self.backend = backend

    def origin_for(self, state: PaginationState, page_index: int) -> object | None:
        return page_index

    def has_next(self, state: PaginationState) -> bool:
        if state.page_size <= 0 or state.total_matched <= 0:
            return False
        return state.page_index < max_page_index(state.total_matched, state.page_size)

    def record(self, state: PaginationState, page_index: int, result: SearchResult) -> None:
        state.next_continuation = None


class TokenPaging:
    """Forward-only pages addressed by opaque continuation tokens.

    Tokens for pages already reached are kept in ``continuation_chain`` so the
    controller can step back; a page never reached forward cannot be loaded.
    """

    exact = False
    origin = None

    def __init__(self, backend: SearchBackend) -> None:
        self.backend = backend

    def origin_for(self, state: PaginationState, page_index: int) -> object | None:
        if page_index not in state.continuation_chain:
            return None
        return state.continuation_chain[page_index]

    def has_next(self, state: PaginationState) -> bool:
        return state.page_size > 0 and state.next_continuation is not None

    def record(self, state: PaginationState, page_index: int, result: SearchResult) -> None:
        state.next_continuation = result.next_continuation
        if result.next_continuation is not None:
            state.continuation_chain[page_index + 1] = result.next_continuation


PaginationStrategy = OffsetPaging | TokenPaging


def max_page_index(total_matched: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return max(0, math.ceil(total_matched / page_size) - 1)


class PaginationController:
    """Current page of results for one query across heterogeneous backends."""

    def __init__(self, strategies: dict[str, PaginationStrategy], prefetch_margin: int = 5) -> None:
        self.strategies = strategies
        self.state = PaginationState(prefetch_margin=prefetch_margin)
        self.query: Query | None = None
        self.window: PageWindow = EMPTY_WINDOW
        self._options = SearchOptions()
        self._generation = 0

    @property
    def strategy(self) -> PaginationStrategy | None:
        if self.query is None:
            return None
        return self.strategies.get(self.query.backend_mode)

    @property
    def is_exact(self) -> bool:
        strategy = self.strategy
        return strategy is None or strategy.exact

    @property
    def generation(self) -> int:
        return self._generation

    def total_pages(self) -> int:
        if self.state.page_size <= 0:
            return 1
        return math.ceil(self.state.total_matched / self.state.page_size)

    def max_page_index(self) -> int:
        return max_page_index(self.state.total_matched, self.state.page_size)

    def has_next(self) -> bool:
        strategy = self.strategy
        return strategy is not None and strategy.has_next(self.state)

    def clear(self, query: Query, page_size: int) -> PageWindow:
        """Start ``query`` with an empty first page and no backend call."""
        self._generation += 1
        self.query = query
        self.state = PaginationState(page_size=max(0, page_size), prefetch_margin=self.state.prefetch_margin)
        self.window = EMPTY_WINDOW
        return self.window

    def reset(self, query: Query, page_size: int, options: SearchOptions | None = None) -> PageWindow:
        """Fetch page 0 of ``query``.

        Raises ``PageFetchError`` when the backend fails, leaving the previous
        query, state, and window untouched.
        """
        strategy = self.strategies.get(query.backend_mode)
        if strategy is None:
            raise PageFetchError(f"no backend for mode {query.backend_mode!r}")
        options = options or SearchOptions()
        if page_size <= 0:
            return self.clear(query, 0)
        self._generation += 1
        generation = self._generation
        try:
            result = strategy.backend.search(query, strategy.origin, page_size, options)
        except Exception as exc:
            raise PageFetchError(f"search failed: {exc}", exc) from exc
        if generation != self._generation:
            return self.window

        state = PaginationState(
            page_size=page_size,
            page_index=0,
            total_matched=result.total_matched,
            prefetch_margin=self.state.prefetch_margin,
            continuation_chain={0: strategy.origin},
            regex_fallback_error=result.regex_fallback_error,
            location=result.location,
            warning=result.warning,
        )
        strategy.record(state, 0, result)
        self.query = query
        self.state = state
        # Combo overrides only apply to the first page of a fresh query.
        self._options = replace(options, min_combo_override=None)
        self.window = self._make_window(result, 0)
        return self.window

    def next(self) -> PageWindow | None:
        """Load the following page, or return ``None`` when there is none."""
        strategy = self.strategy
        if strategy is None or not strategy.has_next(self.state):
            return None
        return self._load(self.state.page_index + 1)

    def previous(self) -> PageWindow | None:
        """Load the preceding page, or return ``None`` when unreachable."""
        if self.strategy is None or self.state.page_index <= 0:
            return None
        return self._load(self.state.page_index - 1)

    def _load(self, page_index: int) -> PageWindow | None:
        state = self.state
        strategy = self.strategy
        query = self.query
        if strategy is None or query is None or state.page_size <= 0:
            return None
        if strategy.exact:
            if state.total_matched <= 0:
                return None
            page_index = max(0, min(page_index, self.max_page_index()))
        origin = strategy.origin_for(state, page_index)
        if origin is None and page_index != 0:
            return None

        generation = self._generation
        try:
            result = strategy.backend.search(query, origin, state.page_size, self._options)
        except Exception as exc:
            raise PageFetchError(f"paginated search failed: {exc}", exc) from exc
        if generation != self._generation or not result.items:
            return None

        state.total_matched = result.total_matched
        state.regex_fallback_error = result.regex_fallback_error
        state.warning = result.warning
        strategy.record(state, page_index, result)
        state.page_index = page_index
        self.window = self._make_window(result, page_index)
        return self.window

    def _make_window(self, result: SearchResult, page_index: int) -> PageWindow:
        strategy = self.strategy
        total = result.total_matched if strategy is None or strategy.exact else APPROXIMATE
        return PageWindow(items=tuple(result.items), page_index=page_index, total_count=total)
