"""Picker session: the single owner of query, page, cursor, and overlays.

Every public operation checks ``active`` first, so callbacks that fire after
``close`` (debounced previews, scan polls, late key events) do nothing.
"""

from __future__ import annotations

from .config import PickerConfig
from .history import HistoryCycler, QueryHistory
from .host import ERROR, INFO, WARN, Notice, PickerHost
from .layout import Geometry, compute_layout, layout_is_viable
from .pagination import OffsetPaging, PageFetchError, PaginationController, SearchBackend, TokenPaging
from .preview import (
    DEFAULT_TITLE,
    FILE_INFO_PLACEHOLDER,
    PreviewCoordinator,
    SourcePreview,
    file_info_lines,
    preview_title,
)
from .render import (
    ComboState,
    ListRenderContext,
    RenderedList,
    ScrollbarState,
    detect_combo,
    render_grep_empty_state,
    render_list,
    scrollbar_lines,
    scrollbar_thumb,
    status_line,
)
from .scan_progress import ScanProgressMonitor
from .scheduling import TaskScheduler
from .selection import COMMIT_ACTIONS, CommitRequest, SelectionSet, external_entries
from .suggestion import SuggestionFallback, SuggestionState
from .types import (
    CONTENT_MODE,
    FILES_MODE,
    Item,
    Location,
    Query,
    ScanProgress,
    SearchMetadata,
    SearchOptions,
    clamp_cursor,
)

EXHAUSTIVE_MATCH_LIMIT = 10_000


class PickerSession:
    """Interactive picker state bound to one host."""

    def __init__(
        self,
        host: PickerHost,
        backends: dict[str, SearchBackend],
        *,
        config: PickerConfig | None = None,
        scheduler: TaskScheduler | None = None,
        history: QueryHistory | None = None,
        preview: SourcePreview | None = None,
    ) -> None:
        self.host = host
        self.backends = backends
        self.config = config or PickerConfig()
        self.scheduler = scheduler or TaskScheduler()
        self.history = history
        self.preview = preview or SourcePreview(style=self.config.preview_style)

        strategies = {}
        if FILES_MODE in backends:
            strategies[FILES_MODE] = OffsetPaging(backends[FILES_MODE])
        if CONTENT_MODE in backends:
            strategies[CONTENT_MODE] = TokenPaging(backends[CONTENT_MODE])
        self.pagination = PaginationController(strategies, prefetch_margin=self.config.prefetch_margin)
        self.suggestions = SuggestionFallback(strategies)

        self.active = False
        self.mode = FILES_MODE
        self.query = ""
        self.cursor = 1
        self.location: Location | None = None
        self.geometry: Geometry | None = None
        self.combo = ComboState()
        self.scrollbar = ScrollbarState()
        self.suggestion = SuggestionState()
        self.selections = {FILES_MODE: SelectionSet(FILES_MODE), CONTENT_MODE: SelectionSet(CONTENT_MODE)}
        self.history_cycler = HistoryCycler()
        self.grep_mode = self.config.grep_modes[0] if self.config.grep_modes else "plain"
        self.debug = self.config.show_file_info
        self._force_combo = False
        self._reported_config_errors: set[str] = set()

        self.preview_coordinator = PreviewCoordinator(
            self.scheduler,
            show=self._show_preview,
            relocate=self._relocate_preview,
            clear=self._clear_preview,
            debounce_seconds=self.config.preview_debounce_ms / 1000.0,
            is_active=lambda: self.active,
        )
        self.scan_monitor = ScanProgressMonitor(
            self.scheduler,
            get_progress=self._scan_progress,
            on_progress=self.update_status,
            on_complete=self.update_results,
            is_active=lambda: self.active,
        )

    # -- state accessors -------------------------------------------------

    @property
    def items(self) -> tuple[Item, ...]:
        if self.suggestion.active:
            return self.suggestion.items
        return self.pagination.window.items

    @property
    def current_item(self) -> Item | None:
        items = self.items
        if not items or self.cursor > len(items):
            return None
        return items[self.cursor - 1]

    @property
    def prompt_position(self) -> str:
        return self.geometry.prompt_position if self.geometry is not None else "bottom"

    @property
    def page_size(self) -> int:
        if self.geometry is not None:
            return self.geometry.list.rect.height
        return self.config.max_results

    @property
    def preview_visible(self) -> bool:
        return self.config.preview_enabled and self.geometry is not None and self.geometry.preview is not None

    @property
    def item_mode(self) -> str:
        """Backend the visible items came from: the suggestion source while one is shown."""
        if self.suggestion.active and self.suggestion.source_backend is not None:
            return self.suggestion.source_backend
        return self.mode

    @property
    def selection(self) -> SelectionSet:
        return self.selections[self.item_mode]

    def _is_content_item(self) -> bool:
        return self.item_mode == CONTENT_MODE

    def _notify(self, message: str, level: str = INFO) -> None:
        self.host.notify(Notice(message, level))

    def _report_config_error(self, message: str) -> None:
        if message in self._reported_config_errors:
            return
        self._reported_config_errors.add(message)
        self._notify(f"Invalid layout config: {message}", WARN)

    def _scan_progress(self) -> ScanProgress:
        backend = self.backends.get(FILES_MODE)
        get_progress = getattr(backend, "get_scan_progress", None)
        return get_progress() if get_progress is not None else ScanProgress()

    def _metadata(self) -> SearchMetadata:
        backend = self.backends.get(FILES_MODE)
        get_metadata = getattr(backend, "get_metadata", None)
        return get_metadata() if get_metadata is not None else SearchMetadata()

    # -- lifecycle -------------------------------------------------------

    def open(self, mode: str = FILES_MODE, query: str = "") -> bool:
        """Show the picker in ``mode`` and run ``query``.

        Returns ``False`` when the terminal is too small to lay out the list.
        """
        if mode not in self.pagination.strategies:
            raise ValueError(f"no backend configured for mode {mode!r}")
        self.active = True
        self.mode = mode
        self.query = query
        self.cursor = 1
        self.location = None
        self.combo.reset()
        self.scrollbar.reset()
        self.suggestion.clear()
        for selection in self.selections.values():
            selection.clear()
        self.history_cycler.reset()
        self.preview_coordinator.forget()
        self.preview.clear()

        if not self._apply_layout():
            return False
        self.host.set_prompt(self.config.prompt, self.query)

        backend = self.backends.get(FILES_MODE)
        start_scan = getattr(backend, "start_scan", None)
        if start_scan is not None:
            start_scan()
        self.update_results()
        if self.active and mode == FILES_MODE and self._scan_progress().is_scanning:
            self.scan_monitor.start()
        return self.active

    def close(self) -> None:
        if not self.active:
            return
        self.active = False
        self.preview_coordinator.cancel()
        self.scan_monitor.stop()
        self.scheduler.cancel_all()
        self.scrollbar.reset()
        self.host.close()

    def _apply_layout(self) -> bool:
        width, height = self.host.size()
        geometry = compute_layout(width, height, self.config, on_invalid=self._report_config_error)
        if not layout_is_viable(geometry):
            self._notify("Terminal too small for the picker", WARN)
            self.close()
            return False
        self.geometry = geometry
        self.host.place_panels(geometry)
        return True

    def handle_resize(self) -> None:
        """Re-lay out panels for the current terminal size, keeping all state."""
        if not self.active:
            return
        if not self._apply_layout():
            return
        self.pagination.state.page_size = self.page_size
        self.host.set_prompt(self.config.prompt, self.query)
        self.render_list()
        if self.preview_visible:
            self.preview_coordinator.forget()
            self.refresh_preview()
        self.update_status()

    def toggle_debug(self) -> None:
        """Toggle score display and the file info panel in place."""
        if not self.active:
            return
        self.debug = not self.debug
        self.config = self.config.with_overrides(show_scores=self.debug, show_file_info=self.debug)
        self.handle_resize()

    # -- querying --------------------------------------------------------

    def update_query(self, text: str) -> None:
        """Replace the query text, as typed by the user, and search again."""
        if not self.active:
            return
        self.history_cycler.reset()
        self.update_results(text)

    def update_results(self, text: str | None = None) -> None:
        """Run ``text`` (default: the current query) from page 0 in the active mode.

        Query text, suggestions and the combo overlay only change once the
        backend answers; a failed search leaves the current page on screen.
        """
        if not self.active:
            return
        if text is None:
            text = self.query
        self.preview_coordinator.cancel()
        page_size = self.page_size
        query = Query(text, self.mode)
        options = SearchOptions(
            grep_mode=self.grep_mode,
            min_combo_override=0 if self._force_combo and self.mode == FILES_MODE else None,
        )

        try:
            if self.mode == CONTENT_MODE and not text:
                self.pagination.clear(query, page_size)
            else:
                self.pagination.reset(query, page_size, options)
        except PageFetchError as exc:
            self._notify(f"Search failed: {exc}", ERROR)
            self._force_combo = False
            self.host.set_prompt(self.config.prompt, self.query)
            self.render()
            return

        self.query = text
        self.host.set_prompt(self.config.prompt, self.query)
        self.combo.reset(1)
        self.suggestion.clear()
        state = self.pagination.state
        self.location = state.location if self.mode == FILES_MODE else None
        if state.warning:
            self._notify(state.warning, WARN)

        if not self.pagination.window.items and text:
            try:
                self.suggestion = self.suggestions.lookup(query, page_size)
            except PageFetchError as exc:
                self._notify(f"Suggestion search failed: {exc}", WARN)

        self.cursor = 1
        self.render()

    def cycle_grep_mode(self) -> None:
        """Advance content search to the next configured grep mode."""
        if not self.active or self.mode != CONTENT_MODE:
            return
        modes = self.config.grep_modes
        if len(modes) <= 1:
            return
        index = modes.index(self.grep_mode) if self.grep_mode in modes else -1
        self.grep_mode = modes[(index + 1) % len(modes)]
        if self.grep_mode != "regex":
            self.pagination.state.regex_fallback_error = None
        if self.query:
            self.update_results()
        else:
            self.update_status()

    def recall_query_from_history(self) -> None:
        """Replace the query with the next older history entry, wrapping around."""
        if not self.active:
            return
        query = None
        if self.history is not None:
            query = self.history_cycler.next_query(self.history, self.mode)
        if query is None:
            self._notify("No query history available", INFO)
            return
        if self.mode == FILES_MODE:
            self._force_combo = True
        self.update_results(query)

    # -- rendering -------------------------------------------------------

    def render(self) -> None:
        self.render_list()
        self.refresh_preview()
        self.update_status()

    def render_list(self) -> None:
        if not self.active or self.geometry is None:
            return
        rect = self.geometry.list.rect
        items = self.items
        self.cursor = clamp_cursor(self.cursor, len(items))

        combo = None
        if self.mode == FILES_MODE and not self.suggestion.active:
            force = self._force_combo or self.config.min_combo_count == 0
            combo = detect_combo(items, self.config.combo_boost_multiplier, force)
            if combo is not None and not self.combo.visible:
                combo = None
        self._force_combo = False

        if self.mode == CONTENT_MODE and not items and not self.query:
            rendered = render_grep_empty_state(rect.width, rect.height, self.prompt_position)
        else:
            rendered = render_list(
                ListRenderContext(
                    items=items,
                    cursor=self.cursor,
                    width=rect.width,
                    height=rect.height,
                    prompt_position=self.prompt_position,
                    mode=self.mode,
                    query=self.query,
                    combo=combo,
                    show_scores=self.config.show_scores,
                    is_selected=self.selection.is_selected,
                    suggestion_source=self.suggestion.source_backend if self.suggestion.active else None,
                )
            )
        self.host.set_panel("list", rendered)
        self._render_scrollbar()

    def _render_scrollbar(self) -> None:
        assert self.geometry is not None
        pages = self.pagination.total_pages()
        page_index = self.pagination.state.page_index
        show = self.scrollbar.should_show(
            exact=self.pagination.is_exact,
            suggestion=self.suggestion.active,
            pages=pages,
            page_index=page_index,
        )
        if not show:
            self.host.set_scrollbar(None)
            return
        height = self.geometry.scrollbar.height
        start, size = scrollbar_thumb(height, pages, page_index, self.prompt_position)
        self.host.set_scrollbar(scrollbar_lines(height, start, size), (start, size))

    def update_status(self, progress: ScanProgress | None = None) -> None:
        if not self.active:
            return
        if progress is None:
            progress = self._scan_progress()
        self.host.set_status(
            status_line(
                mode=self.mode,
                query=self.query,
                progress=progress,
                metadata=self._metadata(),
                grep_modes=self.config.grep_modes,
                grep_mode=self.grep_mode,
                cycle_key=self.config.cycle_mode_key,
                regex_fallback_error=self.pagination.state.regex_fallback_error if self.mode == CONTENT_MODE else None,
            )
        )

    # -- preview ---------------------------------------------------------

    def effective_location(self, item: Item) -> Location | None:
        if self._is_content_item() and item.location is not None:
            return item.location
        return self.location

    def refresh_preview(self) -> None:
        if not self.active or not self.preview_visible:
            return
        item = self.current_item
        self.preview_coordinator.refresh(item, None if item is None else self.effective_location(item))

    def _draw_preview(self) -> None:
        if self.geometry is None or self.geometry.preview is None:
            return
        rect = self.geometry.preview.rect
        self.host.set_panel("preview", self.preview.render(rect.width, rect.height))

    def _set_preview_title(self, item: Item, location: Location | None) -> None:
        if self.geometry is None or self.geometry.preview is None:
            return
        width = self.geometry.preview.rect.width
        self.host.set_title("preview", preview_title(item, location, width, with_line=self._is_content_item()))

    def _set_file_info(self, lines: list[str]) -> None:
        if self.geometry is None or self.geometry.file_info is None:
            return
        rect = self.geometry.file_info.rect
        padded = (lines + [""] * rect.height)[: rect.height]
        self.host.set_panel("file_info", RenderedList(lines=padded))

    def _show_preview(self, item: Item, location: Location | None) -> None:
        if not self.active:
            return
        self.preview.show(item, location)
        self._set_preview_title(item, location)
        self._set_file_info(file_info_lines(item, self.cursor))
        self._draw_preview()

    def _relocate_preview(self, item: Item, location: Location | None) -> None:
        if not self.active:
            return
        self.preview.relocate(location)
        if self._is_content_item():
            self._set_preview_title(item, location)
        self._draw_preview()

    def _clear_preview(self) -> None:
        if not self.active:
            return
        self.preview.clear()
        self.host.set_title("preview", DEFAULT_TITLE)
        self._set_file_info(list(FILE_INFO_PLACEHOLDER))
        self._draw_preview()

    def scroll_preview(self, direction: int) -> None:
        """Scroll the preview by half its height; ``direction`` is +1 or -1."""
        if not self.active or not self.preview_visible:
            return
        assert self.geometry is not None and self.geometry.preview is not None
        amount = self.geometry.preview.rect.height // 2
        self.preview.scroll_by(amount if direction > 0 else -amount)
        self._draw_preview()

    # -- navigation ------------------------------------------------------

    def _step_toward_end(self) -> bool:
        """Move to a worse item, loading the next page at the page edge.

        Returns ``True`` when a page load handled the move.
        """
        count = len(self.items)
        margin = self.pagination.state.prefetch_margin
        near_end = self.cursor >= count - margin
        at_last = self.cursor >= count
        if near_end and at_last and not self.suggestion.active and self.pagination.has_next():
            self.next_page()
            return True
        self.cursor = min(self.cursor + 1, count)
        return False

    def _step_toward_start(self) -> bool:
        margin = self.pagination.state.prefetch_margin
        at_first = self.cursor <= margin + 1 and self.cursor <= 1
        if at_first and not self.suggestion.active and self.pagination.state.page_index > 0:
            self.previous_page()
            return True
        self.cursor = max(self.cursor - 1, 1)
        return False

    def _after_cursor_move(self) -> None:
        self.render_list()
        self.refresh_preview()
        self.update_status()
        if self.combo.observe_cursor(self.cursor, self.pagination.state.page_size):
            self.render_list()

    def move_up(self) -> None:
        """Move the highlight one row up on screen."""
        if not self.active or not self.items:
            return
        if self.prompt_position == "bottom":
            handled = self._step_toward_end()
        else:
            handled = self._step_toward_start()
        if not handled:
            self._after_cursor_move()

    def move_down(self) -> None:
        """Move the highlight one row down on screen."""
        if not self.active or not self.items:
            return
        if self.prompt_position == "bottom":
            handled = self._step_toward_start()
        else:
            handled = self._step_toward_end()
        if not handled:
            self._after_cursor_move()

    def move_cursor(self, step: int) -> None:
        """Move by ``step`` rows on screen; positive steps move down."""
        for _ in range(abs(step)):
            if step > 0:
                self.move_down()
            else:
                self.move_up()

    def next_page(self) -> bool:
        if not self.active:
            return False
        try:
            window = self.pagination.next()
        except PageFetchError as exc:
            self._notify(f"Paginated search failed: {exc}", ERROR)
            return False
        if window is None:
            return False
        self.cursor = 1
        self._after_page_swap()
        return True

    def previous_page(self) -> bool:
        if not self.active:
            return False
        try:
            window = self.pagination.previous()
        except PageFetchError as exc:
            self._notify(f"Paginated search failed: {exc}", ERROR)
            return False
        if window is None:
            return False
        self.cursor = len(window.items)
        self._after_page_swap()
        return True

    def _after_page_swap(self) -> None:
        self.cursor = clamp_cursor(self.cursor, len(self.items))
        if self.pagination.state.warning:
            self._notify(self.pagination.state.warning, WARN)
        self.render()

    # -- selection and hand-off ------------------------------------------

    def toggle_selection(self) -> None:
        """Select or deselect the highlighted item; selecting steps forward."""
        if not self.active:
            return
        item = self.current_item
        if item is None:
            return
        selected = self.selection.toggle(item)
        self.render_list()
        if selected:
            if self.prompt_position == "bottom":
                self.move_up()
            else:
                self.move_down()

    def commit_selection(self, action: str = "edit") -> CommitRequest | None:
        """Close the picker and hand the highlighted item to the host."""
        if action not in COMMIT_ACTIONS:
            raise ValueError(f"unknown commit action {action!r}")
        if not self.active:
            return None
        item = self.current_item
        if item is None:
            return None

        location = self.effective_location(item)
        query = self.query
        mode = self.mode
        self.close()
        request = CommitRequest(
            path=item.identifier,
            relative_path=item.relative_path or item.identifier,
            location=location,
            action=action,
        )
        self.host.commit(request)

        if query and self.history is not None and self.config.history_enabled:
            if mode == CONTENT_MODE:
                self.history.record_content_query(query)
            else:
                self.history.record_query_completion(query, item.identifier)
        return request

    def send_all_selected_to_external_list(self) -> int:
        """Hand selected entries (or everything relevant) to the host list.

        Returns the number of entries sent.
        """
        if not self.active:
            return 0

        if self.item_mode == CONTENT_MODE:
            items = self.selection.items()
            if not items and self.suggestion.active:
                items = list(self.items)
            elif not items:
                items = self._exhaustive_content_items()
                if items is None:
                    return 0
                if not items:
                    self._notify("No matches to send", WARN)
                    return 0
            entries = external_entries(items, CONTENT_MODE)
            unit = "match" if len(entries) == 1 else "matches"
        else:
            items = self.selection.items() or [item for item in self.items if item.identifier]
            if not items:
                self._notify("No files to send", WARN)
                return 0
            entries = external_entries(items, FILES_MODE)
            unit = "file" if len(entries) == 1 else "files"

        self.close()
        self.host.send_external_list(entries)
        self._notify(f"Added {len(entries)} {unit} to the list", INFO)
        return len(entries)

    def _exhaustive_content_items(self) -> list[Item] | None:
        strategy = self.pagination.strategies.get(CONTENT_MODE)
        if strategy is None or not self.query:
            return []
        try:
            result = strategy.backend.search(
                Query(self.query, CONTENT_MODE),
                strategy.origin,
                EXHAUSTIVE_MATCH_LIMIT,
                SearchOptions(grep_mode=self.grep_mode),
            )
        except Exception as exc:
            self._notify(f"Search failed: {exc}", ERROR)
            return None
        return list(result.items)
