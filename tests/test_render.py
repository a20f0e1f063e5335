from __future__ import annotations

import unittest

from lazypicker.render import (
    ComboMatch,
    ComboState,
    ListRenderContext,
    ScrollbarState,
    detect_combo,
    render_grep_empty_state,
    render_list,
    scrollbar_lines,
    scrollbar_thumb,
    status_line,
)
from lazypicker.render.list_view import NO_RESULTS_TEXT, SELECTED_MARKER, SUGGESTION_HEADERS
from lazypicker.render.scrollbar import THUMB_GLYPH, TRACK_GLYPH
from lazypicker.render.status import REGEX_FALLBACK_LABEL
from lazypicker.types import CONTENT_MODE, FILES_MODE, Item, Location, ScanProgress, SearchMetadata


def _file(relative_path: str, **fields: object) -> Item:
    directory, _, name = relative_path.rpartition("/")
    return Item(
        identifier=f"/repo/{relative_path}",
        display_name=name,
        relative_path=relative_path,
        directory=directory,
        **fields,
    )


ITEMS = (_file("src/alpha.py"), _file("src/beta.py"), _file("gamma.py"))


def _styles(rendered, row: int) -> list[str]:
    return [styled.style for styled in rendered.highlights if styled.row == row]


class RenderListTests(unittest.TestCase):
    def test_top_prompt_draws_best_item_first(self) -> None:
        rendered = render_list(ListRenderContext(items=ITEMS, cursor=1, width=30, height=5, prompt_position="top"))

        self.assertEqual(len(rendered.lines), 5)
        self.assertEqual(rendered.lines[0].rstrip(), "  alpha.py src")
        self.assertEqual(rendered.lines[2].rstrip(), "  gamma.py")
        self.assertEqual(rendered.lines[4].strip(), "")
        self.assertEqual(rendered.cursor_row, 0)
        self.assertIn("cursor", _styles(rendered, 0))
        self.assertIn("directory", _styles(rendered, 0))

    def test_bottom_prompt_draws_best_item_last(self) -> None:
        rendered = render_list(ListRenderContext(items=ITEMS, cursor=2, width=30, height=5, prompt_position="bottom"))

        self.assertEqual(rendered.lines[0].strip(), "")
        self.assertEqual(rendered.lines[2].rstrip(), "  gamma.py")
        self.assertEqual(rendered.lines[4].rstrip(), "  alpha.py src")
        self.assertEqual(rendered.cursor_row, 3)
        self.assertEqual(rendered.item_rows, {1: 4, 2: 3, 3: 2})

    def test_combo_header_sits_above_its_item_in_both_directions(self) -> None:
        combo = ComboMatch(item_index=1, count=4, header="Last match (x4 combo)")
        for position, header_row in (("top", 0), ("bottom", 3)):
            rendered = render_list(
                ListRenderContext(items=ITEMS, cursor=1, width=30, height=5, prompt_position=position, combo=combo)
            )
            self.assertEqual(rendered.lines[header_row].rstrip(), "Last match (x4 combo)")
            self.assertEqual(rendered.lines[header_row + 1].rstrip(), "  alpha.py src")
            self.assertEqual(_styles(rendered, header_row + 1)[:2], ["combo_item", "cursor"])

    def test_selected_items_carry_marker(self) -> None:
        selected = {ITEMS[1].identifier}
        rendered = render_list(
            ListRenderContext(
                items=ITEMS,
                cursor=1,
                width=30,
                height=3,
                prompt_position="top",
                is_selected=lambda item: item.identifier in selected,
            )
        )

        self.assertTrue(rendered.lines[1].startswith(SELECTED_MARKER + " beta.py"))
        self.assertIn("selected_marker", _styles(rendered, 1))

    def test_content_rows_show_location_then_line(self) -> None:
        item = _file("src/alpha.py", location=Location(12, 5), line_content="    def run(self):")
        rendered = render_list(
            ListRenderContext(items=(item,), cursor=1, width=50, height=1, prompt_position="top", mode=CONTENT_MODE)
        )

        self.assertEqual(rendered.lines[0].rstrip(), "  src/alpha.py:12:5 def run(self):")
        self.assertIn("location", _styles(rendered, 0))

    def test_scores_are_right_aligned_when_enabled(self) -> None:
        item = _file("gamma.py", score=42)
        rendered = render_list(
            ListRenderContext(items=(item,), cursor=1, width=30, height=1, prompt_position="top", show_scores=True)
        )

        self.assertTrue(rendered.lines[0].endswith("  42"))
        self.assertEqual(len(rendered.lines[0]), 30)

    def test_empty_result_for_query_says_no_results(self) -> None:
        rendered = render_list(ListRenderContext(items=(), cursor=1, width=20, height=3, prompt_position="bottom", query="zzz"))

        self.assertEqual(rendered.lines[2].strip(), NO_RESULTS_TEXT)
        self.assertIsNone(rendered.cursor_row)

    def test_suggestion_rows_get_a_header(self) -> None:
        rendered = render_list(
            ListRenderContext(
                items=ITEMS,
                cursor=1,
                width=60,
                height=6,
                prompt_position="top",
                mode=CONTENT_MODE,
                query="alpha",
                suggestion_source=FILES_MODE,
            )
        )

        self.assertEqual(rendered.lines[0].rstrip(), SUGGESTION_HEADERS[FILES_MODE])
        self.assertEqual(rendered.lines[1].rstrip(), "  alpha.py src")

    def test_long_pages_scroll_to_keep_cursor_visible(self) -> None:
        items = tuple(_file(f"file{idx:02}.py") for idx in range(10))
        rendered = render_list(ListRenderContext(items=items, cursor=9, width=20, height=4, prompt_position="top"))

        self.assertEqual(len(rendered.lines), 4)
        self.assertEqual(rendered.cursor_row, 3)
        self.assertEqual(rendered.lines[3].rstrip(), "  file08.py")


class ComboTests(unittest.TestCase):
    def test_detects_first_boosted_item(self) -> None:
        items = (_file("a.py"), _file("b.py", combo_count=3, combo_boost=300))
        combo = detect_combo(items, boost_multiplier=100)

        self.assertEqual(combo, ComboMatch(item_index=2, count=3, header="Last match (x3 combo)"))

    def test_force_accepts_unboosted_repeat_use(self) -> None:
        items = (_file("a.py", combo_count=1),)

        self.assertIsNone(detect_combo(items, boost_multiplier=100))
        self.assertEqual(detect_combo(items, boost_multiplier=100, force=True).item_index, 1)

    def test_overlay_hides_once_cursor_leaves_half_page(self) -> None:
        state = ComboState()

        self.assertFalse(state.observe_cursor(10, 20))
        self.assertTrue(state.observe_cursor(12, 20))
        self.assertFalse(state.visible)
        self.assertFalse(state.observe_cursor(1, 20))
        self.assertFalse(state.visible)

        state.reset()
        self.assertTrue(state.visible)


class ScrollbarTests(unittest.TestCase):
    def test_thumb_positions(self) -> None:
        self.assertEqual(scrollbar_thumb(10, 3, 0, "top"), (0, 3))
        self.assertEqual(scrollbar_thumb(10, 3, 2, "top"), (7, 3))
        self.assertEqual(scrollbar_thumb(10, 3, 0, "bottom"), (7, 3))
        self.assertEqual(scrollbar_thumb(10, 3, 2, "bottom"), (0, 3))
        self.assertEqual(scrollbar_thumb(4, 100, 50, "top"), (1, 1))

    def test_thumb_stays_inside_track(self) -> None:
        for pages in (1, 2, 7, 40):
            for page_index in range(pages):
                start, size = scrollbar_thumb(9, pages, page_index, "bottom")
                self.assertGreaterEqual(start, 0)
                self.assertGreaterEqual(size, 1)
                self.assertLessEqual(start + size, 9)

    def test_lines_mark_thumb_rows(self) -> None:
        self.assertEqual(scrollbar_lines(4, 1, 2), [TRACK_GLYPH, THUMB_GLYPH, THUMB_GLYPH, TRACK_GLYPH])

    def test_hidden_until_first_page_is_left(self) -> None:
        state = ScrollbarState()

        self.assertFalse(state.should_show(exact=True, suggestion=False, pages=3, page_index=0))
        self.assertTrue(state.should_show(exact=True, suggestion=False, pages=3, page_index=1))
        self.assertTrue(state.should_show(exact=True, suggestion=False, pages=3, page_index=0))
        self.assertFalse(state.should_show(exact=True, suggestion=False, pages=1, page_index=0))
        self.assertFalse(state.should_show(exact=False, suggestion=False, pages=3, page_index=1))
        self.assertFalse(state.should_show(exact=True, suggestion=True, pages=3, page_index=1))

        state.reset()
        self.assertFalse(state.should_show(exact=True, suggestion=False, pages=3, page_index=0))


class StatusLineTests(unittest.TestCase):
    def _files_status(self, query: str, progress: ScanProgress | None = None):
        return status_line(
            mode=FILES_MODE,
            query=query,
            progress=progress,
            metadata=SearchMetadata(total_files=120, total_matched=7),
            grep_modes=("plain", "regex"),
            grep_mode="plain",
            cycle_key="S-Tab",
            regex_fallback_error=None,
        )

    def test_file_status_variants(self) -> None:
        self.assertEqual(self._files_status("a", ScanProgress(True, 55)).text, "Indexing files 55")
        self.assertEqual(self._files_status("a").text, "120")
        self.assertEqual(self._files_status("ab").text, "7/120")

    def test_content_status_shows_mode_only_with_a_choice(self) -> None:
        kwargs = dict(
            mode=CONTENT_MODE,
            query="x",
            progress=None,
            metadata=SearchMetadata(),
            cycle_key="S-Tab",
            regex_fallback_error=None,
        )
        self.assertIsNone(status_line(grep_modes=("plain",), grep_mode="plain", **kwargs))
        status = status_line(grep_modes=("plain", "regex"), grep_mode="regex", **kwargs)
        self.assertEqual(status.text, "S-Tab regex")
        self.assertEqual(status.style, "grep_regex")

    def test_regex_fallback_warning_wins(self) -> None:
        status = status_line(
            mode=CONTENT_MODE,
            query="(",
            progress=None,
            metadata=SearchMetadata(),
            grep_modes=("plain", "regex"),
            grep_mode="regex",
            cycle_key="S-Tab",
            regex_fallback_error="regex parse error: unclosed group",
        )

        self.assertEqual(status.text, REGEX_FALLBACK_LABEL)
        self.assertEqual(status.style, "warning")


class GrepEmptyStateTests(unittest.TestCase):
    def test_tips_hug_a_bottom_prompt(self) -> None:
        rendered = render_grep_empty_state(50, 10, "bottom")

        self.assertEqual(len(rendered.lines), 10)
        self.assertEqual(rendered.lines[3].strip(), "Start typing to search file contents...")
        self.assertEqual(rendered.lines[-1].strip(), "")
        self.assertEqual({styled.style for styled in rendered.highlights}, {"tip"})
        self.assertEqual(len(rendered.highlights), 5)

    def test_tips_start_at_top_for_top_prompt(self) -> None:
        rendered = render_grep_empty_state(50, 10, "top")

        self.assertEqual(rendered.lines[1].strip(), "Start typing to search file contents...")
        self.assertEqual(rendered.highlights[0].row, 1)


if __name__ == "__main__":
    unittest.main()
