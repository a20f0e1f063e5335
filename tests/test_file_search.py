from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazypicker.backends import FileSearchBackend, InMemoryFileBackend, fuzzy_score, parse_location_suffix, rank_labels
from lazypicker.history import QueryHistory
from lazypicker.types import Location, Query, SearchOptions


class RankLabelsTests(unittest.TestCase):
    def test_substring_matches_rank_earlier_then_shorter(self) -> None:
        labels = ["xab.py", "ab.py", "b_a.py"]

        self.assertEqual(rank_labels("ab", labels), [(1, 9995), (0, 9944)])

    def test_case_is_ignored(self) -> None:
        self.assertEqual([idx for idx, _ in rank_labels("README", ["docs/readme.md"])], [0])

    def test_fuzzy_matching_only_without_substring_hits(self) -> None:
        ranked = rank_labels("mpy", ["main.py", "temp.txt"])

        self.assertEqual([idx for idx, _ in ranked], [0])

    def test_fuzzy_score_prefers_contiguous_boundary_matches(self) -> None:
        self.assertEqual(fuzzy_score("", "anything"), 0)
        self.assertIsNone(fuzzy_score("zz", "abc"))
        self.assertGreater(fuzzy_score("ab", "ab"), fuzzy_score("ab", "xaxb"))


class LocationSuffixTests(unittest.TestCase):
    def test_line_and_column_are_split_off(self) -> None:
        self.assertEqual(parse_location_suffix("main.py:12"), ("main.py", Location(12)))
        self.assertEqual(parse_location_suffix("main.py:12:3"), ("main.py", Location(12, 3)))

    def test_non_locations_are_left_alone(self) -> None:
        self.assertEqual(parse_location_suffix("main.py"), ("main.py", None))
        self.assertEqual(parse_location_suffix("main.py:0"), ("main.py:0", None))
        self.assertEqual(parse_location_suffix(":12"), (":12", None))
        self.assertEqual(parse_location_suffix("a:b"), ("a:b", None))


class ComboBoostTests(unittest.TestCase):
    def _backend(self, count: int) -> InMemoryFileBackend:
        history = QueryHistory(path=None)
        for _ in range(count):
            history.record_query_completion("ma", "/repo/main.py")
        return InMemoryFileBackend(["map.py", "main.py"], root=Path("/repo"), history=history)

    def test_repeat_use_at_threshold_is_boosted_to_the_top(self) -> None:
        result = self._backend(3).search(Query("ma"), 0, 10, SearchOptions())

        self.assertEqual(result.items[0].display_name, "main.py")
        self.assertEqual(result.items[0].combo_count, 3)
        self.assertEqual(result.items[0].combo_boost, 300)

    def test_repeat_use_below_threshold_is_not_boosted(self) -> None:
        result = self._backend(2).search(Query("ma"), 0, 10, SearchOptions())

        self.assertEqual(result.items[0].display_name, "map.py")
        self.assertEqual(result.items[1].combo_count, 2)
        self.assertEqual(result.items[1].combo_boost, 0)

    def test_override_lowers_the_threshold(self) -> None:
        result = self._backend(1).search(Query("ma"), 0, 10, SearchOptions(min_combo_override=0))

        self.assertEqual(result.items[0].display_name, "main.py")
        self.assertEqual(result.items[0].combo_boost, 100)


class InMemoryFileBackendTests(unittest.TestCase):
    def test_pages_by_offset_with_exact_total(self) -> None:
        backend = InMemoryFileBackend([f"f{idx}.py" for idx in range(5)], root=Path("/repo"))
        result = backend.search(Query(""), 1, 2, SearchOptions())

        self.assertEqual([item.display_name for item in result.items], ["f2.py", "f3.py"])
        self.assertEqual(result.total_matched, 5)
        self.assertEqual(backend.get_metadata().total_files, 5)

    def test_location_suffix_is_reported(self) -> None:
        backend = InMemoryFileBackend(["src/app.py"], root=Path("/repo"))
        result = backend.search(Query("app:7"), 0, 10, SearchOptions())

        self.assertEqual(result.location, Location(7))
        self.assertEqual(result.items[0].directory, "src")
        self.assertEqual(result.items[0].identifier, "/repo/src/app.py")


class FileScanTests(unittest.TestCase):
    def test_walk_scan_skips_hidden_entries(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "a").mkdir()
            (root / "a" / "z.py").write_text("", encoding="utf-8")
            (root / "b.txt").write_text("", encoding="utf-8")
            (root / ".hidden").mkdir()
            (root / ".hidden" / "x.py").write_text("", encoding="utf-8")
            (root / ".env").write_text("", encoding="utf-8")

            with mock.patch("lazypicker.backends.files.shutil.which", return_value=None):
                backend = FileSearchBackend(root)
                backend.start_scan()
                backend.wait_for_scan(5.0)

            progress = backend.get_scan_progress()
            result = backend.search(Query("py"), 0, 10, SearchOptions())

        self.assertFalse(progress.is_scanning)
        self.assertEqual(progress.scanned_count, 2)
        self.assertEqual([item.relative_path for item in result.items], ["a/z.py"])
        self.assertEqual(result.items[0].identifier, str(root.resolve() / "a" / "z.py"))

    def test_hidden_files_are_listed_when_requested(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / ".env").write_text("", encoding="utf-8")

            with mock.patch("lazypicker.backends.files.shutil.which", return_value=None):
                backend = FileSearchBackend(root, show_hidden=True)
                backend.start_scan()
                backend.wait_for_scan(5.0)

        self.assertEqual(backend.get_metadata().total_files, 1)


if __name__ == "__main__":
    unittest.main()
