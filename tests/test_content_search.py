"""Tests for ripgrep-backed content search.

ripgrep itself is replaced by a fake ``Popen`` that replays JSON lines, so
these cover parsing, grouping, paging, and error handling without rg.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazypicker.backends import BackendError, ContentSearchBackend
from lazypicker.backends.base import ContentCursor
from lazypicker.backends.content import MISSING_RG_WARNING, parse_grep_query
from lazypicker.types import CONTENT_MODE, Location, Query, SearchOptions


def _match(path: str, line: int, text: str, start: int = 0) -> str:
    return json.dumps(
        {
            "type": "match",
            "data": {
                "path": {"text": path},
                "lines": {"text": text + "\n"},
                "line_number": line,
                "submatches": [{"match": {"text": text}, "start": start, "end": start + 1}],
            },
        }
    )


class _FakeProcess:
    def __init__(self, lines: list[str], returncode: int, stderr: str) -> None:
        self.stdout = iter(line + "\n" for line in lines)
        self.returncode = returncode
        self._stderr = stderr
        self.killed = False

    def poll(self):
        return None

    def kill(self) -> None:
        self.killed = True

    def communicate(self):
        return "", self._stderr


class FakeRipgrep:
    """Stands in for ``subprocess.Popen``; each call consumes one scripted run."""

    def __init__(self, *runs: tuple[list[str], int, str]) -> None:
        self.runs = list(runs)
        self.commands: list[list[str]] = []
        self.processes: list[_FakeProcess] = []

    def __call__(self, cmd, **_kwargs):
        self.commands.append(list(cmd))
        lines, returncode, stderr = self.runs.pop(0)
        process = _FakeProcess(lines, returncode, stderr)
        self.processes.append(process)
        return process


def _query(text: str) -> Query:
    return Query(text, CONTENT_MODE)


class ContentSearchTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        which = mock.patch("lazypicker.backends.content.shutil.which", return_value="/usr/bin/rg")
        which.start()
        self.addCleanup(which.stop)
        self.addCleanup(self._tmp.cleanup)

    def patch_rg(self, fake: FakeRipgrep) -> FakeRipgrep:
        patcher = mock.patch("lazypicker.backends.content.subprocess.Popen", fake)
        patcher.start()
        self.addCleanup(patcher.stop)
        return fake


class ContentSearchBackendTests(ContentSearchTestCase):
    def test_matches_are_grouped_by_file_and_paged_by_cursor(self) -> None:
        fake = self.patch_rg(
            FakeRipgrep(
                (
                    [
                        json.dumps({"type": "begin", "data": {"path": {"text": "a.py"}}}),
                        _match("a.py", 1, "foo one"),
                        _match("src/b.py", 4, "  foo two", start=2),
                        _match("a.py", 9, "foo three"),
                        "not json",
                    ],
                    0,
                    "",
                )
            )
        )
        backend = ContentSearchBackend(self.root)

        first = backend.search(_query("foo"), None, 2, SearchOptions())
        self.assertEqual([item.location for item in first.items], [Location(1, 1), Location(9, 1)])
        self.assertEqual(first.items[0].identifier, str(self.root / "a.py"))
        self.assertEqual(first.items[0].line_content, "foo one")
        self.assertEqual(first.total_matched, 3)
        self.assertEqual(first.next_continuation, ContentCursor(1, 0))

        second = backend.search(_query("foo"), first.next_continuation, 2, SearchOptions())
        self.assertEqual(len(second.items), 1)
        self.assertEqual(second.items[0].relative_path, "src/b.py")
        self.assertEqual(second.items[0].directory, "src")
        self.assertEqual(second.items[0].location, Location(4, 3))
        self.assertIsNone(second.next_continuation)
        self.assertEqual(len(fake.commands), 1)

    def test_first_page_reruns_search(self) -> None:
        fake = self.patch_rg(FakeRipgrep(([_match("a.py", 1, "x")], 0, ""), ([], 1, "")))
        backend = ContentSearchBackend(self.root)
        backend.search(_query("x"), None, 10, SearchOptions())
        result = backend.search(_query("x"), None, 10, SearchOptions())

        self.assertEqual(len(fake.commands), 2)
        self.assertEqual(result.items, ())

    def test_plain_mode_searches_fixed_strings(self) -> None:
        fake = self.patch_rg(FakeRipgrep(([], 1, ""), ([], 1, ""), ([], 1, "")))
        backend = ContentSearchBackend(self.root)
        backend.search(_query("a.b"), None, 10, SearchOptions(grep_mode="plain"))
        backend.search(_query("a.b"), None, 10, SearchOptions(grep_mode="regex"))
        backend.search(_query("ab"), None, 10, SearchOptions(grep_mode="fuzzy"))

        plain, regex, fuzzy = fake.commands
        self.assertIn("--fixed-strings", plain)
        self.assertIn("--smart-case", plain)
        self.assertNotIn("--fixed-strings", regex)
        self.assertIn("--ignore-case", fuzzy)
        self.assertEqual(fuzzy[-2:], ["a.*?b", "."])

    def test_path_constraints_become_globs(self) -> None:
        fake = self.patch_rg(FakeRipgrep(([], 1, "")))
        ContentSearchBackend(self.root).search(_query("needle *.py /src/"), None, 10, SearchOptions())

        command = fake.commands[0]
        self.assertIn("*.py", command)
        self.assertIn("src/**", command)
        self.assertEqual(command[command.index("--regexp") + 1], "needle")

    def test_invalid_regex_falls_back_to_literal(self) -> None:
        fake = self.patch_rg(
            FakeRipgrep(
                ([], 2, "regex parse error:\n    foo(\n       ^\nerror: unclosed group\n"),
                ([_match("a.py", 2, "foo(1)")], 0, ""),
            )
        )
        result = ContentSearchBackend(self.root).search(_query("foo("), None, 10, SearchOptions(grep_mode="regex"))

        self.assertEqual(result.regex_fallback_error, "regex parse error:")
        self.assertEqual(len(result.items), 1)
        self.assertIn("--fixed-strings", fake.commands[1])

    def test_rg_failure_raises_backend_error(self) -> None:
        self.patch_rg(FakeRipgrep(([], 2, "rg: permission denied\n")))

        with self.assertRaises(BackendError) as caught:
            ContentSearchBackend(self.root).search(_query("x"), None, 10, SearchOptions())
        self.assertEqual(str(caught.exception), "rg: permission denied")

    def test_match_cap_stops_the_search(self) -> None:
        fake = self.patch_rg(
            FakeRipgrep(([_match("a.py", line, "x") for line in range(1, 6)], 0, ""))
        )
        result = ContentSearchBackend(self.root, max_matches=3).search(_query("x"), None, 10, SearchOptions())

        self.assertEqual(len(result.items), 3)
        self.assertTrue(fake.processes[0].killed)

    def test_paths_outside_root_are_ignored(self) -> None:
        self.patch_rg(FakeRipgrep(([_match("../secret.py", 1, "x"), _match("ok.py", 1, "x")], 0, "")))
        result = ContentSearchBackend(self.root).search(_query("x"), None, 10, SearchOptions())

        self.assertEqual([item.relative_path for item in result.items], ["ok.py"])

    def test_empty_pattern_does_not_run_rg(self) -> None:
        fake = self.patch_rg(FakeRipgrep())
        result = ContentSearchBackend(self.root).search(_query("   "), None, 10, SearchOptions())

        self.assertEqual(result.items, ())
        self.assertEqual(fake.commands, [])


class MissingRipgrepTests(unittest.TestCase):
    def test_missing_rg_warns_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, mock.patch(
            "lazypicker.backends.content.shutil.which", return_value=None
        ):
            backend = ContentSearchBackend(Path(tmp))
            first = backend.search(_query("x"), None, 10, SearchOptions())
            second = backend.search(_query("x"), None, 10, SearchOptions())

        self.assertEqual(first.warning, MISSING_RG_WARNING)
        self.assertEqual(first.items, ())
        self.assertIsNone(second.warning)


class ParseGrepQueryTests(unittest.TestCase):
    def test_constraint_tokens_are_split_out(self) -> None:
        parsed = parse_grep_query("foo bar *.py /src/ !test")

        self.assertEqual(parsed.pattern, "foo bar")
        self.assertEqual(parsed.globs, ("*.py", "src/**", "!*test*"))

    def test_constraints_alone_are_searched_literally(self) -> None:
        parsed = parse_grep_query("*.py")

        self.assertEqual(parsed.pattern, "*.py")
        self.assertEqual(parsed.globs, ())


if __name__ == "__main__":
    unittest.main()
