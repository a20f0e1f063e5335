"""CLI argument and ``--print`` behavior tests.

Verifies how ``lazypicker.cli.main`` picks the project root, layers CLI
overrides over file config, and renders a one-shot frame.
"""

from __future__ import annotations

import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazypicker import cli
from lazypicker.config import PickerConfig
from lazypicker.text import strip_ansi


class CliDefaultPathTests(unittest.TestCase):
    def test_main_defaults_to_current_working_directory_when_no_path_arg(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            previous_cwd = Path.cwd()
            try:
                os.chdir(root)
                with mock.patch("lazypicker.cli.run_interactive") as run_interactive, mock.patch(
                    "lazypicker.cli.load_picker_config", return_value=PickerConfig()
                ), mock.patch("lazypicker.cli.QueryHistory") as history_cls:
                    cli.main([])
            finally:
                os.chdir(previous_cwd)

            run_interactive.assert_called_once()
            args, path, config, history = run_interactive.call_args.args
            self.assertEqual(path.resolve(), root)
            self.assertFalse(args.grep)
            self.assertEqual(config, PickerConfig())
            self.assertIs(history, history_cls.return_value)

    def test_no_history_skips_history_store(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, mock.patch("lazypicker.cli.run_interactive") as run_interactive, mock.patch(
            "lazypicker.cli.load_picker_config", return_value=PickerConfig()
        ):
            cli.main([tmp, "--no-history"])

        _args, _path, config, history = run_interactive.call_args.args
        self.assertIsNone(history)
        self.assertFalse(config.history_enabled)

    def test_missing_directory_exits(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SystemExit) as caught:
                cli.main([str(Path(tmp) / "nope")])

        self.assertIn("Not a directory", str(caught.exception))

    def test_dimensions_must_be_positive(self) -> None:
        with mock.patch("sys.stderr", new_callable=io.StringIO), self.assertRaises(SystemExit):
            cli.build_parser().parse_args(["--width", "0"])


class ConfigFromArgsTests(unittest.TestCase):
    def test_overrides_are_layered_on_file_config(self) -> None:
        args = cli.build_parser().parse_args(
            ["--grep", "--no-preview", "--prompt-position", "top", "--style", "native", "--theme", "ocean"]
        )
        config = cli.config_from_args(args, PickerConfig())

        self.assertEqual(config.title, "Grep")
        self.assertFalse(config.preview_enabled)
        self.assertEqual(config.layout.prompt_position, "top")
        self.assertEqual(config.preview_style, "native")
        self.assertEqual(config.theme, "ocean")

    def test_custom_title_survives_grep(self) -> None:
        args = cli.build_parser().parse_args(["--grep"])

        self.assertEqual(cli.config_from_args(args, PickerConfig(title="Mine")).title, "Mine")


class PrintFrameTests(unittest.TestCase):
    def _run(self, root: Path, *extra: str) -> tuple[str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with mock.patch("lazypicker.cli.load_picker_config", return_value=PickerConfig()), mock.patch(
            "lazypicker.backends.files.shutil.which", return_value=None
        ), mock.patch("sys.stdout", stdout), mock.patch("sys.stderr", stderr):
            cli.main([str(root), "--print", "--no-color", "--no-history", *extra])
        return stdout.getvalue(), stderr.getvalue()

    def test_print_renders_ranked_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "alpha.py").write_text("print('a')\n", encoding="utf-8")
            (root / "beta.py").write_text("print('b')\n", encoding="utf-8")
            output, _ = self._run(root, "--no-preview", "--width", "60", "--height", "12", "--query", "alp")

        lines = strip_ansi(output).splitlines()
        self.assertEqual(len(lines), 12)
        text = "\n".join(lines)
        self.assertIn("alpha.py", text)
        self.assertNotIn("beta.py", text)
        self.assertIn("> alp", text)
        self.assertIn("1/2", text)

    def test_print_exits_when_frame_is_too_small(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SystemExit) as caught:
                self._run(Path(tmp), "--width", "20", "--height", "5")

        self.assertEqual(caught.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
