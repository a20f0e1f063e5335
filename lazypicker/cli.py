"""Command-line front door for lazypicker.

Parses CLI options, builds the config, backends and session for a project
root, then either prints one rendered frame or runs the interactive picker.
"""

from __future__ import annotations

import argparse
import os
import shutil
import sys
from pathlib import Path

from .backends import ContentSearchBackend, FileSearchBackend
from .config import PREVIEW_POSITIONS, PROMPT_POSITIONS, PickerConfig, load_picker_config
from .history import QueryHistory
from .host import HeadlessHost
from .preview import SourcePreview
from .session import PickerSession
from .theme import available_theme_names, resolve_theme
from .types import CONTENT_MODE, FILES_MODE


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazypicker",
        description="Fuzzy-find files or grep file contents in a paginated terminal picker.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Project root. Defaults to current directory.")
    parser.add_argument("--grep", action="store_true", help="Search file contents instead of file names.")
    parser.add_argument("--query", default="", help="Initial query.")
    parser.add_argument("--print", action="store_true", help="Render one frame for the query and exit.")
    parser.add_argument("--width", type=_positive_int, default=None, help="Frame width for --print.")
    parser.add_argument("--height", type=_positive_int, default=None, help="Frame height for --print.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--style", default=None, help="Pygments style name for previews.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument("--no-preview", action="store_true", help="Hide the preview panel.")
    parser.add_argument("--no-history", action="store_true", help="Do not read or record query history.")
    parser.add_argument("--prompt-position", choices=PROMPT_POSITIONS, default=None)
    parser.add_argument("--preview-position", choices=PREVIEW_POSITIONS, default=None)
    parser.add_argument("--editor", action="store_true", help="Open the committed item in $EDITOR.")
    return parser


def config_from_args(args: argparse.Namespace, config: PickerConfig) -> PickerConfig:
    """Apply CLI overrides on top of the file config."""
    if args.no_preview:
        config = config.with_overrides(preview_enabled=False)
    if args.style:
        config = config.with_overrides(preview_style=args.style)
    if args.theme:
        config = config.with_overrides(theme=args.theme)
    if args.no_history:
        config = config.with_overrides(history_enabled=False)
    if args.grep and config.title == PickerConfig().title:
        config = config.with_overrides(title="Grep")
    if args.prompt_position:
        config = config.with_layout(prompt_position=args.prompt_position)
    if args.preview_position:
        config = config.with_layout(preview_position=args.preview_position)
    return config


def build_session(
    root: Path,
    host: HeadlessHost,
    config: PickerConfig,
    *,
    no_color: bool = False,
    history: QueryHistory | None = None,
) -> PickerSession:
    backends = {
        FILES_MODE: FileSearchBackend(
            root,
            history=history,
            combo_boost_multiplier=config.combo_boost_multiplier,
            min_combo_count=config.min_combo_count,
        ),
        CONTENT_MODE: ContentSearchBackend(
            root,
            max_matches=config.grep_max_matches,
            smart_case=config.grep_smart_case,
        ),
    }
    preview = SourcePreview(style=config.preview_style, colorize=not no_color)
    return PickerSession(host, backends, config=config, history=history, preview=preview)


def print_frame(args: argparse.Namespace, root: Path, config: PickerConfig, history: QueryHistory | None) -> None:
    from .tui.screen import compose_frame

    term = shutil.get_terminal_size((80, 24))
    width = args.width or term.columns
    height = args.height or term.lines
    host = HeadlessHost(width, height)
    session = build_session(root, host, config, no_color=args.no_color, history=history)
    mode = CONTENT_MODE if args.grep else FILES_MODE
    if not session.open(mode, args.query):
        for notice in host.notices:
            print(notice.message, file=sys.stderr)
        raise SystemExit(1)
    files = session.backends[FILES_MODE]
    if isinstance(files, FileSearchBackend):
        files.wait_for_scan()
        session.update_results()
    theme = resolve_theme(config.theme, no_color=args.no_color)
    lines = compose_frame(host, theme, width, height)
    sys.stdout.write("\n".join(line.rstrip() if args.no_color else line for line in lines) + "\n")


def run_interactive(args: argparse.Namespace, root: Path, config: PickerConfig, history: QueryHistory | None) -> None:
    from .tui import TerminalController, TerminalHost, launch_editor, run_picker

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise SystemExit("lazypicker needs an interactive terminal (use --print for a snapshot).")

    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    terminal = TerminalController(stdin_fd, stdout_fd)
    host = TerminalHost(resolve_theme(config.theme, no_color=args.no_color), write=terminal.write)
    session = build_session(root, host, config, no_color=args.no_color, history=history)
    mode = CONTENT_MODE if args.grep else FILES_MODE
    run_picker(session, host, terminal, stdin_fd, mode=mode, query=args.query)

    for notice in host.notices_after_close():
        print(notice.message, file=sys.stderr)
    for entries in host.external_lists:
        for entry in entries:
            print(entry.format())
    for request in host.commits:
        if args.editor:
            error = launch_editor(request)
            if error:
                raise SystemExit(error)
            continue
        location = request.location
        line = location.line if location is not None else 1
        column = location.column if location is not None and location.column else 1
        print(f"{os.path.relpath(request.path)}:{line}:{column}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run lazypicker on a project directory."""
    args = build_parser().parse_args(argv)
    root = Path(args.path or Path.cwd())
    if not root.is_dir():
        raise SystemExit(f"Not a directory: {root}")

    config = config_from_args(args, load_picker_config())
    history = QueryHistory() if config.history_enabled else None
    if args.print:
        print_frame(args, root, config, history)
        return
    run_interactive(args, root, config, history)


if __name__ == "__main__":
    main()
