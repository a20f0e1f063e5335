"""Terminal front end: raw-mode control, key decoding, drawing, and the loop."""

from __future__ import annotations

from .app import dispatch_key, run_picker
from .editor import editor_command, launch_editor
from .keys import read_key
from .screen import Canvas, TerminalHost, compose_frame
from .terminal import TerminalController

__all__ = [
    "Canvas",
    "TerminalController",
    "TerminalHost",
    "compose_frame",
    "dispatch_key",
    "editor_command",
    "launch_editor",
    "read_key",
    "run_picker",
]
