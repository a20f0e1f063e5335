"""Editor launch helper for committed picker items.

Runs ``$EDITOR`` on the chosen file, jumping to its location when known.
Returns an error message string instead of raising for UI-friendly handling.
"""

from __future__ import annotations

import os
import shlex
import subprocess

from ..selection import CommitRequest

_VI_FAMILY = {"vi", "vim", "nvim", "gvim", "mvim"}
_VI_ACTION_FLAGS = {"split": "-o", "vsplit": "-O", "tab": "-p"}


def editor_command(editor: list[str], request: CommitRequest) -> list[str]:
    """Build the argv that opens ``request`` in ``editor``.

    Split and tab actions only map onto vi-family editors; other editors
    just open the file.
    """
    cmd = list(editor)
    if os.path.basename(cmd[0]) in _VI_FAMILY and request.action in _VI_ACTION_FLAGS:
        cmd.append(_VI_ACTION_FLAGS[request.action])
    if request.location is not None:
        cmd.append(f"+{request.location.line}")
    cmd.append(request.path)
    return cmd


def launch_editor(request: CommitRequest) -> str | None:
    editor_env = os.environ.get("EDITOR", "").strip()
    if not editor_env:
        return "Cannot edit: $EDITOR is not set."
    cmd = shlex.split(editor_env)
    if not cmd:
        return "Cannot edit: $EDITOR is empty."
    try:
        subprocess.run(editor_command(cmd, request), check=False)
    except Exception as exc:
        return f"Failed to launch editor: {exc}"
    return None
