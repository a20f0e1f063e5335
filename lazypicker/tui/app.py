"""Interactive event loop for the terminal picker.

Each iteration picks up terminal resizes, runs due scheduler tasks, draws the
frame, and dispatches at most one key to the session.
"""

from __future__ import annotations

from collections.abc import Callable

from ..session import PickerSession
from .keys import read_key
from .screen import TerminalHost
from .terminal import TerminalController

MAX_IDLE_WAIT_MS = 200


def _delete_word(text: str) -> str:
    trimmed = text.rstrip()
    cut = max(trimmed.rfind(" "), trimmed.rfind("/")) + 1
    return trimmed[:cut]


KEY_ACTIONS: dict[str, Callable[[PickerSession], object]] = {
    "ESC": PickerSession.close,
    "CTRL_C": PickerSession.close,
    "ENTER": lambda session: session.commit_selection("edit"),
    "CTRL_S": lambda session: session.commit_selection("split"),
    "CTRL_V": lambda session: session.commit_selection("vsplit"),
    "CTRL_T": lambda session: session.commit_selection("tab"),
    "UP": PickerSession.move_up,
    "CTRL_P": PickerSession.move_up,
    "CTRL_K": PickerSession.move_up,
    "DOWN": PickerSession.move_down,
    "CTRL_N": PickerSession.move_down,
    "PAGE_DOWN": PickerSession.next_page,
    "PAGE_UP": PickerSession.previous_page,
    "CTRL_U": lambda session: session.scroll_preview(-1),
    "CTRL_D": lambda session: session.scroll_preview(1),
    "TAB": PickerSession.toggle_selection,
    "SHIFT_TAB": PickerSession.cycle_grep_mode,
    "CTRL_Q": PickerSession.send_all_selected_to_external_list,
    "CTRL_UP": PickerSession.recall_query_from_history,
    "CTRL_R": PickerSession.recall_query_from_history,
    "CTRL_G": PickerSession.toggle_debug,
}


def dispatch_key(session: PickerSession, key: str) -> bool:
    """Apply one key token to ``session``; returns whether it was handled."""
    action = KEY_ACTIONS.get(key)
    if action is not None:
        action(session)
        return True
    if key == "BACKSPACE":
        if session.query:
            session.update_query(session.query[:-1])
        return True
    if key == "CTRL_W":
        if session.query:
            session.update_query(_delete_word(session.query))
        return True
    if len(key) == 1 and key.isprintable():
        session.update_query(session.query + key)
        return True
    return False


def run_picker(
    session: PickerSession,
    host: TerminalHost,
    terminal: TerminalController,
    stdin_fd: int,
    *,
    mode: str,
    query: str = "",
) -> None:
    """Run the picker until the session closes."""
    with terminal.raw_mode():
        host.invalidate()
        if not session.open(mode, query):
            return
        last_size = host.size()
        while session.active:
            size = host.size()
            if size != last_size:
                last_size = size
                host.invalidate()
                session.handle_resize()
                if not session.active:
                    break
            host.draw()

            due_in = session.scheduler.next_due_in()
            timeout_ms = MAX_IDLE_WAIT_MS
            if due_in is not None:
                timeout_ms = min(timeout_ms, max(0, int(due_in * 1000)))
            key = read_key(stdin_fd, timeout_ms=timeout_ms)
            session.scheduler.run_due()
            if key:
                dispatch_key(session, key)
