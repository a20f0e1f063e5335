"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens
(``UP``, ``CTRL_P``, ``SHIFT_TAB``, printable text, ...). Handles
ESC-sequence timing and multi-byte UTF-8 input.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_SINGLE_BYTE_KEYS = {
    b"\t": "TAB",
    b"\r": "ENTER",
    b"\n": "ENTER",
    b"\x08": "BACKSPACE",
    b"\x7f": "BACKSPACE",
}

_CSI_FINAL_KEYS = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
    b"Z": "SHIFT_TAB",
}

_CSI_TILDE_KEYS = {
    "1": "HOME",
    "3": "DELETE",
    "4": "END",
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
    "7": "HOME",
    "8": "END",
}

_MODIFIER_PREFIXES = {
    "2": "SHIFT_",
    "3": "ALT_",
    "5": "CTRL_",
    "9": "ALT_",
}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_text(fd: int, ch: bytes) -> str:
    data = ch
    for _ in range(_utf8_length(ch[0]) - 1):
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            break
        data += part
    return data.decode("utf-8", errors="replace")


def _decode_csi(fd: int) -> str:
    """Decode the remainder of an ``ESC [`` sequence."""
    params = b""
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return "ESC"
        if part.isalpha() or part == b"~":
            break
        params += part
        if len(params) > 16:
            return "ESC"

    fields = params.decode("ascii", errors="replace").split(";")
    modifier = _MODIFIER_PREFIXES.get(fields[1], "") if len(fields) > 1 else ""
    if part == b"~":
        name = _CSI_TILDE_KEYS.get(fields[0])
    else:
        name = _CSI_FINAL_KEYS.get(part)
    if name is None:
        return "ESC"
    return modifier + name


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key token, or ``""`` when ``timeout_ms`` elapses first."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""

        ch = os.read(fd, 1)
        if not ch:
            return ""

    if ch in _SINGLE_BYTE_KEYS:
        return _SINGLE_BYTE_KEYS[ch]
    if b"\x00" < ch < b"\x1b":
        return f"CTRL_{chr(ch[0] + 64)}"

    if ch != b"\x1b":
        return _decode_text(fd, ch)

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq == b"[":
        return _decode_csi(fd)
    if seq == b"O":
        final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if final is None:
            return "ESC"
        return _CSI_FINAL_KEYS.get(final, "ESC")
    _PENDING_BYTES.append(seq)
    return "ESC"
