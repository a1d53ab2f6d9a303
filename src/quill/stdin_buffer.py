"""StdinBuffer buffers raw terminal input and emits complete sequences.

Reads from stdin can split an escape sequence across chunks, and a bare
``ESC`` is indistinguishable from the start of one until more input (or
silence) arrives. The buffer holds incomplete sequences until they are
completed or the owner calls :meth:`StdinBuffer.flush` after an idle gap.
"""

from __future__ import annotations

import re
from typing import Callable, Literal

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

SequenceStatus = Literal["complete", "incomplete", "not-escape"]

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def _sequence_status(data: str) -> SequenceStatus:
    """Classify *data* as a complete or incomplete escape sequence."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    introducer = data[1]

    # CSI: ESC [ params final
    if introducer == "[":
        if data.startswith(f"{ESC}[M"):
            # X10 mouse report carries three raw bytes
            return "complete" if len(data) >= 6 else "incomplete"
        if len(data) < 3:
            return "incomplete"
        payload = data[2:]
        if not 0x40 <= ord(payload[-1]) <= 0x7E:
            return "incomplete"
        if payload.startswith("<") and not _SGR_MOUSE_RE.match(payload):
            return "incomplete"
        return "complete"

    # OSC / DCS / APC: terminated by BEL or ST
    if introducer in "]P_":
        if data.endswith(f"{ESC}\\") or (introducer == "]" and data.endswith("\x07")):
            return "complete"
        return "incomplete"

    # SS3: ESC O <char>
    if introducer == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # Meta key: ESC <char>
    return "complete"


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences and an incomplete remainder."""
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while True:
            if end > len(buffer):
                return sequences, buffer[pos:]
            if _sequence_status(buffer[pos:end]) != "incomplete":
                break
            end += 1
        sequences.append(buffer[pos:end])
        pos = end

    return sequences, ""


class StdinBuffer:
    """Accumulates stdin chunks and emits complete key sequences.

    Bracketed paste content is collected until the paste terminator and
    delivered through the paste callback in one piece.
    """

    def __init__(self) -> None:
        self._buffer: str = ""
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete sequences."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set callback for paste content."""
        self._on_paste = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    @property
    def pending(self) -> bool:
        """``True`` while an incomplete sequence is held back."""
        return bool(self._buffer)

    def process(self, data: str) -> None:
        """Feed a chunk of input."""
        if self._paste_mode:
            self._paste_buffer += data
            self._finish_paste()
            return

        self._buffer += data

        start = self._buffer.find(BRACKETED_PASTE_START)
        if start != -1:
            sequences, _ = split_sequences(self._buffer[:start])
            for sequence in sequences:
                self._emit_data(sequence)
            self._paste_mode = True
            self._paste_buffer = self._buffer[start + len(BRACKETED_PASTE_START):]
            self._buffer = ""
            self._finish_paste()
            return

        sequences, self._buffer = split_sequences(self._buffer)
        for sequence in sequences:
            self._emit_data(sequence)

    def _finish_paste(self) -> None:
        end = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end == -1:
            return
        content = self._paste_buffer[:end]
        remaining = self._paste_buffer[end + len(BRACKETED_PASTE_END):]
        self._paste_mode = False
        self._paste_buffer = ""
        self._emit_paste(content)
        if remaining:
            self.process(remaining)

    def flush(self) -> None:
        """Emit whatever is held back as a single sequence."""
        if not self._buffer:
            return
        data, self._buffer = self._buffer, ""
        self._emit_data(data)

    def clear(self) -> None:
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""
