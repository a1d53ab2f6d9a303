"""Terminal input source and output sink.

Provides the ``Terminal`` protocol the controller reads keys from and
draws to, and ``ProcessTerminal``, which drives the real tty in raw mode.

``next_key`` is the only place the editor blocks. Signals are turned
into wake-ups of that wait (via :func:`signal.set_wakeup_fd`), so resume
and resize callbacks always run between command cycles, never inside one.
"""

from __future__ import annotations

import logging
import os
import select
import signal
import sys
import termios
import time
import tty
from collections import deque
from typing import Callable, Protocol

from quill.keys import KeyId, parse_key
from quill.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"
_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"
_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"
_CLEAR_TO_EOL = "\x1b[K"
_MOVE_TO_FMT = "\x1b[{};{}H"
_BELL = "\x07"

# Idle gap after which a lone ESC / partial sequence is taken as typed
_ESC_TIMEOUT = 0.01


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O used by the editor."""

    def start(
        self,
        on_resume: Callable[[], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def next_key(self, timeout_ms: int | None = None) -> KeyId | None:
        """Block until a key arrives, or return ``None`` after *timeout_ms*."""
        ...

    def write(self, data: str) -> None: ...

    def flush(self) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def move_to(self, row: int, col: int) -> None: ...

    def clear_line(self) -> None: ...

    def clear_screen(self) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def beep(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's stdin/stdout.

    Manages raw mode via :mod:`tty` and :mod:`termios`, bracketed paste,
    the alternate screen, and SIGCONT/SIGWINCH handling.
    """

    def __init__(self) -> None:
        self._fd: int = -1
        self._original_termios: list | None = None
        self._keys: deque[KeyId] = deque()
        self._stdin_buffer = StdinBuffer()
        self._stdin_buffer.on_data(self._on_sequence)
        self._stdin_buffer.on_paste(self._on_paste)
        self._out: list[str] = []

        self._resume_handler: Callable[[], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._resume_pending = False
        self._resize_pending = False
        self._wakeup_r: int = -1
        self._wakeup_w: int = -1
        self._prev_wakeup_fd: int = -1
        self._prev_handlers: dict[int, object] = {}

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_resume: Callable[[], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enter raw mode and install signal handlers."""
        self._resume_handler = on_resume
        self._resize_handler = on_resize

        self._fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(self._fd)
        self._enter_raw_mode()

        self._wakeup_r, self._wakeup_w = os.pipe()
        os.set_blocking(self._wakeup_r, False)
        os.set_blocking(self._wakeup_w, False)
        self._prev_wakeup_fd = signal.set_wakeup_fd(self._wakeup_w)

        for signum, handler in (
            (signal.SIGCONT, self._on_sigcont),
            (signal.SIGWINCH, self._on_sigwinch),
        ):
            self._prev_handlers[signum] = signal.getsignal(signum)
            signal.signal(signum, handler)

        self.write(_ALT_SCREEN_ENABLE + _BRACKETED_PASTE_ENABLE)
        self.flush()

    def stop(self) -> None:
        """Restore terminal state and previous signal handlers."""
        self.write(_BRACKETED_PASTE_DISABLE + _SHOW_CURSOR + _ALT_SCREEN_DISABLE)
        self.flush()

        for signum, handler in self._prev_handlers.items():
            signal.signal(signum, handler)  # type: ignore[arg-type]
        self._prev_handlers.clear()

        if self._wakeup_w != -1:
            signal.set_wakeup_fd(self._prev_wakeup_fd)
            os.close(self._wakeup_r)
            os.close(self._wakeup_w)
            self._wakeup_r = self._wakeup_w = -1

        if self._original_termios is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._original_termios)
            self._original_termios = None

        self._stdin_buffer.clear()
        self._resume_handler = None
        self._resize_handler = None

    def _enter_raw_mode(self) -> None:
        tty.setraw(self._fd)

    # -- input --------------------------------------------------------------

    def next_key(self, timeout_ms: int | None = None) -> KeyId | None:
        """Return the next key, waiting at most *timeout_ms* (forever if None)."""
        deadline = None if timeout_ms is None else time.monotonic() + timeout_ms / 1000.0

        # Queued typeahead must not delay a pending resume or resize
        self._service_signals()
        while not self._keys:
            self._service_signals()

            if self._stdin_buffer.pending:
                wait: float | None = _ESC_TIMEOUT
            elif deadline is None:
                wait = None
            else:
                wait = max(0.0, deadline - time.monotonic())

            readable, _, _ = select.select([self._fd, self._wakeup_r], [], [], wait)

            if self._wakeup_r in readable:
                self._drain_wakeup()
            if self._fd in readable:
                self._read_stdin()
            elif not readable and self._stdin_buffer.pending:
                self._stdin_buffer.flush()

            if not self._keys and deadline is not None and time.monotonic() >= deadline:
                if self._stdin_buffer.pending:
                    self._stdin_buffer.flush()
                break

        return self._keys.popleft() if self._keys else None

    def _read_stdin(self) -> None:
        try:
            raw = os.read(self._fd, 4096)
        except OSError:
            return
        if not raw:
            raise EOFError("stdin closed")
        self._stdin_buffer.process(raw.decode("utf-8", errors="replace"))

    def _on_sequence(self, data: str) -> None:
        key = parse_key(data)
        if key is None:
            logger.debug("Ignoring unrecognised input %r", data)
            return
        self._keys.append(key)

    def _on_paste(self, data: str) -> None:
        for ch in data.replace("\r\n", "\n"):
            key = parse_key(ch)
            if key is not None:
                self._keys.append(key)

    # -- signals ------------------------------------------------------------

    def _on_sigcont(self, signum: int, frame: object) -> None:
        self._resume_pending = True

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        self._resize_pending = True

    def _drain_wakeup(self) -> None:
        try:
            while os.read(self._wakeup_r, 512):
                pass
        except BlockingIOError:
            pass

    def _service_signals(self) -> None:
        if self._resume_pending:
            self._resume_pending = False
            # Job control restored cooked mode while we were stopped
            self._enter_raw_mode()
            logger.debug("Resumed after suspend")
            if self._resume_handler is not None:
                self._resume_handler()
        if self._resize_pending:
            self._resize_pending = False
            if self._resize_handler is not None:
                self._resize_handler()

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        self._out.append(data)

    def flush(self) -> None:
        if not self._out:
            return
        data, self._out = "".join(self._out), []
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            pass

    def move_to(self, row: int, col: int) -> None:
        self.write(_MOVE_TO_FMT.format(row + 1, col + 1))

    def clear_line(self) -> None:
        self.write(_CLEAR_TO_EOL)

    def clear_screen(self) -> None:
        self.write(_CLEAR_SCREEN)

    def hide_cursor(self) -> None:
        self.write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(_SHOW_CURSOR)

    def beep(self) -> None:
        self.write(_BELL)
        self.flush()
