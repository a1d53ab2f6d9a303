"""Screen surfaces: the editing window and the echo area.

Surfaces render themselves into lines and remember what they last wrote,
so ``redisplay`` only rewrites rows that changed while ``redraw`` repaints
everything. ``Screen.update`` positions the hardware cursor in the
focused surface and flushes the terminal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from quill.utils import printable, take_columns, truncate_to_width, visible_width

if TYPE_CHECKING:
    from quill.buffer import Buffer
    from quill.terminal import Terminal

_REVERSE = "\x1b[7m"
_RESET = "\x1b[0m"


class _Surface:
    """Common row bookkeeping for a rectangular area of the terminal."""

    def __init__(self, terminal: Terminal, top: int, height: int) -> None:
        self.terminal = terminal
        self.top = top
        self.height = height
        self._previous: list[str] = []

    def render(self, width: int) -> list[str]:
        raise NotImplementedError

    def cursor_position(self, width: int) -> tuple[int, int]:
        raise NotImplementedError

    def redisplay(self) -> None:
        """Write the rows that changed since the last redisplay."""
        width = self.terminal.columns
        lines = self.render(width)
        lines = (lines + [""] * self.height)[: self.height]
        for i, line in enumerate(lines):
            if i < len(self._previous) and self._previous[i] == line:
                continue
            self.terminal.move_to(self.top + i, 0)
            self.terminal.write(line)
            self.terminal.clear_line()
        self._previous = lines

    def redraw(self) -> None:
        """Forget what is on screen and repaint every row."""
        self._previous = []
        self.redisplay()


class Window(_Surface):
    """Displays a buffer with a mode line on its last row."""

    def __init__(self, terminal: Terminal, buffer: Buffer, top: int, height: int) -> None:
        super().__init__(terminal, top, height)
        self.buffer = buffer
        self._scroll = 0

    def _text_rows(self) -> int:
        return max(self.height - 1, 0)

    def _adjust_scroll(self) -> None:
        line, _ = self.buffer.current_line_and_column()
        rows = self._text_rows()
        if line < self._scroll:
            self._scroll = line
        elif rows and line >= self._scroll + rows:
            self._scroll = line - rows + 1

    def render(self, width: int) -> list[str]:
        self._adjust_scroll()
        rows = self._text_rows()
        text_lines = self.buffer.text.split("\n")[self._scroll : self._scroll + rows]
        lines = [truncate_to_width(printable(l), width) for l in text_lines]
        lines += [""] * (rows - len(lines))

        line, column = self.buffer.current_line_and_column()
        flag = "**" if self.buffer.modified else "--"
        mode = f"-{flag}- {self.buffer.name}  ({line + 1},{column})"
        lines.append(_REVERSE + truncate_to_width(mode, width, pad=True) + _RESET)
        return lines

    def cursor_position(self, width: int) -> tuple[int, int]:
        self._adjust_scroll()
        line, column = self.buffer.current_line_and_column()
        current = self.buffer.text.split("\n")[line]
        col = visible_width(printable(current[:column]))
        return self.top + line - self._scroll, min(col, max(width - 1, 0))


class EchoArea(_Surface):
    """The bottom line: transient messages and the minibuffer prompt.

    A message, when set, hides the prompt until it is cleared.
    """

    def __init__(self, terminal: Terminal, top: int) -> None:
        super().__init__(terminal, top, 1)
        self.buffer: Buffer | None = None
        self.message: str | None = None
        self.prompt: str | None = None

    def show(self, message: str) -> None:
        self.message = message

    def clear_message(self) -> None:
        self.message = None

    def clear(self) -> None:
        """Drop the message, the prompt and the minibuffer contents."""
        self.message = None
        self.prompt = None
        if self.buffer is not None:
            self.buffer.clear()

    def _line(self) -> str:
        if self.message is not None:
            return self.message
        if self.prompt is not None:
            contents = self.buffer.text if self.buffer is not None else ""
            return self.prompt + contents
        return ""

    def render(self, width: int) -> list[str]:
        return [truncate_to_width(printable(self._line()), width)]

    def cursor_position(self, width: int) -> tuple[int, int]:
        if self.message is None and self.prompt is not None and self.buffer is not None:
            before = self.prompt + self.buffer.text[: self.buffer.point]
        else:
            before = self._line()
        col = visible_width(take_columns(printable(before), max(width - 1, 0)))
        return self.top, col


Surface = Union[Window, EchoArea]


class Screen:
    """The terminal split into one editing window above the echo area."""

    def __init__(self, terminal: Terminal, buffer: Buffer) -> None:
        self.terminal = terminal
        rows = max(terminal.rows, 2)
        self.window = Window(terminal, buffer, 0, rows - 1)
        self.echo_area = EchoArea(terminal, rows - 1)
        self.current_window: Surface = self.window

    @property
    def windows(self) -> list[Window]:
        return [self.window]

    def resize(self) -> None:
        rows = max(self.terminal.rows, 2)
        self.window.height = rows - 1
        self.echo_area.top = rows - 1
        self.redraw()

    def redraw(self) -> None:
        """Clear the terminal and repaint every surface."""
        self.terminal.hide_cursor()
        self.terminal.clear_screen()
        self.echo_area.redraw()
        for window in self.windows:
            window.redraw()
        self.update()

    def update(self) -> None:
        """Place and show the cursor in the focused surface, then flush output."""
        row, col = self.current_window.cursor_position(self.terminal.columns)
        self.terminal.move_to(row, col)
        self.terminal.show_cursor()
        self.terminal.flush()

    def beep(self) -> None:
        self.terminal.beep()
