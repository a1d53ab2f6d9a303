"""Text buffers and the buffer list.

Deliberately small: a buffer is a string with a point, enough for the
minibuffer and for basic editing in the main window.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from urllib.parse import quote

from quill.errors import EditorError
from quill.keymap import Keymap

logger = logging.getLogger(__name__)


class Buffer:
    """A named piece of text with a cursor position (*point*)."""

    def __init__(self, name: str, text: str = "", *, keymap: Keymap | None = None) -> None:
        self.name = name
        self.keymap = keymap
        self.file_name: str | None = None
        self.modified = False
        self._text = text
        self._point = 0

    def __repr__(self) -> str:
        return f"Buffer({self.name!r})"

    # -- contents -----------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    def __str__(self) -> str:
        return self._text

    @property
    def point(self) -> int:
        return self._point

    @point.setter
    def point(self, value: int) -> None:
        self._point = max(0, min(value, len(self._text)))

    # -- editing primitives -------------------------------------------------

    def insert(self, s: str) -> None:
        self._text = self._text[: self._point] + s + self._text[self._point :]
        self._point += len(s)
        self.modified = True

    def delete_char(self, n: int = 1) -> None:
        """Delete *n* characters after point (before it when *n* < 0)."""
        if n >= 0:
            if self._point + n > len(self._text):
                raise EditorError("End of buffer")
            self._text = self._text[: self._point] + self._text[self._point + n :]
        else:
            if self._point + n < 0:
                raise EditorError("Beginning of buffer")
            start = self._point + n
            self._text = self._text[:start] + self._text[self._point :]
            self._point = start
        if n:
            self.modified = True

    def forward_char(self, n: int = 1) -> None:
        target = self._point + n
        if target > len(self._text):
            raise EditorError("End of buffer")
        if target < 0:
            raise EditorError("Beginning of buffer")
        self._point = target

    def beginning_of_line(self) -> None:
        self._point = self._text.rfind("\n", 0, self._point) + 1

    def end_of_line(self) -> None:
        end = self._text.find("\n", self._point)
        self._point = len(self._text) if end == -1 else end

    def replace(self, s: str) -> None:
        """Replace the whole contents with *s*, leaving point at the end."""
        self._text = s
        self._point = len(s)
        self.modified = True

    def clear(self) -> None:
        self._text = ""
        self._point = 0

    # -- position helpers ---------------------------------------------------

    def current_line_and_column(self) -> tuple[int, int]:
        line = self._text.count("\n", 0, self._point)
        column = self._point - (self._text.rfind("\n", 0, self._point) + 1)
        return line, column


class BufferList:
    """All open buffers plus the current / previously selected one."""

    def __init__(self) -> None:
        self._buffers: list[Buffer] = []
        self._current: Buffer | None = None
        self._last: Buffer | None = None

    def __iter__(self):
        return iter(self._buffers)

    def __len__(self) -> int:
        return len(self._buffers)

    @property
    def current(self) -> Buffer | None:
        return self._current

    @current.setter
    def current(self, buffer: Buffer) -> None:
        # Swaps to and from the unlisted minibuffer leave "last" alone
        if (
            self._current is not None
            and self._current is not buffer
            and self._current in self._buffers
            and buffer in self._buffers
        ):
            self._last = self._current
        self._current = buffer

    @property
    def last(self) -> Buffer | None:
        """Most recently selected listed buffer other than the current one."""
        if self._last is not None and self._last in self._buffers and self._last is not self._current:
            return self._last
        return None

    def names(self) -> list[str]:
        return [b.name for b in self._buffers]

    def get(self, name: str) -> Buffer | None:
        for b in self._buffers:
            if b.name == name:
                return b
        return None

    def new_buffer(self, name: str) -> Buffer:
        """Create and list a buffer, uniquifying *name* with ``<2>``, ``<3>``..."""
        unique = name
        n = 2
        while self.get(unique) is not None:
            unique = f"{name}<{n}>"
            n += 1
        buffer = Buffer(unique)
        self._buffers.append(buffer)
        return buffer

    def get_or_create(self, name: str) -> Buffer:
        return self.get(name) or self.new_buffer(name)

    def kill(self, buffer: Buffer) -> None:
        self._buffers.remove(buffer)
        if self._last is buffer:
            self._last = None
        if self._current is buffer:
            self._current = self._buffers[-1] if self._buffers else self.new_buffer("*scratch*")

    def find_file(self, path: str) -> Buffer:
        """Return the buffer visiting *path*, reading the file if needed.

        A file that does not exist yet gets an empty buffer.
        """
        full = os.path.abspath(os.path.expanduser(path))
        for b in self._buffers:
            if b.file_name == full:
                return b
        if os.path.isdir(full):
            raise EditorError(f"{path} is a directory")
        try:
            text = Path(full).read_text(encoding="utf-8")
        except FileNotFoundError:
            text = ""
        except (OSError, UnicodeDecodeError) as e:
            raise EditorError(f"Cannot read {path}: {e}") from e
        buffer = self.new_buffer(os.path.basename(full) or full)
        buffer.replace(text)
        buffer.point = 0
        buffer.modified = False
        buffer.file_name = full
        logger.debug("Visited %s in %r", full, buffer)
        return buffer

    def modified_buffers(self) -> list[Buffer]:
        return [b for b in self._buffers if b.modified and b.file_name is not None]

    def dump_unsaved_buffers(self, directory: str) -> list[str]:
        """Write every modified buffer into *directory* for later recovery.

        Each buffer becomes ``<quoted name>`` holding its text plus
        ``<quoted name>.metadata`` (JSON: name, file name, point). Returns
        the paths of the text files written.
        """
        unsaved = [b for b in self._buffers if b.modified]
        if not unsaved:
            return []
        os.makedirs(directory, exist_ok=True)
        written: list[str] = []
        for buffer in unsaved:
            path = os.path.join(directory, quote(buffer.name, safe=""))
            Path(path).write_text(buffer.text, encoding="utf-8")
            metadata = {"name": buffer.name, "fileName": buffer.file_name, "point": buffer.point}
            Path(path + ".metadata").write_text(json.dumps(metadata), encoding="utf-8")
            written.append(path)
        logger.info("Dumped %d unsaved buffer(s) to %s", len(written), directory)
        return written
