"""Command registry and the builtin editor commands.

Commands are plain functions taking the :class:`~quill.controller.Controller`.
They are registered under underscore identifiers (``find_file``); keymaps
refer to them by identifier and ``M-x`` accepts the hyphenated spelling.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Callable

from quill.errors import EditorError
from quill.keys import key_name
from quill.session import LoopResult, Quit

if TYPE_CHECKING:
    from quill.controller import Controller

CommandFunction = Callable[["Controller"], object]


class CommandRegistry:
    """Maps command identifiers to command functions."""

    def __init__(self, commands: dict[str, CommandFunction] | None = None) -> None:
        self._commands: dict[str, CommandFunction] = dict(commands or {})

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def define(self, name: str | None = None) -> Callable[[CommandFunction], CommandFunction]:
        """Decorator registering a function under *name* (default: its own)."""

        def decorator(fn: CommandFunction) -> CommandFunction:
            self.register(name or fn.__name__, fn)
            return fn

        return decorator

    def register(self, name: str, fn: CommandFunction) -> None:
        self._commands[name] = fn

    def get(self, name: str) -> CommandFunction | None:
        return self._commands.get(name)

    def resolve(self, name: str) -> CommandFunction:
        fn = self._commands.get(name)
        if fn is None:
            raise EditorError(f"{name} is not a command")
        return fn

    def names(self) -> list[str]:
        return sorted(self._commands)

    def copy(self) -> CommandRegistry:
        return CommandRegistry(self._commands)


BUILTIN_COMMANDS = CommandRegistry()
command = BUILTIN_COMMANDS.define


def default_commands() -> CommandRegistry:
    """A fresh registry holding the builtin commands."""
    return BUILTIN_COMMANDS.copy()


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------


@command()
def self_insert_command(ctl: Controller) -> None:
    key = ctl.last_key or ""
    ch = " " if key == "space" else key
    if len(ch) != 1:
        raise EditorError(f"{key_name(key)} does not insert a character")
    ctl.current_buffer.insert(ch)


@command()
def newline(ctl: Controller) -> None:
    ctl.current_buffer.insert("\n")


@command()
def delete_backward_char(ctl: Controller) -> None:
    ctl.current_buffer.delete_char(-1)


@command()
def delete_char(ctl: Controller) -> None:
    ctl.current_buffer.delete_char(1)


@command()
def forward_char(ctl: Controller) -> None:
    ctl.current_buffer.forward_char(1)


@command()
def backward_char(ctl: Controller) -> None:
    ctl.current_buffer.forward_char(-1)


@command()
def beginning_of_line(ctl: Controller) -> None:
    ctl.current_buffer.beginning_of_line()


@command()
def end_of_line(ctl: Controller) -> None:
    ctl.current_buffer.end_of_line()


# ---------------------------------------------------------------------------
# Quitting and recursive edits
# ---------------------------------------------------------------------------


@command()
def keyboard_quit(ctl: Controller) -> None:
    raise Quit()


@command()
def recursive_edit(ctl: Controller) -> None:
    """Enter a nested command loop; C-M-c leaves it, C-] aborts it."""
    ctl.message("Entering recursive edit")
    ctl.recursive_edit()


@command()
def exit_recursive_edit(ctl: Controller) -> None:
    ctl.exit_recursive_edit()


@command()
def abort_recursive_edit(ctl: Controller) -> None:
    ctl.abort_recursive_edit()


# ---------------------------------------------------------------------------
# Minibuffer
# ---------------------------------------------------------------------------


@command()
def exit_minibuffer(ctl: Controller) -> None:
    ctl.exit_recursive_edit(LoopResult.COMPLETED)


@command()
def minibuffer_complete(ctl: Controller) -> None:
    completion = ctl.minibuffer_completion
    if completion is None:
        raise EditorError("[No completions]")
    result = completion(ctl.minibuffer.text)
    if result is None:
        raise EditorError("[No match]")
    ctl.minibuffer.replace(result)


@command()
def execute_extended_command(ctl: Controller) -> None:
    name = ctl.read_command_name("M-x ").strip().replace("-", "_")
    fn = ctl.commands.get(name)
    if fn is None:
        raise EditorError("[No match]")
    ctl.this_command = name
    fn(ctl)


# ---------------------------------------------------------------------------
# Files and buffers
# ---------------------------------------------------------------------------


@command()
def find_file(ctl: Controller) -> None:
    path = ctl.read_file_name("Find file: ")
    ctl.switch_to_buffer(ctl.buffers.find_file(path))


@command()
def save_buffer(ctl: Controller) -> None:
    buffer = ctl.current_buffer
    if buffer.file_name is None:
        path = ctl.read_file_name("File to save in: ")
        buffer.file_name = os.path.abspath(os.path.expanduser(path))
    try:
        with open(buffer.file_name, "w", encoding="utf-8") as f:
            f.write(buffer.text)
    except OSError as e:
        raise EditorError(f"Cannot write {buffer.file_name}: {e}") from e
    buffer.modified = False
    ctl.message(f"Wrote {buffer.file_name}")


@command()
def switch_to_buffer(ctl: Controller) -> None:
    name = ctl.read_buffer("Switch to buffer: ")
    ctl.switch_to_buffer(ctl.buffers.get_or_create(name))


@command()
def kill_buffer(ctl: Controller) -> None:
    name = ctl.read_buffer("Kill buffer: ", default=ctl.current_buffer.name)
    buffer = ctl.buffers.get(name)
    if buffer is None:
        raise EditorError(f"No such buffer: {name}")
    if buffer.modified and buffer.file_name is not None:
        if not ctl.y_or_n(f"Buffer {name} modified; kill anyway?"):
            return
    ctl.buffers.kill(buffer)
    ctl.switch_to_buffer(ctl.buffers.current)


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


@command()
def repeat(ctl: Controller) -> None:
    last = ctl.last_command
    if last is None or last == "repeat":
        raise EditorError("No command to repeat")
    ctl.this_command = last
    ctl.call_command(last)


@command()
def exit_editor(ctl: Controller) -> None:
    if ctl.buffers.modified_buffers():
        if not ctl.yes_or_no("Modified buffers exist; exit anyway?"):
            return
    ctl.exit_editor()
