"""The editor controller: command loop, recursive edits, and the minibuffer.

One ``Controller`` owns all transient dispatch state (the key sequence
being accumulated, the last key and the last command) and drives the
command loop. Recursive edits are nested, synchronous calls to
:meth:`Controller.command_loop`, each gated by its own
:class:`~quill.session.SessionTag`; the minibuffer reads user input by
running one.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

from quill.buffer import Buffer, BufferList
from quill.commands import CommandFunction, CommandRegistry, default_commands
from quill.completion import CompletionFunction, candidates_completion, complete, complete_file_name
from quill.config import BUFFER_DUMP_DIR, INIT_FILE, Settings, default_config_dir, run_init_script
from quill.display import EchoArea, Screen
from quill.errors import EditorError, MinibufferReentrancyError, SessionAborted
from quill.keymap import Action, KeyLookup, Keymap, global_map, is_action, minibuffer_local_map, resolve
from quill.keys import KeyId, key_sequence_name
from quill.session import ExitRecursiveEdit, LoopResult, Quit, SessionStack, SessionTag
from quill.terminal import Terminal

logger = logging.getLogger(__name__)

MINIBUFFER_NAME = " *Minibuf*"


def _error_message(e: BaseException) -> str:
    return str(e).rstrip("\r\n") or type(e).__name__


def _prompt_with_default(prompt: str, default: str) -> str:
    """Show *default* inline: ``"Find file: "`` -> ``"Find file (default x): "``."""
    if ":" in prompt:
        return prompt.replace(":", f" (default {default}):", 1)
    return f"{prompt}(default {default}) "


def _chomp(s: str) -> str:
    """Strip one trailing line terminator."""
    if s.endswith("\r\n"):
        return s[:-2]
    if s.endswith(("\n", "\r")):
        return s[:-1]
    return s


class Controller:
    """Turns keystrokes into commands and runs nested interactive sessions."""

    def __init__(
        self,
        terminal: Terminal,
        *,
        settings: Settings | None = None,
        commands: CommandRegistry | None = None,
        config_dir: str | None = None,
    ) -> None:
        self.terminal = terminal
        self.settings = settings or Settings()
        self.commands = commands or default_commands()
        self.config_dir = config_dir or default_config_dir()
        self.buffer_dump_dir = os.path.expanduser(
            self.settings.buffer_dump_dir or os.path.join(self.config_dir, BUFFER_DUMP_DIR)
        )
        self.global_map: Keymap = global_map(self.settings.keybindings)

        self.buffers = BufferList()
        scratch = self.buffers.new_buffer("*scratch*")
        self.buffers.current = scratch

        self.minibuffer = Buffer(MINIBUFFER_NAME, keymap=minibuffer_local_map())
        self.minibuffer_completion: CompletionFunction | None = None

        self.screen = Screen(terminal, scratch)
        self.screen.echo_area.buffer = self.minibuffer

        self.sessions = SessionStack()
        self.key_sequence: list[KeyId] = []
        self.last_key: KeyId | None = None
        self.last_command: Action | None = None
        self.this_command: Action | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def current_buffer(self) -> Buffer:
        buffer = self.buffers.current
        if buffer is None:
            raise EditorError("No current buffer")
        return buffer

    @property
    def echo_area(self) -> EchoArea:
        return self.screen.echo_area

    @property
    def recursion_depth(self) -> int:
        return self.sessions.depth

    def switch_to_buffer(self, buffer: Buffer) -> None:
        """Show *buffer* in the editing window and make it current."""
        self.buffers.current = buffer
        self.screen.window.buffer = buffer

    def message(self, msg: str) -> None:
        self.echo_area.show(msg)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def start(self, files: list[str] | tuple[str, ...] = ()) -> None:
        """Take over the terminal, visit *files*, and run until exit.

        If anything but ``SystemExit`` escapes the editor, modified buffers
        are written to :attr:`buffer_dump_dir` before the error propagates.
        """
        self.terminal.start(on_resume=self.redraw, on_resize=self.screen.resize)
        try:
            for path in reversed(files):
                try:
                    self.switch_to_buffer(self.buffers.find_file(path))
                except EditorError as e:
                    self.message(_error_message(e))
            if self.echo_area.message is None:
                self.message(self.settings.startup_message)
            self.screen.redraw()
            self.load_user_config()
            self.run()
        except BaseException as e:
            if not isinstance(e, SystemExit):
                self.dump_unsaved_buffers()
            raise
        finally:
            self.terminal.stop()

    def dump_unsaved_buffers(self) -> list[str]:
        """Save modified buffers to the dump directory; failures are logged."""
        try:
            return self.buffers.dump_unsaved_buffers(self.buffer_dump_dir)
        except OSError:
            logger.exception("Failed to dump unsaved buffers to %s", self.buffer_dump_dir)
            return []

    def run(self) -> None:
        """Run the top-level command loop until the editor is exited.

        Quitting at top level abandons the current iteration and starts
        the loop afresh.
        """
        while True:
            self.key_sequence.clear()
            self.redisplay()
            result = self.command_loop(self.sessions.top_level)
            if result is LoopResult.COMPLETED:
                logger.debug("Top-level command loop completed")
                return
            self.message("Quit")
            self.screen.beep()

    def load_user_config(self) -> None:
        """Load the user's init script; failures are reported, not raised."""
        if self.settings.load_error is not None:
            self.message(f"Error in settings: {_error_message(self.settings.load_error)}")
        path = os.path.join(self.config_dir, INIT_FILE)
        try:
            run_init_script(path, self)
        except FileNotFoundError:
            pass
        except Exception as e:
            logger.warning("Failed to load %s", path, exc_info=True)
            self.message(_error_message(e))

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def redisplay(self) -> None:
        self.terminal.hide_cursor()
        if self.screen.current_window is not self.echo_area:
            self.echo_area.redisplay()
        self.screen.current_window.redisplay()
        self.screen.update()

    def redraw(self) -> None:
        """Repaint every visible surface from scratch."""
        self.screen.redraw()

    # ------------------------------------------------------------------
    # Command loop
    # ------------------------------------------------------------------

    def key_binding(self, key_sequence: list[KeyId]) -> KeyLookup:
        return resolve(key_sequence, [self.current_buffer.keymap, self.global_map])

    def call_command(self, action: Action) -> object:
        if isinstance(action, str):
            return self.commands.resolve(action)(self)
        return action()

    def command_loop(self, tag: SessionTag) -> LoopResult:
        """Dispatch keys until an exit for *tag* or a quit ends the loop."""
        while True:
            try:
                self._dispatch_next_key()
            except ExitRecursiveEdit as e:
                if e.tag is not tag:
                    raise
                return e.result
            except Quit:
                logger.debug("Quit reached command loop %r", tag)
                return LoopResult.QUIT
            self.redisplay()

    def _dispatch_next_key(self) -> None:
        key = self.terminal.next_key(self.settings.key_timeout_ms)
        if key is None:
            return
        self.echo_area.clear_message()
        try:
            self.last_key = key
            self.key_sequence.append(key)
            binding = self.key_binding(self.key_sequence)
            if is_action(binding):
                self.key_sequence.clear()
                self.this_command = None
                logger.debug("Dispatching %r", binding)
                try:
                    self.call_command(binding)  # type: ignore[arg-type]
                finally:
                    self.last_command = self.this_command or binding  # type: ignore[assignment]
            elif binding is None:
                keys = key_sequence_name(self.key_sequence)
                self.key_sequence.clear()
                self.echo_area.show(f"{keys} is undefined")
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            self.echo_area.show(_error_message(e))
            self.screen.beep()

    # ------------------------------------------------------------------
    # Recursive edit
    # ------------------------------------------------------------------

    def recursive_edit(self) -> None:
        """Run a nested command loop until it is exited or aborted.

        Raises :class:`SessionAborted` if the nested loop was quit or
        aborted rather than completed.
        """
        with self.sessions.session() as tag:
            result = self.command_loop(tag)
        if result is not LoopResult.COMPLETED:
            raise SessionAborted()

    def exit_recursive_edit(self, result: LoopResult = LoopResult.COMPLETED) -> None:
        if self.sessions.depth == 0:
            raise EditorError("No recursive edit is in progress")
        raise ExitRecursiveEdit(self.sessions.innermost, result)

    def abort_recursive_edit(self) -> None:
        """Abort the innermost recursive edit, or the top-level iteration."""
        raise ExitRecursiveEdit(self.sessions.innermost, LoopResult.ABORTED)

    def exit_editor(self) -> None:
        raise ExitRecursiveEdit(self.sessions.top_level, LoopResult.COMPLETED)

    # ------------------------------------------------------------------
    # Minibuffer
    # ------------------------------------------------------------------

    def read_from_minibuffer(
        self,
        prompt: str,
        completion: CompletionFunction | None = None,
        default: str | None = None,
    ) -> str:
        """Read a string in the minibuffer.

        Runs a recursive edit with the echo area focused. The typed text
        (minus one trailing newline) is returned, or *default* when the
        text is empty. Raises :class:`SessionAborted` if the user quits.
        """
        if self.buffers.current is self.minibuffer:
            raise MinibufferReentrancyError()

        buffer = self.current_buffer
        window = self.screen.current_window
        old_completion = self.minibuffer_completion
        self.minibuffer_completion = completion
        try:
            self.minibuffer.clear()
            self.buffers.current = self.minibuffer
            self.screen.current_window = self.echo_area
            if default is not None:
                prompt = _prompt_with_default(prompt, default)
            self.echo_area.prompt = prompt
            self.echo_area.redisplay()
            self.screen.update()
            self.recursive_edit()
            s = _chomp(self.minibuffer.text)
            if default is not None and not s:
                return default
            return s
        finally:
            self.echo_area.clear()
            self.echo_area.redisplay()
            self.buffers.current = buffer
            self.screen.current_window = window
            self.minibuffer_completion = old_completion
            self.screen.update()

    def read_file_name(self, prompt: str, default: str | None = None) -> str:
        return self.read_from_minibuffer(prompt, completion=complete_file_name, default=default)

    def read_buffer(self, prompt: str, default: str | None = None) -> str:
        """Read a buffer name, defaulting to the previously selected buffer."""
        if default is None:
            previous = self.buffers.last or self.buffers.current
            default = previous.name if previous is not None else None

        return self.read_from_minibuffer(
            prompt, completion=candidates_completion(self.buffers.names), default=default
        )

    def read_command_name(self, prompt: str) -> str:
        def _complete(s: str) -> str | None:
            return complete(s.replace("-", "_"), self.commands.names())

        return self.read_from_minibuffer(prompt, completion=_complete)

    def _read_choice(self, prompt: str, yes: str, no: str) -> bool:
        while True:
            s = self.read_from_minibuffer(f"{prompt} ({yes} or {no}) ")
            if s == yes:
                return True
            if s == no:
                return False
            self.message(f"Please answer {yes} or {no}.")

    def yes_or_no(self, prompt: str) -> bool:
        return self._read_choice(prompt, "yes", "no")

    def y_or_n(self, prompt: str) -> bool:
        return self._read_choice(prompt, "y", "n")

    # ------------------------------------------------------------------
    # Extension helpers
    # ------------------------------------------------------------------

    def define_command(
        self, name: str | None = None
    ) -> Callable[[CommandFunction], CommandFunction]:
        """Decorator for init scripts: register a command on this controller."""
        return self.commands.define(name)
