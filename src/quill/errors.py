"""User-facing editor errors.

Commands raise these to report a problem; the command loop turns them
into an echo-area message and a beep.
"""

from __future__ import annotations


class EditorError(Exception):
    """A command failed in a way the user should be told about."""


class MinibufferReentrancyError(EditorError):
    """A minibuffer read was started while the minibuffer is focused."""

    def __init__(self) -> None:
        super().__init__("Command attempted to use minibuffer while in minibuffer")


class SessionAborted(EditorError):
    """A recursive edit ended by quitting instead of completing."""

    def __init__(self) -> None:
        super().__init__("Quit")
