"""Recursive-edit sessions: nesting depth, level tags, and loop exits.

Every recursive edit runs its own command loop gated by a ``SessionTag``.
A loop ends when an :class:`ExitRecursiveEdit` carrying its tag reaches
it, or when a :class:`Quit` signal reaches its boundary; either way the
loop *returns* a :class:`LoopResult` instead of unwinding further.
"""

from __future__ import annotations

import enum
import itertools
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

logger = logging.getLogger(__name__)

_tag_ids = itertools.count()


class LoopResult(enum.Enum):
    """How a command loop ended."""

    COMPLETED = "completed"
    ABORTED = "aborted"
    QUIT = "quit"


@dataclass(frozen=True, eq=False)
class SessionTag:
    """Opaque token identifying one recursion level.

    Tags compare by identity, so two levels never share a tag even at the
    same depth.
    """

    depth: int
    id: int = field(default_factory=lambda: next(_tag_ids))

    def __repr__(self) -> str:
        return f"<SessionTag #{self.id} depth={self.depth}>"


# ---------------------------------------------------------------------------
# Control signals
# ---------------------------------------------------------------------------


class Quit(BaseException):
    """Abort the innermost active command loop.

    Derives from ``BaseException`` so per-command error recovery never
    mistakes it for a command failure.
    """

    def __str__(self) -> str:
        return "Quit"


class ExitRecursiveEdit(BaseException):
    """End the command loop running under *tag* with *result*.

    Loops with a different tag let it pass through.
    """

    def __init__(self, tag: SessionTag, result: LoopResult = LoopResult.COMPLETED) -> None:
        super().__init__(tag, result)
        self.tag = tag
        self.result = result


# ---------------------------------------------------------------------------
# SessionStack
# ---------------------------------------------------------------------------


class SessionStack:
    """LIFO stack of recursive-edit levels.

    ``top_level`` tags the outermost command loop, which is not a
    recursive edit and does not count towards :attr:`depth`.
    """

    def __init__(self) -> None:
        self.top_level = SessionTag(depth=0)
        self._tags: list[SessionTag] = []

    @property
    def depth(self) -> int:
        return len(self._tags)

    @property
    def innermost(self) -> SessionTag:
        """Tag of the innermost active loop (``top_level`` when not nested)."""
        return self._tags[-1] if self._tags else self.top_level

    def is_active(self, tag: SessionTag) -> bool:
        return tag is self.top_level or any(t is tag for t in self._tags)

    def enter(self) -> SessionTag:
        """Push a new level and return its tag."""
        tag = SessionTag(depth=len(self._tags) + 1)
        self._tags.append(tag)
        logger.debug("Entered recursive edit %r", tag)
        return tag

    def exit(self, tag: SessionTag) -> None:
        """Pop the level tagged *tag*, which must be the innermost one."""
        if not self._tags or self._tags[-1] is not tag:
            raise RuntimeError(
                f"Recursive edit exit out of order: {tag!r} is not innermost "
                f"({self.innermost!r})"
            )
        self._tags.pop()
        logger.debug("Exited recursive edit %r", tag)

    @contextmanager
    def session(self) -> Iterator[SessionTag]:
        """Enter a level for the duration of the ``with`` block."""
        tag = self.enter()
        try:
            yield tag
        finally:
            self.exit(tag)
