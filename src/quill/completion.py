"""Minibuffer completion: longest unambiguous extension of a partial input."""

from __future__ import annotations

import glob
import os
from typing import Callable, Iterable, Optional

CompletionFunction = Callable[[str], Optional[str]]


def longest_common_prefix(candidates: Iterable[str]) -> str | None:
    """Return the longest prefix shared by every candidate.

    One candidate is taken as the anchor and its prefixes are tried from
    longest to shortest; the first one every other candidate starts with
    wins. A single candidate is its own prefix. Returns ``None`` for an
    empty collection, and also when the candidates share no non-empty
    prefix.
    """
    anchor, *rest = list(candidates) or [None]
    if anchor is None:
        return None
    for length in range(len(anchor), 0, -1):
        prefix = anchor[:length]
        if all(c.startswith(prefix) for c in rest):
            return prefix
    return None


def complete(s: str, candidates: Iterable[str]) -> str | None:
    """Complete *s* against *candidates*.

    >>> complete("fo", {"foo", "foobar", "fox"})
    'fo'
    >>> complete("z", {"foo"}) is None
    True
    """
    matches = [c for c in candidates if c.startswith(s)]
    if not matches:
        return None
    return longest_common_prefix(matches)


def complete_file_name(s: str) -> str | None:
    """Complete *s* against filesystem entries whose path starts with it.

    A unique match naming a directory gets a trailing separator so the
    next completion descends into it.
    """
    expanded = os.path.expanduser(s)
    files = glob.glob(glob.escape(expanded) + "*")
    if not files:
        return None
    result = longest_common_prefix(files)
    if (
        result is not None
        and len(files) == 1
        and os.path.isdir(result)
        and not result.endswith(os.sep)
    ):
        result += os.sep
    if result is not None and expanded != s and result.startswith(expanded):
        # Keep the user's "~" spelling
        result = s + result[len(expanded):]
    return result


def candidates_completion(candidates: Callable[[], Iterable[str]]) -> CompletionFunction:
    """Build a completion function over a lazily computed candidate set."""

    def _complete(s: str) -> str | None:
        return complete(s, candidates())

    return _complete
