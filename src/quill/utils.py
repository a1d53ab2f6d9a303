"""Terminal text utilities: display width measurement and truncation.

Widths are measured per grapheme cluster so that combining marks, wide
CJK characters and emoji sequences occupy the columns a terminal actually
gives them.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# SGR sequences used for mode-line highlighting
_SGR_RE = re.compile(r"\x1b\[[0-9;]*m")

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------


def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tone modifiers, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000 or 0x2600 <= ord(first) <= 0x27BF:
        return 2
    if unicodedata.category(first)[0] == "M" or unicodedata.category(first) == "Cf":
        return 0
    return max(_wcwidth.wcwidth(first), 0)


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    SGR escape sequences are ignored. Pure printable ASCII takes a fast
    path; everything else is measured per grapheme and cached.
    """
    if not text:
        return 0

    stripped = _SGR_RE.sub("", text)
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# truncate_to_width
# ---------------------------------------------------------------------------


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "$",
    pad: bool = False,
) -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    When the text is too wide it is cut at a grapheme boundary and
    *ellipsis* is appended (counting towards the width). With *pad* the
    result is right-padded with spaces to exactly *max_width*.
    """
    if max_width <= 0:
        return ""

    width = visible_width(text)
    if width <= max_width:
        return text + " " * (max_width - width) if pad else text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return take_columns(ellipsis, max_width)

    result = take_columns(text, target) + ellipsis
    if pad:
        result += " " * (max_width - visible_width(result))
    return result


def take_columns(text: str, max_cols: int) -> str:
    """Return the longest prefix of *text* that fits in *max_cols* columns."""
    parts: list[str] = []
    cols = 0
    for g in grapheme.graphemes(text):
        w = grapheme_width(g)
        if cols + w > max_cols:
            break
        parts.append(g)
        cols += w
    return "".join(parts)


def printable(text: str) -> str:
    """Render control characters in caret notation (``^A``) for display."""
    if text.isprintable():
        return text
    out: list[str] = []
    for ch in text:
        cp = ord(ch)
        if cp < 0x20:
            out.append("^" + chr(cp + 0x40))
        elif cp == 0x7F:
            out.append("^?")
        else:
            out.append(ch)
    return "".join(out)
