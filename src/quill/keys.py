"""Keyboard input parsing and key naming for the editor.

Converts complete raw terminal sequences (legacy xterm escape sequences,
control characters, ESC-prefixed meta keys) into key identifiers such as
``"ctrl+x"``, ``"alt+f"`` or ``"up"``, renders identifiers back into the
editor's human-readable notation (``C-x``, ``M-f``, ``<up>``), and parses
key descriptions like ``"C-x C-f"`` into key sequences.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Canonical modifier order inside a key identifier
MODIFIER_ORDER: tuple[str, ...] = ("ctrl", "shift", "alt")

# Editor notation for modifiers
MODIFIER_PREFIXES: dict[str, str] = {
    "ctrl": "C-",
    "shift": "S-",
    "alt": "M-",
}

# Named keys that have a short editor name instead of <name>
SHORT_KEY_NAMES: dict[str, str] = {
    "enter": "RET",
    "tab": "TAB",
    "space": "SPC",
    "backspace": "DEL",
    "escape": "ESC",
}

_SHORT_NAME_TO_KEY: dict[str, str] = {v: k for k, v in SHORT_KEY_NAMES.items()}

NAMED_KEYS: frozenset[str] = frozenset({
    "escape", "enter", "tab", "space", "backspace", "delete", "insert",
    "clear", "home", "end", "pageUp", "pageDown", "up", "down", "left",
    "right", *(f"f{i}" for i in range(1, 13)),
})

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[4~": "end",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[E": "clear",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[15~": "f5",
    "\x1b[17~": "f6",
    "\x1b[18~": "f7",
    "\x1b[19~": "f8",
    "\x1b[20~": "f9",
    "\x1b[21~": "f10",
    "\x1b[23~": "f11",
    "\x1b[24~": "f12",
}

# xterm modifier parameter (CSI 1;<mod>X and CSI n;<mod>~) -> prefix
_XTERM_MODIFIER_PREFIXES: dict[int, str] = {
    2: "shift+",
    3: "alt+",
    4: "shift+alt+",
    5: "ctrl+",
    6: "ctrl+shift+",
    7: "ctrl+alt+",
    8: "ctrl+shift+alt+",
}

_CSI_FINAL_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

_CSI_TILDE_KEYS: dict[str, str] = {
    "1": "home",
    "2": "insert",
    "3": "delete",
    "4": "end",
    "5": "pageUp",
    "6": "pageDown",
    "15": "f5",
    "17": "f6",
    "18": "f7",
    "19": "f8",
    "20": "f9",
    "21": "f10",
    "23": "f11",
    "24": "f12",
}


# ---------------------------------------------------------------------------
# Raw input -> key identifier
# ---------------------------------------------------------------------------


def _parse_modified_csi(data: str) -> str | None:
    """Parse ``ESC [ 1 ; <mod> X`` and ``ESC [ <n> ; <mod> ~`` sequences."""
    if not data.startswith("\x1b[") or ";" not in data:
        return None
    body, final = data[2:-1], data[-1]
    first, _, mod = body.partition(";")
    if not mod.isdigit():
        return None
    prefix = _XTERM_MODIFIER_PREFIXES.get(int(mod))
    if prefix is None:
        return None
    if final == "~":
        key = _CSI_TILDE_KEYS.get(first)
    elif first == "1":
        key = _CSI_FINAL_KEYS.get(final)
    else:
        key = None
    return prefix + key if key is not None else None


def _control_key(ch: str) -> str | None:
    """Map a single control character to its key identifier."""
    if ch == "\x1b":
        return "escape"
    if ch in ("\r", "\n"):
        return "enter"
    if ch == "\t":
        return "tab"
    if ch in ("\x7f", "\x08"):
        return "backspace"
    if ch == "\x00":
        return "ctrl+space"
    code = ord(ch)
    if 1 <= code <= 26:
        return "ctrl+" + chr(code + ord("a") - 1)
    if code == 0x1C:
        return "ctrl+\\"
    if code == 0x1D:
        return "ctrl+]"
    if code == 0x1E:
        return "ctrl+^"
    if code == 0x1F:
        return "ctrl+_"
    return None


def parse_key(data: str) -> KeyId | None:
    """Parse one complete raw terminal sequence into a key identifier.

    Returns ``None`` for empty input and for sequences that do not name a
    key (mouse reports, terminal responses).
    """
    if not data:
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]
    if data == "\x1b[Z":
        return "shift+tab"

    modified = _parse_modified_csi(data)
    if modified is not None:
        return modified

    if len(data) == 1:
        if data == " ":
            return "space"
        control = _control_key(data)
        if control is not None:
            return control
        return data if data.isprintable() else None

    # Meta: ESC followed by a single key
    if len(data) == 2 and data[0] == "\x1b":
        inner = parse_key(data[1])
        if inner is None:
            return None
        if inner.startswith("ctrl+"):
            return "ctrl+alt+" + inner[len("ctrl+"):]
        return "alt+" + inner

    return None


# ---------------------------------------------------------------------------
# Key identifier parsing and rendering
# ---------------------------------------------------------------------------


def split_key_id(key_id: KeyId) -> tuple[frozenset[str], str]:
    """Split ``"ctrl+alt+x"`` into its modifier set and base key.

    A lone ``"+"`` and identifiers ending in ``"++"`` keep ``"+"`` as the
    base key.
    """
    if key_id == "+" or not key_id:
        return frozenset(), key_id
    if key_id.endswith("++"):
        mods, base = key_id[:-2], "+"
    else:
        mods, _, base = key_id.rpartition("+")
    modifiers = frozenset(m for m in mods.split("+") if m)
    return modifiers, base


def key_name(key_id: KeyId) -> str:
    """Render a key identifier in editor notation.

    >>> key_name("ctrl+x")
    'C-x'
    >>> key_name("alt+enter")
    'M-RET'
    >>> key_name("up")
    '<up>'
    """
    modifiers, base = split_key_id(key_id)
    prefix = "".join(
        MODIFIER_PREFIXES[m] for m in MODIFIER_ORDER if m in modifiers
    )
    if base in SHORT_KEY_NAMES:
        name = SHORT_KEY_NAMES[base]
    elif base in NAMED_KEYS:
        name = f"<{base}>"
    elif len(base) == 1 and not base.isprintable():
        name = f"\\{ord(base):03o}"
    else:
        name = base
    return prefix + name


def key_sequence_name(keys: list[KeyId] | tuple[KeyId, ...]) -> str:
    """Render a key sequence as space-separated key names."""
    return " ".join(key_name(k) for k in keys)


def _parse_key_token(token: str) -> KeyId:
    # pi-tui style identifiers pass through unchanged
    if "+" in token and len(token) > 1 and "-" not in token.split("+", 1)[0]:
        return token

    modifiers: set[str] = set()
    rest = token
    while len(rest) > 2 and rest[1] == "-" and rest[0] in "CMS":
        modifiers.add({"C": "ctrl", "M": "alt", "S": "shift"}[rest[0]])
        rest = rest[2:]

    if rest in _SHORT_NAME_TO_KEY:
        base = _SHORT_NAME_TO_KEY[rest]
    elif rest.startswith("<") and rest.endswith(">") and len(rest) > 2:
        base = rest[1:-1]
    else:
        base = rest

    if not modifiers and len(base) == 1:
        return base
    ordered = [m for m in MODIFIER_ORDER if m in modifiers]
    return "+".join([*ordered, base])


def kbd(description: str) -> list[KeyId]:
    """Parse a key description such as ``"C-x C-f"`` into key identifiers.

    Tokens are separated by whitespace and may use editor notation
    (``C-x``, ``M-x``, ``RET``, ``<f5>``) or key identifiers
    (``ctrl+x``).
    """
    tokens = description.split()
    if not tokens:
        raise ValueError(f"Empty key description: {description!r}")
    return [_parse_key_token(t) for t in tokens]
