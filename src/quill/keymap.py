"""Keymaps: resolving accumulated key sequences to commands."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence, Union

from quill.keys import KeyId, kbd, key_sequence_name

logger = logging.getLogger(__name__)

Action = Union[str, Callable[[], object]]


class _Prefix:
    """Lookup outcome for a sequence that only starts longer bindings."""

    def __repr__(self) -> str:
        return "PREFIX"


PREFIX = _Prefix()

KeyLookup = Union[Action, _Prefix, None]


def is_action(binding: object) -> bool:
    return isinstance(binding, str) or callable(binding)


def _as_keys(keys: str | Sequence[KeyId]) -> list[KeyId]:
    return kbd(keys) if isinstance(keys, str) else list(keys)


class Keymap:
    """A trie from key sequences to actions.

    Nodes are nested dicts; a leaf holds a command identifier or a
    callable. *default* is bound to every single printable character that
    has no explicit binding.
    """

    def __init__(self, name: str = "", default: Action | None = None) -> None:
        self.name = name
        self.default = default
        self._root: dict[KeyId, object] = {}

    def __repr__(self) -> str:
        return f"Keymap({self.name!r})"

    def define_key(self, keys: str | Sequence[KeyId], action: Action) -> None:
        """Bind *keys* (``"C-x C-f"`` or a list of key ids) to *action*."""
        seq = _as_keys(keys)
        if not seq:
            raise ValueError("Cannot bind an empty key sequence")
        node = self._root
        for key in seq[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[seq[-1]] = action

    def undefine_key(self, keys: str | Sequence[KeyId]) -> None:
        seq = _as_keys(keys)
        node = self._root
        for key in seq[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                return
            node = child
        node.pop(seq[-1], None)

    def lookup(self, sequence: Sequence[KeyId]) -> KeyLookup:
        """Look up the full *sequence*.

        Returns the bound action, :data:`PREFIX` when *sequence* only
        starts longer bindings, or ``None`` when nothing is bound.
        """
        if not sequence:
            return None
        node: object = self._root
        for key in sequence:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
            if node is None:
                break
        if isinstance(node, dict):
            return PREFIX if node else None
        if node is not None:
            return node
        if self.default is not None and len(sequence) == 1 and _is_self_inserting(sequence[0]):
            return self.default
        return None

    def bindings(self) -> Iterable[tuple[list[KeyId], Action]]:
        """Yield every ``(sequence, action)`` pair, depth first."""
        stack: list[tuple[list[KeyId], dict[KeyId, object]]] = [([], self._root)]
        while stack:
            prefix, node = stack.pop()
            for key, value in node.items():
                if isinstance(value, dict):
                    stack.append(([*prefix, key], value))
                else:
                    yield [*prefix, key], value  # type: ignore[misc]

    def where_is(self, action: Action) -> list[str]:
        """Return the key descriptions bound to *action*."""
        return sorted(
            key_sequence_name(seq) for seq, bound in self.bindings() if bound == action
        )


def _is_self_inserting(key: KeyId) -> bool:
    return key == "space" or (len(key) == 1 and key.isprintable())


def resolve(sequence: Sequence[KeyId], keymaps: Sequence[Keymap | None]) -> KeyLookup:
    """Resolve *sequence* against *keymaps*, most specific first.

    The first keymap that yields an action or :data:`PREFIX` decides.
    ``None`` means the sequence is undefined in all of them.
    """
    for keymap in keymaps:
        if keymap is None:
            continue
        binding = keymap.lookup(sequence)
        if binding is not None:
            return binding
    return None


# ---------------------------------------------------------------------------
# Stock keymaps
# ---------------------------------------------------------------------------

GLOBAL_BINDINGS: dict[str, str] = {
    "RET": "newline",
    "DEL": "delete_backward_char",
    "C-d": "delete_char",
    "<delete>": "delete_char",
    "C-f": "forward_char",
    "<right>": "forward_char",
    "C-b": "backward_char",
    "<left>": "backward_char",
    "C-a": "beginning_of_line",
    "<home>": "beginning_of_line",
    "C-e": "end_of_line",
    "<end>": "end_of_line",
    "C-g": "keyboard_quit",
    "C-]": "abort_recursive_edit",
    "C-M-c": "exit_recursive_edit",
    "M-x": "execute_extended_command",
    "C-x C-f": "find_file",
    "C-x C-s": "save_buffer",
    "C-x b": "switch_to_buffer",
    "C-x k": "kill_buffer",
    "C-x z": "repeat",
    "C-x C-c": "exit_editor",
}

MINIBUFFER_BINDINGS: dict[str, str] = {
    "RET": "exit_minibuffer",
    "TAB": "minibuffer_complete",
    "C-g": "abort_recursive_edit",
}


def global_map(overrides: dict[str, str] | None = None) -> Keymap:
    """Build the global keymap, applying user *overrides* on top."""
    keymap = Keymap("global", default="self_insert_command")
    for keys, command in GLOBAL_BINDINGS.items():
        keymap.define_key(keys, command)
    for keys, command in (overrides or {}).items():
        logger.debug("Binding %s to %s from settings", keys, command)
        keymap.define_key(keys, command)
    return keymap


def minibuffer_local_map() -> Keymap:
    """Build the minibuffer's local keymap."""
    keymap = Keymap("minibuffer")
    for keys, command in MINIBUFFER_BINDINGS.items():
        keymap.define_key(keys, command)
    return keymap
