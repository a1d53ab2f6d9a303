"""quill: the control core of a small Emacs-style terminal editor."""

# Buffers
from quill.buffer import Buffer, BufferList

# Commands
from quill.commands import BUILTIN_COMMANDS, CommandFunction, CommandRegistry, default_commands

# Completion
from quill.completion import (
    CompletionFunction,
    candidates_completion,
    complete,
    complete_file_name,
    longest_common_prefix,
)

# Configuration
from quill.config import ConfigError, Settings, default_config_dir

# Controller
from quill.controller import Controller

# Errors
from quill.errors import EditorError, MinibufferReentrancyError, SessionAborted

# Keymaps and keys
from quill.keymap import PREFIX, Keymap, global_map, minibuffer_local_map, resolve
from quill.keys import KeyId, kbd, key_name, key_sequence_name, parse_key

# Sessions
from quill.session import ExitRecursiveEdit, LoopResult, Quit, SessionStack, SessionTag

# Terminal
from quill.terminal import ProcessTerminal, Terminal

__all__ = [
    # Buffers
    "Buffer",
    "BufferList",
    # Commands
    "BUILTIN_COMMANDS",
    "CommandFunction",
    "CommandRegistry",
    "default_commands",
    # Completion
    "CompletionFunction",
    "candidates_completion",
    "complete",
    "complete_file_name",
    "longest_common_prefix",
    # Configuration
    "ConfigError",
    "Settings",
    "default_config_dir",
    # Controller
    "Controller",
    # Errors
    "EditorError",
    "MinibufferReentrancyError",
    "SessionAborted",
    # Keymaps and keys
    "PREFIX",
    "Keymap",
    "global_map",
    "minibuffer_local_map",
    "resolve",
    "KeyId",
    "kbd",
    "key_name",
    "key_sequence_name",
    "parse_key",
    # Sessions
    "ExitRecursiveEdit",
    "LoopResult",
    "Quit",
    "SessionStack",
    "SessionTag",
    # Terminal
    "ProcessTerminal",
    "Terminal",
]
