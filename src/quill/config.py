"""User configuration: ``settings.json`` and the ``init.py`` script.

Both live in the configuration directory (``~/.quill`` unless
``QUILL_DIR`` says otherwise) and are read once at startup.
"""

from __future__ import annotations

import importlib.util
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from quill.keys import kbd

if TYPE_CHECKING:
    from quill.controller import Controller

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".quill"
SETTINGS_FILE = "settings.json"
INIT_FILE = "init.py"
BUFFER_DUMP_DIR = "buffer_dump"

DEFAULT_STARTUP_MESSAGE = "Type C-x C-c to exit quill"


class ConfigError(Exception):
    """The user's init script could not be loaded or run."""


def default_config_dir() -> str:
    """Configuration directory: ``$QUILL_DIR`` or ``~/.quill``."""
    return os.environ.get("QUILL_DIR") or os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)


# --- Settings ---


@dataclass
class Settings:
    """Editor settings read from ``settings.json``.

    ``load_error`` records why the file could not be read; the controller
    reports it once the screen is up.
    """

    key_timeout_ms: int | None = None
    keybindings: dict[str, str] = field(default_factory=dict)
    startup_message: str = DEFAULT_STARTUP_MESSAGE
    buffer_dump_dir: str | None = None
    load_error: Exception | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        timeout = data.get("keyTimeoutMs")
        if timeout is not None and (
            isinstance(timeout, bool) or not isinstance(timeout, int) or timeout < 0
        ):
            raise ValueError(f"keyTimeoutMs must be a non-negative integer, got {timeout!r}")
        keybindings = data.get("keybindings", {})
        if not isinstance(keybindings, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in keybindings.items()
        ):
            raise ValueError("keybindings must map key descriptions to command names")
        for keys in keybindings:
            kbd(keys)
        startup_message = data.get("startupMessage", DEFAULT_STARTUP_MESSAGE)
        if not isinstance(startup_message, str):
            raise ValueError(f"startupMessage must be a string, got {startup_message!r}")
        dump_dir = data.get("bufferDumpDir")
        if dump_dir is not None and not isinstance(dump_dir, str):
            raise ValueError(f"bufferDumpDir must be a string, got {dump_dir!r}")
        return cls(
            key_timeout_ms=timeout,
            keybindings=dict(keybindings),
            startup_message=startup_message,
            buffer_dump_dir=dump_dir,
        )

    @classmethod
    def load(cls, path: str) -> Settings:
        """Load settings from *path*; a missing file yields the defaults."""
        data, error = _load_from_file(path)
        if error is None:
            try:
                return cls.from_dict(data)
            except ValueError as e:
                error = e
        logger.warning("Ignoring settings file %s: %s", path, error)
        return cls(load_error=error)


def _load_from_file(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Load settings from a JSON file. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        content = Path(path).read_text(encoding="utf-8")
        settings = json.loads(content)
    except (OSError, json.JSONDecodeError) as e:
        return {}, e
    if not isinstance(settings, dict):
        return {}, ValueError(f"{path}: expected a JSON object")
    return settings, None


# --- Init script ---


def _load_module_from_path(path: str) -> Any:
    """Import the Python file at *path* as a fresh module.

    Raises ``FileNotFoundError`` when the file does not exist.
    """
    resolved = str(Path(os.path.expanduser(path)).resolve())
    if not os.path.isfile(resolved):
        raise FileNotFoundError(resolved)

    module_name = f"quill_user_init_{id(resolved)}"
    spec = importlib.util.spec_from_file_location(module_name, resolved)
    if spec is None or spec.loader is None:
        raise ConfigError(f"Cannot create module spec for: {resolved}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        del sys.modules[module_name]
        raise ConfigError(f"{resolved}: {e}") from e
    return module


def _find_entry_point(module: Any) -> Callable[[Controller], object] | None:
    for name in ("activate", "extension"):
        entry = getattr(module, name, None)
        if callable(entry):
            return entry
    return None


def run_init_script(path: str, controller: Controller) -> None:
    """Load the init script at *path* and call its ``activate(controller)``.

    A script without an entry point is still executed for its side
    effects. Raises ``FileNotFoundError`` if there is no script.
    """
    module = _load_module_from_path(path)
    entry = _find_entry_point(module)
    if entry is None:
        logger.debug("Init script %s has no activate()", path)
        return
    try:
        entry(controller)
    except Exception as e:
        raise ConfigError(f"{path}: {e}") from e
    logger.info("Loaded init script %s", path)
