"""Entry point for the quill CLI."""

from __future__ import annotations

import argparse
import logging
import os

from quill.config import SETTINGS_FILE, Settings, default_config_dir


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="quill", description="quill: a small Emacs-style editor")
    parser.add_argument("files", nargs="*", help="Files to visit")
    parser.add_argument("--config-dir", default=None, help="Configuration directory (default: ~/.quill)")
    parser.add_argument("--log-file", default=None, help="Write debug logs to this file")
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # The terminal belongs to the editor, so logs only go to a file
    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=getattr(logging, args.log_level.upper()),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.getLogger("quill").addHandler(logging.NullHandler())

    config_dir = args.config_dir or default_config_dir()
    settings = Settings.load(os.path.join(config_dir, SETTINGS_FILE))

    from quill.controller import Controller
    from quill.terminal import ProcessTerminal

    controller = Controller(ProcessTerminal(), settings=settings, config_dir=config_dir)
    controller.start(args.files)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
