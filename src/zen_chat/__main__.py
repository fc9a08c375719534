"""CLI entrypoint for zen-chat."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from importlib import metadata
from pathlib import Path

from .app import ZenChatApp
from .config import ensure_config_dir, load_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zen-chat",
        description="zen-chat - terminal chat with a hosted Gemini model",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to an alternative config.toml",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Load configuration, handle CLI flags, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("zen-chat")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"zen-chat {version}")
        return

    if args.config is None:
        ensure_config_dir()
    app = ZenChatApp(config=load_config(args.config))
    app.run()


if __name__ == "__main__":
    main()
