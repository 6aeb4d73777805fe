"""Entry point for the command-line interface."""

from __future__ import annotations

import argparse

from listcore.log import configure_logging
from listcore.settings import EngineSettings, load_settings

from .commands import COMMANDS


def build_parser() -> argparse.ArgumentParser:
    """Construct argument parser for CLI commands."""
    parser = argparse.ArgumentParser(
        prog="listcore", description="Inspect and transform saved listcore state"
    )
    parser.add_argument(
        "--settings",
        help="path to JSON/TOML settings",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for name, cmd in COMMANDS.items():
        p = sub.add_parser(name, help=cmd.help)
        cmd.add_arguments(p)
        p.set_defaults(func=cmd.func)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = EngineSettings()
    if args.settings:
        try:
            settings = load_settings(args.settings)
        except (OSError, ValueError) as exc:
            parser.error(f"unable to load settings: {exc}")
    configure_logging(settings.log_level)
    args.engine_settings = settings
    return args.func(args) or 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
