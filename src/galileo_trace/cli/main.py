"""Argument-based CLI entrypoint for galileo-trace."""

from __future__ import annotations

import argparse

from galileo_trace.cli.commands import alerts, demo, projects
from galileo_trace.logging_config import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="galileo-trace",
        description=(
            "galileo-trace CLI: login, project and log-stream setup, alerts, "
            "example traces."
        ),
    )
    subparsers = parser.add_subparsers(dest="command")

    help_cmd = subparsers.add_parser("help", help="Show help")
    help_cmd.set_defaults(_handler=lambda _args: 0)

    projects.register(subparsers)
    alerts.register(subparsers)
    demo.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "command", None):
        parser.print_help()
        raise SystemExit(0)
    if args.command == "help":
        parser.print_help()
        raise SystemExit(0)

    handler = getattr(args, "_handler", None)
    if handler is None:
        parser.print_help()
        raise SystemExit(1)

    code = int(handler(args) or 0)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
