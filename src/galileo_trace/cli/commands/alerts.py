"""Alert CLI commands."""

from __future__ import annotations

import argparse

from galileo_trace.cli.commands.common import add_format_arg, with_client
from galileo_trace.sdk.types import build_pii_alert


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    create = subparsers.add_parser(
        "create-alert", help="Create an email alert on average PII score"
    )
    create.add_argument("--project-id", required=True)
    create.add_argument(
        "--recipient",
        action="append",
        required=True,
        help="Email recipient (repeatable)",
    )
    create.add_argument("--threshold", type=float, default=0.7)
    create.add_argument("--window", type=int, default=900, help="Seconds")
    create.add_argument("--interval", type=int, default=300, help="Seconds")
    add_format_arg(create)
    create.set_defaults(_handler=cmd_create_alert)


def cmd_create_alert(args: argparse.Namespace) -> int:
    alert = build_pii_alert(
        args.recipient,
        threshold=args.threshold,
        window=args.window,
        interval=args.interval,
    )
    return with_client(
        lambda client: client.create_alert(args.project_id, alert), args.format
    )
