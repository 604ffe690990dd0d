"""Login, project, log-stream, run and chain-ingest CLI commands."""

from __future__ import annotations

import argparse
from typing import Any

from galileo_trace.cli.commands.common import add_format_arg, with_client
from galileo_trace.config import settings
from galileo_trace.core.resolver import resolve_log_stream, resolve_project
from galileo_trace.sdk.client import GalileoClient
from galileo_trace.sdk.types import root_chain_node


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    login = subparsers.add_parser("login", help="Exchange the API key for an access token")
    add_format_arg(login)
    login.set_defaults(_handler=cmd_login)

    projects = subparsers.add_parser("projects", help="List projects")
    projects.add_argument("--name")
    add_format_arg(projects)
    projects.set_defaults(_handler=cmd_projects)

    ensure_project = subparsers.add_parser(
        "ensure-project", help="Find a project by name, creating it if missing"
    )
    ensure_project.add_argument("name", nargs="?", default=settings.project_name)
    ensure_project.add_argument("--type", dest="project_type", default="gen_ai")
    add_format_arg(ensure_project)
    ensure_project.set_defaults(_handler=cmd_ensure_project)

    ensure_stream = subparsers.add_parser(
        "ensure-log-stream", help="Find a log stream by name, creating it if missing"
    )
    ensure_stream.add_argument("name", nargs="?", default=settings.log_stream)
    ensure_stream.add_argument("--project-id", default=settings.project_id or None)
    add_format_arg(ensure_stream)
    ensure_stream.set_defaults(_handler=cmd_ensure_log_stream)

    create_run = subparsers.add_parser("create-run", help="Create a run in a project")
    create_run.add_argument("name")
    create_run.add_argument("--project-id", required=True)
    create_run.add_argument("--task-type", default="prompt_chain")
    add_format_arg(create_run)
    create_run.set_defaults(_handler=cmd_create_run)

    log_chain = subparsers.add_parser(
        "log-chain", help="Log a single-node prompt chain into a run"
    )
    log_chain.add_argument("--project-id", required=True)
    log_chain.add_argument("--run-id", required=True)
    log_chain.add_argument(
        "--input", dest="node_input", default="Tell me a joke about bears!"
    )
    log_chain.add_argument(
        "--output",
        dest="node_output",
        default=(
            "Here is one: Why did the bear go to the doctor? "
            "Because it had a grizzly cough!"
        ),
    )
    log_chain.add_argument(
        "--scorer", action="append", help="Prompt scorer to enable (repeatable)"
    )
    add_format_arg(log_chain)
    log_chain.set_defaults(_handler=cmd_log_chain)


def cmd_login(args: argparse.Namespace) -> int:
    def _run(client: GalileoClient) -> dict[str, Any]:
        resp = client.login()
        return {"status": "ok", "token_type": resp.token_type}

    return with_client(_run, args.format)


def cmd_projects(args: argparse.Namespace) -> int:
    return with_client(lambda client: client.list_projects(name=args.name), args.format)


def cmd_ensure_project(args: argparse.Namespace) -> int:
    def _run(client: GalileoClient) -> dict[str, Any]:
        project_id = resolve_project(client, args.name, project_type=args.project_type)
        return {"name": args.name, "id": project_id}

    return with_client(_run, args.format)


def cmd_ensure_log_stream(args: argparse.Namespace) -> int:
    def _run(client: GalileoClient) -> dict[str, Any]:
        project_id = args.project_id or resolve_project(client, settings.project_name)
        stream_id = resolve_log_stream(client, project_id, args.name)
        return {"project_id": project_id, "name": args.name, "id": stream_id}

    return with_client(_run, args.format)


def cmd_create_run(args: argparse.Namespace) -> int:
    return with_client(
        lambda client: client.create_run(
            args.project_id, args.name, task_type=args.task_type
        ),
        args.format,
    )


def cmd_log_chain(args: argparse.Namespace) -> int:
    node = root_chain_node(args.node_input, args.node_output, latency=0)
    return with_client(
        lambda client: client.ingest_chain_rows(
            args.project_id,
            args.run_id,
            [node],
            scorers=args.scorer or ["factuality", "groundedness"],
        ),
        args.format,
    )
