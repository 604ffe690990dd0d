"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from typing import Any

from galileo_trace.config import settings
from galileo_trace.core.exceptions import ConfigurationError, GalileoTraceError
from galileo_trace.sdk.client import GalileoClient


def add_format_arg(parser: Any) -> None:
    parser.add_argument("--format", choices=["table", "json", "text"], default="table")


def build_client() -> GalileoClient:
    if not settings.api_key:
        raise ConfigurationError("GALILEO_API_KEY is not set")
    return GalileoClient(
        settings.api_url,
        settings.api_key,
        auth_method=settings.auth_method,
        timeout=settings.timeout,
    )


def with_client(fn: Callable[[GalileoClient], Any], fmt: str = "table") -> int:
    """Run ``fn`` with a configured client and print its result.

    API and configuration errors are printed to stderr and turned into exit code 1.
    """
    try:
        with build_client() as client:
            payload = fn(client)
    except GalileoTraceError as exc:
        report_error(exc)
        return 1
    emit(payload, fmt)
    return 0


def report_error(exc: Exception) -> None:
    print(f"error: {exc}", file=sys.stderr)
    status_code = getattr(exc, "status_code", None)
    if status_code is not None:
        print(f"status: {status_code}", file=sys.stderr)


def emit(payload: Any, fmt: str = "table") -> None:
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump()
    if fmt == "json":
        print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))
        return
    if fmt == "text":
        _emit_text(payload)
        return

    if isinstance(payload, dict):
        for key in ("traces", "projects", "log_streams"):
            if isinstance(payload.get(key), list):
                _print_rows(payload[key])
                return
        _print_kv(payload)
        return

    if isinstance(payload, list):
        _print_rows([p.model_dump() if hasattr(p, "model_dump") else p for p in payload])
        return

    print(payload)


def _print_kv(data: dict[str, Any]) -> None:
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            value = json.dumps(value, ensure_ascii=False, default=str)
        print(f"{key}: {value}")


def _print_rows(rows: list[dict[str, Any]]) -> None:
    if not rows:
        print("(empty)")
        return

    keys: list[str] = []
    for row in rows:
        for key in row.keys():
            if key not in keys:
                keys.append(key)

    widths = {key: len(key) for key in keys}
    string_rows: list[dict[str, str]] = []
    for row in rows:
        rendered: dict[str, str] = {}
        for key in keys:
            value = row.get(key, "")
            if isinstance(value, (dict, list)):
                text = json.dumps(value, ensure_ascii=False, default=str)
            else:
                text = str(value)
            rendered[key] = text
            widths[key] = max(widths[key], len(text))
        string_rows.append(rendered)

    header = " | ".join(key.ljust(widths[key]) for key in keys)
    sep = "-+-".join("-" * widths[key] for key in keys)
    print(header)
    print(sep)
    for row in string_rows:
        print(" | ".join(row[key].ljust(widths[key]) for key in keys))


def _emit_text(payload: Any) -> None:
    if isinstance(payload, dict):
        for key, value in payload.items():
            if isinstance(value, list):
                print(f"{key}:")
                for item in value:
                    if isinstance(item, dict):
                        print("- " + ", ".join(f"{k}={item.get(k)}" for k in item))
                    else:
                        print(f"- {item}")
            elif isinstance(value, dict):
                print(f"{key}:")
                for sub_key, sub_value in value.items():
                    print(f"  {sub_key}: {sub_value}")
            else:
                print(f"{key}: {value}")
        return
    if isinstance(payload, list):
        for item in payload:
            if hasattr(item, "model_dump"):
                item = item.model_dump()
            if isinstance(item, dict):
                print(", ".join(f"{k}={item.get(k)}" for k in item))
            else:
                print(item)
        return
    print(payload)
