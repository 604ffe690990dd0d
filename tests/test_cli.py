"""Tests for the argparse CLI."""

from __future__ import annotations

import json

import pytest

from galileo_trace.cli import main as cli_main
from galileo_trace.cli.commands import common
from galileo_trace.config import settings


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main.main(argv)
    return exc_info.value.code


@pytest.fixture
def no_credentials(monkeypatch):
    monkeypatch.setattr(settings, "api_key", "")
    monkeypatch.setattr(settings, "dry_run_path", "")


@pytest.fixture
def fake_cli_client(monkeypatch, client):
    monkeypatch.setattr(common, "build_client", lambda: client)
    return client


def test_no_command_prints_help(capsys):
    assert _run([]) == 0
    assert "galileo-trace" in capsys.readouterr().out


def test_demo_without_key_runs_dry(no_credentials, capsys):
    assert _run(["demo", "llm-tool", "--format", "json"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["dry_run"] is True
    assert out["flushed"] == 1


def test_demo_rag_writes_dry_run_file(no_credentials, monkeypatch, tmp_path, capsys):
    path = tmp_path / "dry.jsonl"
    monkeypatch.setattr(settings, "dry_run_path", str(path))

    assert _run(["demo", "rag", "--dry-run", "--format", "json"]) == 0

    [line] = path.read_text(encoding="utf-8").splitlines()
    [trace] = json.loads(line)["traces"]
    assert [s["type"] for s in trace["spans"]] == ["retriever", "llm"]
    assert trace["spans"][1]["metadata"]["total_tokens"] == 525


def test_command_without_key_reports_error(no_credentials, capsys):
    assert _run(["create-alert", "--project-id", "p-1", "--recipient", "a@b.c"]) == 1
    assert "GALILEO_API_KEY is not set" in capsys.readouterr().err


def test_ensure_project_creates_then_reuses(fake_cli_client, fake_service, capsys):
    assert _run(["ensure-project", "cli-demo", "--format", "json"]) == 0
    first = json.loads(capsys.readouterr().out)

    assert _run(["ensure-project", "cli-demo", "--format", "json"]) == 0
    second = json.loads(capsys.readouterr().out)

    assert first["id"] == second["id"]
    assert len(fake_service.projects) == 1


def test_create_alert(fake_cli_client, fake_service, capsys):
    code = _run(
        [
            "create-alert",
            "--project-id",
            "p-1",
            "--recipient",
            "ops@example.com",
            "--recipient",
            "sec@example.com",
        ]
    )

    assert code == 0
    assert fake_service.alerts[0]["channels"][0]["config"]["recipients"] == [
        "ops@example.com",
        "sec@example.com",
    ]
    assert "High PII Detection Alert" in capsys.readouterr().out


def test_api_error_exits_nonzero(fake_cli_client, fake_service, capsys):
    fake_service.api_key = "rotated"

    assert _run(["projects"]) == 1
    err = capsys.readouterr().err
    assert "status: 401" in err


def test_log_workflows(fake_cli_client, fake_service):
    assert _run(["log-workflows", "--project-id", "p-1", "--format", "json"]) == 0

    [sent] = fake_service.workflows
    assert sent["workflows"][0]["steps"][0]["type"] == "llm"


def test_log_rag_workflow(fake_cli_client, fake_service):
    assert _run(["log-workflows", "--project-id", "p-1", "--example", "rag"]) == 0

    [sent] = fake_service.workflows
    steps = sent["workflows"][0]["steps"]
    assert [s["type"] for s in steps] == ["retriever", "llm"]
    assert steps[0]["output"][0]["metadata"]["score"] == "0.92"
    assert steps[1]["metadata"]["total_tokens"] == "525"


def test_log_chain(fake_cli_client, fake_service):
    code = _run(
        ["log-chain", "--project-id", "p-1", "--run-id", "r-1", "--format", "json"]
    )

    assert code == 0
    [sent] = fake_service.chains
    assert sent["run_id"] == "r-1"
    assert sent["rows"][0]["node_input"] == "Tell me a joke about bears!"
    assert sent["prompt_scorers_configuration"] == {"factuality": True, "groundedness": True}
