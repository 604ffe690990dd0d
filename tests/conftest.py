"""Pytest fixtures: an in-memory fake of the Galileo REST API."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from typing import Any

# Keep a developer's real credentials out of the test run.
for _key in [k for k in os.environ if k.startswith("GALILEO_")]:
    del os.environ[_key]

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from galileo_trace.sdk.client import GalileoClient

API_KEY = "test-key"
BASE_URL = "http://testserver"


@dataclass
class FakeGalileo:
    """State behind the fake API, inspectable from tests."""

    api_key: str = API_KEY
    projects: list[dict[str, Any]] = field(default_factory=list)
    log_streams: list[dict[str, Any]] = field(default_factory=list)
    ingested: list[dict[str, Any]] = field(default_factory=list)
    alerts: list[dict[str, Any]] = field(default_factory=list)
    workflows: list[dict[str, Any]] = field(default_factory=list)
    chains: list[dict[str, Any]] = field(default_factory=list)
    calls: list[tuple[str, str]] = field(default_factory=list)
    logins: int = 0
    ingest_status: int | None = None  # force this status on the next ingest

    def add_project(self, name: str) -> dict[str, Any]:
        project = {"id": str(uuid.uuid4()), "name": name, "type": "gen_ai"}
        self.projects.append(project)
        return project

    def add_log_stream(self, project_id: str, name: str) -> dict[str, Any]:
        stream = {"id": str(uuid.uuid4()), "name": name, "project_id": project_id}
        self.log_streams.append(stream)
        return stream


def create_fake_app(state: FakeGalileo) -> FastAPI:
    app = FastAPI(title="Fake Galileo API")

    def _check_auth(request: Request) -> None:
        if request.headers.get("Galileo-API-Key") == state.api_key:
            return
        if request.headers.get("Authorization") == f"Bearer tok-{state.api_key}":
            return
        raise HTTPException(status_code=401, detail="unauthorized")

    @app.middleware("http")
    async def record_calls(request: Request, call_next):
        state.calls.append((request.method, request.url.path))
        return await call_next(request)

    @app.post("/login/api_key")
    async def login(request: Request) -> dict[str, Any]:
        body = await request.json()
        if body.get("api_key") != state.api_key:
            raise HTTPException(status_code=401, detail="invalid api key")
        state.logins += 1
        return {"access_token": f"tok-{state.api_key}", "token_type": "bearer"}

    @app.get("/projects")
    async def list_projects(request: Request, name: str | None = None) -> dict[str, Any]:
        _check_auth(request)
        # Substring match, like a search endpoint would do.
        data = [p for p in state.projects if name is None or name in p["name"]]
        return {"data": data}

    @app.post("/projects", status_code=201)
    async def create_project(request: Request) -> dict[str, Any]:
        _check_auth(request)
        body = await request.json()
        return {"data": state.add_project(body["name"])}

    @app.get("/projects/{project_id}/log_streams")
    async def list_log_streams(request: Request, project_id: str) -> list[dict[str, Any]]:
        _check_auth(request)
        return [s for s in state.log_streams if s["project_id"] == project_id]

    @app.post("/projects/{project_id}/log_streams", status_code=201)
    async def create_log_stream(request: Request, project_id: str) -> dict[str, Any]:
        _check_auth(request)
        body = await request.json()
        return state.add_log_stream(project_id, body["name"])

    @app.post("/projects/{project_id}/traces")
    async def ingest(request: Request, project_id: str):
        _check_auth(request)
        if state.ingest_status is not None:
            status, state.ingest_status = state.ingest_status, None
            return JSONResponse({"detail": "ingest unavailable"}, status_code=status)
        body = await request.json()
        state.ingested.append({"project_id": project_id, **body})
        return {
            "project_id": project_id,
            "log_stream_id": body.get("log_stream_id"),
            "traces_count": len(body.get("traces", [])),
        }

    @app.post("/projects/{project_id}/runs")
    async def create_run(request: Request, project_id: str) -> dict[str, Any]:
        _check_auth(request)
        body = await request.json()
        return {
            "id": str(uuid.uuid4()),
            "name": body["name"],
            "project_id": project_id,
            "task_type": body["task_type"],
        }

    @app.post("/projects/{project_id}/runs/{run_id}/chains/ingest")
    async def ingest_chain(request: Request, project_id: str, run_id: str) -> dict[str, Any]:
        _check_auth(request)
        body = await request.json()
        state.chains.append({"project_id": project_id, "run_id": run_id, **body})
        return {"num_rows": len(body["rows"]), "message": "ingested"}

    @app.post("/projects/{project_id}/alerts/create")
    async def create_alert(request: Request, project_id: str) -> dict[str, Any]:
        _check_auth(request)
        body = await request.json()
        state.alerts.append(body)
        return {"id": str(uuid.uuid4()), "project_id": project_id, **body}

    @app.post("/observe/workflows")
    async def log_workflows(request: Request) -> dict[str, Any]:
        _check_auth(request)
        body = await request.json()
        state.workflows.append(body)
        return {"message": "ok", "workflows_count": len(body["workflows"])}

    @app.post("/evaluate/runs")
    async def evaluate_run(request: Request) -> dict[str, Any]:
        _check_auth(request)
        body = await request.json()
        return {
            "project_id": str(uuid.uuid4()),
            "run_id": str(uuid.uuid4()),
            "workflows_count": len(body["workflows"]),
            "records_count": len(body["workflows"]),
        }

    return app


@pytest.fixture
def fake_service() -> FakeGalileo:
    return FakeGalileo()


@pytest.fixture
def fake_app(fake_service):
    return create_fake_app(fake_service)


@pytest.fixture
def http_client(fake_app):
    with TestClient(fake_app, base_url=BASE_URL) as client:
        yield client


@pytest.fixture
def client(http_client) -> GalileoClient:
    """GalileoClient wired to the fake API."""
    return GalileoClient(BASE_URL, API_KEY, http_client=http_client)


@pytest.fixture
def api_settings() -> dict[str, str]:
    """LoggerConfig keyword arguments that point at the fake API."""
    return {"base_url": BASE_URL, "api_key": API_KEY}
