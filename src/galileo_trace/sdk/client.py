"""HTTPX-based client for the Galileo REST API."""

from __future__ import annotations

import logging
import threading
from typing import Any

import httpx

from galileo_trace.core.exceptions import RequestTimeoutError, TransportError
from galileo_trace.sdk.types import (
    AlertRecord,
    AlertRequest,
    ChainIngestRequest,
    ChainIngestResponse,
    ChainNode,
    EvaluateRunResponse,
    IngestResponse,
    LoginResponse,
    LogStreamRecord,
    ProjectRecord,
    RunRecord,
    WorkflowStep,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.galileo.ai/v2"
AUTH_METHODS = ("api_key", "token")


class GalileoClient:
    """Sync REST client with an async path for trace ingestion.

    auth_method "api_key" sends the key in the Galileo-API-Key header;
    "token" exchanges it once via /login/api_key and sends a bearer token.
    Injected httpx clients are used as-is and never closed by this class.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        *,
        auth_method: str = "api_key",
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
        async_http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if auth_method not in AUTH_METHODS:
            raise ValueError(f"auth_method must be one of {AUTH_METHODS}, got {auth_method!r}")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.auth_method = auth_method
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            trust_env=False,
        )
        self._async_client = async_http_client
        self._token: str | None = None
        self._token_lock = threading.Lock()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> GalileoClient:
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    # -- auth ---------------------------------------------------------------

    def login(self) -> LoginResponse:
        if not self.api_key:
            raise TransportError("cannot log in without an API key")
        data = self._request(
            "POST",
            "/login/api_key",
            authenticate=False,
            json={"api_key": self.api_key},
        )
        resp = LoginResponse.model_validate(_unwrap_object(data))
        with self._token_lock:
            self._token = resp.access_token
        return resp

    def _auth_headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        if self.auth_method == "api_key":
            return {"Galileo-API-Key": self.api_key}
        if self._token is None:
            self.login()
        return {"Authorization": f"Bearer {self._token}"}

    async def _aauth_headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        if self.auth_method == "api_key":
            return {"Galileo-API-Key": self.api_key}
        if self._token is None:
            data = await self._arequest(
                "POST",
                "/login/api_key",
                authenticate=False,
                json={"api_key": self.api_key},
            )
            token = LoginResponse.model_validate(_unwrap_object(data)).access_token
            with self._token_lock:
                self._token = token
        return {"Authorization": f"Bearer {self._token}"}

    # -- projects / log streams ---------------------------------------------

    def list_projects(self, *, name: str | None = None) -> list[ProjectRecord]:
        params = {"name": name} if name else None
        data = self._request("GET", "/projects", params=params)
        return [ProjectRecord.model_validate(item) for item in _unwrap_list(data)]

    def create_project(
        self,
        name: str,
        *,
        project_type: str = "gen_ai",
        is_public: bool = False,
    ) -> ProjectRecord:
        data = self._request(
            "POST",
            "/projects",
            json={"name": name, "is_public": is_public, "type": project_type},
        )
        return ProjectRecord.model_validate(_unwrap_object(data))

    def list_log_streams(
        self, project_id: str, *, name: str | None = None
    ) -> list[LogStreamRecord]:
        params = {"name": name} if name else None
        data = self._request("GET", f"/projects/{project_id}/log_streams", params=params)
        return [LogStreamRecord.model_validate(item) for item in _unwrap_list(data)]

    def create_log_stream(self, project_id: str, name: str) -> LogStreamRecord:
        data = self._request(
            "POST",
            f"/projects/{project_id}/log_streams",
            json={"name": name},
        )
        return LogStreamRecord.model_validate(_unwrap_object(data))

    def create_run(
        self, project_id: str, name: str, *, task_type: str = "prompt_chain"
    ) -> RunRecord:
        data = self._request(
            "POST",
            f"/projects/{project_id}/runs",
            json={"name": name, "task_type": task_type},
        )
        return RunRecord.model_validate(_unwrap_object(data))

    def ingest_chain_rows(
        self,
        project_id: str,
        run_id: str,
        rows: list[ChainNode],
        *,
        scorers: list[str] | None = None,
    ) -> ChainIngestResponse:
        """Log prompt-chain rows into a run created with create_run.

        ``scorers`` names the prompt scorers to enable for these rows.
        """
        request = ChainIngestRequest(
            rows=rows,
            prompt_scorers_configuration={name: True for name in scorers or []},
        )
        data = self._request(
            "POST",
            f"/projects/{project_id}/runs/{run_id}/chains/ingest",
            json=request.model_dump(exclude_none=True),
        )
        return ChainIngestResponse.model_validate(data if isinstance(data, dict) else {})

    # -- ingestion ----------------------------------------------------------

    def ingest_traces(
        self,
        project_id: str,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> IngestResponse:
        kwargs: dict[str, Any] = {"json": payload}
        if timeout is not None:
            kwargs["timeout"] = timeout
        data = self._request("POST", f"/projects/{project_id}/traces", **kwargs)
        return IngestResponse.model_validate(data if isinstance(data, dict) else {})

    async def aingest_traces(
        self, project_id: str, payload: dict[str, Any]
    ) -> IngestResponse:
        data = await self._arequest(
            "POST", f"/projects/{project_id}/traces", json=payload
        )
        return IngestResponse.model_validate(data if isinstance(data, dict) else {})

    def log_workflows(
        self,
        workflows: list[WorkflowStep],
        *,
        project_id: str | None = None,
        project_name: str | None = None,
    ) -> Any:
        """Log workflows to an observe (v1) project."""
        payload: dict[str, Any] = {
            "workflows": [w.model_dump(exclude_none=True) for w in workflows]
        }
        if project_id:
            payload["project_id"] = project_id
        if project_name:
            payload["project_name"] = project_name
        return self._request("POST", "/observe/workflows", json=payload)

    def create_evaluate_run(
        self,
        project_name: str,
        run_name: str,
        workflows: list[WorkflowStep],
        *,
        scorers: list[str] | None = None,
    ) -> EvaluateRunResponse:
        payload = {
            "project_name": project_name,
            "run_name": run_name,
            "scorers": [{"name": s} for s in (scorers or [])],
            "workflows": [w.model_dump(exclude_none=True) for w in workflows],
        }
        data = self._request("POST", "/evaluate/runs", json=payload)
        return EvaluateRunResponse.model_validate(_unwrap_object(data))

    # -- alerts -------------------------------------------------------------

    def create_alert(self, project_id: str, alert: AlertRequest) -> AlertRecord:
        data = self._request(
            "POST",
            f"/projects/{project_id}/alerts/create",
            json=alert.model_dump(exclude_none=True),
        )
        return AlertRecord.model_validate(_unwrap_object(data))

    # -- transport ----------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        authenticate: bool = True,
        **kwargs: Any,
    ) -> Any:
        headers = self._auth_headers() if authenticate else {}
        url = self._url(path)
        try:
            resp = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"{method} {path} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        return _decode(method, path, resp)

    async def _arequest(
        self,
        method: str,
        path: str,
        *,
        authenticate: bool = True,
        **kwargs: Any,
    ) -> Any:
        headers = await self._aauth_headers() if authenticate else {}
        url = self._url(path)
        try:
            if self._async_client is not None:
                resp = await self._async_client.request(
                    method, url, headers=headers, **kwargs
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self.timeout, trust_env=False
                ) as client:
                    resp = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"{method} {path} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        return _decode(method, path, resp)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"


def _decode(method: str, path: str, resp: httpx.Response) -> Any:
    if resp.is_error:
        body = resp.text
        logger.debug("%s %s -> %s: %s", method, path, resp.status_code, body)
        raise TransportError(
            f"{method} {path} failed with status {resp.status_code}: {body}",
            status_code=resp.status_code,
            body=body,
        )
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as exc:
        raise TransportError(
            f"{method} {path} returned a non-JSON body",
            status_code=resp.status_code,
            body=resp.text,
        ) from exc


def _unwrap_list(data: Any) -> list[Any]:
    if isinstance(data, dict):
        for key in ("data", "projects", "log_streams"):
            if isinstance(data.get(key), list):
                return data[key]
        return []
    return list(data or [])


def _unwrap_object(data: Any) -> dict[str, Any]:
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        return data["data"]
    if not isinstance(data, dict):
        raise TransportError(f"expected a JSON object, got {type(data).__name__}")
    return data
