"""Destinations a TraceLogger flushes its buffer to."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Any, Protocol

from galileo_trace.sdk.client import GalileoClient

logger = logging.getLogger(__name__)


class TraceSink(Protocol):
    """Receives one serialized flush payload at a time."""

    def submit(self, payload: dict[str, Any], timeout: float | None = None) -> None: ...

    async def asubmit(self, payload: dict[str, Any]) -> None: ...


class ApiSink:
    """Posts payloads to the project's trace ingestion endpoint."""

    def __init__(self, client: GalileoClient, project_id: str) -> None:
        self._client = client
        self._project_id = project_id

    def submit(self, payload: dict[str, Any], timeout: float | None = None) -> None:
        self._client.ingest_traces(self._project_id, payload, timeout=timeout)

    async def asubmit(self, payload: dict[str, Any]) -> None:
        await self._client.aingest_traces(self._project_id, payload)


class DryRunSink:
    """Logs payloads instead of sending them.

    With ``path`` set, each payload is also appended to that file as one JSON line.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else None
        self._write_lock = threading.Lock()

    def submit(self, payload: dict[str, Any], timeout: float | None = None) -> None:
        logger.info(
            "Dry run: trace data:\n%s",
            json.dumps(payload, ensure_ascii=False, indent=2),
        )
        if self.path is None:
            return
        line = json.dumps(payload, ensure_ascii=False)
        with self._write_lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    async def asubmit(self, payload: dict[str, Any]) -> None:
        await asyncio.to_thread(self.submit, payload)
