"""TraceLogger: buffer traces and spans in memory and flush them to Galileo.

One logger instance is one independent session. It holds at most one active
(unconcluded) trace plus a buffer of concluded traces waiting to be flushed.
All state changes go through a single lock; network I/O never runs while the
lock is held. Flush takes the buffer out under the lock, submits it, and on
any failure puts it back in front of whatever was concluded meanwhile.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from galileo_trace.core.exceptions import (
    FlushTimeoutError,
    PayloadError,
    RequestTimeoutError,
)
from galileo_trace.core.models import (
    ConcludeConfig,
    LlmSpanConfig,
    Span,
    SpanConfig,
    Trace,
    TraceConfig,
)
from galileo_trace.core.resolver import resolve_log_stream, resolve_project
from galileo_trace.core.sinks import ApiSink, DryRunSink, TraceSink
from galileo_trace.sdk.client import DEFAULT_BASE_URL, GalileoClient

logger = logging.getLogger(__name__)


@dataclass
class LoggerConfig:
    """Everything a TraceLogger needs; it never reads the environment itself.

    Attrs:
        base_url: API root, e.g. https://api.galileo.ai/v2.
        api_key: Credential. Missing means dry-run.
        project_id: Explicit project id; skips resolution when set.
        project_name: Project to find or create when project_id is unset.
        log_stream_id: Explicit log stream id; skips resolution when set.
        log_stream_name: Log stream to find or create when log_stream_id is unset.
        session_id: Optional session the flushed traces belong to.
        auth_method: "api_key" (header) or "token" (bearer exchange).
        timeout: Default HTTP timeout in seconds.
        dry_run: Force dry-run even with a credential.
        dry_run_path: JSON-lines file dry-run flushes are appended to.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    project_id: str | None = None
    project_name: str | None = None
    log_stream_id: str | None = None
    log_stream_name: str | None = None
    session_id: str | None = None
    auth_method: str = "api_key"
    timeout: float = 30.0
    dry_run: bool = False
    dry_run_path: str | None = None

    @classmethod
    def from_settings(cls, settings: Any) -> LoggerConfig:
        return cls(
            base_url=settings.api_url,
            api_key=settings.api_key or None,
            project_id=settings.project_id or None,
            project_name=settings.project_name or None,
            log_stream_id=settings.log_stream_id or None,
            log_stream_name=settings.log_stream or None,
            session_id=settings.session_id or None,
            auth_method=settings.auth_method,
            timeout=settings.timeout,
            dry_run=settings.dry_run,
            dry_run_path=settings.dry_run_path or None,
        )


class TraceLogger:
    """Collect traces and spans and flush them to a log stream.

    Missing configuration (no credential, nothing to resolve the project or
    log stream from) puts the logger in dry-run mode: every call works and
    flush writes to a DryRunSink. Transport errors while resolving ids are
    raised from the constructor.

    Calling add_span, add_llm_span or conclude without an active trace logs a
    warning and returns None.
    """

    def __init__(
        self,
        config: LoggerConfig,
        *,
        client: GalileoClient | None = None,
        sink: TraceSink | None = None,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self._config = config
        self._clock = clock
        self._lock = threading.Lock()
        self._active: Trace | None = None
        self._buffer: list[Trace] = []
        self._client = client
        self._owns_client = False

        dry_run = config.dry_run
        project_id = config.project_id or None
        log_stream_id = config.log_stream_id or None

        if not dry_run and not config.api_key:
            logger.warning("No API key configured. Running in dry run mode.")
            dry_run = True

        try:
            if not dry_run and self._client is None:
                self._client = GalileoClient(
                    config.base_url,
                    config.api_key,
                    auth_method=config.auth_method,
                    timeout=config.timeout,
                )
                self._owns_client = True

            if not dry_run and not project_id:
                if config.project_name:
                    project_id = resolve_project(self._client, config.project_name)
                else:
                    logger.warning(
                        "Neither project ID nor project name is set. Running in dry run mode."
                    )
                    dry_run = True

            if not dry_run and not log_stream_id:
                if config.log_stream_name:
                    log_stream_id = resolve_log_stream(
                        self._client, project_id, config.log_stream_name
                    )
                else:
                    logger.warning(
                        "Neither log stream ID nor log stream name is set. "
                        "Running in dry run mode."
                    )
                    dry_run = True
        except BaseException:
            self._close_client()
            raise

        self._dry_run = dry_run
        self._project_id = project_id
        self._log_stream_id = log_stream_id
        self._session_id = config.session_id or None

        if sink is not None:
            self._sink = sink
        elif dry_run:
            self._sink = DryRunSink(config.dry_run_path)
        else:
            self._sink = ApiSink(self._client, project_id)

    # -- identifiers (immutable after init, read without the lock) ------------

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def project_id(self) -> str | None:
        return self._project_id

    @property
    def log_stream_id(self) -> str | None:
        return self._log_stream_id

    @property
    def session_id(self) -> str | None:
        return self._session_id

    # -- trace lifecycle ----------------------------------------------------

    @property
    def active_trace(self) -> Trace | None:
        with self._lock:
            return self._active

    def pending(self) -> list[Trace]:
        """Concluded traces waiting to be flushed, in conclusion order."""
        with self._lock:
            return list(self._buffer)

    def start_trace(self, config: TraceConfig | None = None, /, **kwargs: Any) -> Trace:
        """Begin a new trace; replaces (and drops) any unconcluded one."""
        config = _make_config(TraceConfig, config, kwargs)
        with self._lock:
            trace = Trace.from_config(config, self._clock())
            if self._active is not None:
                logger.warning(
                    "Starting trace %s discards unconcluded trace %s",
                    trace.id,
                    self._active.id,
                )
            self._active = trace
        logger.debug("Started trace %s", trace.id, extra={"trace_id": trace.id})
        return trace

    def add_span(self, config: SpanConfig | None = None, /, **kwargs: Any) -> Span | None:
        config = _make_config(SpanConfig, config, kwargs)
        return self._append(config)

    def add_llm_span(
        self, config: LlmSpanConfig | None = None, /, **kwargs: Any
    ) -> Span | None:
        config = _make_config(LlmSpanConfig, config, kwargs)
        return self._append(config.to_span_config())

    def _append(self, config: SpanConfig) -> Span | None:
        with self._lock:
            if self._active is None:
                logger.warning("No active trace; dropping span '%s'", config.name)
                return None
            span = Span.from_config(config, self._clock())
            self._active.spans.append(span)
            return span

    def conclude(
        self, config: ConcludeConfig | None = None, /, **kwargs: Any
    ) -> Trace | None:
        """Finish the active trace and queue it for the next flush."""
        config = _make_config(ConcludeConfig, config, kwargs)
        with self._lock:
            trace = self._active
            if trace is None:
                logger.warning("No active trace to conclude")
                return None
            duration_ns = config.duration_ns
            if duration_ns is None:
                duration_ns = max(0, self._clock() - trace.created_at_ns)
            trace.conclude(config.output, duration_ns, config.tags)
            self._buffer.append(trace)
            self._active = None
        logger.debug(
            "Concluded trace %s with %d span(s)",
            trace.id,
            len(trace.spans),
            extra={"trace_id": trace.id},
        )
        return trace

    # -- flushing -----------------------------------------------------------

    def flush(self, timeout: float | None = None) -> int:
        """Submit every concluded trace in one payload.

        Returns the number of traces submitted. On any failure the traces are
        put back in the buffer and the error is re-raised; an HTTP timeout is
        raised as FlushTimeoutError. Traces that cannot be encoded as JSON are
        dropped and reported with PayloadError; the rest stay buffered.
        """
        batch = self._take_batch()
        if not batch:
            logger.debug("Nothing to flush")
            return 0

        try:
            payload = self._build_payload(batch)
            self._sink.submit(payload, timeout=timeout)
        except RequestTimeoutError as exc:
            self._restore(batch)
            raise FlushTimeoutError(f"flush timed out: {exc}") from exc
        except PayloadError:
            raise
        except BaseException:
            self._restore(batch)
            raise

        logger.info("Flushed %d trace(s)", len(batch), extra=self._log_context())
        return len(batch)

    async def aflush(self, timeout: float | None = None) -> int:
        """Async flush. Timeout or cancellation leaves the buffer as it was."""
        batch = self._take_batch()
        if not batch:
            logger.debug("Nothing to flush")
            return 0

        try:
            payload = self._build_payload(batch)
            if timeout is None:
                await self._sink.asubmit(payload)
            else:
                await asyncio.wait_for(self._sink.asubmit(payload), timeout)
        except (asyncio.TimeoutError, RequestTimeoutError) as exc:
            self._restore(batch)
            raise FlushTimeoutError(f"flush timed out after {timeout}s") from exc
        except PayloadError:
            raise
        except BaseException:
            self._restore(batch)
            raise

        logger.info("Flushed %d trace(s)", len(batch), extra=self._log_context())
        return len(batch)

    def close(self, *, flush: bool = True) -> None:
        """Flush remaining traces (unless flush=False) and release the HTTP client."""
        try:
            if flush:
                self.flush()
        finally:
            self._close_client()

    def __enter__(self) -> TraceLogger:
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def _take_batch(self) -> list[Trace]:
        with self._lock:
            batch = self._buffer
            self._buffer = []
        return batch

    def _restore(self, batch: list[Trace]) -> None:
        with self._lock:
            self._buffer[:0] = batch
        logger.warning("Flush failed; kept %d trace(s) for retry", len(batch))

    def _build_payload(self, batch: list[Trace]) -> dict[str, Any]:
        traces: list[dict[str, Any]] = []
        rejected: list[str] = []
        for trace in batch:
            data = trace.to_dict()
            try:
                json.dumps(data, allow_nan=False)
            except (TypeError, ValueError) as exc:
                logger.error(
                    "Dropping trace %s: not JSON encodable (%s)",
                    trace.id,
                    exc,
                    extra={"trace_id": trace.id},
                )
                rejected.append(trace.id)
            else:
                traces.append(data)

        if rejected:
            kept = [trace for trace in batch if trace.id not in rejected]
            if kept:
                self._restore(kept)
            raise PayloadError(
                f"dropped {len(rejected)} trace(s) that cannot be encoded as JSON: "
                + ", ".join(rejected)
            )

        payload: dict[str, Any] = {
            "log_stream_id": self._log_stream_id,
            "traces": traces,
        }
        if self._session_id:
            payload["session_id"] = self._session_id
        return payload

    def _log_context(self) -> dict[str, Any]:
        return {
            "project_id": self._project_id,
            "log_stream_id": self._log_stream_id,
            "session_id": self._session_id,
        }

    def _close_client(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._owns_client = False


def _make_config(cls: type, config: Any, kwargs: dict[str, Any]) -> Any:
    if config is not None and kwargs:
        raise TypeError(
            f"pass either a {cls.__name__} or keyword arguments, not both "
            f"(got {', '.join(sorted(kwargs))})"
        )
    return config if config is not None else cls(**kwargs)
