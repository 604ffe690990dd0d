"""Tests for flush failure, timeout and cancellation semantics."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from galileo_trace.core.exceptions import FlushTimeoutError, TransportError
from galileo_trace.core.trace_logger import LoggerConfig, TraceLogger
from galileo_trace.sdk.client import GalileoClient


def _conclude(trace_logger: TraceLogger, label: str) -> None:
    trace_logger.start_trace(input=label)
    trace_logger.add_span(name=f"{label}-span")
    trace_logger.conclude(output=f"{label}-out", duration_ns=1)


@pytest.fixture
def api_logger(client, api_settings) -> TraceLogger:
    return TraceLogger(
        LoggerConfig(**api_settings, project_name="demo", log_stream_name="production"),
        client=client,
    )


def test_flush_posts_to_project_traces(api_logger, fake_service):
    _conclude(api_logger, "a")
    _conclude(api_logger, "b")

    assert api_logger.flush() == 2

    [ingested] = fake_service.ingested
    assert ingested["project_id"] == api_logger.project_id
    assert ingested["log_stream_id"] == api_logger.log_stream_id
    assert [t["input"] for t in ingested["traces"]] == ["a", "b"]
    assert api_logger.pending() == []


def test_failed_flush_keeps_buffer_for_retry(api_logger, fake_service):
    _conclude(api_logger, "a")
    _conclude(api_logger, "b")
    before = [t.id for t in api_logger.pending()]
    fake_service.ingest_status = 503

    with pytest.raises(TransportError) as exc_info:
        api_logger.flush()

    assert exc_info.value.status_code == 503
    assert "ingest unavailable" in exc_info.value.body
    assert [t.id for t in api_logger.pending()] == before
    assert fake_service.ingested == []

    assert api_logger.flush() == 2
    assert [t["id"] for t in fake_service.ingested[0]["traces"]] == before


def test_traces_concluded_during_failed_flush_stay_behind_restored_ones():
    trace_logger = None

    class ConcludeThenFailSink:
        def submit(self, payload, timeout=None):
            _conclude(trace_logger, "late")
            raise TransportError("boom", status_code=500)

        async def asubmit(self, payload):
            raise AssertionError("not used")

    trace_logger = TraceLogger(LoggerConfig(), sink=ConcludeThenFailSink())
    _conclude(trace_logger, "early")

    with pytest.raises(TransportError):
        trace_logger.flush()

    assert [t.input for t in trace_logger.pending()] == ["early", "late"]


def test_http_timeout_raises_flush_timeout_and_keeps_buffer(api_settings):
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    http = httpx.Client(transport=httpx.MockTransport(_handler))
    client = GalileoClient(api_settings["base_url"], api_settings["api_key"], http_client=http)
    trace_logger = TraceLogger(
        LoggerConfig(**api_settings, project_id="p-1", log_stream_id="ls-1"),
        client=client,
    )
    _conclude(trace_logger, "a")

    with pytest.raises(FlushTimeoutError):
        trace_logger.flush(timeout=0.5)

    assert len(trace_logger.pending()) == 1


def test_keyboard_interrupt_during_flush_restores_buffer():
    class InterruptedSink:
        def submit(self, payload, timeout=None):
            raise KeyboardInterrupt

        async def asubmit(self, payload):
            raise KeyboardInterrupt

    trace_logger = TraceLogger(LoggerConfig(), sink=InterruptedSink())
    _conclude(trace_logger, "a")

    with pytest.raises(KeyboardInterrupt):
        trace_logger.flush()

    assert len(trace_logger.pending()) == 1


def test_close_flushes_remaining_traces(api_logger, fake_service):
    _conclude(api_logger, "a")
    api_logger.close()

    assert len(fake_service.ingested) == 1


# -- async -------------------------------------------------------------------


@pytest.mark.asyncio
async def test_aflush_posts_over_async_client(
    fake_app, fake_service, http_client, api_settings
):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=fake_app), base_url=api_settings["base_url"]
    ) as async_http:
        async_client = GalileoClient(
            api_settings["base_url"],
            api_settings["api_key"],
            http_client=http_client,
            async_http_client=async_http,
        )
        trace_logger = TraceLogger(
            LoggerConfig(**api_settings, project_name="demo", log_stream_name="production"),
            client=async_client,
        )
        _conclude(trace_logger, "a")

        assert await trace_logger.aflush(timeout=5) == 1

    assert [t["input"] for t in fake_service.ingested[0]["traces"]] == ["a"]
    assert trace_logger.pending() == []


class BlockingSink:
    def __init__(self) -> None:
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.delivered: list[dict] = []

    def submit(self, payload, timeout=None):
        raise AssertionError("not used")

    async def asubmit(self, payload):
        self.entered.set()
        await self.release.wait()
        self.delivered.append(payload)


@pytest.mark.asyncio
async def test_aflush_timeout_restores_buffer():
    sink = BlockingSink()
    trace_logger = TraceLogger(LoggerConfig(), sink=sink)
    _conclude(trace_logger, "a")

    with pytest.raises(FlushTimeoutError):
        await trace_logger.aflush(timeout=0.05)

    assert [t.input for t in trace_logger.pending()] == ["a"]
    assert sink.delivered == []


@pytest.mark.asyncio
async def test_cancelled_aflush_restores_buffer():
    sink = BlockingSink()
    trace_logger = TraceLogger(LoggerConfig(), sink=sink)
    _conclude(trace_logger, "a")
    _conclude(trace_logger, "b")

    task = asyncio.create_task(trace_logger.aflush())
    await sink.entered.wait()
    # The batch is out of the buffer while the submission is in flight.
    assert trace_logger.pending() == []
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert [t.input for t in trace_logger.pending()] == ["a", "b"]
    assert sink.delivered == []


@pytest.mark.asyncio
async def test_aflush_with_empty_buffer_is_noop():
    sink = BlockingSink()
    trace_logger = TraceLogger(LoggerConfig(), sink=sink)

    assert await trace_logger.aflush(timeout=0.01) == 0
    assert not sink.entered.is_set()
