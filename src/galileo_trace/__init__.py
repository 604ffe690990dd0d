"""Buffer LLM traces and spans and ship them to the Galileo API."""

from galileo_trace.core.exceptions import (
    ConfigurationError,
    FlushTimeoutError,
    GalileoTraceError,
    PayloadError,
    RequestTimeoutError,
    TransportError,
)
from galileo_trace.core.models import (
    ConcludeConfig,
    LlmSpanConfig,
    Span,
    SpanConfig,
    SpanKind,
    SpanStatus,
    Trace,
    TraceConfig,
)
from galileo_trace.core.trace_logger import LoggerConfig, TraceLogger
from galileo_trace.sdk.client import GalileoClient

__all__ = [
    "ConcludeConfig",
    "ConfigurationError",
    "FlushTimeoutError",
    "GalileoClient",
    "GalileoTraceError",
    "LlmSpanConfig",
    "LoggerConfig",
    "PayloadError",
    "RequestTimeoutError",
    "Span",
    "SpanConfig",
    "SpanKind",
    "SpanStatus",
    "Trace",
    "TraceConfig",
    "TraceLogger",
    "TransportError",
]
