"""Example: log one LLM + tool trace with the galileo-trace SDK.

Reads GALILEO_* settings from the environment / .env. Without an API key
the trace is printed instead of sent.
"""

from __future__ import annotations

from galileo_trace import LoggerConfig, SpanKind, TraceLogger
from galileo_trace.config import settings
from galileo_trace.logging_config import setup_logging


def main() -> None:
    setup_logging()
    with TraceLogger(LoggerConfig.from_settings(settings)) as trace_logger:
        trace_logger.start_trace(input="What is 2 + 2?", tags=["example"])
        trace_logger.add_llm_span(
            input="What is 2 + 2?",
            output='{"tool_call": {"name": "calculator", "arguments": "2 + 2"}}',
            model="gpt-4o",
            num_input_tokens=8,
            num_output_tokens=12,
            duration_ns=300_000_000,
        )
        trace_logger.add_span(
            name="calculator",
            input="2 + 2",
            output="4",
            kind=SpanKind.TOOL,
            duration_ns=1_000_000,
        )
        trace_logger.conclude(output="4", duration_ns=320_000_000)
        print("flushed:", trace_logger.flush(timeout=10))


if __name__ == "__main__":
    main()
