"""Example traces and workflows sent through the SDK."""

from __future__ import annotations

import argparse
import time
from datetime import datetime
from typing import Any

from galileo_trace.cli.commands.common import (
    add_format_arg,
    emit,
    report_error,
    with_client,
)
from galileo_trace.config import settings
from galileo_trace.core.exceptions import GalileoTraceError
from galileo_trace.core.models import SpanKind
from galileo_trace.core.trace_logger import LoggerConfig, TraceLogger
from galileo_trace.sdk.client import GalileoClient
from galileo_trace.sdk.types import WorkflowStep

PARIS_DOCS = [
    {
        "page_content": (
            "Paris is the capital and most populous city of France. It has an "
            "estimated population of 2,165,423 residents as of 2019 in an area "
            "of more than 105 square kilometers."
        ),
        "metadata": {"source": "geography_database", "score": 0.92},
    },
    {
        "page_content": (
            "Paris is known worldwide for its art museums, fashion scene, and "
            "iconic landmarks like the Eiffel Tower, Louvre, and Notre-Dame Cathedral."
        ),
        "metadata": {"source": "travel_guide", "score": 0.85},
    },
]

PARIS_ANSWER = (
    "Paris is the capital and most populous city of France, with over 2 million "
    "residents. It's renowned for its art museums, fashion scene, and iconic "
    "landmarks including the Eiffel Tower, Louvre Museum, and Notre-Dame Cathedral."
)


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    demo = subparsers.add_parser("demo", help="Log an example trace")
    demo.add_argument("example", choices=["llm-tool", "rag"])
    demo.add_argument("--timeout", type=float, default=10.0)
    demo.add_argument("--dry-run", action="store_true")
    add_format_arg(demo)
    demo.set_defaults(_handler=cmd_demo)

    workflows = subparsers.add_parser(
        "log-workflows", help="Log the example agent workflow to an observe project"
    )
    workflows.add_argument("--project-id", required=True)
    workflows.add_argument("--example", choices=sorted(WORKFLOW_EXAMPLES), default="llm")
    add_format_arg(workflows)
    workflows.set_defaults(_handler=cmd_log_workflows)

    evaluate = subparsers.add_parser("evaluate-run", help="Create an example evaluate run")
    evaluate.add_argument("--project-name", default=settings.project_name)
    evaluate.add_argument("--run-name")
    evaluate.add_argument(
        "--scorer", action="append", help="Scorer name (repeatable)"
    )
    add_format_arg(evaluate)
    evaluate.set_defaults(_handler=cmd_evaluate_run)


def llm_tool_example(trace_logger: TraceLogger) -> None:
    """An LLM decides to call a weather tool; the trace ends with the tool output."""
    question = "What is the weather in London?"
    tool_output = '{"temperature": "15°C", "conditions": "Cloudy"}'

    trace_logger.start_trace(
        input=question, name="llm-with-tool", tags=["llm-with-tool", "weather"]
    )
    trace_logger.add_llm_span(
        input=question,
        output='{"tool_call": {"name": "get_weather", "arguments": {"location": "London"}}}',
        model="gpt-4o-tool-calling",
        num_input_tokens=10,
        num_output_tokens=20,
        duration_ns=800_000_000,
        metadata={"temperature": 0.1},
        tags=["llm", "tool-call"],
    )
    trace_logger.add_span(
        name="get_weather",
        input='{"location": "London"}',
        output=tool_output,
        kind=SpanKind.TOOL,
        duration_ns=500_000_000,
        tags=["tool", "weather-api"],
    )
    trace_logger.conclude(
        output=tool_output,
        duration_ns=1_300_000_000,
        tags=["completed", "tool-success"],
    )


def rag_example(trace_logger: TraceLogger) -> None:
    """Retrieve two documents, then answer with them as context."""
    question = "Tell me about Paris, France."
    context = " ".join(doc["page_content"] for doc in PARIS_DOCS)

    trace_logger.start_trace(
        input=question,
        name="RAG Query Process",
        tags=["rag"],
        metadata={"user_id": "test-user-789"},
    )
    trace_logger.add_span(
        name="Vector Store Query",
        input="Paris, France",
        output=PARIS_DOCS,
        kind=SpanKind.RETRIEVER,
        duration_ns=1_200_000_000,
        metadata={
            "vector_store": "pinecone",
            "index_name": "knowledge_base",
            "top_k": 2,
            "similarity": "cosine",
        },
    )
    trace_logger.add_llm_span(
        name="Answer Generation with Context",
        input=(
            f"Question: {question}\nContext: {context}\n"
            "Instructions: Use the provided context to answer the question accurately."
        ),
        output=PARIS_ANSWER,
        model="gpt-4",
        num_input_tokens=450,
        num_output_tokens=75,
        duration_ns=1_400_000_000,
        metadata={"temperature": 0.2, "max_tokens": 300},
    )
    trace_logger.conclude(output=PARIS_ANSWER, duration_ns=3_000_000_000)


EXAMPLES = {"llm-tool": llm_tool_example, "rag": rag_example}


def cmd_demo(args: argparse.Namespace) -> int:
    config = LoggerConfig.from_settings(settings)
    if args.dry_run:
        config.dry_run = True
    try:
        trace_logger = TraceLogger(config)
    except GalileoTraceError as exc:
        report_error(exc)
        return 1

    EXAMPLES[args.example](trace_logger)
    try:
        flushed = trace_logger.flush(timeout=args.timeout)
    except GalileoTraceError as exc:
        report_error(exc)
        return 1
    finally:
        trace_logger.close(flush=False)

    emit(
        {
            "example": args.example,
            "dry_run": trace_logger.dry_run,
            "project_id": trace_logger.project_id,
            "log_stream_id": trace_logger.log_stream_id,
            "flushed": flushed,
        },
        args.format,
    )
    return 0


def example_workflow(now_ns: int | None = None) -> WorkflowStep:
    """A one-second agent workflow wrapping a single LLM call."""
    start = (now_ns or time.time_ns()) - 1_000_000_000
    return WorkflowStep(
        type="agent",
        name="Simple LLM Query",
        input="What is the capital of France?",
        output="The capital of France is Paris.",
        created_at_ns=start,
        duration_ns=1_000_000_000,
        metadata={"model": "gpt-4", "tags": "demo,python,observe"},
        status_code=200,
        steps=[
            WorkflowStep(
                type="llm",
                name="LLM Call",
                input="What is the capital of France?",
                output="Paris is the capital of France.",
                created_at_ns=start + 100_000_000,
                duration_ns=800_000_000,
                metadata={
                    "model": "gpt-4",
                    "prompt_tokens": "10",
                    "completion_tokens": "8",
                    "total_tokens": "18",
                },
            )
        ],
    )

def rag_workflow(now_ns: int | None = None) -> WorkflowStep:
    """A three-second agent workflow: vector store lookup, then an LLM answer.

    Observe metadata values are sent as strings.
    """
    start = (now_ns or time.time_ns()) - 3_000_000_000
    question = "Tell me about Paris, France."
    context = " ".join(doc["page_content"] for doc in PARIS_DOCS)
    docs = [
        {
            "page_content": doc["page_content"],
            "metadata": {k: str(v) for k, v in doc["metadata"].items()},
        }
        for doc in PARIS_DOCS
    ]
    return WorkflowStep(
        type="agent",
        name="RAG Query Process",
        input=question,
        output=PARIS_ANSWER,
        created_at_ns=start,
        duration_ns=3_000_000_000,
        metadata={
            "model": "gpt-4",
            "user_id": "test-user-789",
            "session_id": "test-session-456",
            "tags": "demo,python,observe,rag",
        },
        status_code=200,
        steps=[
            WorkflowStep(
                type="retriever",
                name="Vector Store Query",
                input="Paris, France",
                output=docs,
                created_at_ns=start + 100_000_000,
                duration_ns=1_200_000_000,
                metadata={
                    "vector_store": "pinecone",
                    "index_name": "knowledge_base",
                    "top_k": "2",
                    "similarity": "cosine",
                },
            ),
            WorkflowStep(
                type="llm",
                name="Answer Generation with Context",
                input=(
                    f"Question: {question}\nContext: {context}\n"
                    "Instructions: Use the provided context to answer the question accurately."
                ),
                output=PARIS_ANSWER,
                created_at_ns=start + 1_500_000_000,
                duration_ns=1_400_000_000,
                metadata={
                    "model": "gpt-4",
                    "prompt_tokens": "450",
                    "completion_tokens": "75",
                    "total_tokens": "525",
                    "temperature": "0.2",
                    "max_tokens": "300",
                },
            ),
        ],
    )


WORKFLOW_EXAMPLES = {"llm": example_workflow, "rag": rag_workflow}



def cmd_log_workflows(args: argparse.Namespace) -> int:
    def _run(client: GalileoClient) -> Any:
        workflow = WORKFLOW_EXAMPLES[args.example]()
        result = client.log_workflows([workflow], project_id=args.project_id)
        return result if result is not None else {"status": "ok"}

    return with_client(_run, args.format)


def cmd_evaluate_run(args: argparse.Namespace) -> int:
    run_name = args.run_name or f"evaluate_run_{datetime.now():%Y%m%d_%H%M%S}"
    workflow = WorkflowStep(
        type="llm",
        name="llm",
        input="who is a smart LLM?",
        output="I am!",
        created_at_ns=time.time_ns(),
        duration_ns=0,
        metadata={},
    )
    return with_client(
        lambda client: client.create_evaluate_run(
            args.project_name,
            run_name,
            [workflow],
            scorers=args.scorer or ["correctness", "output_pii"],
        ),
        args.format,
    )
