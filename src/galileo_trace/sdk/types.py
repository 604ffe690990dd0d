"""Typed request/response shapes for the Galileo REST API."""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    # The API adds fields over time; keep whatever it sends.
    model_config = ConfigDict(extra="allow")


class LoginResponse(_Record):
    access_token: str
    token_type: str = "bearer"


class ProjectRecord(_Record):
    id: str
    name: str
    type: str | None = None
    created_at: str | None = None


class LogStreamRecord(_Record):
    id: str
    name: str
    project_id: str | None = None
    created_at: str | None = None


class RunRecord(_Record):
    id: str
    name: str
    project_id: str | None = None
    task_type: Any = None


class IngestResponse(_Record):
    project_id: str | None = None
    log_stream_id: str | None = None
    session_id: str | None = None
    traces_count: int | None = None


class AlertCondition(BaseModel):
    field: str
    aggregation: str = "avg"
    operator: str = "gt"
    value: Any
    window: int = 900
    condition_type: str | None = None
    filter_value: Any = None
    filter_operator: str | None = None


class AlertChannel(BaseModel):
    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True


class AlertRequest(BaseModel):
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    conditions: list[AlertCondition]
    interval: int = 300
    channels: list[AlertChannel]
    metadata: dict[str, Any] | None = None
    enabled: bool = True


class AlertRecord(_Record):
    id: str
    name: str
    project_id: str | None = None
    enabled: bool | None = None


class WorkflowStep(BaseModel):
    """One node of an observe/evaluate workflow; steps nest recursively."""

    type: str
    input: Any
    output: Any = None
    name: str | None = None
    created_at_ns: int | None = None
    duration_ns: int | None = None
    metadata: dict[str, Any] | None = None
    status_code: int | None = None
    ground_truth: Any = None
    steps: list[WorkflowStep] | None = None


class ChainNode(BaseModel):
    """One row of a prompt-chain run; a root node has chain_root_id == node_id."""

    node_id: str
    node_type: str = "llm"
    node_name: str = "LLM"
    node_input: str
    node_output: str
    chain_root_id: str
    chain_id: str | None = None
    step: int = 0
    has_children: bool = False
    inputs: dict[str, Any] | None = None
    prompt: str | None = None
    response: str | None = None
    creation_timestamp: int | None = None
    finish_reason: str | None = None
    latency: int | None = None
    query_input_tokens: int | None = None
    query_output_tokens: int | None = None
    query_total_tokens: int | None = None


class ChainIngestRequest(BaseModel):
    rows: list[ChainNode]
    # Scorer name -> enabled, e.g. {"factuality": True, "groundedness": True}.
    prompt_scorers_configuration: dict[str, bool] = Field(default_factory=dict)


class ChainIngestResponse(_Record):
    num_rows: int | None = None
    message: str | None = None


def root_chain_node(node_input: str, node_output: str, **fields: Any) -> ChainNode:
    """A single-node chain whose node, chain and root ids are the same uuid."""
    node_id = str(uuid.uuid4())
    return ChainNode(
        node_id=node_id,
        chain_root_id=node_id,
        chain_id=node_id,
        node_input=node_input,
        node_output=node_output,
        **fields,
    )


class EvaluateRunResponse(_Record):
    project_id: str
    run_id: str
    workflows_count: int | None = None
    records_count: int | None = None


def build_pii_alert(
    recipients: list[str],
    *,
    threshold: float = 0.7,
    window: int = 900,
    interval: int = 300,
) -> AlertRequest:
    """Alert that fires when the average PII score exceeds ``threshold``."""
    return AlertRequest(
        name="High PII Detection Alert",
        description="Alert when PII content is detected in LLM responses",
        tags=["security", "pii", "privacy"],
        conditions=[
            AlertCondition(
                field="score_pii",
                aggregation="avg",
                operator="gt",
                value=threshold,
                window=window,
                condition_type="metric/numeric/1",
            )
        ],
        interval=interval,
        channels=[AlertChannel(type="email", config={"recipients": recipients})],
    )
