"""Trace and span models buffered by the TraceLogger."""

from __future__ import annotations

import json
import math
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias, Union

MetadataValue: TypeAlias = Union[str, int, float, bool, dict[str, "MetadataValue"]]
Metadata: TypeAlias = dict[str, MetadataValue]

_SCALARS = (str, int, float, bool)


def normalize_metadata(mapping: Mapping[str, Any] | None, _path: str = "") -> Metadata:
    """Validate a metadata mapping and return a plain-dict copy.

    Values must be str, int, float, bool or a nested mapping of the same.
    Raises TypeError for anything else (lists, None, arbitrary objects) and
    ValueError for NaN or infinite floats.
    """
    if mapping is None:
        return {}
    if not isinstance(mapping, Mapping):
        raise TypeError(f"metadata{_path} must be a mapping, got {type(mapping).__name__}")

    result: Metadata = {}
    for key, value in mapping.items():
        if not isinstance(key, str):
            raise TypeError(f"metadata{_path} key {key!r} must be a string")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"metadata{_path}.{key} must be a finite number, got {value!r}")
        if isinstance(value, _SCALARS):
            result[key] = value
        elif isinstance(value, Mapping):
            result[key] = normalize_metadata(value, f"{_path}.{key}")
        else:
            raise TypeError(
                f"metadata{_path}.{key} has unsupported type {type(value).__name__}"
            )
    return result


def check_json_value(value: Any, field_name: str) -> None:
    """Raise if ``value`` cannot be sent as strict JSON (no NaN/Infinity)."""
    try:
        json.dumps(value, allow_nan=False)
    except TypeError as exc:
        raise TypeError(f"{field_name} is not JSON serializable: {exc}") from exc
    except ValueError as exc:
        raise ValueError(f"{field_name} contains a non-finite number") from exc


def new_id() -> str:
    return str(uuid.uuid4())


class SpanKind(str, Enum):
    """Kind of work a span records."""

    TOOL = "tool"
    RETRIEVER = "retriever"
    LLM = "llm"
    WORKFLOW = "workflow"
    AGENT = "agent"


class SpanStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


@dataclass
class TraceConfig:
    """Inputs for TraceLogger.start_trace.

    Attrs:
        input: Text the traced operation received.
        name: Human-readable trace name.
        tags: Free-form tags.
        metadata: Free-form metadata (see MetadataValue).
    """

    input: str
    name: str = "trace"
    tags: list[str] = field(default_factory=list)
    metadata: Metadata = field(default_factory=dict)

    def __post_init__(self) -> None:
        check_json_value(self.input, "input")
        self.tags = list(self.tags)
        self.metadata = normalize_metadata(self.metadata)


@dataclass
class SpanConfig:
    """Inputs for TraceLogger.add_span.

    Attrs:
        name: Span name (usually the tool or step name).
        input: Step input; any JSON-serializable value.
        output: Step output; any JSON-serializable value.
        kind: Span kind, generic tool by default.
        duration_ns: How long the step took.
        created_at_ns: Start time; defaults to the time the span is added.
        metadata: Free-form metadata.
        tags: Free-form tags.
        error: Error description; marks the span as ERROR when set.
    """

    name: str
    input: Any = None
    output: Any = None
    kind: SpanKind = SpanKind.TOOL
    duration_ns: int = 0
    created_at_ns: int | None = None
    metadata: Metadata = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    error: str | None = None

    def __post_init__(self) -> None:
        self.kind = SpanKind(self.kind)
        if self.duration_ns < 0:
            raise ValueError("duration_ns must be >= 0")
        check_json_value(self.input, "input")
        check_json_value(self.output, "output")
        self.tags = list(self.tags)
        self.metadata = normalize_metadata(self.metadata)


@dataclass
class LlmSpanConfig:
    """Inputs for TraceLogger.add_llm_span.

    Model name and token counts end up in the span metadata.
    total_tokens defaults to num_input_tokens + num_output_tokens.
    """

    input: Any
    output: Any
    model: str
    num_input_tokens: int = 0
    num_output_tokens: int = 0
    total_tokens: int | None = None
    duration_ns: int = 0
    created_at_ns: int | None = None
    name: str = "llm"
    metadata: Metadata = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    error: str | None = None

    def __post_init__(self) -> None:
        if self.total_tokens is None:
            self.total_tokens = self.num_input_tokens + self.num_output_tokens
        check_json_value(self.input, "input")
        check_json_value(self.output, "output")
        self.tags = list(self.tags)
        self.metadata = normalize_metadata(self.metadata)

    def to_span_config(self) -> SpanConfig:
        metadata = dict(self.metadata)
        metadata["model"] = self.model
        metadata["num_input_tokens"] = self.num_input_tokens
        metadata["num_output_tokens"] = self.num_output_tokens
        metadata["total_tokens"] = self.total_tokens
        return SpanConfig(
            name=self.name,
            input=self.input,
            output=self.output,
            kind=SpanKind.LLM,
            duration_ns=self.duration_ns,
            created_at_ns=self.created_at_ns,
            metadata=metadata,
            tags=self.tags,
            error=self.error,
        )


@dataclass
class ConcludeConfig:
    """Inputs for TraceLogger.conclude.

    When duration_ns is None the duration is measured from the trace start.
    """

    output: str
    duration_ns: int | None = None
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.duration_ns is not None and self.duration_ns < 0:
            raise ValueError("duration_ns must be >= 0")
        check_json_value(self.output, "output")
        self.tags = list(self.tags)


@dataclass(frozen=True)
class Span:
    """One unit of work inside a trace. Immutable once appended."""

    id: str
    name: str
    input: Any
    output: Any
    kind: SpanKind
    created_at_ns: int
    duration_ns: int
    status: SpanStatus = SpanStatus.SUCCESS
    metadata: Metadata = field(default_factory=dict)
    tags: tuple[str, ...] = ()
    error: str | None = None

    @property
    def ended_at_ns(self) -> int:
        return self.created_at_ns + self.duration_ns

    @classmethod
    def from_config(cls, config: SpanConfig, now_ns: int) -> Span:
        return cls(
            id=new_id(),
            name=config.name,
            input=config.input,
            output=config.output,
            kind=config.kind,
            created_at_ns=config.created_at_ns if config.created_at_ns is not None else now_ns,
            duration_ns=config.duration_ns,
            status=SpanStatus.ERROR if config.error else SpanStatus.SUCCESS,
            metadata=dict(config.metadata),
            tags=tuple(config.tags),
            error=config.error,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "name": self.name,
            "input": self.input,
            "output": self.output,
            "created_at_ns": self.created_at_ns,
            "duration_ns": self.duration_ns,
            "ended_at_ns": self.ended_at_ns,
            "status": self.status.value,
            "metadata": self.metadata,
            "tags": list(self.tags),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class Trace:
    """One end-to-end operation made of ordered spans.

    output, ended_at_ns and duration_ns stay None until the trace is concluded.
    """

    id: str
    name: str
    input: str
    created_at_ns: int
    spans: list[Span] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    metadata: Metadata = field(default_factory=dict)
    output: str | None = None
    ended_at_ns: int | None = None
    duration_ns: int | None = None

    @property
    def concluded(self) -> bool:
        return self.ended_at_ns is not None

    @classmethod
    def from_config(cls, config: TraceConfig, now_ns: int) -> Trace:
        return cls(
            id=new_id(),
            name=config.name,
            input=config.input,
            created_at_ns=now_ns,
            tags=list(config.tags),
            metadata=dict(config.metadata),
        )

    def conclude(self, output: str, duration_ns: int, tags: list[str]) -> None:
        self.output = output
        self.duration_ns = duration_ns
        self.ended_at_ns = self.created_at_ns + duration_ns
        for tag in tags:
            if tag not in self.tags:
                self.tags.append(tag)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "trace",
            "name": self.name,
            "input": self.input,
            "output": self.output,
            "created_at_ns": self.created_at_ns,
            "ended_at_ns": self.ended_at_ns,
            "duration_ns": self.duration_ns,
            "tags": list(self.tags),
            "metadata": self.metadata,
            "spans": [span.to_dict() for span in self.spans],
        }
