"""REST client for the Galileo API."""

from galileo_trace.sdk.client import DEFAULT_BASE_URL, GalileoClient
from galileo_trace.sdk.types import (
    AlertRequest,
    ChainNode,
    WorkflowStep,
    build_pii_alert,
    root_chain_node,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "GalileoClient",
    "AlertRequest",
    "ChainNode",
    "WorkflowStep",
    "build_pii_alert",
    "root_chain_node",
]
