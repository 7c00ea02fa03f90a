# hello_graph/graph/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""Graph service client contract and the IBM Graph REST client."""

from hello_graph.graph.graph_base import (
    AuthError,
    BadRequest,
    BaseGraphServiceClient,
    Credentials,
    DeadlineExceeded,
    GraphCreated,
    GraphServiceError,
    GraphServiceProtocol,
    MetricsSink,
    NoopMetrics,
    NotFound,
    ProtocolMismatch,
    ResourceExhausted,
    ResultSet,
    TransientNetwork,
    Unavailable,
    UnexpectedMatchCount,
    Vertex,
)
from hello_graph.graph.ibm_graph_client import IBMGraphClient

__all__ = [
    "AuthError",
    "BadRequest",
    "BaseGraphServiceClient",
    "Credentials",
    "DeadlineExceeded",
    "GraphCreated",
    "GraphServiceError",
    "GraphServiceProtocol",
    "IBMGraphClient",
    "MetricsSink",
    "NoopMetrics",
    "NotFound",
    "ProtocolMismatch",
    "ResourceExhausted",
    "ResultSet",
    "TransientNetwork",
    "Unavailable",
    "UnexpectedMatchCount",
    "Vertex",
]
