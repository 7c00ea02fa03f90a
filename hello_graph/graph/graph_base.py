# hello_graph/graph/graph_base.py
# SPDX-License-Identifier: Apache-2.0
"""
Graph service client contract

Purpose
-------
A narrow, async-first surface over a remote graph-database service of the
IBM Graph kind, with:

- Structured, normalized error taxonomy (machine-actionable codes)
- Typed responses validated once at the client boundary
- A single call gate for debug tracing, metrics and error normalization

Design Philosophy
-----------------
- Minimal surface: session, graph lifecycle, schema, vertices, bulk load,
  Gremlin execution. Nothing else.
- Async-only: every remote call is an awaitable suspension point.
- Concrete clients implement the ``_do_*`` hooks; the base class owns input
  validation and the gate.

Deliberate Non-Goals
--------------------
- No retries, hedging, caching or circuit breaking.
- No query language helpers (Gremlin strings are passed through verbatim).
- No client-side schema management beyond submitting a schema document.

Response Envelope
-----------------
Every data-bearing response from the service has the shape::

    {
        "requestId": "...",
        "status": {"code": 200, "message": "", "attributes": {}},
        "result": {"data": [ ... ], "meta": {}}
    }

``ResultSet.from_wire`` validates this shape and raises ``ProtocolMismatch``
when it does not hold.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

LOG = logging.getLogger(__name__)

UPDATE_MODES = ("merge", "replace")

# =============================================================================
# Normalized Errors
# =============================================================================


class GraphServiceError(Exception):
    """
    Base exception for graph service errors.

    Attributes:
        message: Human-readable description.
        code: Machine-readable, UPPER_SNAKE_CASE error code.
        retry_after_ms: Backoff hint reported by the service (if any).
        details: Additional machine context (identifiers, counts).
    """
    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        retry_after_ms: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.retry_after_ms = retry_after_ms
        self.details = dict(details or {})

    def __str__(self) -> str:
        base = self.message or self.__class__.__name__
        if self.code:
            base += f" [code={self.code}]"
        if self.retry_after_ms is not None:
            base += f" retry_after_ms={self.retry_after_ms}"
        if self.details:
            base += f" details={self.details}"
        return base


class BadRequest(GraphServiceError):
    """Client error: invalid arguments, query or payload."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "BAD_REQUEST")
        super().__init__(message, **kw)


class AuthError(GraphServiceError):
    """Authentication / authorization failure."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "AUTH_ERROR")
        super().__init__(message, **kw)


class NotFound(GraphServiceError):
    """Graph, vertex or endpoint does not exist."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "NOT_FOUND")
        super().__init__(message, **kw)


class ResourceExhausted(GraphServiceError):
    """Quota, rate limit, or payload size exhausted."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "RESOURCE_EXHAUSTED")
        super().__init__(message, **kw)


class TransientNetwork(GraphServiceError):
    """Connection-level failure talking to the service."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "TRANSIENT_NETWORK")
        super().__init__(message, **kw)


class Unavailable(GraphServiceError):
    """Service unavailable / internal error."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "UNAVAILABLE")
        super().__init__(message, **kw)


class DeadlineExceeded(GraphServiceError):
    """The HTTP client gave up waiting for the service."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "DEADLINE_EXCEEDED")
        super().__init__(message, **kw)


class ProtocolMismatch(GraphServiceError):
    """The service answered, but not in the expected shape."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "PROTOCOL_MISMATCH")
        super().__init__(message, **kw)


class UnexpectedMatchCount(GraphServiceError):
    """A lookup that must select exactly one record selected zero or many."""
    def __init__(self, message: str, **kw: Any):
        kw.setdefault("code", "UNEXPECTED_MATCH_COUNT")
        super().__init__(message, **kw)


# =============================================================================
# Typed Responses
# =============================================================================


@dataclass(frozen=True)
class Credentials:
    """Service credentials; ``api_url`` is the apiURL from the service binding."""
    api_url: str
    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(api_url={self.api_url!r}, username={self.username!r}, password='***')"


@dataclass(frozen=True)
class GraphCreated:
    """
    Result of graph creation.

    Attributes:
        graph_id: Service-assigned graph identifier.
        db_url: Endpoint URL for the new graph, when the service reports one.
    """
    graph_id: str
    db_url: Optional[str] = None

    @classmethod
    def from_wire(cls, payload: Any) -> "GraphCreated":
        if not isinstance(payload, Mapping) or not payload.get("graphId"):
            raise ProtocolMismatch(
                "graph creation response has no graphId",
                details={"response": _preview(payload)},
            )
        return cls(graph_id=str(payload["graphId"]), db_url=payload.get("dbUrl"))


@dataclass(frozen=True)
class ResultSet:
    """
    The ``result`` part of a service response.

    Attributes:
        data: Result rows, in service order. Elements are vertices, edges,
            or plain values depending on the request.
        request_id: Service correlation id, if reported.
        status_code: ``status.code`` as reported by the service.
        meta: ``result.meta`` mapping.
    """
    data: Tuple[Any, ...] = ()
    request_id: Optional[str] = None
    status_code: Optional[int] = None
    meta: Mapping[str, Any] = None

    def __post_init__(self) -> None:
        if self.meta is None:
            object.__setattr__(self, "meta", {})

    def __len__(self) -> int:
        return len(self.data)

    @classmethod
    def from_wire(cls, payload: Any, *, op: str) -> "ResultSet":
        result = payload.get("result") if isinstance(payload, Mapping) else None
        data = result.get("data") if isinstance(result, Mapping) else None
        if not isinstance(data, list):
            raise ProtocolMismatch(
                f"{op} response has no result data list",
                details={"op": op, "response": _preview(payload)},
            )
        meta = result.get("meta") or {}
        if not isinstance(meta, Mapping):
            raise ProtocolMismatch(
                f"{op} response has a non-object result meta",
                details={"op": op, "response": _preview(payload)},
            )
        status = payload.get("status") or {}
        code = status.get("code") if isinstance(status, Mapping) else None
        return cls(
            data=tuple(data),
            request_id=payload.get("requestId"),
            status_code=int(code) if isinstance(code, int) else None,
            meta=dict(meta),
        )

    def single(self, what: str, *, error: type = ProtocolMismatch) -> Any:
        """Return the only row, or raise ``error`` when there are zero or many."""
        if len(self.data) != 1:
            raise error(
                f"expected exactly one {what}, got {len(self.data)}",
                details={"count": len(self.data)},
            )
        return self.data[0]


@dataclass(frozen=True)
class Vertex:
    """
    Graph vertex as returned by the service.

    Attributes:
        id: Service-assigned vertex identifier (kept opaque).
        label: Vertex label.
        properties: Property map flattened to ``name -> value``.
    """
    id: Any
    label: Optional[str] = None
    properties: Mapping[str, Any] = None

    def __post_init__(self) -> None:
        if self.properties is None:
            object.__setattr__(self, "properties", {})

    @classmethod
    def from_wire(cls, row: Any) -> "Vertex":
        if not isinstance(row, Mapping) or row.get("id") is None:
            raise ProtocolMismatch(
                "result row is not a vertex",
                details={"row": _preview(row)},
            )
        return cls(
            id=row["id"],
            label=row.get("label"),
            properties=_flatten_properties(row.get("properties") or {}),
        )


def _flatten_properties(raw: Mapping[str, Any]) -> dict:
    # GraphSON vertex properties arrive as {"name": [{"id": ..., "value": ...}]}
    flat = {}
    for key, value in raw.items():
        if isinstance(value, list) and value and isinstance(value[0], Mapping) and "value" in value[0]:
            flat[key] = value[0]["value"]
        else:
            flat[key] = value
    return flat


def _preview(payload: Any, limit: int = 200) -> str:
    try:
        text = json.dumps(payload, default=str)
    except (TypeError, ValueError):
        text = repr(payload)
    return text if len(text) <= limit else text[: limit - 1] + "…"


# =============================================================================
# Metrics
# =============================================================================


class MetricsSink(Protocol):
    """Per-call observation hook (low-cardinality)."""
    def observe(
        self,
        *,
        component: str,
        op: str,
        ms: float,
        ok: bool,
        code: str = "OK",
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        ...


class NoopMetrics:
    def observe(self, **_: Any) -> None:
        ...


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class GraphServiceProtocol(Protocol):
    """The operations the demonstration pipeline needs from a graph service."""

    async def session(self) -> str:
        ...

    async def create_graph(self) -> GraphCreated:
        ...

    async def set_graph(self, graph_id: str) -> None:
        ...

    async def delete_graph(self, graph_id: str) -> None:
        ...

    async def set_schema(self, schema: Mapping[str, Any]) -> ResultSet:
        ...

    async def create_vertex(self, label: str, properties: Mapping[str, Any]) -> ResultSet:
        ...

    async def get_vertex(self, vertex_id: Any) -> ResultSet:
        ...

    async def update_vertex(
        self,
        vertex_id: Any,
        properties: Mapping[str, Any],
        *,
        mode: str = "merge",
    ) -> ResultSet:
        ...

    async def bulkload_graphson(self, payload: bytes) -> ResultSet:
        ...

    async def gremlin(self, script: str) -> ResultSet:
        ...

    async def close(self) -> None:
        ...


# =============================================================================
# Base Client
# =============================================================================


class BaseGraphServiceClient(GraphServiceProtocol):
    """
    Base implementation of GraphServiceProtocol.

    Responsibilities:
        - Input validation.
        - Debug tracing of raw responses (``verbose=True``).
        - Metrics observation per call.
        - Wrapping unknown exceptions as ``Unavailable``.

    Subclasses implement the ``_do_*`` hooks and return raw decoded
    payloads; the base converts them to typed results.
    """

    _component = "graph"

    def __init__(
        self,
        *,
        metrics: Optional[MetricsSink] = None,
        verbose: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._metrics: MetricsSink = metrics or NoopMetrics()
        self._verbose = bool(verbose)
        self._log = logger or LOG
        self._session_token: Optional[str] = None
        self._active_graph: Optional[str] = None

    # ---- lifecycle helpers --------------------------------------------------

    async def __aenter__(self) -> "BaseGraphServiceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release transport resources. Clients owning connections override."""
        return None

    @property
    def session_token(self) -> Optional[str]:
        return self._session_token

    @property
    def active_graph(self) -> Optional[str]:
        return self._active_graph

    # ---- internal helpers ---------------------------------------------------

    def _record(self, op: str, t0: float, ok: bool, *, code: str = "OK") -> None:
        try:
            self._metrics.observe(
                component=self._component,
                op=op,
                ms=(time.monotonic() - t0) * 1000.0,
                ok=ok,
                code=code,
            )
        except Exception:
            # never let metrics break caller
            pass

    def _trace(self, op: str, payload: Any) -> None:
        if self._verbose:
            self._log.debug("%s response: %s", op, json.dumps(payload, default=str))

    async def _gate(self, *, op: str, call: Callable[[], Awaitable[Any]]) -> Any:
        t0 = time.monotonic()
        try:
            payload = await call()
        except GraphServiceError as e:
            self._record(op, t0, False, code=e.code or type(e).__name__)
            raise
        except Exception as e:
            self._record(op, t0, False, code="UnhandledException")
            raise Unavailable(f"{op} failed: {e}", details={"op": op}) from e
        self._record(op, t0, True)
        self._trace(op, payload)
        return payload

    def _require_session(self, op: str) -> None:
        if not self._session_token:
            raise AuthError(f"{op} requires a session token; call session() first")

    def _require_graph(self, op: str) -> None:
        self._require_session(op)
        if not self._active_graph:
            raise BadRequest(f"{op} requires an active graph; call set_graph() first")

    # ---- public API ---------------------------------------------------------

    async def session(self) -> str:
        """Obtain and store a session token."""
        payload = await self._gate(op="session", call=self._do_session)
        token = payload.get("gds-token") if isinstance(payload, Mapping) else None
        if not token:
            raise ProtocolMismatch("session response has no token", details={"response": _preview(payload)})
        self._session_token = str(token)
        return self._session_token

    async def create_graph(self) -> GraphCreated:
        self._require_session("create_graph")
        payload = await self._gate(op="create_graph", call=self._do_create_graph)
        return GraphCreated.from_wire(payload)

    async def set_graph(self, graph_id: str) -> None:
        """Make ``graph_id`` the target of all subsequent graph-scoped calls."""
        if not isinstance(graph_id, str) or not graph_id.strip():
            raise BadRequest("graph_id must be a non-empty string")
        self._require_session("set_graph")
        await self._gate(op="set_graph", call=lambda: self._do_set_graph(graph_id))
        self._active_graph = graph_id

    async def delete_graph(self, graph_id: str) -> None:
        if not isinstance(graph_id, str) or not graph_id.strip():
            raise BadRequest("graph_id must be a non-empty string")
        self._require_session("delete_graph")
        await self._gate(op="delete_graph", call=lambda: self._do_delete_graph(graph_id))
        if self._active_graph == graph_id:
            self._active_graph = None

    async def set_schema(self, schema: Mapping[str, Any]) -> ResultSet:
        if not isinstance(schema, Mapping):
            raise BadRequest("schema must be a JSON object")
        self._require_graph("set_schema")
        payload = await self._gate(op="set_schema", call=lambda: self._do_set_schema(schema))
        return ResultSet.from_wire(payload, op="set_schema")

    async def create_vertex(self, label: str, properties: Mapping[str, Any]) -> ResultSet:
        if not isinstance(label, str) or not label.strip():
            raise BadRequest("vertex label must be a non-empty string")
        self._require_graph("create_vertex")
        payload = await self._gate(
            op="create_vertex",
            call=lambda: self._do_create_vertex(label, dict(properties or {})),
        )
        return ResultSet.from_wire(payload, op="create_vertex")

    async def get_vertex(self, vertex_id: Any) -> ResultSet:
        if vertex_id is None or vertex_id == "":
            raise BadRequest("vertex_id is required")
        self._require_graph("get_vertex")
        payload = await self._gate(op="get_vertex", call=lambda: self._do_get_vertex(vertex_id))
        return ResultSet.from_wire(payload, op="get_vertex")

    async def update_vertex(
        self,
        vertex_id: Any,
        properties: Mapping[str, Any],
        *,
        mode: str = "merge",
    ) -> ResultSet:
        """
        Update vertex properties.

        ``mode="merge"`` keeps properties not named in ``properties``;
        ``mode="replace"`` drops them.
        """
        if vertex_id is None or vertex_id == "":
            raise BadRequest("vertex_id is required")
        if mode not in UPDATE_MODES:
            raise BadRequest(f"mode must be one of {UPDATE_MODES}, got {mode!r}")
        if not properties:
            raise BadRequest("properties must name at least one property")
        self._require_graph("update_vertex")
        payload = await self._gate(
            op="update_vertex",
            call=lambda: self._do_update_vertex(vertex_id, dict(properties), mode),
        )
        return ResultSet.from_wire(payload, op="update_vertex")

    async def bulkload_graphson(self, payload: bytes) -> ResultSet:
        if not payload:
            raise BadRequest("bulk load payload is empty")
        self._require_graph("bulkload_graphson")
        raw = await self._gate(op="bulkload_graphson", call=lambda: self._do_bulkload_graphson(payload))
        return ResultSet.from_wire(raw, op="bulkload_graphson")

    async def gremlin(self, script: str) -> ResultSet:
        if not isinstance(script, str) or not script.strip():
            raise BadRequest("gremlin script must be a non-empty string")
        self._require_graph("gremlin")
        payload = await self._gate(op="gremlin", call=lambda: self._do_gremlin(script))
        return ResultSet.from_wire(payload, op="gremlin")

    # ---- backend hooks ------------------------------------------------------

    async def _do_session(self) -> Any:
        raise NotImplementedError

    async def _do_create_graph(self) -> Any:
        raise NotImplementedError

    async def _do_set_graph(self, graph_id: str) -> Any:
        raise NotImplementedError

    async def _do_delete_graph(self, graph_id: str) -> Any:
        raise NotImplementedError

    async def _do_set_schema(self, schema: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    async def _do_create_vertex(self, label: str, properties: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    async def _do_get_vertex(self, vertex_id: Any) -> Any:
        raise NotImplementedError

    async def _do_update_vertex(self, vertex_id: Any, properties: Mapping[str, Any], mode: str) -> Any:
        raise NotImplementedError

    async def _do_bulkload_graphson(self, payload: bytes) -> Any:
        raise NotImplementedError

    async def _do_gremlin(self, script: str) -> Any:
        raise NotImplementedError


__all__ = [
    "UPDATE_MODES",
    "GraphServiceError",
    "BadRequest",
    "AuthError",
    "NotFound",
    "ResourceExhausted",
    "TransientNetwork",
    "Unavailable",
    "DeadlineExceeded",
    "ProtocolMismatch",
    "UnexpectedMatchCount",
    "Credentials",
    "GraphCreated",
    "ResultSet",
    "Vertex",
    "MetricsSink",
    "NoopMetrics",
    "GraphServiceProtocol",
    "BaseGraphServiceClient",
]
