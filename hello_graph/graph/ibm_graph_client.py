# hello_graph/graph/ibm_graph_client.py
# SPDX-License-Identifier: Apache-2.0
"""
IBM Graph client over the service's REST API.

Implements the ``BaseGraphServiceClient`` hooks with ``httpx.AsyncClient``.

Endpoint layout
---------------
The service binding exposes an ``apiURL`` of the form
``https://<host>/<instance-id>/g``. The last path segment names the default
graph; everything before it is the instance base URL:

    GET    {apiURL}/_session                -> {"gds-token": "..."}
    POST   {base}/_graphs                   -> {"graphId": "...", "dbUrl": "..."}
    DELETE {base}/_graphs/{graphId}
    POST   {graph}/schema
    POST   {graph}/vertices
    GET    {graph}/vertices/{id}
    POST   {graph}/vertices/{id}            (merge properties)
    PUT    {graph}/vertices/{id}            (replace properties)
    POST   {graph}/bulkload/graphson        (multipart, field "graphson")
    POST   {graph}/gremlin                  {"gremlin": "..."}

where ``{graph}`` is ``{base}/{graphId}`` once a graph has been selected.

Errors
------
HTTP and transport failures are mapped onto the graph error taxonomy so the
pipeline never has to look at status codes.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from hello_graph.graph.graph_base import (
    AuthError,
    BadRequest,
    BaseGraphServiceClient,
    Credentials,
    DeadlineExceeded,
    GraphServiceError,
    MetricsSink,
    NotFound,
    ProtocolMismatch,
    ResourceExhausted,
    TransientNetwork,
    Unavailable,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0


def instance_base_url(api_url: str) -> str:
    """Strip the trailing graph segment from an apiURL."""
    trimmed = api_url.rstrip("/")
    head, sep, _ = trimmed.rpartition("/")
    if not sep or not head or head.endswith(":/"):
        raise BadRequest("apiURL must include a graph path segment", details={"api_url": api_url})
    return head


class IBMGraphClient(BaseGraphServiceClient):
    """
    GraphServiceProtocol client backed by the IBM Graph REST API.

    Owns its ``httpx.AsyncClient`` unless one is passed in; use it as an
    async context manager so the connection pool is closed.
    """

    _component = "graph_ibm"

    def __init__(
        self,
        credentials: Credentials,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        metrics: Optional[MetricsSink] = None,
        verbose: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(metrics=metrics, verbose=verbose, logger=logger)
        if not credentials.api_url:
            raise BadRequest("apiURL is required", code="BAD_CONFIG")
        self._credentials = credentials
        self._base_url = instance_base_url(credentials.api_url)
        self._graph_url = credentials.api_url.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_s)

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @property
    def graph_url(self) -> str:
        return self._graph_url

    # ------------------------------------------------------------------ #
    # HTTP plumbing
    # ------------------------------------------------------------------ #

    def _auth_headers(self) -> dict:
        return {"Authorization": f"gds-token {self._session_token}"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise DeadlineExceeded(f"{method} {url} timed out") from e
        except httpx.TransportError as e:
            raise TransientNetwork(f"{method} {url} failed: {e}") from e

        if response.is_error:
            if self._verbose:
                self._log.debug("%s %s error response (%s): %s", method, url, response.status_code, response.text)
            raise self._translate_status(response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ProtocolMismatch(
                f"{method} {url} returned a non-JSON body",
                details={"status": response.status_code},
            ) from e

    @staticmethod
    def _extract_retry_after_ms(response: httpx.Response) -> Optional[int]:
        val = response.headers.get("Retry-After")
        if val is None:
            return None
        try:
            return max(0, int(str(val).strip())) * 1000
        except ValueError:
            return None

    def _translate_status(self, response: httpx.Response) -> GraphServiceError:
        """Map an HTTP error response to a GraphServiceError subclass."""
        status = response.status_code
        message = _error_message(response)
        details = {"status": status, "url": str(response.request.url)}

        if status == 400:
            return BadRequest(message or "request rejected by graph service", details=details)
        if status in (401, 403):
            return AuthError(message or "graph service authentication failed", details=details)
        if status == 404:
            return NotFound(message or "graph service resource not found", details=details)
        if status in (413, 429):
            return ResourceExhausted(
                message or "graph service limit exceeded",
                retry_after_ms=self._extract_retry_after_ms(response),
                details=details,
            )
        if 500 <= status <= 599:
            return Unavailable(
                message or "graph service is unavailable",
                retry_after_ms=self._extract_retry_after_ms(response),
                details=details,
            )
        return Unavailable(message or f"graph service error (status={status})", details=details)

    # ------------------------------------------------------------------ #
    # Hooks
    # ------------------------------------------------------------------ #

    async def _do_session(self) -> Any:
        return await self._request(
            "GET",
            f"{self._credentials.api_url.rstrip('/')}/_session",
            auth=(self._credentials.username, self._credentials.password),
        )

    async def _do_create_graph(self) -> Any:
        return await self._request("POST", f"{self._base_url}/_graphs", headers=self._auth_headers())

    async def _do_set_graph(self, graph_id: str) -> Any:
        self._graph_url = f"{self._base_url}/{graph_id}"
        logger.debug("graph-scoped calls now target %s", self._graph_url)
        return {"graphId": graph_id, "url": self._graph_url}

    async def _do_delete_graph(self, graph_id: str) -> Any:
        return await self._request(
            "DELETE",
            f"{self._base_url}/_graphs/{graph_id}",
            headers=self._auth_headers(),
        )

    async def _do_set_schema(self, schema: Mapping[str, Any]) -> Any:
        return await self._request(
            "POST",
            f"{self._graph_url}/schema",
            json=dict(schema),
            headers=self._auth_headers(),
        )

    async def _do_create_vertex(self, label: str, properties: Mapping[str, Any]) -> Any:
        return await self._request(
            "POST",
            f"{self._graph_url}/vertices",
            json={"label": label, "properties": dict(properties)},
            headers=self._auth_headers(),
        )

    async def _do_get_vertex(self, vertex_id: Any) -> Any:
        return await self._request(
            "GET",
            f"{self._graph_url}/vertices/{vertex_id}",
            headers=self._auth_headers(),
        )

    async def _do_update_vertex(self, vertex_id: Any, properties: Mapping[str, Any], mode: str) -> Any:
        method = "PUT" if mode == "replace" else "POST"
        return await self._request(
            method,
            f"{self._graph_url}/vertices/{vertex_id}",
            json={"properties": dict(properties)},
            headers=self._auth_headers(),
        )

    async def _do_bulkload_graphson(self, payload: bytes) -> Any:
        return await self._request(
            "POST",
            f"{self._graph_url}/bulkload/graphson",
            files={"graphson": ("graphson.json", payload, "application/json")},
            headers=self._auth_headers(),
        )

    async def _do_gremlin(self, script: str) -> Any:
        return await self._request(
            "POST",
            f"{self._graph_url}/gremlin",
            json={"gremlin": script},
            headers=self._auth_headers(),
        )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, Mapping):
        status = body.get("status")
        if isinstance(status, Mapping) and status.get("message"):
            return str(status["message"])
        for key in ("message", "error", "reason"):
            if body.get(key):
                return str(body[key])
    return response.text.strip()
