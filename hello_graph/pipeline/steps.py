# hello_graph/pipeline/steps.py
# SPDX-License-Identifier: Apache-2.0
"""
The demonstration steps, in run order.

Each step talks to the service only through ``ctx.client`` and reports a
``StepResult``. Service errors propagate as ``GraphServiceError``; local
problems (sample files) raise ``StepFailed``.
"""

from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional

from hello_graph.core.file_loader import load_file
from hello_graph.graph.graph_base import GraphServiceError, UnexpectedMatchCount, Vertex
from hello_graph.pipeline.runner import PipelineStep, RunContext, StepFailed, StepResult


def _tag(err: GraphServiceError, **ids: Any) -> GraphServiceError:
    for key, value in ids.items():
        err.details.setdefault(key, value)
    return err


class CreateGraphStep(PipelineStep):
    """Create a fresh graph and make it the active graph."""

    name = "create_graph"
    description = "Creating new graph ..."

    async def run(self, ctx: RunContext) -> StepResult:
        created = await ctx.client.create_graph()
        ctx.record_graph(created.graph_id)

        ctx.say("Switching to new graph ...")
        try:
            await ctx.client.set_graph(created.graph_id)
        except GraphServiceError as e:
            raise _tag(e, graph_id=created.graph_id)
        return StepResult.succeeded(self.name, value=created.graph_id, detail=f"graph {created.graph_id}")


class LoadSchemaStep(PipelineStep):
    name = "load_schema"
    description = "Loading sample schema ..."

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path

    async def run(self, ctx: RunContext) -> StepResult:
        path = self.path or ctx.config.schema_path
        loaded = await load_file(path)
        if not loaded.ok:
            raise StepFailed(
                f"Error loading sample schema from file: {loaded.error}",
                details={"path": path, "reason": loaded.reason},
            )
        try:
            schema = json.loads(loaded.content)
        except ValueError as e:
            raise StepFailed(f"Sample schema is not valid JSON: {e}", details={"path": path}) from e

        try:
            await ctx.client.set_schema(schema)
        except GraphServiceError as e:
            raise _tag(e, graph_id=ctx.graph_id)
        return StepResult.succeeded(self.name, value=schema, detail=path)


class CreateVertexStep(PipelineStep):
    """
    Create a vertex, then fetch it back by the id the service assigned.

    The creation response must carry exactly one record; anything else is a
    protocol mismatch and the fetch is not attempted.
    """

    name = "create_vertex"
    description = "Creating vertex ..."

    def __init__(
        self,
        label: str = "attendee",
        properties: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.label = label
        self.properties = dict(properties or {"name": "John Doe", "gender": "male", "age": 25})

    async def run(self, ctx: RunContext) -> StepResult:
        created = await ctx.client.create_vertex(self.label, self.properties)
        vertex = Vertex.from_wire(created.single("created vertex"))

        try:
            fetched = await ctx.client.get_vertex(vertex.id)
        except GraphServiceError as e:
            raise _tag(e, vertex_id=vertex.id)
        confirmed = Vertex.from_wire(fetched.single("fetched vertex"))
        ctx.say("Got vertex using get_vertex()")
        return StepResult.succeeded(self.name, value=confirmed, detail=f"vertex {confirmed.id}")


class UpdateVertexStep(PipelineStep):
    """
    Select one vertex by property value and merge-update some of its
    properties. Zero or several matches fail before any update.
    """

    name = "update_vertex"
    description = "Querying graph for vertex ..."

    def __init__(
        self,
        key: str = "name",
        value: Any = "John Doe",
        changes: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.key = key
        self.value = value
        self.changes = dict(changes or {"age": 35})

    @property
    def script(self) -> str:
        return f"def g = graph.traversal(); g.V().has({json.dumps(self.key)}, {json.dumps(self.value)});"

    async def run(self, ctx: RunContext) -> StepResult:
        matches = await ctx.client.gremlin(self.script)
        row = matches.single(f"vertex with {self.key}={self.value!r}", error=UnexpectedMatchCount)
        vertex = Vertex.from_wire(row)
        ctx.say("Got vertex using gremlin traversal.")

        ctx.say("Updating vertex ...")
        try:
            await ctx.client.update_vertex(vertex.id, self.changes, mode="merge")
        except GraphServiceError as e:
            raise _tag(e, vertex_id=vertex.id)
        ctx.say("Updated vertex using update_vertex()")
        return StepResult.succeeded(self.name, value=vertex.id, detail=f"vertex {vertex.id} <- {self.changes}")


class BulkLoadStep(PipelineStep):
    """Submit a whole GraphSON file in one request."""

    name = "bulk_load"
    description = "Loading sample file data ..."

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path

    async def run(self, ctx: RunContext) -> StepResult:
        path = self.path or ctx.config.dataset_path
        loaded = await load_file(path)
        if not loaded.ok:
            raise StepFailed(
                f"Error loading sample data from file: {loaded.error}",
                details={"path": path, "reason": loaded.reason},
            )

        ctx.say("Bulk loading data into graph ...")
        try:
            await ctx.client.bulkload_graphson(loaded.content)
        except GraphServiceError as e:
            raise _tag(e, graph_id=ctx.graph_id, path=path)
        return StepResult.succeeded(self.name, detail=f"{len(loaded.content)} bytes from {path}")


class CompositeCreateStep(PipelineStep):
    """One script: new attendee, existing band, ticket edge between them."""

    name = "create_vertex_and_edge"
    description = "Creating vertex and edge using gremlin ..."

    script = (
        "def g=graph.traversal(); def r = []; "
        'def a = graph.addVertex("name", "Jane Doe", label, "attendee", "age", 28, "gender", "female"); '
        'def b=g.V().hasLabel("band").has("name","Kendrick Lamar").next(); '
        'def e = a.addEdge("bought_ticket", b); r << a; r << b; r << e; r;'
    )

    async def run(self, ctx: RunContext) -> StepResult:
        created = await ctx.client.gremlin(self.script)
        return StepResult.succeeded(self.name, value=list(created.data), detail=f"{len(created)} elements")


class FolkAttendeesStep(PipelineStep):
    """Read-only traversal: who bought tickets to Folk performances."""

    name = "folk_attendees"
    script = 'def g=graph.traversal(); g.V().hasLabel("band").has("genre","Folk").in("bought_ticket").values("name");'
    description = f"Executing graph traversal {script} ..."

    async def run(self, ctx: RunContext) -> StepResult:
        rows = await ctx.client.gremlin(self.script)
        ctx.say(f"Found {len(rows)} Folk performance attendees:")
        for attendee in rows.data:
            ctx.say(f" {attendee}")
        if not rows.data:
            return StepResult.empty(self.name, value=[], detail="0 rows")
        return StepResult.succeeded(self.name, value=list(rows.data), detail=f"{len(rows)} rows")


def default_steps() -> List[PipelineStep]:
    return [
        CreateGraphStep(),
        LoadSchemaStep(),
        CreateVertexStep(),
        UpdateVertexStep(),
        BulkLoadStep(),
        CompositeCreateStep(),
        FolkAttendeesStep(),
    ]


__all__ = [
    "CreateGraphStep",
    "LoadSchemaStep",
    "CreateVertexStep",
    "UpdateVertexStep",
    "BulkLoadStep",
    "CompositeCreateStep",
    "FolkAttendeesStep",
    "default_steps",
]
