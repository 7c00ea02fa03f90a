# SPDX-License-Identifier: Apache-2.0
"""
Whole-run scenarios against the in-memory graph service.

  A. default run: every step succeeds, the graph is deleted, exit 0
  B. ``keep``: the graph survives and a console access hint is printed
  C. missing sample schema: the run stops after graph creation, the graph
     is still deleted, exit code is non-zero
"""
import pytest

from hello_graph import cli
from hello_graph.core.config import SAMPLE_DIR_ENV, RunConfig
from tests.mock.mock_graph_service import FOLK_ATTENDEES, MockGraphService

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]

API_URL = "https://ibmgraph-alpha.ng.bluemix.net/a1b2c3d4-instance/g"

EXPECTED_OPS = [
    "session",
    "create_graph",
    "set_graph",
    "set_schema",
    "create_vertex",
    "get_vertex",
    "gremlin",
    "update_vertex",
    "bulkload_graphson",
    "gremlin",
    "gremlin",
]


async def test_default_run_deletes_graph(streams):
    service = MockGraphService()
    config = RunConfig.from_args(API_URL, "demo", "s3cret", env={})

    code = await cli.run(config, service, out=streams.out, err=streams.err)

    assert code == 0
    assert service.ops() == EXPECTED_OPS + ["delete_graph"]
    assert service.graphs == {}
    assert service.closed

    out = streams.stdout
    assert "Creating new graph ..." in out
    assert "Got vertex using get_vertex()" in out
    assert "Updated vertex using update_vertex()" in out
    assert f"Found {len(FOLK_ATTENDEES)} Folk performance attendees:" in out
    assert "Graph g0001 was deleted." in out
    assert streams.stderr == ""


async def test_keep_retains_graph_with_hint(streams):
    service = MockGraphService()
    config = RunConfig.from_args(API_URL, "demo", "s3cret", "keep", env={})

    code = await cli.run(config, service, out=streams.out, err=streams.err)

    assert code == 0
    assert service.ops() == EXPECTED_OPS
    assert "g0001" in service.graphs
    hint = "https://console.ng.bluemix.net/data/graphdb/a1b2c3d4-instance/query?graph=g0001"
    assert f"Open {hint} to explore the graph in the web console." in streams.stdout
    assert "was deleted" not in streams.stdout


async def test_missing_schema_stops_run_and_cleans_up(streams, tmp_path):
    service = MockGraphService()
    config = RunConfig.from_args(API_URL, "demo", "s3cret", env={SAMPLE_DIR_ENV: str(tmp_path)})

    code = await cli.run(config, service, out=streams.out, err=streams.err)

    assert code != 0
    ops = service.ops()
    assert ops == ["session", "create_graph", "set_graph", "delete_graph"]
    assert "create_vertex" not in ops
    assert "Error loading sample schema from file:" in streams.stderr
    assert "Step 'load_schema' failed (graph=g0001)" in streams.stderr
    assert "Graph g0001 was deleted." in streams.stdout


async def test_mutated_vertex_state(streams):
    service = MockGraphService()
    config = RunConfig.from_args(API_URL, "demo", "s3cret", "keep", env={})

    await cli.run(config, service, out=streams.out, err=streams.err)

    store = service.graphs["g0001"]
    john = [v for v in store.values() if v["properties"].get("name") == "John Doe"]
    jane = [v for v in store.values() if v["properties"].get("name") == "Jane Doe"]
    assert len(john) == 1 and john[0]["properties"]["age"] == 35
    assert john[0]["properties"]["gender"] == "male"
    assert len(jane) == 1
