# SPDX-License-Identifier: Apache-2.0
"""
Pipeline runner: ordering, fail-fast, guaranteed finalization.

Asserts:
  • steps run strictly in order, each only after the previous succeeded
  • the first failure stops the sequence and is reported with the graph id
  • finalization runs exactly once on every path, including unexpected
    exceptions, and never changes the outcome when deletion fails
  • retention keeps the graph and reports a console access hint
"""
import logging
from typing import Any, List, Optional

import pytest

from hello_graph.core.config import RunConfig
from hello_graph.graph.graph_base import Credentials, NotFound, Unavailable
from hello_graph.pipeline.runner import (
    PipelineRunner,
    PipelineStep,
    RunContext,
    RunState,
    StepFailed,
    StepResult,
    StepStatus,
    access_hint,
    finalize,
)
from hello_graph.pipeline.steps import CreateGraphStep
from tests.mock.mock_graph_service import MockGraphService

pytestmark = [pytest.mark.asyncio, pytest.mark.pipeline]

CONSOLE = "https://console.ng.bluemix.net/data/graphdb/"


class ScriptedStep(PipelineStep):
    """Appends its name to a shared journal, then returns or raises as told."""

    def __init__(self, name: str, journal: List[str], *, raises: Optional[BaseException] = None, empty: bool = False):
        self.name = name
        self.description = f"Running {name} ..."
        self.journal = journal
        self.raises = raises
        self.is_empty = empty

    async def run(self, ctx: RunContext) -> StepResult:
        self.journal.append(self.name)
        if self.raises is not None:
            raise self.raises
        if self.is_empty:
            return StepResult.empty(self.name)
        return StepResult.succeeded(self.name, value=self.name)


def _ctx(service: MockGraphService, config: RunConfig, streams: Any) -> RunContext:
    return RunContext(
        client=service,
        config=config,
        log=logging.getLogger("hello_graph.tests"),
        out=streams.out,
        err=streams.err,
    )


# ---------------------------------------------------------------------------
# Ordering and fail-fast
# ---------------------------------------------------------------------------


async def test_steps_run_in_order(ctx, streams):
    journal: List[str] = []
    runner = PipelineRunner([ScriptedStep(n, journal) for n in ("one", "two", "three")])
    assert runner.state is RunState.INIT

    outcome = await runner.run(ctx)

    assert journal == ["one", "two", "three"]
    assert [r.step for r in outcome.results] == ["one", "two", "three"]
    assert outcome.ok
    assert outcome.failed_step is None
    assert runner.state is RunState.DONE
    lines = streams.stdout.splitlines()
    assert lines[:3] == ["Running one ...", "Running two ...", "Running three ..."]


async def test_empty_result_does_not_stop_the_run(ctx):
    journal: List[str] = []
    steps = [ScriptedStep("one", journal, empty=True), ScriptedStep("two", journal)]

    outcome = await PipelineRunner(steps).run(ctx)

    assert journal == ["one", "two"]
    assert outcome.results[0].status is StepStatus.EMPTY
    assert outcome.ok


@pytest.mark.parametrize("error", [StepFailed("file gone"), NotFound("no such graph")])
async def test_first_failure_stops_the_run(ctx, streams, error):
    journal: List[str] = []
    steps = [
        ScriptedStep("one", journal),
        ScriptedStep("two", journal, raises=error),
        ScriptedStep("three", journal),
    ]

    outcome = await PipelineRunner(steps).run(ctx)

    assert journal == ["one", "two"]
    assert not outcome.ok
    failed = outcome.failed_step
    assert failed.step == "two"
    assert failed.error is error
    assert "Step 'two' failed (graph=None)" in streams.stderr


# ---------------------------------------------------------------------------
# Finalization
# ---------------------------------------------------------------------------


async def test_failure_before_graph_creation_deletes_nothing(ctx, ready_service):
    ready_service.fail["create_graph"] = Unavailable("service down")

    outcome = await PipelineRunner([CreateGraphStep(), ScriptedStep("next", [])]).run(ctx)

    assert outcome.failed_step.step == "create_graph"
    assert outcome.graph_id is None
    assert outcome.finalization.action == "skipped"
    assert "delete_graph" not in ready_service.ops()


async def test_failure_after_graph_creation_still_deletes(ctx, ready_service, streams):
    journal: List[str] = []
    steps = [CreateGraphStep(), ScriptedStep("boom", journal, raises=StepFailed("bad file"))]

    outcome = await PipelineRunner(steps).run(ctx)

    assert not outcome.ok
    assert ready_service.args_for("delete_graph") == [("g0001",)]
    assert outcome.finalization.action == "deleted"
    assert "Step 'boom' failed (graph=g0001): bad file" in streams.stderr
    assert "Graph g0001 was deleted." in streams.stdout


async def test_success_deletes_graph_and_explains_keep(ctx, ready_service, streams):
    outcome = await PipelineRunner([CreateGraphStep()]).run(ctx)

    assert outcome.ok
    assert ready_service.ops()[-1] == "delete_graph"
    assert ready_service.graphs == {}
    assert "add the keep parameter" in streams.stdout


async def test_keep_retains_graph_and_reports_hint(ready_service, keep_config, streams):
    ctx = _ctx(ready_service, keep_config, streams)

    outcome = await PipelineRunner([CreateGraphStep()]).run(ctx)

    assert "delete_graph" not in ready_service.ops()
    report = outcome.finalization
    assert report.action == "retained"
    assert report.access_hint == CONSOLE + "a1b2c3d4-instance/query?graph=g0001"
    assert f"Open {report.access_hint} to explore the graph" in streams.stdout


async def test_keep_without_instance_segment_reports_retention(ready_service, streams):
    config = RunConfig(credentials=Credentials("https://graph.example.com", "u", "p"), keep=True)
    ctx = _ctx(ready_service, config, streams)
    ctx.record_graph("g0009")

    report = await finalize(ctx)

    assert report.action == "retained"
    assert report.access_hint is None
    assert "Graph g0009 was retained." in streams.stdout


async def test_keep_without_graph_skips(ready_service, keep_config, streams):
    ctx = _ctx(ready_service, keep_config, streams)
    report = await finalize(ctx)
    assert report.action == "skipped"
    assert streams.stdout == ""


async def test_delete_failure_is_reported_not_raised(ctx, ready_service, streams):
    ready_service.fail["delete_graph"] = Unavailable("delete refused")

    outcome = await PipelineRunner([CreateGraphStep()]).run(ctx)

    assert outcome.ok
    report = outcome.finalization
    assert report.action == "delete_failed"
    assert isinstance(report.error, Unavailable)
    assert "Error deleting graph g0001: delete refused" in streams.stderr


async def test_unexpected_exception_still_finalizes(ctx, ready_service):
    runner = PipelineRunner([CreateGraphStep(), ScriptedStep("bug", [], raises=KeyError("oops"))])

    with pytest.raises(KeyError):
        await runner.run(ctx)

    assert ready_service.args_for("delete_graph") == [("g0001",)]
    assert runner.state is RunState.DONE


async def test_finalization_runs_once(ctx, ready_service):
    journal: List[str] = []
    await PipelineRunner([CreateGraphStep(), ScriptedStep("boom", journal, raises=StepFailed("x"))]).run(ctx)
    assert ready_service.ops().count("delete_graph") == 1


# ---------------------------------------------------------------------------
# Context and hint helpers
# ---------------------------------------------------------------------------


async def test_graph_id_is_write_once(ctx):
    ctx.record_graph("g1")
    with pytest.raises(RuntimeError):
        ctx.record_graph("g2")
    assert ctx.graph_id == "g1"


@pytest.mark.parametrize(
    "api_url,console,expected",
    [
        (
            "https://ibmgraph-alpha.ng.bluemix.net/inst-1/g",
            CONSOLE,
            CONSOLE + "inst-1/query?graph=abc",
        ),
        (
            "https://ibmgraph-alpha.ng.bluemix.net/inst-1/g",
            "https://console.example.com/graphdb",
            "https://console.example.com/graphdb/inst-1/query?graph=abc",
        ),
        ("https://ibmgraph-alpha.ng.bluemix.net", CONSOLE, None),
        ("https://ibmgraph-alpha.ng.bluemix.net//g", CONSOLE, None),
    ],
)
async def test_access_hint(api_url, console, expected):
    assert access_hint(api_url, "abc", console) == expected
