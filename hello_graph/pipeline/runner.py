# hello_graph/pipeline/runner.py
# SPDX-License-Identifier: Apache-2.0
"""
Ordered, fail-fast pipeline over a remote graph with guaranteed finalization.

Run lifecycle
-------------

    INIT -> RUNNING (step 1 .. step N) -> FINALIZE -> DONE

- Steps run strictly one after another; step n+1 starts only after step n
  reported success (``succeeded`` or ``empty``).
- The first failed step aborts the sequence. Nothing is retried or rolled
  back.
- Finalization runs exactly once on every path, including an unexpected
  exception (which is re-raised afterwards):
    * retention off, graph created  -> delete the graph
    * retention off, no graph       -> nothing to delete
    * retention on                  -> keep the graph, report an access hint
  A failed deletion is reported but never changes the run's outcome.

Step failures are either ``GraphServiceError`` (raised by the client) or
``StepFailed`` (local problems such as an unreadable sample file). Anything
else is a bug and propagates.
"""

from __future__ import annotations

import enum
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, TextIO, Tuple
from urllib.parse import urlparse

from hello_graph.core.config import RunConfig
from hello_graph.graph.graph_base import GraphServiceError, GraphServiceProtocol

LOG = logging.getLogger(__name__)


# =============================================================================
# Errors / Results
# =============================================================================


class StepFailed(Exception):
    """A step failed for a local reason (file missing, payload not parseable)."""
    def __init__(self, message: str, *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} details={self.details}"
        return self.message


class StepStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"
    EMPTY = "empty"
    FAILED = "failed"


class RunState(str, enum.Enum):
    INIT = "init"
    RUNNING = "running"
    FINALIZE = "finalize"
    DONE = "done"


@dataclass(frozen=True)
class StepResult:
    """
    What a step reports back to the runner.

    ``EMPTY`` is a success that produced no rows; only ``FAILED`` stops the
    pipeline.
    """
    step: str
    status: StepStatus
    value: Any = None
    detail: str = ""
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is not StepStatus.FAILED

    @classmethod
    def succeeded(cls, step: str, value: Any = None, detail: str = "") -> "StepResult":
        return cls(step=step, status=StepStatus.SUCCEEDED, value=value, detail=detail)

    @classmethod
    def empty(cls, step: str, value: Any = None, detail: str = "") -> "StepResult":
        return cls(step=step, status=StepStatus.EMPTY, value=value, detail=detail)

    @classmethod
    def failed(cls, step: str, error: BaseException) -> "StepResult":
        return cls(step=step, status=StepStatus.FAILED, detail=str(error), error=error)


@dataclass(frozen=True)
class FinalizeReport:
    """
    Attributes:
        action: ``deleted``, ``delete_failed``, ``retained`` or ``skipped``.
        graph_id: The graph the action applied to (if any).
        access_hint: Web console URL for a retained graph.
        error: Deletion failure, if any.
    """
    action: str
    graph_id: Optional[str] = None
    access_hint: Optional[str] = None
    error: Optional[GraphServiceError] = None


@dataclass(frozen=True)
class PipelineOutcome:
    results: Tuple[StepResult, ...]
    finalization: FinalizeReport
    graph_id: Optional[str] = None

    @property
    def failed_step(self) -> Optional[StepResult]:
        for result in self.results:
            if not result.ok:
                return result
        return None

    @property
    def ok(self) -> bool:
        return self.failed_step is None


# =============================================================================
# Run context
# =============================================================================


@dataclass
class RunContext:
    """
    State shared by the steps of one run.

    ``graph_id`` is written once, by the graph creation step, and read by
    later steps and by finalization.
    """
    client: GraphServiceProtocol
    config: RunConfig
    log: logging.Logger = LOG
    out: TextIO = field(default_factory=lambda: sys.stdout)
    err: TextIO = field(default_factory=lambda: sys.stderr)
    graph_id: Optional[str] = None

    def record_graph(self, graph_id: str) -> None:
        if self.graph_id is not None:
            raise RuntimeError(f"graph identifier already set to {self.graph_id!r}")
        self.graph_id = graph_id

    def say(self, message: str) -> None:
        print(message, file=self.out)

    def complain(self, message: str) -> None:
        print(message, file=self.err)


class PipelineStep(ABC):
    """One ordered unit of work."""

    name: str
    description: str

    @abstractmethod
    async def run(self, ctx: RunContext) -> StepResult:
        raise NotImplementedError


# =============================================================================
# Finalization
# =============================================================================


def access_hint(api_url: str, graph_id: str, console_url: str) -> Optional[str]:
    """
    Build the web console URL for a graph.

    The first path segment of the apiURL is the service instance id; without
    one there is nothing to link to.
    """
    segments = urlparse(api_url).path.split("/")
    if len(segments) < 2 or not segments[1]:
        return None
    return f"{console_url.rstrip('/')}/{segments[1]}/query?graph={graph_id}"


async def finalize(ctx: RunContext) -> FinalizeReport:
    graph_id = ctx.graph_id
    if ctx.config.keep:
        if graph_id is None:
            return FinalizeReport(action="skipped")
        hint = access_hint(ctx.config.credentials.api_url, graph_id, ctx.config.console_url)
        if hint:
            ctx.say(f"Open {hint} to explore the graph in the web console.")
        else:
            ctx.say(f"Graph {graph_id} was retained.")
        return FinalizeReport(action="retained", graph_id=graph_id, access_hint=hint)

    if graph_id is None:
        ctx.log.debug("no graph was created; skipping deletion")
        return FinalizeReport(action="skipped")

    try:
        await ctx.client.delete_graph(graph_id)
    except GraphServiceError as e:
        ctx.log.error("failed to delete graph %s: %s", graph_id, e)
        ctx.complain(f"Error deleting graph {graph_id}: {e}")
        return FinalizeReport(action="delete_failed", graph_id=graph_id, error=e)

    ctx.say(f"Graph {graph_id} was deleted.")
    ctx.say("To retain the graph re-run this application and add the keep parameter:")
    ctx.say("hello-graph <apiURL> <username> <password> keep")
    return FinalizeReport(action="deleted", graph_id=graph_id)


# =============================================================================
# Runner
# =============================================================================


class PipelineRunner:
    def __init__(self, steps: Iterable[PipelineStep]) -> None:
        self.steps: List[PipelineStep] = list(steps)
        self.state = RunState.INIT

    def _transition(self, state: RunState) -> None:
        LOG.debug("pipeline %s -> %s", self.state.value, state.value)
        self.state = state

    async def run(self, ctx: RunContext) -> PipelineOutcome:
        results: List[StepResult] = []
        report: Optional[FinalizeReport] = None
        self._transition(RunState.RUNNING)
        try:
            for step in self.steps:
                ctx.say(step.description)
                try:
                    result = await step.run(ctx)
                except (GraphServiceError, StepFailed) as e:
                    result = StepResult.failed(step.name, e)
                results.append(result)
                if not result.ok:
                    ctx.log.error("step %s failed: %s", step.name, result.detail)
                    ctx.complain(f"Step '{step.name}' failed (graph={ctx.graph_id}): {result.detail}")
                    break
                ctx.log.debug("step %s %s", step.name, result.status.value)
        finally:
            self._transition(RunState.FINALIZE)
            report = await finalize(ctx)
            self._transition(RunState.DONE)

        return PipelineOutcome(results=tuple(results), finalization=report, graph_id=ctx.graph_id)


__all__ = [
    "StepFailed",
    "StepStatus",
    "RunState",
    "StepResult",
    "FinalizeReport",
    "PipelineOutcome",
    "RunContext",
    "PipelineStep",
    "PipelineRunner",
    "access_hint",
    "finalize",
]
