# hello_graph/pipeline/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""Ordered demonstration pipeline and its steps."""

from hello_graph.pipeline.runner import (
    FinalizeReport,
    PipelineOutcome,
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
from hello_graph.pipeline.steps import (
    BulkLoadStep,
    CompositeCreateStep,
    CreateGraphStep,
    CreateVertexStep,
    FolkAttendeesStep,
    LoadSchemaStep,
    UpdateVertexStep,
    default_steps,
)

__all__ = [
    "FinalizeReport",
    "PipelineOutcome",
    "PipelineRunner",
    "PipelineStep",
    "RunContext",
    "RunState",
    "StepFailed",
    "StepResult",
    "StepStatus",
    "access_hint",
    "finalize",
    "BulkLoadStep",
    "CompositeCreateStep",
    "CreateGraphStep",
    "CreateVertexStep",
    "FolkAttendeesStep",
    "LoadSchemaStep",
    "UpdateVertexStep",
    "default_steps",
]
