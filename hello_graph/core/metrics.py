# hello_graph/core/metrics.py
# SPDX-License-Identifier: Apache-2.0
"""
A logging MetricsSink for verbose runs.

Same ``observe`` shape the graph client base calls; every observation
becomes one DEBUG line:

    graph_ibm.create_vertex ok=True code=OK ms=41.3
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

__all__ = ["LoggingMetrics"]


class LoggingMetrics:
    """
    Args:
        logger: Destination logger (defaults to this module's logger).
        level: Log level for observations.
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.level = level
        self.count = 0
        self.failures = 0

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
        if not component or not op:
            return
        self.count += 1
        if not ok:
            self.failures += 1
        suffix = "".join(f" {k}={v}" for k, v in sorted((extra or {}).items()))
        self.logger.log(self.level, "%s.%s ok=%s code=%s ms=%.1f%s", component, op, ok, code, ms, suffix)
