# hello_graph/core/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""Local helpers shared by the pipeline: file loading and run configuration."""

from hello_graph.core.config import RunConfig, env_flag
from hello_graph.core.file_loader import LoadResult, load_file

__all__ = ["LoadResult", "RunConfig", "env_flag", "load_file"]
