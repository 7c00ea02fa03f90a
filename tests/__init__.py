# SPDX-License-Identifier: Apache-2.0
"""
hello-graph tests

Unit tests for the graph service clients, the pipeline runner and steps,
the CLI, and whole-run scenarios against an in-memory graph service.
"""
