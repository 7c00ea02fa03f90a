# hello_graph/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""
hello-graph: a run-once sample against a remote graph service.

Creates a graph, loads a schema, creates and updates vertices, bulk-loads
sample data, runs two traversals, and deletes the graph unless asked to
keep it.
"""

__version__ = "1.0.0"
