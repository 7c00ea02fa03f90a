# SPDX-License-Identifier: Apache-2.0
"""
Shared fixtures for the hello-graph test suite.

- ``service``: fresh in-memory MockGraphService (session already acquired
  where a test asks for ``ready_service``)
- ``config``: RunConfig pointing at the packaged sample files
- ``streams`` / ``ctx``: captured stdout/stderr and a RunContext over them
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import pytest
import pytest_asyncio

from hello_graph.core.config import RunConfig
from hello_graph.graph.graph_base import Credentials
from hello_graph.pipeline.runner import RunContext
from tests.mock.mock_graph_service import MockGraphService

API_URL = "https://ibmgraph-alpha.ng.bluemix.net/a1b2c3d4-instance/g"


@dataclass
class Streams:
    out: io.StringIO
    err: io.StringIO

    @property
    def stdout(self) -> str:
        return self.out.getvalue()

    @property
    def stderr(self) -> str:
        return self.err.getvalue()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(api_url=API_URL, username="demo", password="s3cret")


@pytest.fixture
def config(credentials: Credentials) -> RunConfig:
    return RunConfig(credentials=credentials)


@pytest.fixture
def keep_config(credentials: Credentials) -> RunConfig:
    return RunConfig(credentials=credentials, keep=True)


@pytest.fixture
def service() -> MockGraphService:
    return MockGraphService()


@pytest_asyncio.fixture
async def ready_service(service: MockGraphService) -> MockGraphService:
    await service.session()
    return service


@pytest.fixture
def streams() -> Streams:
    return Streams(out=io.StringIO(), err=io.StringIO())


@pytest.fixture
def ctx(ready_service: MockGraphService, config: RunConfig, streams: Streams) -> RunContext:
    return RunContext(
        client=ready_service,
        config=config,
        log=logging.getLogger("hello_graph.tests"),
        out=streams.out,
        err=streams.err,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    for marker in (
        "graph: graph service client tests",
        "pipeline: pipeline runner and step tests",
        "cli: command line tests",
        "e2e: end-to-end scenarios against the mock service",
    ):
        config.addinivalue_line("markers", marker)
