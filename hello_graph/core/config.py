# hello_graph/core/config.py
# SPDX-License-Identifier: Apache-2.0
"""
Run configuration.

Values come from the command line (credentials, ``keep``) and from the
environment:

    HELLO_GRAPH_DEBUG        truthy -> trace raw service responses
    HELLO_GRAPH_SAMPLE_DIR   directory holding the sample schema/dataset
    HELLO_GRAPH_TIMEOUT_S    HTTP timeout in seconds
    HELLO_GRAPH_CONSOLE_URL  web console base URL used for the access hint
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from hello_graph.graph.graph_base import Credentials

DEBUG_ENV = "HELLO_GRAPH_DEBUG"
SAMPLE_DIR_ENV = "HELLO_GRAPH_SAMPLE_DIR"
TIMEOUT_ENV = "HELLO_GRAPH_TIMEOUT_S"
CONSOLE_URL_ENV = "HELLO_GRAPH_CONSOLE_URL"

DEFAULT_SAMPLE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "sample_data")
DEFAULT_CONSOLE_URL = "https://console.ng.bluemix.net/data/graphdb/"
DEFAULT_TIMEOUT_S = 60.0

SCHEMA_FILE = "nxnw_schema.json"
DATASET_FILE = "nxnw_dataset.json"

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, env: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if env is None else env
    return (env.get(name) or "").strip().lower() in _TRUTHY


def is_keep(value: Optional[str]) -> bool:
    """True iff ``value`` is ``keep`` ignoring case and surrounding blanks."""
    return value is not None and value.strip().lower() == "keep"


@dataclass(frozen=True)
class RunConfig:
    """
    Immutable settings for one pipeline run.

    Attributes:
        credentials: Service apiURL, username and password.
        keep: Retention flag; when true the graph survives the run.
        verbose: Trace every raw service response at DEBUG level.
        schema_path: Schema definition (JSON) submitted in the schema step.
        dataset_path: GraphSON dataset submitted in the bulk load step.
        timeout_s: HTTP timeout enforced by the client.
        console_url: Base URL of the web console for the access hint.
    """
    credentials: Credentials
    keep: bool = False
    verbose: bool = False
    schema_path: str = os.path.join(DEFAULT_SAMPLE_DIR, SCHEMA_FILE)
    dataset_path: str = os.path.join(DEFAULT_SAMPLE_DIR, DATASET_FILE)
    timeout_s: float = DEFAULT_TIMEOUT_S
    console_url: str = DEFAULT_CONSOLE_URL

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be positive")

    @classmethod
    def from_args(
        cls,
        api_url: str,
        username: str,
        password: str,
        keep: Optional[str] = None,
        *,
        verbose: bool = False,
        env: Optional[Mapping[str, str]] = None,
    ) -> "RunConfig":
        env = os.environ if env is None else env
        sample_dir = env.get(SAMPLE_DIR_ENV) or DEFAULT_SAMPLE_DIR
        timeout_raw = env.get(TIMEOUT_ENV)
        try:
            timeout_s = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_S
        except ValueError:
            raise ValueError(f"{TIMEOUT_ENV} must be a number, got {timeout_raw!r}") from None
        return cls(
            credentials=Credentials(api_url=api_url, username=username, password=password),
            keep=is_keep(keep),
            verbose=verbose or env_flag(DEBUG_ENV, env),
            schema_path=os.path.join(sample_dir, SCHEMA_FILE),
            dataset_path=os.path.join(sample_dir, DATASET_FILE),
            timeout_s=timeout_s,
            console_url=env.get(CONSOLE_URL_ENV) or DEFAULT_CONSOLE_URL,
        )


__all__ = [
    "DEBUG_ENV",
    "SAMPLE_DIR_ENV",
    "TIMEOUT_ENV",
    "CONSOLE_URL_ENV",
    "RunConfig",
    "env_flag",
    "is_keep",
]
