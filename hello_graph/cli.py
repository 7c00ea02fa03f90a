# hello_graph/cli.py
# SPDX-License-Identifier: Apache-2.0
"""
hello-graph CLI

Runs the demonstration pipeline once against a graph service:

    hello-graph <apiURL> <username> <password> [keep]

Exit codes: 0 success, 1 session or step failure, 2 usage error.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Callable, List, Optional, Sequence, TextIO

from hello_graph.core.config import CONSOLE_URL_ENV, DEBUG_ENV, SAMPLE_DIR_ENV, TIMEOUT_ENV, RunConfig
from hello_graph.core.metrics import LoggingMetrics
from hello_graph.core.printing import box, print_kv
from hello_graph.graph.graph_base import GraphServiceError, GraphServiceProtocol
from hello_graph.graph.ibm_graph_client import IBMGraphClient
from hello_graph.pipeline.runner import PipelineOutcome, PipelineRunner, PipelineStep, RunContext
from hello_graph.pipeline.steps import default_steps

LOG = logging.getLogger("hello_graph")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

ClientFactory = Callable[[RunConfig], GraphServiceProtocol]


# --------------------------------------------------------------------------- #
# Internal helpers
# --------------------------------------------------------------------------- #

_LEADING_FLAGS = ("-v", "--verbose", "-h", "--help")


class _UsageParser(argparse.ArgumentParser):
    """Prints the full argument help, not just the usage line, on bad input."""

    def error(self, message: str) -> None:
        self.print_help(sys.stderr)
        self.exit(EXIT_USAGE, f"\n{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _UsageParser(
        prog="hello-graph",
        description="Sample run against an IBM Graph service instance.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Configuration (environment variables):
  {DEBUG_ENV}=1          Trace every raw service response
  {SAMPLE_DIR_ENV}=DIR  Directory holding the sample schema and dataset
  {TIMEOUT_ENV}=60      HTTP timeout in seconds
  {CONSOLE_URL_ENV}=URL Web console base URL for the access hint
        """.strip(),
    )
    parser.add_argument("api_url", metavar="apiURL", help="apiURL value from the service credentials")
    parser.add_argument("username", help="username value from the service credentials")
    parser.add_argument("password", help="password value from the service credentials")
    parser.add_argument(
        "keep",
        nargs="?",
        default=None,
        help="optional; 'keep' retains the sample graph when the run ends",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="trace raw service responses")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse arguments; anything past the fourth positional is ignored.

    Flags are only recognized ahead of the first positional, so credentials
    starting with ``-`` are taken verbatim.
    """
    tokens = list(sys.argv[1:] if argv is None else argv)
    for i, token in enumerate(tokens):
        if token == "--":
            break
        if token not in _LEADING_FLAGS:
            tokens.insert(i, "--")
            break
    args, extra = build_parser().parse_known_args(tokens)
    if extra:
        LOG.debug("ignoring extra arguments: %s", extra)
    return args


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # transport internals drown out the service responses
    logging.getLogger("httpcore").setLevel(logging.INFO)


def _default_client(config: RunConfig) -> GraphServiceProtocol:
    return IBMGraphClient(
        config.credentials,
        timeout_s=config.timeout_s,
        verbose=config.verbose,
        metrics=LoggingMetrics() if config.verbose else None,
    )


def _print_summary(outcome: PipelineOutcome, out: TextIO) -> None:
    failed = outcome.failed_step
    report = outcome.finalization
    print(file=out)
    print_kv(
        {
            "status": "ok" if outcome.ok else f"failed at {failed.step}",
            "steps": f"{sum(1 for r in outcome.results if r.ok)}/{len(outcome.results)} succeeded",
            "graph": outcome.graph_id,
            "finalization": report.action,
            "access hint": report.access_hint,
        },
        file=out,
    )


# --------------------------------------------------------------------------- #
# Run
# --------------------------------------------------------------------------- #

async def run(
    config: RunConfig,
    client: GraphServiceProtocol,
    *,
    steps: Optional[List[PipelineStep]] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Acquire a session, run the pipeline, and map the outcome to an exit code."""
    out = out or sys.stdout
    err = err or sys.stderr
    try:
        try:
            await client.session()
        except GraphServiceError as e:
            LOG.error("session acquisition failed: %s", e)
            print(f"Error obtaining session token: {e}", file=err)
            return EXIT_FAILED

        ctx = RunContext(client=client, config=config, log=LOG, out=out, err=err)
        outcome = await PipelineRunner(default_steps() if steps is None else steps).run(ctx)
    finally:
        await client.close()

    _print_summary(outcome, out)
    return EXIT_OK if outcome.ok else EXIT_FAILED


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    client_factory: Optional[ClientFactory] = None,
) -> int:
    args = parse_args(argv)
    try:
        config = RunConfig.from_args(args.api_url, args.username, args.password, args.keep, verbose=args.verbose)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(config.verbose)
    LOG.debug("running with %r (keep=%s)", config.credentials, config.keep)

    try:
        client = (client_factory or _default_client)(config)
    except GraphServiceError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    box("hello-graph")
    return asyncio.run(run(config, client))


if __name__ == "__main__":
    raise SystemExit(main())
