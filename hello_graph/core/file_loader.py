# hello_graph/core/file_loader.py
# SPDX-License-Identifier: Apache-2.0
"""
Local file loading for pipeline payloads.

``load_file`` reads a file in a worker thread so the read is an awaitable
suspension point like every remote call. It never raises for ordinary
filesystem failures; those come back as a ``LoadResult`` with ``ok=False``
and a reason code.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class LoadResult:
    """
    Outcome of a single file read.

    Attributes:
        path: The path that was read.
        content: Raw file bytes (``None`` on failure).
        reason: ``not_found``, ``permission_denied``, ``is_directory`` or
            ``io_error`` on failure.
        error: Human-readable failure description.
    """
    path: str
    content: Optional[bytes] = None
    reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.content is not None

    def text(self, encoding: str = "utf-8") -> str:
        if self.content is None:
            raise ValueError(f"no content loaded from {self.path}: {self.error}")
        return self.content.decode(encoding)


def _classify(err: OSError) -> str:
    if isinstance(err, FileNotFoundError) or err.errno == errno.ENOENT:
        return "not_found"
    if isinstance(err, PermissionError) or err.errno in (errno.EACCES, errno.EPERM):
        return "permission_denied"
    if isinstance(err, IsADirectoryError) or err.errno == errno.EISDIR:
        return "is_directory"
    return "io_error"


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


async def load_file(path: PathLike) -> LoadResult:
    """Read ``path`` once, without caching or retries."""
    p = os.fspath(path)
    try:
        content = await asyncio.to_thread(_read_bytes, p)
    except OSError as e:
        reason = _classify(e)
        logger.debug("failed to load %s (%s): %s", p, reason, e)
        return LoadResult(path=p, reason=reason, error=f"{e.strerror or e}: {p}")
    logger.debug("loaded %d bytes from %s", len(content), p)
    return LoadResult(path=p, content=content)


__all__ = ["LoadResult", "load_file"]
