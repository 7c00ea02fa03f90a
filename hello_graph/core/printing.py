# hello_graph/core/printing.py
# SPDX-License-Identifier: Apache-2.0
"""
Tiny console helpers for the demo output.

Includes:
  • box       boxed section header
  • print_kv  aligned key/value lines
"""
from __future__ import annotations

import shutil
import sys
from typing import Any, Mapping, Optional, Sequence, TextIO

__all__ = ["box", "print_kv"]


def _term_width(default: int = 100) -> int:
    """Detect terminal width with a safe fallback."""
    try:
        cols = shutil.get_terminal_size((default, 20)).columns
    except OSError:
        cols = default
    return max(40, min(cols, 200))


def box(title: str, *, fill: str = "─", file: Optional[TextIO] = None) -> None:
    """Print a single-line boxed title."""
    out = file or sys.stdout
    width = _term_width()
    title = f" {title.strip()} "
    bar = fill * min(len(title), width - 4)
    print(f"┌{bar}┐", file=out)
    print(f"│{title}│", file=out)
    print(f"└{bar}┘", file=out)


def print_kv(
    pairs: Mapping[str, Any] | Sequence[tuple[str, Any]],
    *,
    indent: int = 2,
    file: Optional[TextIO] = None,
) -> None:
    """Print aligned key/value pairs, skipping ``None`` values."""
    out = file or sys.stdout
    items = [(k, v) for k, v in (pairs.items() if isinstance(pairs, Mapping) else pairs) if v is not None]
    if not items:
        return
    k_width = max(len(str(k)) for k, _ in items)
    for k, v in items:
        print(" " * indent + f"{str(k).rjust(k_width)}: {v}", file=out)
