"""Failure aggregation over a completed result tree.

The filler leaves ``ReadFailure`` / ``CoerceFailure`` markers in place of
values it could not resolve. This module gathers them in tree order and
turns a non-empty collection into one ``FillError``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from schemafill.core.types import FillFailure, is_failure
from schemafill.exceptions import FillError


def iter_failures(tree: Any) -> Iterator[FillFailure]:
    """Yield failure markers depth-first, in child enumeration order."""
    if is_failure(tree):
        yield tree
    elif isinstance(tree, Mapping):
        for child in tree.values():
            yield from iter_failures(child)
    elif isinstance(tree, list | tuple):
        for child in tree:
            yield from iter_failures(child)


def collect_failures(tree: Any) -> list[FillFailure]:
    """Return every failure in ``tree``, depth-first and left to right."""
    return list(iter_failures(tree))


def has_failures(tree: Any) -> bool:
    return next(iter_failures(tree), None) is not None


def format_report(target: str, failures: Sequence[FillFailure]) -> str:
    """Render one multi-line diagnostic.

    Messages are left-aligned on the width of the longest quoted path::

        Could not fill ServerConfig (2 unresolved fields):
          'host'       : no value supplied at 'env:host'; ...
          'tls.cert'   : ...
    """
    noun = "field" if len(failures) == 1 else "fields"
    lines = [f"Could not fill {target} ({len(failures)} unresolved {noun}):"]
    quoted = [f"'{failure.dotted_path}'" for failure in failures]
    width = max(len(q) for q in quoted)
    for label, failure in zip(quoted, failures, strict=True):
        lines.append(f"  {label:<{width}}: {failure.message}")
    return "\n".join(lines)


def report_or_raise(target: str, failures: Sequence[FillFailure]) -> None:
    """Raise a single ``FillError`` if ``failures`` is non-empty."""
    if not failures:
        return
    raise FillError(
        format_report(target, failures), target=target, failures=tuple(failures)
    )
