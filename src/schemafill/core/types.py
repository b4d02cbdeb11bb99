"""Core data types that flow through a fill.

A fill produces a result tree whose leaves are either coerced values or
failure markers. Failures are ordinary values here; they are only turned
into an exception once the whole tree has been walked.
"""

from __future__ import annotations

import dataclasses
import typing

type FieldPath = tuple[str, ...]

ROOT: FieldPath = ()


def child_path(path: FieldPath, name: str) -> FieldPath:
    """Return ``path`` extended by one segment."""
    return (*path, name)


def dotted(path: FieldPath) -> str:
    """Render a path for diagnostics (``server.port``)."""
    return ".".join(path)


# --- Failure markers ---


@dataclasses.dataclass(frozen=True, slots=True)
class ReadFailure:
    """No raw value could be obtained for the field's locator."""

    message: str
    path: FieldPath

    @property
    def dotted_path(self) -> str:
        return dotted(self.path)


@dataclasses.dataclass(frozen=True, slots=True)
class CoerceFailure:
    """A raw value was read but did not convert to the declared type."""

    message: str
    path: FieldPath

    @property
    def dotted_path(self) -> str:
        return dotted(self.path)


FillFailure = ReadFailure | CoerceFailure


def is_failure(node: object) -> typing.TypeGuard[FillFailure]:
    """Return True when ``node`` is a failure marker."""
    return isinstance(node, ReadFailure | CoerceFailure)


class _Missing:
    """Sentinel for "no default declared" (distinct from a ``None`` default)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: typing.Final = _Missing()
