"""Exceptions raised by schemafill."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schemafill.core.types import FillFailure


class SchemaFillError(Exception):
    """Base exception for schemafill errors"""  # noqa: D415


class SourceConfigError(SchemaFillError):
    """Raised when a source configuration is malformed or unknown"""  # noqa: D415


class SchemaError(SchemaFillError):
    """Raised when a fill target cannot be described as a schema"""  # noqa: D415


class ResourceReadError(SchemaFillError):
    """Raised by an accessor when a locator could not be read"""  # noqa: D415


class InstantiationError(SchemaFillError):
    """Raised when a coerced mapping is rejected by the record type"""  # noqa: D415


class FillError(SchemaFillError):
    """Aggregated diagnostic for every field a fill could not resolve.

    Raised exactly once per top-level fill call. The message lists every
    failing path; the structured failures stay available on ``failures``.
    """

    def __init__(self, message: str, *, target: str, failures: tuple[FillFailure, ...]):
        super().__init__(message)
        self.target = target
        self.failures = failures

    @property
    def paths(self) -> tuple[str, ...]:
        """Dotted paths of the failing fields, in report order."""
        return tuple(failure.dotted_path for failure in self.failures)
