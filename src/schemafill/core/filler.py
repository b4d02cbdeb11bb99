"""Recursive, type-directed fill.

``Filler`` walks a record schema (or an open default mapping), reads one
raw value per leaf through the resource accessor, coerces it with the
coercion table and recurses into nested records. Nothing here raises for a
single field: unresolved leaves become ``ReadFailure`` / ``CoerceFailure``
markers in the returned tree and are reported by ``core.failures``.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from schemafill.core.coercion import (
    CoercionTable,
    TypeKind,
    describe_descriptor,
    kind_of_value,
    parse_array_literal,
)
from schemafill.core.failures import has_failures
from schemafill.core.schema import FieldDescriptor, RecordSchema, describe
from schemafill.core.types import (
    CoerceFailure,
    FieldPath,
    ReadFailure,
    child_path,
    dotted,
    is_failure,
)
from schemafill.exceptions import ResourceReadError

if TYPE_CHECKING:
    from schemafill.resources import ResourceAccessor
    from schemafill.sources import Source

log = logging.getLogger(__name__)

_SKIP = object()


@dataclasses.dataclass(slots=True)
class FillStats:
    """Counters for one fill run."""

    filled: int = 0
    defaulted: int = 0
    skipped: int = 0


class Filler:
    """One fill run over an immutable source, accessor and coercion table."""

    def __init__(
        self,
        source: Source,
        accessor: ResourceAccessor,
        table: CoercionTable,
    ) -> None:
        self.source = source
        self.accessor = accessor
        self.table = table
        self.stats = FillStats()
        # Record types being filled on the current path, outermost first.
        self._enclosing: list[type] = []

    # --- Structured records ---

    def fill_structured(self, schema: RecordSchema, path: FieldPath) -> dict[str, Any]:
        """Fill every coercible or recursable field of ``schema``."""
        result: dict[str, Any] = {}
        self._enclosing.append(schema.record_type)
        try:
            for field in schema.fields:
                node = self._fill_field(field, child_path(path, field.name))
                if node is not _SKIP:
                    result[field.name] = node
        finally:
            self._enclosing.pop()
        return result

    def _fill_field(self, field: FieldDescriptor, path: FieldPath) -> Any:
        descriptor = field.descriptor

        if descriptor is TypeKind.OPEN:
            if field.default_from_record:
                shape: dict[Any, Any] = {}
                node = self.fill_open(shape, path)
                return _SKIP if node is shape else node
            default = field.default_value() if field.has_default else {}
            return self.fill_open(default, path)

        if descriptor is not None and descriptor in self.table:
            node = self._read(descriptor, path)
        elif field.record is not None and field.record in self._enclosing:
            node = ReadFailure(
                f"recursive reference to {field.record.__name__}: "
                "the field can only take its default",
                path,
            )
        elif field.record is not None:
            node = self.fill_structured(describe(field.record), path)
            if not has_failures(node):
                return node
        else:
            log.debug(
                "Skipping '%s': no coercion for %r", dotted(path), field.annotation
            )
            self.stats.skipped += 1
            return _SKIP

        if field.default_from_record and (is_failure(node) or has_failures(node)):
            log.debug("Leaving '%s' to the record's own default", dotted(path))
            self.stats.defaulted += 1
            return _SKIP

        return self._settle(
            node,
            path,
            nullable=field.nullable,
            default=field.default_value() if field.has_default else None,
        )

    # --- Open records ---

    def fill_open(self, default: Mapping[Any, Any] | None, path: FieldPath) -> Any:
        """Fill an open record, using ``default`` as the shape guide.

        An empty default is a single leaf read at ``path``. Otherwise each
        entry is filled against the runtime type of its default value.
        """
        if not default:
            return self._fill_open_leaf(default, path)

        result: dict[Any, Any] = {}
        for key, value in default.items():
            child = child_path(path, str(key))
            if isinstance(value, Mapping):
                result[key] = self.fill_open(value, child)
                continue

            descriptor = kind_of_value(value)
            if descriptor not in self.table:
                log.debug(
                    "Keeping default for '%s': no coercion for %s",
                    dotted(child),
                    type(value).__name__,
                )
                result[key] = value
                continue

            result[key] = self._settle(
                self._read(descriptor, child), child, nullable=False, default=value
            )
        return result

    def _fill_open_leaf(self, default: Any, path: FieldPath) -> Any:
        locator = self.source.locate(path)
        try:
            raw = self.accessor.read(locator)
        except ResourceReadError as e:
            log.debug("Keeping default for '%s': %s", dotted(path), e)
            return default
        if raw is None:
            return default

        self.stats.filled += 1
        if isinstance(raw, str):
            return parse_array_literal(raw)
        return raw if raw else default

    # --- Leaves ---

    def _read(self, descriptor: Hashable, path: FieldPath) -> Any:
        """Read and coerce one leaf; failures come back as markers."""
        locator = self.source.locate(path)
        try:
            raw = self.accessor.read(locator)
        except ResourceReadError as e:
            return ReadFailure(str(e), path)
        if raw is None:
            return ReadFailure(
                f"no value supplied at '{locator}'; "
                f"{self.source.missing_hint(locator)}",
                path,
            )

        coercer = self.table.coercer_for(descriptor)
        try:
            value = coercer(raw)
        except (ValueError, TypeError, ArithmeticError) as e:
            return CoerceFailure(
                f"cannot convert {raw!r} to {describe_descriptor(descriptor)}: {e}",
                path,
            )
        self.stats.filled += 1
        return value

    def _settle(self, node: Any, path: FieldPath, *, nullable: bool, default: Any) -> Any:
        """Replace an unresolved node with a usable default, if there is one."""
        if not (is_failure(node) or has_failures(node)):
            return node
        if nullable or default is not None:
            log.debug("Using default for '%s': %r", dotted(path), default)
            self.stats.defaulted += 1
            return default
        return node
