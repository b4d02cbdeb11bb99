"""Schema introspection and typed instantiation.

Record types (pydantic models and dataclasses) are described once into a
``RecordSchema``: an ordered tuple of ``FieldDescriptor`` with the declared
annotation already resolved to a descriptor. The filler never looks at raw
annotations itself.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping, MutableMapping
import dataclasses
import functools
import numbers
import types
import typing
from typing import Any

import pydantic

from schemafill.core.coercion import TypeKind
from schemafill.core.types import MISSING
from schemafill.exceptions import InstantiationError, SchemaError

_NUMBER_PAIR = frozenset({int, float})
_RAW_ANNOTATIONS = (typing.Any, object)
_NUMBER_ANNOTATIONS = (numbers.Number, numbers.Real)
_OPEN_ORIGINS = (dict, Mapping, MutableMapping)


@dataclasses.dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One declared field of a record type.

    ``descriptor`` is a ``TypeKind`` for the built-in primitives and open
    records, the record class for nested records, and the (unwrapped)
    annotation itself for anything else. ``record`` is set only for nested
    record fields. ``default_from_record`` marks a default that the record
    type computes from the other field values; such a field is left out of
    the filled mapping rather than given a substitute.
    """

    name: str
    annotation: Any
    descriptor: Hashable | None
    nullable: bool = False
    default: Any = MISSING
    default_factory: Callable[[], Any] | None = None
    record: type | None = None
    default_from_record: bool = False

    @property
    def has_default(self) -> bool:
        return (
            self.default is not MISSING
            or self.default_factory is not None
            or self.default_from_record
        )

    def default_value(self) -> Any:
        """Return the declared default, building a fresh one from a factory."""
        if self.default_from_record:
            return None
        if self.default_factory is not None:
            return self.default_factory()
        return None if self.default is MISSING else self.default


@dataclasses.dataclass(frozen=True, slots=True)
class RecordSchema:
    """Ordered field descriptions of a record type."""

    record_type: type
    fields: tuple[FieldDescriptor, ...]

    @property
    def name(self) -> str:
        return self.record_type.__name__

    def field(self, name: str) -> FieldDescriptor:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        raise KeyError(name)


# --- Annotation resolution ---


def _unwrap(annotation: Any) -> Any:
    """Strip ``Annotated``, ``type`` aliases and ``NewType`` wrappers."""
    while True:
        if typing.get_origin(annotation) is typing.Annotated:
            annotation = typing.get_args(annotation)[0]
        elif isinstance(annotation, typing.TypeAliasType):
            annotation = annotation.__value__
        elif isinstance(annotation, typing.NewType):
            annotation = annotation.__supertype__
        else:
            return annotation


def _is_union(annotation: Any) -> bool:
    return typing.get_origin(annotation) in (typing.Union, types.UnionType)


def is_record_type(candidate: object) -> bool:
    """True for pydantic model classes and dataclass classes."""
    if not isinstance(candidate, type):
        return False
    return issubclass(candidate, pydantic.BaseModel) or dataclasses.is_dataclass(
        candidate
    )


def resolve_annotation(annotation: Any) -> tuple[Hashable | None, bool]:
    """Map a declared annotation to ``(descriptor, nullable)``.

    Returns a ``None`` descriptor for unions the filler cannot choose a
    branch for; such fields are skipped.
    """
    annotation = _unwrap(annotation)

    if _is_union(annotation):
        members = [_unwrap(arg) for arg in typing.get_args(annotation)]
        nullable = type(None) in members
        rest = [arg for arg in members if arg is not type(None)]
        if len(rest) == 1:
            descriptor, _ = resolve_annotation(rest[0])
            return descriptor, nullable
        if frozenset(rest) == _NUMBER_PAIR:
            return TypeKind.NUMBER, nullable
        return None, nullable

    if annotation is None or annotation is type(None):
        return TypeKind.NULL, False
    # bool before int: bool is an int subclass but never an Integer.
    if annotation is bool:
        return TypeKind.BOOLEAN, False
    if annotation is int:
        return TypeKind.INTEGER, False
    if annotation is float:
        return TypeKind.FLOAT, False
    if annotation is str:
        return TypeKind.STRING, False
    if annotation in _NUMBER_ANNOTATIONS:
        return TypeKind.NUMBER, False
    if annotation in _RAW_ANNOTATIONS:
        return TypeKind.RAW, False
    if annotation in _OPEN_ORIGINS or typing.get_origin(annotation) in _OPEN_ORIGINS:
        return TypeKind.OPEN, False

    try:
        hash(annotation)
    except TypeError:
        return None, False
    return annotation, False


def _field(
    name: str,
    annotation: Any,
    default: Any,
    factory: Any,
    *,
    from_record: bool = False,
) -> FieldDescriptor:
    descriptor, nullable = resolve_annotation(annotation)
    return FieldDescriptor(
        name=name,
        annotation=annotation,
        descriptor=descriptor,
        nullable=nullable,
        default=default,
        default_factory=factory,
        record=descriptor if is_record_type(descriptor) else None,
        default_from_record=from_record,
    )


def _describe_model(model: type[pydantic.BaseModel]) -> tuple[FieldDescriptor, ...]:
    described = []
    for name, info in model.model_fields.items():
        if info.default_factory_takes_validated_data:
            # pydantic calls these with the validated data; only it can run them
            described.append(
                _field(name, info.annotation, MISSING, None, from_record=True)
            )
            continue
        if info.is_required():
            default, factory = MISSING, None
        elif info.default_factory is not None:
            default, factory = MISSING, info.default_factory
        else:
            default, factory = info.default, None
        described.append(_field(name, info.annotation, default, factory))
    return tuple(described)


def _describe_dataclass(record_type: type) -> tuple[FieldDescriptor, ...]:
    try:
        hints = typing.get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError) as e:
        raise SchemaError(
            f"cannot resolve annotations of {record_type.__name__}: {e}"
        ) from e

    described = []
    for field in dataclasses.fields(record_type):
        if not field.init:
            continue
        default = MISSING if field.default is dataclasses.MISSING else field.default
        factory = (
            None
            if field.default_factory is dataclasses.MISSING
            else field.default_factory
        )
        described.append(_field(field.name, hints[field.name], default, factory))
    return tuple(described)


@functools.cache
def describe(record_type: type) -> RecordSchema:
    """Describe a pydantic model or dataclass, in declaration order.

    Raises:
        SchemaError: If ``record_type`` is not a supported record type.
    """
    if not is_record_type(record_type):
        raise SchemaError(
            f"{record_type!r} is not a record type "
            "(expected a pydantic model or a dataclass)"
        )
    if issubclass(record_type, pydantic.BaseModel):
        fields = _describe_model(record_type)
    else:
        fields = _describe_dataclass(record_type)
    return RecordSchema(record_type=record_type, fields=fields)


# --- Typed instantiation ---


def instantiate(record_type: type, values: Mapping[str, Any]) -> Any:
    """Build an instance of ``record_type`` from a fully coerced mapping.

    Nested records that arrive as mappings are instantiated bottom-up.
    Fields absent from ``values`` keep their declared defaults.

    Raises:
        InstantiationError: If the record type rejects the values.
    """
    if issubclass(record_type, pydantic.BaseModel):
        try:
            # Filled mappings are keyed by field name, whatever the aliases.
            return record_type.model_validate(dict(values), by_name=True)
        except pydantic.ValidationError as e:
            raise InstantiationError(
                f"{record_type.__name__} rejected the filled values: {e}"
            ) from e

    schema = describe(record_type)
    kwargs = dict(values)
    for field in schema.fields:
        value = kwargs.get(field.name)
        if field.record is not None and isinstance(value, Mapping):
            kwargs[field.name] = instantiate(field.record, value)
    try:
        return record_type(**kwargs)
    except (TypeError, ValueError) as e:
        raise InstantiationError(
            f"{record_type.__name__} rejected the filled values: {e}"
        ) from e
