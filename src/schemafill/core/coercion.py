"""Coercion of raw resource values into typed values.

Built-in entries are keyed by ``TypeKind``. Callers extend the table with
their own descriptors (usually a Python type such as ``Path`` or an
``Enum`` subclass) or override a built-in kind. Lookups are exact: a
descriptor with no entry is not an error, the filler treats it as a nested
record instead.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterator, Mapping
import enum
import re
from typing import Any

type Coercer = Callable[[Any], Any]


class TypeKind(enum.Enum):
    """Primitive descriptors understood by the default table."""

    INTEGER = "integer"
    FLOAT = "float"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    RAW = "raw-resource"
    NULL = "null"
    OPEN = "open-record"


_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

_TRUE_TOKEN = "true"
_FALSE_TOKEN = "false"

NULL_DEFAULT_MESSAGE = (
    "ambiguous type: the field defaults to null and declares no type; "
    "declare its type explicitly"
)


def _text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bytes | bytearray):
        return bytes(raw).decode("utf-8")
    raise TypeError(f"expected text, got {type(raw).__name__}")


def _numeric_text(raw: Any) -> str:
    """Text for a numeric parse; whitespace and digit underscores are rejected."""
    text = _text(raw)
    if text != text.strip() or "_" in text:
        raise ValueError(f"not a plain numeric literal: {text!r}")
    return text


def coerce_integer(raw: Any) -> int:
    """Accept an optional sign followed by ASCII digits only."""
    text = _numeric_text(raw)
    if not _INTEGER_PATTERN.fullmatch(text):
        raise ValueError(f"invalid integer literal: {text!r}")
    return int(text)


def coerce_float(raw: Any) -> float:
    return float(_numeric_text(raw))


def coerce_number(raw: Any) -> int | float:
    """Parse as an integer, then as a float."""
    text = _numeric_text(raw)
    try:
        return coerce_integer(text)
    except ValueError:
        return float(text)


def coerce_boolean(raw: Any) -> bool:
    """Accept ``true`` / ``false`` in any letter case, nothing else."""
    token = _text(raw).lower()
    if token == _TRUE_TOKEN:
        return True
    if token == _FALSE_TOKEN:
        return False
    raise ValueError(f"expected 'true' or 'false', got {raw!r}")


def coerce_string(raw: Any) -> str:
    return _text(raw)


def coerce_raw(raw: Any) -> Any:
    return raw


def coerce_null(raw: Any) -> Any:  # noqa: ARG001
    raise ValueError(NULL_DEFAULT_MESSAGE)


_BUILTIN_COERCERS: Mapping[Hashable, Coercer] = {
    TypeKind.INTEGER: coerce_integer,
    TypeKind.FLOAT: coerce_float,
    TypeKind.NUMBER: coerce_number,
    TypeKind.BOOLEAN: coerce_boolean,
    TypeKind.STRING: coerce_string,
    TypeKind.RAW: coerce_raw,
    TypeKind.NULL: coerce_null,
}


class CoercionTable:
    """Mutable mapping from descriptor to coercer.

    A coercer takes the raw value read from a resource and returns the typed
    value, raising ``ValueError`` or ``TypeError`` when it cannot.
    """

    def __init__(self, coercers: Mapping[Hashable, Coercer] | None = None) -> None:
        self._coercers: dict[Hashable, Coercer] = dict(coercers or {})

    @classmethod
    def default(cls) -> CoercionTable:
        """Return a fresh table holding the built-in entries."""
        return cls(_BUILTIN_COERCERS)

    def register(self, descriptor: Hashable, coercer: Coercer) -> None:
        """Add or replace the coercer for ``descriptor``.

        Example:
            table = CoercionTable.default()
            table.register(Path, Path)
            table.register(TypeKind.BOOLEAN, lambda raw: raw in {"1", "yes"})
        """
        if not callable(coercer):
            raise TypeError("coercer must be callable")
        self._coercers[descriptor] = coercer

    def unregister(self, descriptor: Hashable) -> bool:
        """Remove an entry; return True if one was present."""
        return self._coercers.pop(descriptor, None) is not None

    def coercer_for(self, descriptor: Hashable) -> Coercer | None:
        return self._coercers.get(descriptor)

    def extended(self, coercers: Mapping[Hashable, Coercer]) -> CoercionTable:
        """Return a copy of this table with ``coercers`` layered on top."""
        return CoercionTable({**self._coercers, **coercers})

    def __contains__(self, descriptor: object) -> bool:
        try:
            return descriptor in self._coercers
        except TypeError:
            return False

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._coercers)

    def __len__(self) -> int:
        return len(self._coercers)


def describe_descriptor(descriptor: object) -> str:
    """Human-readable descriptor name for diagnostics."""
    if isinstance(descriptor, TypeKind):
        return descriptor.value
    name = getattr(descriptor, "__name__", None)
    return name if isinstance(name, str) else repr(descriptor)


def kind_of_value(value: object) -> Hashable:
    """Descriptor for an untyped default, derived from its runtime type."""
    if value is None:
        return TypeKind.NULL
    if isinstance(value, bool):
        return TypeKind.BOOLEAN
    if isinstance(value, int):
        return TypeKind.INTEGER
    if isinstance(value, float):
        return TypeKind.FLOAT
    if isinstance(value, str):
        return TypeKind.STRING
    if isinstance(value, Mapping):
        return TypeKind.OPEN
    return type(value)


def parse_array_literal(text: str) -> list[str] | str:
    """Parse ``"{a, b, c}"`` into ``["a", "b", "c"]``.

    Any string not wrapped in braces is returned unchanged.
    """
    if len(text) < 2 or not (text.startswith("{") and text.endswith("}")):  # noqa: PLR2004
        return text
    body = text[1:-1]
    if not body.strip():
        return []
    return [item.strip() for item in body.split(",")]
